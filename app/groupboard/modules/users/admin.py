from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.groupboard.audit import record_event
from app.groupboard.documents import document_set
from app.groupboard.modules.users.service import UserStore, public_user

bp = Blueprint("users", __name__)


def _users() -> UserStore:
    return UserStore(document_set().users)


@bp.get("/users")
def users_list():
    return jsonify(_users().list_users())


@bp.post("/users")
def users_replace():
    count = _users().replace_all(request.get_json(silent=True))
    record_event(action="users.replace", entity_type="User", metadata={"count": count})
    return jsonify({"status": "ok", "count": count})


@bp.post("/users/create")
def users_create():
    user = _users().create_user(request.get_json(silent=True))
    record_event(action="users.create", entity_type="User", entity_id=user["username"], metadata={"role": user["role"]})
    return jsonify({"status": "ok", "user": public_user(user)})


@bp.put("/users/<username>")
def users_update(username: str):
    user = _users().update_user(username, request.get_json(silent=True))
    record_event(
        action="users.update",
        entity_type="User",
        entity_id=username,
        metadata={"username": user.get("username"), "role": user.get("role")},
    )
    return jsonify({"status": "ok", "user": user})


@bp.delete("/users/<username>")
def users_delete(username: str):
    _users().delete_user(username)
    record_event(action="users.delete", entity_type="User", entity_id=username)
    return jsonify({"status": "ok", "deleted": username})
