from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.groupboard.audit import record_event
from app.groupboard.documents import document_set
from app.groupboard.modules.logs.service import LogLifecycleManager
from app.groupboard.modules.snapshots.service import PUBLISHED, DraftPublishController

bp = Blueprint("logs", __name__)


def _manager() -> LogLifecycleManager:
    target = (request.args.get("target") or PUBLISHED).strip().lower()
    return LogLifecycleManager(DraftPublishController(document_set()), target=target)


@bp.get("/logs")
def logs_list():
    return jsonify(_manager().list_logs())


@bp.post("/logs")
def logs_append():
    manager = _manager()
    entry = manager.append(request.get_json(silent=True))
    record_event(
        action="log.append",
        entity_type="LogEntry",
        entity_id=str(entry.get("ts")),
        metadata={"target": manager.target, "type": entry.get("type"), "group": entry.get("group")},
    )
    return jsonify({"status": "ok", "log": entry})


@bp.delete("/logs/<key>")
def logs_delete_one(key: str):
    """
    One path segment is either a timestamp or a group name.
    ?by=ts / ?by=group forces the reading; otherwise a key naming an existing ts is a ts.
    """
    manager = _manager()
    by = (request.args.get("by") or "").strip().lower() or None
    reading, removed = manager.delete_by_key(key, by=by)

    if reading == "ts":
        record_event(action="log.delete", entity_type="LogEntry", entity_id=key, metadata={"target": manager.target, "removed": removed})
        return jsonify({"status": "deleted", "ts": key, "removed": removed})

    record_event(action="log.delete_group", entity_type="Group", entity_id=key, metadata={"target": manager.target, "removed": removed})
    return jsonify({"status": "deleted", "groupName": key, "removed": removed})


@bp.delete("/logs/<group_name>/<path:date>")
def logs_delete_group_day(group_name: str, date: str):
    manager = _manager()
    removed = manager.delete_by_group_and_date(group_name, date)
    record_event(
        action="log.delete_group_day",
        entity_type="Group",
        entity_id=group_name,
        metadata={"target": manager.target, "date": date, "removed": removed},
    )
    return jsonify({"status": "deleted", "groupName": group_name, "date": date, "removed": removed})
