from __future__ import annotations

import copy
import logging
from typing import Any

from app.groupboard.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.groupboard.storage import JsonDocumentStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("username", "password", "role")
PROTECTED_USERNAME = "admin"

DEFAULT_USERS = [
    {"username": "admin", "password": "admin123", "role": "admin"},
    {"username": "user", "password": "user123", "role": "user"},
]


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def validate_user_payload(payload: Any) -> list[str]:
    """Validate a single user record. Returns list of errors."""
    if not isinstance(payload, dict):
        return ["User must be a JSON object."]
    missing = [f for f in REQUIRED_FIELDS if not _clean(payload.get(f))]
    if missing:
        return ["Each user must have username, password, and role."]
    return []


def public_user(user: dict) -> dict:
    return {"username": user.get("username"), "role": user.get("role")}


class UserStore:
    """Accounts document: a list of {username, password, role}."""

    def __init__(self, store: JsonDocumentStore) -> None:
        self.store = store

    def initialize(self) -> bool:
        return self.store.ensure(copy.deepcopy(DEFAULT_USERS))

    def _load(self) -> list:
        users = self.store.load(DEFAULT_USERS)
        if not isinstance(users, list):
            logger.warning("Users document is not a list; using defaults")
            return copy.deepcopy(DEFAULT_USERS)
        return users

    def _update(self, mutator):
        with self.store.locked():
            users = self._load()
            result = mutator(users)
            self.store.save(users)
            return result

    def list_users(self) -> list:
        return self._load()

    def replace_all(self, users: Any) -> int:
        if not isinstance(users, list):
            raise ValidationError("Users must be an array")
        seen: set[str] = set()
        for user in users:
            errors = validate_user_payload(user)
            if errors:
                raise ValidationError(errors[0])
            name = _clean(user["username"])
            if name in seen:
                raise ValidationError(f"Duplicate username: {name}")
            seen.add(name)
        self.store.save(users)
        return len(users)

    def create_user(self, payload: Any) -> dict:
        if not isinstance(payload, dict) or any(not _clean(payload.get(f)) for f in REQUIRED_FIELDS):
            raise ValidationError("Username, password, and role are required")
        user = {
            "username": _clean(payload["username"]),
            "password": payload["password"],
            "role": _clean(payload["role"]),
        }

        def _create(users: list) -> dict:
            if any(u.get("username") == user["username"] for u in users if isinstance(u, dict)):
                raise ConflictError("Username already exists")
            users.append(user)
            return user

        return self._update(_create)

    def update_user(self, username: str, payload: Any) -> dict:
        payload = payload if isinstance(payload, dict) else {}
        new_username = _clean(payload.get("newUsername"))
        password = payload.get("password")
        role = _clean(payload.get("role"))

        def _apply(users: list) -> dict:
            idx = next((i for i, u in enumerate(users) if isinstance(u, dict) and u.get("username") == username), None)
            if idx is None:
                raise NotFoundError("User not found")
            user = users[idx]
            if new_username and new_username != username:
                if any(isinstance(u, dict) and u.get("username") == new_username for u in users):
                    raise ConflictError("Username already exists")
                user["username"] = new_username
            if password:
                user["password"] = password
            if role:
                user["role"] = role
            return user

        return self._update(_apply)

    def delete_user(self, username: str) -> None:
        if username == PROTECTED_USERNAME:
            raise ForbiddenError("Cannot delete admin user")

        def _delete(users: list) -> None:
            kept = [u for u in users if not (isinstance(u, dict) and u.get("username") == username)]
            if len(kept) == len(users):
                raise NotFoundError("User not found")
            users[:] = kept

        self._update(_delete)
