from __future__ import annotations

import logging
import time
from typing import Any

from app.groupboard.errors import ConflictError, ValidationError
from app.groupboard.modules.snapshots.service import PUBLISHED, DraftPublishController

logger = logging.getLogger(__name__)

LIFECYCLE_TYPES = frozenset({"group-create", "group-delete"})
ORPHAN_GROUP = "unknowngroup"


def normalize_ts(value: Any) -> str:
    """
    Timestamps arrive as numbers from the dashboard and as strings from URLs.
    1, 1.0 and "1" all normalize to "1".
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def group_key(entry: dict) -> str | None:
    """Lowercased group name, or None when the entry has no group."""
    group = entry.get("group")
    if not group:
        return None
    return str(group).lower()


def is_orphan(entry: dict) -> bool:
    key = group_key(entry)
    return key is None or key == ORPHAN_GROUP


def is_lifecycle_marker(entry: dict) -> bool:
    return entry.get("type") in LIFECYCLE_TYPES


def validate_log_entry(payload: Any) -> list[str]:
    """Validate a log entry payload. Returns list of errors."""
    if not isinstance(payload, dict):
        return ["Log entry must be a JSON object."]
    errors = []
    for field in ("date", "type"):
        value = payload.get(field)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{field} is required.")
    group = payload.get("group")
    if group is not None and not isinstance(group, str):
        errors.append("group must be a string.")
    ts = payload.get("ts")
    if ts is not None and (isinstance(ts, bool) or not isinstance(ts, (int, float, str)) or not normalize_ts(ts)):
        errors.append("ts must be a number or non-empty string.")
    return errors


def _ts_matcher(wanted: str):
    return lambda entry: normalize_ts(entry.get("ts")) == wanted


def _group_matcher(wanted: str):
    return lambda entry: group_key(entry) == wanted


def _filter_logs(snapshot: dict, should_remove) -> int:
    before = len(snapshot["logs"])
    snapshot["logs"] = [e for e in snapshot["logs"] if not (isinstance(e, dict) and should_remove(e))]
    return before - len(snapshot["logs"])


def _next_ts(logs: list) -> int:
    taken = {normalize_ts(entry.get("ts")) for entry in logs if isinstance(entry, dict)}
    ts = int(time.time() * 1000)
    while str(ts) in taken:
        ts += 1
    return ts


class LogLifecycleManager:
    """Append and delete entries in the `logs` list of one Snapshot (published by default)."""

    def __init__(self, controller: DraftPublishController, target: str = PUBLISHED) -> None:
        self.controller = controller
        self.target = target

    def list_logs(self) -> list:
        return self.controller.load(self.target)["logs"]

    def append(self, entry: Any) -> dict:
        errors = validate_log_entry(entry)
        if errors:
            raise ValidationError(" ".join(errors))

        def _append(snapshot: dict) -> dict:
            logs = snapshot["logs"]
            if entry.get("ts") is None:
                entry["ts"] = _next_ts(logs)
            else:
                ts = normalize_ts(entry["ts"])
                if any(isinstance(e, dict) and _ts_matcher(ts)(e) for e in logs):
                    raise ConflictError(f"A log entry with ts {ts} already exists.")
            logs.append(entry)
            return entry

        return self.controller.update(self.target, _append)

    def _remove_where(self, should_remove) -> int:
        def _filter(snapshot: dict) -> int:
            return _filter_logs(snapshot, should_remove)

        return self.controller.update(self.target, _filter)

    def delete_by_timestamp(self, ts: Any) -> int:
        wanted = normalize_ts(ts)
        if not wanted:
            return 0
        removed = self._remove_where(_ts_matcher(wanted))
        logger.info("Deleted %s log(s) with ts=%s from %s", removed, wanted, self.target)
        return removed

    def delete_by_group(self, group_name: str) -> int:
        # Entries without a group never match here; only the per-day cascade purges orphans.
        removed = self._remove_where(_group_matcher(group_name.lower()))
        logger.info("Deleted %s log(s) for group=%s from %s", removed, group_name, self.target)
        return removed

    def delete_by_key(self, key: str, by: str | None = None) -> tuple[str, int]:
        """
        Delete by a single path key that is either a timestamp or a group name.

        `by` forces the reading ("ts" or "group"). Otherwise the key is a timestamp
        when an entry with that ts exists, else a group name. The reading is decided
        and applied under one document lock. Returns (reading, removed).
        """
        if by not in (None, "ts", "group"):
            raise ValidationError("by must be 'ts' or 'group'.")
        wanted_ts = normalize_ts(key)
        is_ts = _ts_matcher(wanted_ts)

        def _delete(snapshot: dict) -> tuple[str, int]:
            reading = by
            if reading is None:
                known = wanted_ts and any(isinstance(e, dict) and is_ts(e) for e in snapshot["logs"])
                reading = "ts" if known else "group"
            if reading == "ts":
                if not wanted_ts:
                    return reading, 0
                return reading, _filter_logs(snapshot, is_ts)
            return reading, _filter_logs(snapshot, _group_matcher(key.lower()))

        reading, removed = self.controller.update(self.target, _delete)
        logger.info("Deleted %s log(s) by %s=%s from %s", removed, reading, key, self.target)
        return reading, removed

    def delete_by_group_and_date(self, group_name: str, date: str) -> int:
        wanted = group_name.lower()

        def _should_remove(entry: dict) -> bool:
            if entry.get("date") != date:
                return False
            if is_lifecycle_marker(entry):
                return True
            if group_key(entry) == wanted:
                return True
            return is_orphan(entry)

        removed = self._remove_where(_should_remove)
        logger.info("Removed %s logs for %s on %s from %s", removed, group_name, date, self.target)
        return removed
