from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from app.groupboard.errors import ValidationError
from app.groupboard.storage import DocumentSet, JsonDocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

PUBLISHED = "published"
DRAFT = "draft"
VALID_TARGETS = (PUBLISHED, DRAFT)


def empty_snapshot() -> dict[str, list]:
    return {"groups": [], "logs": []}


def normalize_snapshot(document: Any) -> dict[str, Any]:
    """
    Coerce a loaded document into a Snapshot: an object whose `groups` and `logs`
    are lists. Unknown top-level keys are kept as-is.
    """
    if not isinstance(document, dict):
        return empty_snapshot()
    out = dict(document)
    for key in ("groups", "logs"):
        if not isinstance(out.get(key), list):
            out[key] = []
    return out


def validate_snapshot(payload: Any) -> list[str]:
    """Validate a Snapshot request body. Returns list of errors."""
    if not isinstance(payload, dict):
        return ["Body must be a JSON object with groups and logs arrays."]
    errors = []
    if not isinstance(payload.get("groups"), list):
        errors.append("groups must be an array.")
    if not isinstance(payload.get("logs"), list):
        errors.append("logs must be an array.")
    return errors


def json_equal(a: Any, b: Any) -> bool:
    """
    Structural equality of parsed JSON values.

    Booleans never equal numbers (Python's `True == 1` does not apply), while 1 and
    1.0 are the same JSON number. Dict key order is irrelevant, list order is not.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(json_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


def snapshots_equal(a: Any, b: Any) -> bool:
    return json_equal(normalize_snapshot(a), normalize_snapshot(b))


class DraftPublishController:
    """
    Draft/publish/discard over two Snapshot documents.

    `published` is what TV displays and read-only users see; `draft` is the
    administrators' working copy. Neither is ever patched field-by-field: save
    replaces the draft, publish copies draft over published, discard copies
    published over draft. Lock order is always draft, then published.
    """

    def __init__(self, docs: DocumentSet) -> None:
        self.published = docs.published
        self.draft = docs.draft

    def _store(self, target: str) -> JsonDocumentStore:
        if target == PUBLISHED:
            return self.published
        if target == DRAFT:
            return self.draft
        raise ValidationError(f"Unknown snapshot target {target!r}. Use one of: {', '.join(VALID_TARGETS)}")

    def initialize(self) -> None:
        """First activation: published defaults to empty, draft starts as a copy of published."""
        with self.draft.locked(), self.published.locked():
            self.published.ensure(empty_snapshot())
            if not self.draft.exists():
                self.draft.save(self.load_published())
                logger.info("Draft initialized from published snapshot")

    def load_published(self) -> dict[str, Any]:
        return normalize_snapshot(self.published.load(empty_snapshot()))

    def load_draft(self) -> dict[str, Any]:
        document = self.draft.load(None)
        if not isinstance(document, dict):
            # Missing, unparsable or not an object: the draft is unusable.
            if document is not None:
                logger.warning("Draft %s is not a JSON object; reading published instead", self.draft.path)
            return self.load_published()
        return normalize_snapshot(document)

    def load(self, target: str) -> dict[str, Any]:
        if self._store(target) is self.draft:
            return self.load_draft()
        return self.load_published()

    def update(self, target: str, mutator: Callable[[dict[str, Any]], T]) -> T:
        """Read-modify-write one Snapshot under its document lock."""
        store = self._store(target)
        with store.locked():
            snapshot = self.load(target)
            result = mutator(snapshot)
            store.save(snapshot)
            return result

    def save_draft(self, snapshot: Any) -> None:
        errors = validate_snapshot(snapshot)
        if errors:
            raise ValidationError(" ".join(errors))
        self.draft.save(snapshot)

    def publish(self) -> bool:
        """Copy draft onto published. Returns True if published content changed."""
        with self.draft.locked(), self.published.locked():
            draft = self.load_draft()
            changed = not snapshots_equal(draft, self.load_published())
            self.published.save(draft)
        logger.info("Published draft (changed=%s)", changed)
        return changed

    def discard(self) -> bool:
        """Copy published onto draft. Returns True if draft content changed."""
        with self.draft.locked(), self.published.locked():
            published = self.load_published()
            changed = not snapshots_equal(published, self.load_draft())
            self.draft.save(published)
        logger.info("Discarded draft (changed=%s)", changed)
        return changed

    def status(self) -> dict[str, bool]:
        with self.draft.locked(), self.published.locked():
            return {"hasChanges": not snapshots_equal(self.load_draft(), self.load_published())}
