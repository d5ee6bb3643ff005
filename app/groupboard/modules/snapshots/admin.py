from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.groupboard.audit import record_event
from app.groupboard.documents import document_set
from app.groupboard.modules.snapshots.service import DraftPublishController

bp = Blueprint("snapshots", __name__)


def _controller() -> DraftPublishController:
    return DraftPublishController(document_set())


# ---------- Read ----------
@bp.get("/data")
def published_get():
    """Published snapshot (TV displays, read-only users)."""
    return jsonify(_controller().load_published())


@bp.get("/draft")
def draft_get():
    """Draft snapshot (administrators)."""
    return jsonify(_controller().load_draft())


@bp.get("/draft-status")
def draft_status():
    return jsonify(_controller().status())


# ---------- Write ----------
@bp.post("/save")
def draft_save():
    payload = request.get_json(silent=True)
    _controller().save_draft(payload)
    record_event(
        action="draft.save",
        entity_type="Snapshot",
        entity_id="draft",
        metadata={"groups": len(payload["groups"]), "logs": len(payload["logs"])},
    )
    return jsonify({"status": "ok", "target": "draft"})


@bp.post("/publish")
def draft_publish():
    changed = _controller().publish()
    record_event(action="draft.publish", entity_type="Snapshot", entity_id="published", metadata={"changed": changed})
    return jsonify({"status": "ok", "message": "Published successfully"})


@bp.post("/discard")
def draft_discard():
    changed = _controller().discard()
    record_event(action="draft.discard", entity_type="Snapshot", entity_id="draft", metadata={"changed": changed})
    return jsonify({"status": "ok", "message": "Draft discarded"})
