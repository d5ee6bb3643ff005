from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, send_from_directory

from app.groupboard.audit import record_event
from app.groupboard.documents import document_set
from app.groupboard.errors import ValidationError
from app.groupboard.modules.displays.service import TVUrlStore, UploadStore

bp = Blueprint("displays", __name__)


def _tv_urls() -> TVUrlStore:
    return TVUrlStore(document_set().tv_urls)


def _uploads() -> UploadStore:
    return UploadStore(
        document_set().uploads,
        _tv_urls(),
        allowed_extensions=current_app.config["UPLOAD_ALLOWED_EXTENSIONS"],
        max_bytes=current_app.config["UPLOAD_MAX_BYTES"],
    )


# ---------- TV display URLs ----------
@bp.get("/api/tv-urls")
def tv_urls_list():
    return jsonify(_tv_urls().list_entries())


@bp.post("/api/tv-urls")
def tv_urls_replace():
    count = _tv_urls().replace_all(request.get_json(silent=True))
    record_event(action="tv_urls.replace", entity_type="TVUrl", metadata={"count": count})
    return jsonify({"status": "ok", "count": count})


# ---------- Uploads ----------
@bp.post("/api/upload")
def upload_create():
    f = request.files.get("file")
    if f is None or not f.filename:
        raise ValidationError("No file uploaded")
    result = _uploads().save_upload(f.filename, f.read(), request.form.get("name"))
    record_event(action="upload.create", entity_type="Upload", entity_id=result["fileName"], metadata={"name": result["name"]})
    return jsonify({"status": "ok", **result})


@bp.delete("/api/upload/<file_name>")
def upload_delete(file_name: str):
    existed = _uploads().delete_upload(file_name)
    record_event(action="upload.delete", entity_type="Upload", entity_id=file_name, metadata={"existed": existed})
    return jsonify({"status": "ok", "deleted": file_name})


@bp.get("/uploads/<path:file_name>")
def upload_download(file_name: str):
    return send_from_directory(document_set().uploads.root, file_name)
