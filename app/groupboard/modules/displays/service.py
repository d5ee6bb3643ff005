from __future__ import annotations

import logging
import os
import secrets
import time
from datetime import datetime, timezone
from typing import Any

from werkzeug.utils import secure_filename

from app.groupboard.errors import PayloadTooLargeError, ValidationError
from app.groupboard.storage import JsonDocumentStore, LocalStorage

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads/"


def format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes // (1024 * 1024)}MB"
    return f"{num_bytes} bytes"


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_upload_filename(filename: str, fallback: str = "document.pdf") -> str:
    fn = secure_filename(filename or "")
    return fn or fallback


def generate_stored_name(filename: str) -> str:
    """<epoch-ms>_<random>_<sanitized original>; unique even for same-millisecond uploads."""
    return f"{int(time.time() * 1000)}_{secrets.token_hex(4)}_{sanitize_upload_filename(filename)}"


def is_safe_stored_name(file_name: str) -> bool:
    if not file_name or file_name in (".", ".."):
        return False
    return ".." not in file_name and "/" not in file_name and "\\" not in file_name


class TVUrlStore:
    """Display entries document: a list of {name, url, type, originalName?, uploadedAt?}."""

    def __init__(self, store: JsonDocumentStore) -> None:
        self.store = store

    def initialize(self) -> bool:
        return self.store.ensure([])

    def list_entries(self) -> list:
        entries = self.store.load([])
        return entries if isinstance(entries, list) else []

    def replace_all(self, entries: Any) -> int:
        if not isinstance(entries, list):
            raise ValidationError("URLs must be an array")
        if any(not isinstance(e, dict) for e in entries):
            raise ValidationError("Each URL entry must be an object")
        self.store.save(entries)
        return len(entries)

    def register(self, entry: dict) -> dict:
        with self.store.locked():
            entries = self.list_entries()
            entries.append(entry)
            self.store.save(entries)
        return entry


class UploadStore:
    """PDF uploads stored on disk and registered as TV display entries."""

    def __init__(
        self,
        storage: LocalStorage,
        displays: TVUrlStore,
        *,
        allowed_extensions: tuple[str, ...] = (".pdf",),
        max_bytes: int = 50 * 1024 * 1024,
    ) -> None:
        self.storage = storage
        self.displays = displays
        self.allowed_extensions = tuple(e.lower() for e in allowed_extensions)
        self.max_bytes = max_bytes

    def validate_upload(self, filename: str | None, data: bytes) -> None:
        if not filename:
            raise ValidationError("No file uploaded")
        ext = os.path.splitext(filename)[1].lower()
        if ext not in self.allowed_extensions:
            allowed = ", ".join(e.lstrip(".").upper() for e in self.allowed_extensions)
            raise ValidationError(f"File type not allowed. Only {allowed} files are supported.")
        if not data:
            raise ValidationError("Uploaded file is empty")
        if len(data) > self.max_bytes:
            raise PayloadTooLargeError(f"File too large. Maximum size is {format_size(self.max_bytes)}.")

    def save_upload(self, filename: str | None, data: bytes, display_name: str | None = None) -> dict:
        self.validate_upload(filename, data)
        stored = generate_stored_name(filename)
        self.storage.put_bytes(stored, data)

        name = (display_name or "").strip() or filename
        url = UPLOAD_URL_PREFIX + stored
        self.displays.register(
            {
                "name": name,
                "url": url,
                "type": "file",
                "originalName": filename,
                "uploadedAt": _utcnow_iso(),
            }
        )
        logger.info("Stored upload %s (%s bytes) as %s", filename, len(data), stored)
        return {"name": name, "url": url, "fileName": stored}

    def delete_upload(self, file_name: str) -> bool:
        """Remove a stored upload. A name that was never stored is not an error."""
        if not is_safe_stored_name(file_name):
            raise ValidationError("Invalid filename")
        return self.storage.delete(file_name)
