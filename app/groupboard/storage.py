from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable, Generator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from app.groupboard.errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LOCKS: dict[str, threading.RLock] = {}
_LOCKS_GUARD = threading.Lock()


def document_lock(path: Path) -> threading.RLock:
    """Process-wide lock for one document path; every store over that file shares it."""
    key = str(Path(path).resolve())
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _LOCKS[key] = lock
        return lock


class JsonDocumentStore:
    """
    One JSON document at a fixed path.

    Reads never raise: a missing, unreadable or malformed file yields a copy of the
    caller's default. Writes are whole-document and atomic (temp file + rename), and
    raise StorageError on failure without touching the existing file.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = document_lock(self.path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self, default: Any) -> Any:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return copy.deepcopy(default)
        except OSError as e:
            logger.warning("Unreadable document %s (using default): %s", self.path, e)
            return copy.deepcopy(default)
        if not raw.strip():
            return copy.deepcopy(default)
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Malformed JSON in %s (using default): %s", self.path, e)
            return copy.deepcopy(default)

    def save(self, document: Any) -> None:
        try:
            serialized = json.dumps(document, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialize {self.path.name}: {e}") from e

        with self._lock:
            temp_path: str | None = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, temp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=self.path.name, suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(serialized)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(temp_path, self.path)
                temp_path = None
            except OSError as e:
                raise StorageError(f"Failed to write {self.path.name}: {e}") from e
            finally:
                if temp_path is not None and os.path.exists(temp_path):
                    os.remove(temp_path)

    def ensure(self, default: Any) -> bool:
        """Write `default` if the document does not exist yet. Returns True if it wrote."""
        with self._lock:
            if self.exists():
                return False
            self.save(default)
            logger.info("Initialized document %s", self.path)
            return True

    @contextmanager
    def locked(self) -> Generator[JsonDocumentStore, None, None]:
        with self._lock:
            yield self

    def update(self, mutator: Callable[[Any], T], default: Any) -> T:
        """
        Read-modify-write under the document lock.
        If the mutator raises, nothing is written.
        """
        with self._lock:
            document = self.load(default)
            result = mutator(document)
            self.save(document)
            return result


class Storage:
    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class LocalStorage(Storage):
    root: Path

    def path(self, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        return self.root / safe_key

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        p = self.path(key)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to store {key}: {e}") from e

    def delete(self, key: str) -> bool:
        p = self.path(key)
        try:
            p.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e
        return True


@dataclass(frozen=True)
class StoreConfig:
    base_dir: Path
    published_document: str = "data.json"
    draft_document: str = "draft.json"
    users_document: str = "users.json"
    tv_urls_document: str = "tv_urls.json"
    uploads_dir: str = "uploads"


@dataclass(frozen=True)
class DocumentSet:
    config: StoreConfig
    published: JsonDocumentStore
    draft: JsonDocumentStore
    users: JsonDocumentStore
    tv_urls: JsonDocumentStore
    uploads: LocalStorage


def default_data_dir() -> Path:
    # Mounted persistent disk wins over the working directory.
    mounted = Path("/data")
    if mounted.is_dir():
        return mounted
    return Path(os.getcwd()) / "data"


def storage_from_config(config: dict) -> DocumentSet:
    raw = (config.get("DATA_DIR") or "").strip()
    base_dir = Path(raw).expanduser() if raw else default_data_dir()
    sc = StoreConfig(base_dir=base_dir)
    return DocumentSet(
        config=sc,
        published=JsonDocumentStore(base_dir / sc.published_document),
        draft=JsonDocumentStore(base_dir / sc.draft_document),
        users=JsonDocumentStore(base_dir / sc.users_document),
        tv_urls=JsonDocumentStore(base_dir / sc.tv_urls_document),
        uploads=LocalStorage(root=base_dir / sc.uploads_dir),
    )
