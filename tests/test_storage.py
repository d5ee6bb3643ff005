"""Tests for the JSON document store and upload storage."""
import json
import threading

import pytest

from app.groupboard.errors import StorageError
from app.groupboard.storage import JsonDocumentStore, LocalStorage, document_lock, storage_from_config


def test_load_missing_returns_copy_of_default(tmp_path):
    store = JsonDocumentStore(tmp_path / "missing.json")
    default = {"groups": [], "logs": []}
    doc = store.load(default)
    assert doc == default
    doc["groups"].append({"name": "A"})
    assert default == {"groups": [], "logs": []}


def test_load_malformed_or_empty_returns_default(tmp_path):
    p = tmp_path / "doc.json"
    p.write_text("{not json", encoding="utf-8")
    assert JsonDocumentStore(p).load([]) == []

    p.write_text("   ", encoding="utf-8")
    assert JsonDocumentStore(p).load({"x": 1}) == {"x": 1}


def test_save_creates_directories_and_round_trips(tmp_path):
    store = JsonDocumentStore(tmp_path / "nested" / "dir" / "doc.json")
    store.save({"groups": [{"name": "Ä"}], "logs": []})
    assert store.exists()
    assert store.load(None) == {"groups": [{"name": "Ä"}], "logs": []}
    assert list(store.path.parent.glob("*.tmp")) == []


def test_save_unserializable_raises_and_keeps_existing(tmp_path):
    store = JsonDocumentStore(tmp_path / "doc.json")
    store.save({"ok": True})
    with pytest.raises(StorageError):
        store.save({"bad": object()})
    assert store.load(None) == {"ok": True}


def test_save_io_failure_raises_storage_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    store = JsonDocumentStore(blocker / "doc.json")
    with pytest.raises(StorageError):
        store.save({"x": 1})


def test_failed_rename_leaves_previous_document(tmp_path, monkeypatch):
    store = JsonDocumentStore(tmp_path / "doc.json")
    store.save({"version": 1})

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("app.groupboard.storage.os.replace", boom)
    with pytest.raises(StorageError):
        store.save({"version": 2})
    monkeypatch.undo()

    assert store.load(None) == {"version": 1}
    assert list(tmp_path.glob("*.tmp")) == []


def test_ensure_writes_only_once(tmp_path):
    store = JsonDocumentStore(tmp_path / "doc.json")
    assert store.ensure([1]) is True
    assert store.ensure([2]) is False
    assert store.load(None) == [1]


def test_update_persists_result_and_aborts_on_error(tmp_path):
    store = JsonDocumentStore(tmp_path / "doc.json")
    store.save([])

    assert store.update(lambda doc: doc.append("a") or len(doc), []) == 1
    assert store.load(None) == ["a"]

    def failing(doc):
        doc.append("b")
        raise ValueError("nope")

    with pytest.raises(ValueError):
        store.update(failing, [])
    assert store.load(None) == ["a"]


def test_stores_over_same_path_share_lock(tmp_path):
    a = JsonDocumentStore(tmp_path / "doc.json")
    b = JsonDocumentStore(tmp_path / "." / "doc.json")
    assert document_lock(a.path) is document_lock(b.path)
    assert document_lock(tmp_path / "other.json") is not document_lock(a.path)


def test_concurrent_updates_do_not_lose_writes(tmp_path):
    path = tmp_path / "doc.json"
    JsonDocumentStore(path).save([])

    def worker(n):
        # separate store objects, same document
        JsonDocumentStore(path).update(lambda doc: doc.append(n), [])

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(25)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    doc = json.loads(path.read_text(encoding="utf-8"))
    assert sorted(doc) == list(range(25))


def test_local_storage_put_and_delete(tmp_path):
    storage = LocalStorage(root=tmp_path / "uploads")
    storage.put_bytes("a.pdf", b"%PDF-1.4")
    assert (tmp_path / "uploads" / "a.pdf").read_bytes() == b"%PDF-1.4"
    assert storage.delete("a.pdf") is True
    assert storage.delete("a.pdf") is False
    assert not (tmp_path / "uploads" / "a.pdf").exists()


def test_storage_from_config_uses_data_dir(tmp_path):
    docs = storage_from_config({"DATA_DIR": str(tmp_path)})
    assert docs.config.base_dir == tmp_path
    assert docs.published.path == tmp_path / "data.json"
    assert docs.draft.path == tmp_path / "draft.json"
    assert docs.users.path == tmp_path / "users.json"
    assert docs.tv_urls.path == tmp_path / "tv_urls.json"
    assert docs.uploads.root == tmp_path / "uploads"
