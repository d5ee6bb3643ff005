"""Tests for TV display URLs and PDF uploads."""
import io

import pytest

from app.groupboard import create_app
from app.groupboard.errors import ValidationError
from app.groupboard.modules.displays.service import TVUrlStore, UploadStore, generate_stored_name, is_safe_stored_name
from app.groupboard.storage import JsonDocumentStore, LocalStorage


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("UPLOAD_MAX_BYTES", "1024")
    monkeypatch.delenv("UPLOAD_ALLOWED_EXTENSIONS", raising=False)
    app = create_app()
    return app.test_client()


def _upload(client, data=b"%PDF-1.4 test", filename="Weekly Plan.pdf", name="Plan"):
    form = {"file": (io.BytesIO(data), filename)}
    if name is not None:
        form["name"] = name
    return client.post("/api/upload", data=form, content_type="multipart/form-data")


def test_tv_urls_start_empty_and_replace(client):
    assert client.get("/api/tv-urls").json == []
    urls = [{"name": "Lobby", "url": "https://example.com/board", "type": "url"}]
    r = client.post("/api/tv-urls", json=urls)
    assert r.status_code == 200
    assert r.json == {"status": "ok", "count": 1}
    assert client.get("/api/tv-urls").json == urls


def test_tv_urls_must_be_array_of_objects(client):
    assert client.post("/api/tv-urls", json={"name": "x"}).status_code == 400
    assert client.post("/api/tv-urls", json=["https://example.com"]).status_code == 400


def test_upload_stores_file_and_registers_display(client):
    r = _upload(client)
    assert r.status_code == 200
    body = r.json
    assert body["status"] == "ok"
    assert body["name"] == "Plan"
    assert body["fileName"].endswith("_Weekly_Plan.pdf")
    assert body["url"] == "/uploads/" + body["fileName"]

    entries = client.get("/api/tv-urls").json
    assert len(entries) == 1
    assert entries[0]["type"] == "file"
    assert entries[0]["originalName"] == "Weekly Plan.pdf"
    assert entries[0]["uploadedAt"].endswith("Z")

    r = client.get(body["url"])
    assert r.status_code == 200
    assert r.data == b"%PDF-1.4 test"


def test_upload_without_name_uses_original_filename(client):
    r = _upload(client, name=None)
    assert r.json["name"] == "Weekly Plan.pdf"


def test_upload_rejects_missing_file_and_wrong_type(client):
    r = client.post("/api/upload", data={"name": "x"}, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.json["error"] == "No file uploaded"

    r = _upload(client, filename="slides.pptx")
    assert r.status_code == 400
    assert "Only PDF" in r.json["error"]
    assert client.get("/api/tv-urls").json == []


def test_upload_too_large_is_413(client):
    r = _upload(client, data=b"x" * 2048)
    assert r.status_code == 413
    assert "File too large" in r.json["error"]
    assert client.get("/api/tv-urls").json == []


def test_delete_upload(client, tmp_path):
    stored = _upload(client).json["fileName"]
    assert (tmp_path / "data" / "uploads" / stored).exists()

    r = client.delete(f"/api/upload/{stored}")
    assert r.status_code == 200
    assert r.json == {"status": "ok", "deleted": stored}
    assert not (tmp_path / "data" / "uploads" / stored).exists()

    # already gone is fine
    assert client.delete(f"/api/upload/{stored}").status_code == 200


def test_delete_upload_rejects_traversal(client):
    r = client.delete("/api/upload/..data.json")
    assert r.status_code == 400
    assert r.json["error"] == "Invalid filename"


def test_missing_upload_is_404(client):
    assert client.get("/uploads/nothing.pdf").status_code == 404


def test_stored_names_are_unique_and_safe():
    names = {generate_stored_name("../../etc/passwd.pdf") for _ in range(50)}
    assert len(names) == 50
    assert all(is_safe_stored_name(n) for n in names)
    assert not is_safe_stored_name("a\\b.pdf")
    assert not is_safe_stored_name("")


def test_upload_store_rejects_empty_file(tmp_path):
    displays = TVUrlStore(JsonDocumentStore(tmp_path / "tv_urls.json"))
    uploads = UploadStore(LocalStorage(root=tmp_path / "uploads"), displays)
    with pytest.raises(ValidationError):
        uploads.save_upload("empty.pdf", b"")
    assert displays.list_entries() == []
