import json

import pytest

from app.groupboard import create_app
from scripts.init_data import init_data


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("STATIC_DIR", str(tmp_path / "public"))
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    app = create_app()
    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert client.get("/healthz").data == b"ok"


def test_startup_creates_documents(client, tmp_path):
    data_dir = tmp_path / "data"
    assert json.loads((data_dir / "data.json").read_text()) == {"groups": [], "logs": []}
    assert json.loads((data_dir / "draft.json").read_text()) == {"groups": [], "logs": []}
    assert json.loads((data_dir / "tv_urls.json").read_text()) == []
    assert len(json.loads((data_dir / "users.json").read_text())) == 2
    assert (data_dir / "uploads").is_dir()


def test_static_index_served(tmp_path, monkeypatch):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>board</h1>", encoding="utf-8")
    (public / "tv.html").write_text("<h1>tv</h1>", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("STATIC_DIR", str(public))
    client = create_app().test_client()

    assert client.get("/").data == b"<h1>board</h1>"
    assert client.get("/tv.html").data == b"<h1>tv</h1>"


def test_unknown_paths_answer_json(client):
    r = client.get("/")
    assert r.status_code == 404
    assert r.json == {"error": "Not found"}

    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert "error" in r.json


def test_api_responses_carry_cors_header(client):
    r = client.get("/api/data")
    assert r.headers["Access-Control-Allow-Origin"] == "*"
    assert "Access-Control-Allow-Origin" not in client.get("/health").headers


def test_production_requires_secret_key(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "change-me")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    with pytest.raises(RuntimeError):
        create_app()


def test_init_data_is_idempotent(tmp_path):
    docs = init_data({"DATA_DIR": str(tmp_path)})
    docs.published.save({"groups": [{"name": "A"}], "logs": []})

    init_data({"DATA_DIR": str(tmp_path)})
    assert docs.published.load(None) == {"groups": [{"name": "A"}], "logs": []}
    # draft was created before publish data existed and is left alone
    assert docs.draft.load(None) == {"groups": [], "logs": []}
