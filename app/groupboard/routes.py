from flask import Blueprint, current_app, jsonify, send_from_directory

from app.groupboard.documents import document_set
from app.groupboard.modules.snapshots.service import DraftPublishController
from app.groupboard.modules.users.service import UserStore

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    return send_from_directory(current_app.config["STATIC_DIR"], "index.html")


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for container probes. No document access, minimal overhead.
    """
    return "ok", 200


@bp.get("/api/admin/recovery")
def recovery():
    """Users, counts and document locations, for recovering a lost admin login."""
    docs = document_set()
    users = UserStore(docs.users).list_users()
    data = DraftPublishController(docs).load_published()

    current_app.logger.info("=== RECOVERY REQUEST ===")
    current_app.logger.info("DATA_FILE: %s exists=%s", docs.published.path, docs.published.exists())
    current_app.logger.info("USERS_FILE: %s exists=%s", docs.users.path, docs.users.exists())

    return jsonify(
        {
            "users": users,
            "userCount": len(users),
            "groupCount": len(data["groups"]),
            "logCount": len(data["logs"]),
            "filePaths": {
                "dataFile": str(docs.published.path),
                "usersFile": str(docs.users.path),
                "dataExists": docs.published.exists(),
                "usersExists": docs.users.exists(),
            },
        }
    )
