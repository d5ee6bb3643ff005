import logging
import uuid

from flask import Flask, g, jsonify, request
from dotenv import load_dotenv

from app.groupboard.config import load_config
from app.groupboard.documents import init_documents
from app.groupboard.errors import GroupboardError
from app.groupboard.routes import bp as routes_bp
from app.groupboard.modules.snapshots.admin import bp as snapshots_bp
from app.groupboard.modules.logs.admin import bp as logs_bp
from app.groupboard.modules.users.admin import bp as users_bp
from app.groupboard.modules.displays.admin import bp as displays_bp
from app.groupboard.modules.displays.service import format_size


def create_app() -> Flask:
    load_dotenv()
    config = load_config()
    app = Flask(__name__, static_folder=config["STATIC_DIR"], static_url_path="")
    app.config.from_mapping(config)
    # Snapshots go out in stored order; consumers render groups as listed.
    app.json.sort_keys = False

    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("app.groupboard").setLevel(app.config["LOG_LEVEL"])
    logging.getLogger("groupboard.audit").setLevel(app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_documents(app)

    @app.before_request
    def _assign_request_id():
        if not getattr(g, "request_id", None):
            g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.after_request
    def _cors_headers(response):
        origins = app.config.get("CORS_ORIGINS")
        if origins and request.path.startswith("/api/"):
            response.headers["Access-Control-Allow-Origin"] = origins
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, X-Request-ID"
        return response

    app.register_blueprint(routes_bp)
    app.register_blueprint(snapshots_bp, url_prefix="/api")
    app.register_blueprint(logs_bp, url_prefix="/api")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(displays_bp)

    @app.errorhandler(GroupboardError)
    def _err_groupboard(e: GroupboardError):  # type: ignore[no-redef]
        if e.status_code >= 500:
            app.logger.error("%s (request_id=%s): %s", type(e).__name__, getattr(g, "request_id", None), e.message)
        else:
            app.logger.info("%s %s -> %s: %s", request.method, request.path, e.status_code, e.message)
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def _err_405(e):  # type: ignore[no-redef]
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        limit = format_size(app.config["UPLOAD_MAX_BYTES"])
        return jsonify({"error": f"File too large. Maximum size is {limit}."}), 413

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal server error"}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
