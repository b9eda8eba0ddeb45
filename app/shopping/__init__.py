import logging
import uuid

from flask import Flask, g, render_template, request, session
from dotenv import load_dotenv

from app.shopping.config import load_config
from app.shopping.db import init_db, teardown_db_session
from app.shopping.security import ensure_csrf_token, validate_csrf
from app.shopping.models import Base  # noqa: F401  (loads module tables before the blueprints import them)
from app.shopping.routes import bp as routes_bp
from app.shopping.modules.customers.admin import bp as customers_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    if not isinstance(logging.getLevelName(app.config["LOG_LEVEL"]), int):
        raise RuntimeError(f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL (got {app.config['LOG_LEVEL']!r}).")
    logging.basicConfig(level=app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    app.register_blueprint(routes_bp)
    app.register_blueprint(customers_bp, url_prefix="/customers")

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE") and not validate_csrf(request):
            app.logger.warning("CSRF token missing or invalid (request_id=%s)", getattr(g, "request_id", None))
            return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(400)
    def _err_400(e):  # type: ignore[no-redef]
        app.logger.warning("Bad request: %s %s (request_id=%s)", request.method, request.path, getattr(g, "request_id", None))
        return render_template("errors/400.html"), 400

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(409)
    def _err_409(e):  # type: ignore[no-redef]
        return render_template("errors/409.html", customer=None, customer_id=None), 409

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
