import logging
import os
import uuid

from flask import Flask, g
from dotenv import load_dotenv
from flask_cors import CORS

from app.crm.config import load_config
from app.crm.db import init_db, teardown_db_session
from app.crm.errors import register_error_handlers
from app.crm.models import Base  # noqa: F401  (must load before module models)
from app.crm.routes import bp as routes_bp
from app.crm.modules.customers.api import bp as customers_bp


def _configure_logging(level_name: str) -> int:
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    root = logging.getLogger()
    # Only configure once; gunicorn and pytest may already have handlers attached.
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    logging.getLogger("app.crm").setLevel(level)
    return level


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.json.sort_keys = False  # type: ignore[attr-defined]

    level = _configure_logging(app.config["LOG_LEVEL"])
    app.logger.setLevel(level)

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not os.environ.get("DATABASE_URL", "").strip():
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    @app.before_request
    def _assign_request_id():
        g.request_id = uuid.uuid4().hex

    @app.after_request
    def _echo_request_id(response):
        rid = getattr(g, "request_id", None)
        if rid:
            response.headers["X-Request-ID"] = rid
        return response

    # Browser clients on other origins call the API directly.
    origins = list(app.config["CORS_ORIGINS"])
    CORS(app, origins=origins, send_wildcard="*" in origins, expose_headers=["X-Request-ID"])

    app.register_blueprint(routes_bp)
    app.register_blueprint(customers_bp, url_prefix=app.config["API_PREFIX"] or None)
    register_error_handlers(app)
    app.teardown_appcontext(teardown_db_session)

    app.logger.info("create_app() complete; env=%s api_prefix=%s", env or "(unset)", app.config["API_PREFIX"])
    return app
