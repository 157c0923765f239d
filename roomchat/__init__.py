"""roomchat application factory and bootstrap."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from flask import Flask

from roomchat.config import config_by_name
from roomchat.extensions import db, init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the roomchat Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(__name__, instance_path=str(instance_root), instance_relative_config=True)
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///"):
        db_path = Path(db_uri.replace("sqlite:///", "", 1))
        abs_path = db_path if db_path.is_absolute() else project_root / db_path
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{abs_path}"

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    level = app.config.get("LOG_LEVEL", "INFO")
    app.logger.setLevel(level)
    logging.getLogger("roomchat").setLevel(level)

    init_extensions(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    from roomchat.scripts.revoke_sessions import register_commands

    register_commands(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from roomchat.core.auth.controllers import auth_bp  # local import to avoid circulars
    from roomchat.domains.rooms.controllers.room_api import room_api_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(room_api_bp, url_prefix="/api/rooms")


def _register_error_handlers(app: Flask) -> None:
    """JSON error responses."""
    from sqlalchemy.exc import SQLAlchemyError
    from werkzeug.exceptions import HTTPException

    from roomchat.core.errors import RoomchatError, StorageFailure

    @app.errorhandler(RoomchatError)
    def _domain_error(exc: RoomchatError):
        return exc.to_dict(), exc.status

    @app.errorhandler(SQLAlchemyError)
    def _storage_error(exc: SQLAlchemyError):
        db.session.rollback()
        app.logger.exception("Storage error: %s", exc)
        failure = StorageFailure()
        return failure.to_dict(), failure.status

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        if app.debug or app.testing:
            return {"ok": False, "error": str(exc)}, 500
        return {"ok": False, "error": "unexpected_error"}, 500
