"""Shared extension instances for the roomchat application."""

from pathlib import Path

from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# Objects stay attached to the session after commit so services can return them.
db = SQLAlchemy(session_options={"expire_on_commit": False})
migrate = Migrate()
# Only signs and decodes; the session gate, not jwt_required, guards views.
jwt = JWTManager()
bcrypt = Bcrypt()
# Limits, storage and the on/off switch come from RATELIMIT_* config keys.
limiter = Limiter(key_func=get_remote_address, headers_enabled=True)


def init_extensions(app) -> None:
    """Bind every extension to ``app``."""
    db.init_app(app)
    migrate.init_app(app, db, directory=str(MIGRATIONS_DIR))
    jwt.init_app(app)
    bcrypt.init_app(app)
    limiter.init_app(app)
