# panavest/extensions.py
"""
Flask extensions initialization module.
"""

import logging

from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Initialize extensions
db = SQLAlchemy()
cors = CORS()
migrate = Migrate()
limiter = Limiter(key_func=get_remote_address)

logger = logging.getLogger(__name__)


def init_extensions(app):
    """Initialize all Flask extensions against `app`."""

    db.init_app(app)
    logger.info("SQLAlchemy initialized")

    migrate.init_app(app, db)
    logger.info("Flask-Migrate initialized")

    init_cors(app)
    logger.info("CORS initialized")

    limiter.init_app(app)
    if app.config.get("RATELIMIT_ENABLED", True):
        logger.info(f"Rate limiter initialized ({app.config.get('RATELIMIT_STORAGE_URI')})")
    else:
        logger.info("Rate limiting disabled")

    if app.config.get("ENVIRONMENT") == "development":
        create_tables(app)

    return app


def init_cors(app):
    """Initialize CORS from configuration."""
    cors.init_app(
        app,
        origins=app.config.get("CORS_ORIGINS", []),
        methods=app.config.get("CORS_METHODS", ["GET", "POST", "OPTIONS"]),
        allow_headers=app.config.get("CORS_HEADERS", ["Content-Type"]),
        supports_credentials=False,
        max_age=600,
    )


def create_tables(app):
    """Create database tables (development convenience)."""
    with app.app_context():
        import panavest.models  # noqa: F401

        db.create_all()
        logger.info("Database tables created/verified")


__all__ = ["db", "cors", "migrate", "limiter", "init_extensions", "create_tables"]
