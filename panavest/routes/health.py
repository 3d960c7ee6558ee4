import logging

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from panavest.extensions import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


def check_database():
    """
    Check database connection status.

    Returns:
        Dict containing status and message
    """
    try:
        db.session.execute(text("SELECT 1"))
        return {"status": "ok", "message": "Database connection successful"}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db.session.rollback()
        return {"status": "error", "message": "Database connection failed"}


@health_bp.route("/health", methods=["GET"])
def health():
    database = check_database()
    healthy = database["status"] == "ok"

    return jsonify({
        "status": "ok" if healthy else "degraded",
        "version": current_app.config.get("APP_VERSION"),
        "database": database,
    }), 200 if healthy else 503
