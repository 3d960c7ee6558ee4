"""
Application error types and their JSON rendering.

Every expected failure of the payment flow is an `AppError` subclass that
carries its own HTTP status. `register_error_handlers` turns them (and any
stray `HTTPException` or unhandled error) into JSON bodies.
"""

import logging
import traceback

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload


class ValidationError(AppError):
    status_code = 400


class GatewayError(AppError):
    """The gateway answered but rejected the request."""
    status_code = 400


class InvalidSignatureError(AppError):
    status_code = 401


class AlreadyPaidError(AppError):
    status_code = 409


class NotConfiguredError(AppError):
    status_code = 500


class MissingMetadataError(AppError):
    """A successful gateway event cannot be tied to a user and product."""
    status_code = 500


class PersistenceError(AppError):
    status_code = 500


class GatewayUnavailableError(AppError):
    status_code = 502


def register_error_handlers(app):
    """Register all error handlers for the application"""

    @app.errorhandler(AppError)
    def handle_app_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.__class__.__name__}: {error.message} - Path: {request.path}")
        else:
            logger.warning(f"{error.__class__.__name__}: {error.message} - Path: {request.path}")

        response = jsonify({
            "ok": False,
            "error": error.__class__.__name__,
            "message": error.message,
            "path": request.path,
            **(error.payload or {})
        })
        response.status_code = error.status_code
        return response

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """
        Handles known HTTP errors (404, 405, 429, etc.)
        """
        return jsonify({
            "ok": False,
            "error": e.name,
            "message": e.description,
            "path": request.path,
        }), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        """
        Handles all unexpected server errors without leaking stack traces.
        """
        logger.error(f"Unhandled exception - Path: {request.path}")
        logger.error(traceback.format_exc())

        return jsonify({
            "ok": False,
            "error": "Internal Server Error",
            "message": "Something went wrong. Please try again later.",
            "path": request.path,
        }), 500
