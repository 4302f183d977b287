import logging

from flask import jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from src.exceptions import AppError, ConstraintViolation
from src.extensions import db

logger = logging.getLogger(__name__)


def _error_response(status_code, message, errors=None):
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return jsonify(body), status_code


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(error):
        if error.status_code >= 500:
            logger.error("Unhandled application error: %s", error.message)
        return _error_response(error.status_code, error.message, error.errors)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        db.session.rollback()
        logger.warning("Constraint violation: %s", error.orig)
        violation = ConstraintViolation(
            errors=[{"field": "unknown", "message": str(error.orig)}]
        )
        return _error_response(violation.status_code, violation.message, violation.errors)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return _error_response(error.code, error.description)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.exception("Unexpected error")
        return _error_response(500, "Server Error")
