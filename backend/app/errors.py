# Overview: Error taxonomy shared by services and routes, plus the JSON error envelope.

"""
API error types.

Services raise these; routes catch them and answer with the standard envelope:

    {"success": false, "error": <message>, "kind": <machine-readable kind>}

Only the message and kind reach the client. Stack traces and query text stay in
the server log.
"""

from __future__ import annotations

from flask import jsonify
from werkzeug.exceptions import HTTPException


class APIError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code = 500
    kind = "internal_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(APIError):
    """400-level input problem."""

    status_code = 400
    kind = "validation_error"


class AuthError(APIError):
    """401-level authentication problem."""

    status_code = 401
    kind = "unauthorized"


class ForbiddenError(APIError):
    status_code = 403
    kind = "forbidden"


class NotFoundError(APIError):
    """404: absent, or owned by someone else."""

    status_code = 404
    kind = "not_found"


class ConflictError(APIError):
    """409-level business rule conflict (duplicate name, insufficient stock)."""

    status_code = 409
    kind = "conflict"


class InternalError(APIError):
    status_code = 500
    kind = "internal_error"


def error_response(exc: APIError):
    return jsonify(exc.to_dict()), exc.status_code


def internal_error_response(message: str = "Internal server error"):
    return error_response(InternalError(message))


def register_error_handlers(app) -> None:
    @app.errorhandler(APIError)
    def handle_api_error(exc: APIError):
        app.logger.warning("%s: %s", exc.kind, exc.message)
        return error_response(exc)

    @app.errorhandler(404)
    def handle_not_found(_exc):
        return error_response(NotFoundError("Resource not found"))

    @app.errorhandler(405)
    def handle_method_not_allowed(_exc):
        body = {"success": False, "error": "Method not allowed", "kind": "method_not_allowed"}
        return jsonify(body), 405

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        app.logger.exception("Unhandled error")
        return internal_error_response()
