# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def _unauthorized(message: str):
    return jsonify({"success": False, "error": message, "kind": "unauthorized"}), 401


def _forbidden(message: str):
    return jsonify({"success": False, "error": message, "kind": "forbidden"}), 403


def require_auth(f):
    """
    Require a valid bearer session.

    Sets on Flask g:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object
    - g.token: The plaintext bearer token (for logout)

    Returns 401 if the Authorization header is missing, or the token is
    invalid, expired, revoked or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return _unauthorized("Authentication required")

        token = auth_header.split(" ", 1)[1].strip()
        if not token:
            return _unauthorized("Authentication required")

        context = session_service.validate_session(token)

        if not context:
            return _unauthorized("Invalid or expired token")

        g.current_user = context.user
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require the authenticated user to be an admin. Use after @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _unauthorized("Authentication required")
        if not g.current_user.is_admin:
            return _forbidden("Admin access required")
        return f(*args, **kwargs)
    return decorated_function


def require_approved(f):
    """
    Require an approved account (admins always are). Use after @require_auth.

    Sessions are only issued to approved users, but approval can be pulled
    while a session is still live.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _unauthorized("Authentication required")
        user = g.current_user
        if not user.is_admin and not user.is_approved:
            return _forbidden("Account pending approval")
        return f(*args, **kwargs)
    return decorated_function
