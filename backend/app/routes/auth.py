# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/app/routes/auth.py
"""
Authentication API routes

- Cashier self-signup (pending admin approval)
- Login by username or email, returning a bearer session token
- Logout (revokes the presented token)
- Current user profile: read, update, password, theme, account deletion
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import APIError, error_response, internal_error_response
from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth
from ..models import User
from ..validation import ModelValidationPolicy, enforce_rules_profile, validate_payload


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/signup")
def signup_route():
    """
    Register a cashier account.

    The account cannot log in until an admin approves it.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.create_user(
            username=data.get("username"),
            email=data.get("email"),
            password=data.get("password"),
        )
        return jsonify({
            "success": True,
            "message": "Account created. An administrator must approve it before you can log in.",
            "user": user.to_dict(),
        }), 201

    except APIError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return internal_error_response()


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in the Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("username") or data.get("email")
        password = data.get("password")

        if not identifier or not password:
            return jsonify({
                "success": False,
                "error": "username/email and password required",
                "kind": "validation_error",
            }), 400

        user = auth_service.authenticate(identifier, password)

        if not user:
            current_app.logger.info("Failed login for %s from %s", identifier, request.remote_addr)
            return jsonify({
                "success": False,
                "error": "Invalid credentials",
                "kind": "unauthorized",
            }), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "success": True,
            "message": "Login successful",
            "token": token,
            "user": user.to_dict(),
            "session": session.to_dict(),
        }), 200

    except APIError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return internal_error_response()


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.token)
        return jsonify({"success": True, "message": "Logged out"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return internal_error_response()


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"success": True, "user": g.current_user.to_dict()}), 200


PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"firstname", "lastname", "othername", "phone", "other_phone", "avatar_url"},
    min_lengths={"firstname": 2, "lastname": 2, "othername": 2},
)


@auth_bp.patch("/profile")
@require_auth
def update_profile_route():
    """Partially update the caller's profile fields."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=User, payload=payload, policy=PROFILE_POLICY, partial=True)
        enforce_rules_profile(patch)
        user = auth_service.update_profile(g.current_user.id, patch)
    except APIError as e:
        return error_response(e)
    return jsonify({"success": True, "message": "Profile updated", "user": user.to_dict()}), 200


@auth_bp.patch("/password")
@require_auth
def change_password_route():
    """
    Body: {"current_password": str, "new_password": str}

    Other sessions of the user are revoked; the one making this call survives.
    """
    data = request.get_json(silent=True) or {}
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    if not current_password or not new_password:
        return jsonify({
            "success": False,
            "error": "current_password and new_password required",
            "kind": "validation_error",
        }), 400

    try:
        auth_service.change_password(
            g.current_user.id, current_password, new_password, keep_token=g.token
        )
    except APIError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to change password")
        return internal_error_response()

    current_app.logger.info("Password changed for user %s", g.current_user.id)
    return jsonify({"success": True, "message": "Password changed"}), 200


@auth_bp.patch("/theme")
@require_auth
def change_theme_route():
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.change_theme(g.current_user.id, data.get("theme_preference"))
    except APIError as e:
        return error_response(e)
    return jsonify({"success": True, "theme_preference": user.theme_preference}), 200


@auth_bp.delete("/me")
@require_auth
def delete_account_route():
    """Body: {"password": str}. Closes the caller's account and ends its sessions."""
    data = request.get_json(silent=True) or {}
    user_id = g.current_user.id
    try:
        auth_service.delete_account(user_id, data.get("password"))
    except APIError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete account %s", user_id)
        return internal_error_response()

    current_app.logger.info("Account %s closed", user_id)
    return jsonify({"success": True, "message": "Account deleted"}), 200
