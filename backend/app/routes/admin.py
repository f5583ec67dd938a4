# Overview: Flask API routes for admin operations (cashier management).

from flask import Blueprint, request, jsonify, current_app

from ..errors import APIError, error_response
from ..services import auth_service
from ..validation import require_uuid
from ..decorators import require_auth, require_admin


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/cashiers")
@require_auth
@require_admin
def list_cashiers_route():
    """
    List cashier accounts.

    Query params:
    - is_approved: "true" | "false" (optional)
    - search: str (optional) - username/email contains
    """
    raw_approved = request.args.get("is_approved")
    is_approved = None
    if raw_approved is not None:
        is_approved = raw_approved.lower() == "true"

    cashiers = auth_service.list_cashiers(is_approved=is_approved, search=request.args.get("search"))
    return jsonify({
        "success": True,
        "count": len(cashiers),
        "cashiers": [c.to_dict() for c in cashiers],
    }), 200


@admin_bp.get("/cashiers/<user_id>")
@require_auth
@require_admin
def get_cashier_route(user_id: str):
    try:
        require_uuid(user_id, "user ID")
        cashier = auth_service.get_cashier(user_id)
    except APIError as e:
        return error_response(e)
    return jsonify({"success": True, "cashier": cashier.to_dict()}), 200


@admin_bp.post("/cashiers/<user_id>/approve")
@require_auth
@require_admin
def approve_cashier_route(user_id: str):
    try:
        require_uuid(user_id, "user ID")
        cashier = auth_service.approve_cashier(user_id)
    except APIError as e:
        return error_response(e)

    current_app.logger.info("Cashier %s approved", cashier.username)
    return jsonify({
        "success": True,
        "message": "Cashier approved",
        "cashier": cashier.to_dict(),
    }), 200
