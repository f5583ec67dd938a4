# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/app/routes/sales.py
"""Sales API routes: checkout, receipt lookup and the caller's sales history."""

from flask import Blueprint, current_app, g, jsonify, request

from ..errors import APIError, error_response, internal_error_response
from ..extensions import db
from ..services import sales_service
from ..validation import parse_pagination, parse_sale_request, require_public_id
from ..decorators import require_auth, require_approved


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_approved
def create_sale_route():
    """
    Ring up a sale.

    Body: {"payment_method": "cash"|"card"|"mobile",
           "items": [{"product_id": <uuid>, "quantity": <int >= 1>}, ...]}

    201 with the receipt; 400 invalid input; 404 unknown products;
    409 insufficient stock.
    """
    user_id = g.current_user.id
    try:
        sale_request = parse_sale_request(request.get_json(silent=True))

        receipt = sales_service.create_sale(
            db.session,
            user_id=user_id,
            payment_method=sale_request.payment_method,
            items=sale_request.items,
            public_id_attempts=current_app.config.get(
                "PUBLIC_ID_ATTEMPTS", sales_service.DEFAULT_PUBLIC_ID_ATTEMPTS
            ),
        )

        return jsonify({
            "success": True,
            "message": "Sale created successfully",
            "sale": receipt.to_dict(),
        }), 201

    except APIError as e:
        current_app.logger.warning("Sale rejected for user %s: %s (%s)", user_id, e.message, e.kind)
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sale for user %s", user_id)
        return internal_error_response("Internal server error while creating sale")


@sales_bp.get("")
@require_auth
@require_approved
def list_sales_route():
    """
    List the caller's sales, newest first.

    Query params:
    - page: int (optional, default 1)
    - per_page: int (optional, default 20, max 100)
    """
    try:
        page, per_page = parse_pagination(request.args)
        result = sales_service.list_sales(
            db.session, user_id=g.current_user.id, page=page, per_page=per_page
        )
    except APIError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return internal_error_response()

    return jsonify({"success": True, **result}), 200


@sales_bp.get("/<public_id>")
@require_auth
@require_approved
def get_sale_route(public_id: str):
    """
    Fetch a receipt by its public id. Only the user who made the sale can
    see it; anyone else gets 404.
    """
    user_id = g.current_user.id
    try:
        require_public_id(public_id)
        receipt = sales_service.get_receipt(db.session, user_id=user_id, public_id=public_id)
        return jsonify({"success": True, "sale": receipt.to_dict()}), 200

    except APIError as e:
        current_app.logger.warning("Receipt %s not served to user %s: %s", public_id, user_id, e.message)
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load receipt %s", public_id)
        return internal_error_response()
