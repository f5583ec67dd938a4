# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/app/routes/products.py
"""
Product catalog routes.

Reads need an authenticated session; writes need an admin.
"""
from flask import Blueprint, request, jsonify

from ..services import products_service
from ..models import Product
from ..errors import APIError, ValidationError, NotFoundError, error_response
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    parse_pagination,
    require_uuid,
)
from ..decorators import require_auth, require_admin

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price", "stock", "category_id", "image_url"},
    required_on_create={"name", "price", "category_id"},
    min_lengths={"name": 2},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List products with optional filters and pagination.

    Query params:
    - category_id: uuid (optional)
    - search: str (optional) - name contains
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    category_id = request.args.get("category_id")
    search = request.args.get("search")
    try:
        page, per_page = parse_pagination(request.args)
        if category_id is not None:
            require_uuid(category_id, "category ID")
    except ValidationError as e:
        return error_response(e)

    result = products_service.list_products(
        category_id=category_id,
        search=search,
        page=page,
        per_page=per_page,
    )
    return jsonify({"success": True, **result}), 200


@products_bp.get("/<product_id>")
@require_auth
def get_product_route(product_id: str):
    try:
        require_uuid(product_id, "product ID")
    except ValidationError as e:
        return error_response(e)

    product = products_service.get_product(product_id)
    if product is None:
        return error_response(NotFoundError("Product not found"))

    return jsonify({"success": True, "product": product}), 200


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    """Create a new product (admin only)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch)
    except APIError as e:
        return error_response(e)

    return jsonify({"success": True, "message": "Product created", "product": created}), 201


@products_bp.patch("/<product_id>")
@require_auth
@require_admin
def update_product_route(product_id: str):
    """Partially update a product (admin only)."""
    payload = request.get_json(silent=True) or {}

    try:
        require_uuid(product_id, "product ID")
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except APIError as e:
        return error_response(e)

    if not updated:
        return error_response(NotFoundError("Product not found"))

    return jsonify({"success": True, "message": "Product updated", "product": updated}), 200


@products_bp.delete("/<product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: str):
    """Delete a product that has never been sold (admin only)."""
    try:
        require_uuid(product_id, "product ID")
        deleted = products_service.delete_product(product_id=product_id)
    except APIError as e:
        return error_response(e)

    if not deleted:
        return error_response(NotFoundError("Product not found"))

    return jsonify({"success": True, "message": "Product deleted"}), 200
