# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..services import categories_service
from ..models import Category
from ..errors import APIError, error_response
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_category,
    require_uuid,
)
from ..decorators import require_auth, require_admin

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name", "description"},
    min_lengths={"name": 2, "description": 2},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    items = categories_service.list_categories()
    return jsonify({"success": True, "items": items, "count": len(items)}), 200


@categories_bp.get("/<category_id>")
@require_auth
def get_category_route(category_id: str):
    try:
        require_uuid(category_id, "category ID")
        category = categories_service.get_category(category_id)
    except APIError as e:
        return error_response(e)
    return jsonify({"success": True, "category": category}), 200


@categories_bp.post("")
@require_auth
@require_admin
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_rules_category(patch)
        created = categories_service.create_category(patch=patch)
    except APIError as e:
        return error_response(e)
    return jsonify({"success": True, "message": "Category created", "category": created}), 201


@categories_bp.patch("/<category_id>")
@require_auth
@require_admin
def update_category_route(category_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        require_uuid(category_id, "category ID")
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        enforce_rules_category(patch)
        updated = categories_service.update_category(category_id=category_id, patch=patch)
    except APIError as e:
        return error_response(e)
    return jsonify({"success": True, "message": "Category updated", "category": updated}), 200


@categories_bp.delete("/<category_id>")
@require_auth
@require_admin
def delete_category_route(category_id: str):
    try:
        require_uuid(category_id, "category ID")
        categories_service.delete_category(category_id=category_id)
    except APIError as e:
        return error_response(e)
    return jsonify({"success": True, "message": "Category deleted"}), 200
