# backend/app/services/products_service.py
"""
Products Service

Catalog CRUD. Writes take a validated patch dict (see validation.py); each key
present in the patch maps to exactly one column assignment.

Stock may be set here by an admin (receiving, corrections). Sales never come
through this module; they use the conditional decrement in stock_service.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Category, Product, SaleItem

PRODUCT_MUTABLE_FIELDS = {"name", "description", "price", "stock", "category_id", "image_url"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _require_category(category_id: str) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def _ensure_name_available(name: str, exclude_id: str | None = None) -> None:
    query = db.session.query(Product.id).filter(db.func.lower(Product.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("A product with this name already exists")


def _commit_unique(message: str) -> None:
    """Commit, turning a unique-constraint race into a ConflictError."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(message)


def list_products(
    category_id: str | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional category filter, name search and pagination.

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)

    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)

    if search:
        base_query = base_query.filter(Product.name.ilike(f"%{search.strip()}%"))

    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(max(per_page or 20, 1), 100)  # Default 20, max 100
    page = max(page, 1)  # Ensure page >= 1

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: str) -> dict | None:
    p = db.session.get(Product, product_id)
    return p.to_dict() if p else None


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        NotFoundError: If category_id does not exist
        ConflictError: If the name is already taken
    """
    _require_category(patch["category_id"])
    _ensure_name_available(patch["name"])

    p = Product(stock=0)
    apply_product_patch(p, patch)

    db.session.add(p)
    _commit_unique("A product with this name already exists")
    return p.to_dict()


def update_product(*, product_id: str, patch: dict) -> dict | None:
    """
    Apply a partial update.

    Returns:
        Updated product dict, or None if not found
    """
    p = db.session.get(Product, product_id)
    if not p:
        return None

    if "category_id" in patch and patch["category_id"] != p.category_id:
        _require_category(patch["category_id"])

    if "name" in patch and patch["name"] != p.name:
        _ensure_name_available(patch["name"], exclude_id=p.id)

    apply_product_patch(p, patch)
    _commit_unique("A product with this name already exists")
    return p.to_dict()


def delete_product(*, product_id: str) -> bool:
    """
    Delete a product that has never been sold.

    Returns:
        True if deleted, False if not found

    Raises:
        ConflictError: If sale line items reference the product
    """
    p = db.session.get(Product, product_id)
    if not p:
        return False

    sold = db.session.query(SaleItem.id).filter(SaleItem.product_id == p.id).first()
    if sold:
        raise ConflictError("Product has sales history and cannot be deleted")

    db.session.delete(p)
    db.session.commit()
    return True
