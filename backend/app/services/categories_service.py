# Overview: Service-layer operations for categories.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Category, Product

CATEGORY_MUTABLE_FIELDS = {"name", "description"}


def _get_or_404(category_id: str) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def _ensure_name_available(name: str, exclude_id: str | None = None) -> None:
    query = db.session.query(Category.id).filter(db.func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError("A category with this name already exists")


def _commit_unique() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A category with this name already exists")


def list_categories() -> list[dict]:
    categories = db.session.query(Category).order_by(Category.name.asc()).all()
    return [c.to_dict() for c in categories]


def get_category(category_id: str) -> dict:
    return _get_or_404(category_id).to_dict()


def create_category(*, patch: dict) -> dict:
    _ensure_name_available(patch["name"])

    category = Category(name=patch["name"], description=patch["description"])
    db.session.add(category)
    _commit_unique()
    return category.to_dict()


def update_category(*, category_id: str, patch: dict) -> dict:
    category = _get_or_404(category_id)

    if "name" in patch and patch["name"] != category.name:
        _ensure_name_available(patch["name"], exclude_id=category.id)

    for k, v in patch.items():
        if k in CATEGORY_MUTABLE_FIELDS:
            setattr(category, k, v)

    _commit_unique()
    return category.to_dict()


def delete_category(*, category_id: str) -> None:
    category = _get_or_404(category_id)

    in_use = db.session.query(Product.id).filter(Product.category_id == category.id).first()
    if in_use:
        raise ConflictError("Category still has products")

    db.session.delete(category)
    db.session.commit()
