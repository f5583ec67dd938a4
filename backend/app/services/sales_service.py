"""
Sales Service - checkout and receipts

Checkout is the one multi-step write in the system: stock check, sale header,
line items and stock decrements either all land in one transaction or none of
them do. Receipts are read back scoped to the user who rang the sale up.

The caller hands in the SQLAlchemy session; nothing here reaches for a global
connection, so tests can drive it against any engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Sequence

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConflictError, InternalError, NotFoundError, ValidationError
from ..models import Sale, SaleItem, PAYMENT_METHODS
from ..models.catalog import format_money
from ..models.common import is_uuid, new_uuid
from ..validation import SaleLineRequest, TWOPLACES
from app.time_utils import to_utc_z, utcnow
from .concurrency import write_transaction
from .identifier_service import generate_public_id
from .stock_service import decrement_stock, fetch_stock

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_ID_ATTEMPTS = 5


@dataclass(frozen=True)
class ReceiptItem:
    product_id: str
    product_name: str
    product_price: Decimal
    quantity: int
    price: Decimal

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_price": format_money(self.product_price),
            "quantity": self.quantity,
            "price": format_money(self.price),
        }


@dataclass(frozen=True)
class SaleReceipt:
    id: str
    public_id: str
    total: Decimal
    payment_method: str
    created_at: datetime
    items: list[ReceiptItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "public_id": self.public_id,
            "total": format_money(self.total),
            "payment_method": self.payment_method,
            "items": [item.to_dict() for item in self.items],
            "created_at": to_utc_z(self.created_at),
        }


def _check_preconditions(payment_method: str, items: Sequence[SaleLineRequest]) -> None:
    # Routes validate the raw body; this guards direct callers.
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError("Invalid payment method")
    if not items:
        raise ValidationError("At least one product is required")
    for item in items:
        if not is_uuid(item.product_id):
            raise ValidationError("Invalid product ID")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError("Quantity must be a positive integer")


def _insert_sale_header(
    session: Session,
    *,
    user_id: str,
    payment_method: str,
    total: Decimal,
    created_at: datetime,
    public_id_factory: Callable[[], str],
    attempts: int,
) -> Sale:
    """
    Insert the sale row under a SAVEPOINT, minting a fresh public id whenever
    the unique constraint on sales.public_id trips.
    """
    for attempt in range(1, attempts + 1):
        sale = Sale(
            id=new_uuid(),
            public_id=public_id_factory(),
            user_id=user_id,
            payment_method=payment_method,
            total=total,
            created_at=created_at,
        )
        try:
            with session.begin_nested():
                session.add(sale)
        except IntegrityError:
            logger.warning(
                "Public sale id collision on %s (attempt %d/%d)", sale.public_id, attempt, attempts
            )
            continue
        return sale

    raise InternalError("Could not allocate a unique sale ID")


def create_sale(
    session: Session,
    *,
    user_id: str,
    payment_method: str,
    items: Sequence[SaleLineRequest],
    public_id_factory: Callable[[], str] = generate_public_id,
    public_id_attempts: int = DEFAULT_PUBLIC_ID_ATTEMPTS,
) -> SaleReceipt:
    """
    Record a sale atomically.

    Steps, all inside one transaction:
    1. batch-read the requested products
    2. reject if none / some are missing (404) or any is short on stock (409)
    3. price each line from the current product price (the snapshot)
    4. insert header, bulk insert lines, conditionally decrement stock

    Any failure rolls back everything; the session is released either way.
    """
    _check_preconditions(payment_method, items)

    requested: dict[str, int] = {}
    for item in items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    with write_transaction(session):
        products = fetch_stock(session, requested.keys())

        if not products:
            raise NotFoundError("No matching products found")

        if len(products) != len(requested):
            missing = sorted(set(requested) - set(products))
            raise NotFoundError(
                "One or more products do not exist",
                details={"missing_product_ids": missing},
            )

        # Fail fast on the first shortfall
        for product_id, product in products.items():
            if product.stock < requested[product_id]:
                raise ConflictError(
                    f"Insufficient stock for product '{product.name}'",
                    details={
                        "product_id": product_id,
                        "requested_quantity": requested[product_id],
                        "available": product.stock,
                    },
                )

        receipt_items: list[ReceiptItem] = []
        total = Decimal("0.00")
        for product_id, quantity in requested.items():
            product = products[product_id]
            line_price = (product.price * quantity).quantize(TWOPLACES)
            total += line_price
            receipt_items.append(ReceiptItem(
                product_id=product_id,
                product_name=product.name,
                product_price=product.price,
                quantity=quantity,
                price=line_price,
            ))

        created_at = utcnow()
        sale = _insert_sale_header(
            session,
            user_id=user_id,
            payment_method=payment_method,
            total=total,
            created_at=created_at,
            public_id_factory=public_id_factory,
            attempts=public_id_attempts,
        )
        sale_id, public_id = sale.id, sale.public_id

        session.execute(
            insert(SaleItem),
            [
                {
                    "sale_id": sale_id,
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "product_price": item.product_price,
                    "quantity": item.quantity,
                    "price": item.price,
                }
                for item in receipt_items
            ],
        )

        for item in receipt_items:
            decrement_stock(session, item.product_id, item.quantity, product_name=item.product_name)

    logger.info(
        "Sale %s committed: user=%s lines=%d total=%s", public_id, user_id, len(receipt_items), total
    )

    return SaleReceipt(
        id=sale_id,
        public_id=public_id,
        total=total,
        payment_method=payment_method,
        created_at=created_at,
        items=receipt_items,
    )


def get_receipt(session: Session, *, user_id: str, public_id: str) -> SaleReceipt:
    """
    Load a committed sale and its lines for the user who made it.

    A sale belonging to someone else is reported exactly like a missing one.
    """
    sale = session.execute(
        select(Sale).where(Sale.public_id == public_id, Sale.user_id == user_id)
    ).scalar_one_or_none()

    if sale is None:
        raise NotFoundError("Sale not found")

    lines = session.execute(
        select(SaleItem).where(SaleItem.sale_id == sale.id).order_by(SaleItem.id.asc())
    ).scalars().all()

    if not lines:
        # Checkout never commits a sale without lines
        logger.error("Sale %s (%s) has no line items", sale.public_id, sale.id)
        raise NotFoundError("Sale not found")

    return SaleReceipt(
        id=sale.id,
        public_id=sale.public_id,
        total=Decimal(sale.total),
        payment_method=sale.payment_method,
        created_at=sale.created_at,
        items=[
            ReceiptItem(
                product_id=line.product_id,
                product_name=line.product_name,
                product_price=Decimal(line.product_price),
                quantity=line.quantity,
                price=Decimal(line.price),
            )
            for line in lines
        ],
    )


def list_sales(
    session: Session,
    *,
    user_id: str,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    The user's own sales, newest first (headers only).

    Returns:
        Dict with 'items', 'count' and 'pagination'.
    """
    per_page = min(max(per_page or 20, 1), 100)  # Default 20, max 100
    page = max(page or 1, 1)

    total = session.execute(
        select(func.count()).select_from(Sale).where(Sale.user_id == user_id)
    ).scalar_one()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    sales = session.execute(
        select(Sale)
        .where(Sale.user_id == user_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    ).scalars().all()

    return {
        "items": [s.to_dict() for s in sales],
        "count": len(sales),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
