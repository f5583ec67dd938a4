# Overview: Stock ledger access for checkout: batch reads and conditional decrements.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..errors import ConflictError
from ..models import Product


@dataclass(frozen=True)
class StockRecord:
    id: str
    name: str
    price: Decimal
    stock: int


def fetch_stock(session: Session, product_ids: Iterable[str]) -> dict[str, StockRecord]:
    """
    Read current name/price/stock for the given products in one query.

    Ids that do not exist are simply missing from the result; callers compare
    against what they asked for.
    """
    ids = set(product_ids)
    if not ids:
        return {}

    rows = session.execute(
        select(Product.id, Product.name, Product.price, Product.stock)
        .where(Product.id.in_(ids))
    ).all()

    return {
        row.id: StockRecord(id=row.id, name=row.name, price=Decimal(row.price), stock=row.stock)
        for row in rows
    }


def decrement_stock(session: Session, product_id: str, quantity: int, *, product_name: str | None = None) -> None:
    """
    Atomically take `quantity` units off a product's stock.

    The guard lives in the UPDATE itself (stock >= quantity), so two
    transactions racing for the last unit cannot both succeed. Zero affected
    rows means the product vanished or another sale got there first.
    """
    if quantity <= 0:
        raise ValueError("quantity must be positive")

    result = session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        label = product_name or product_id
        raise ConflictError(
            f"Insufficient stock for product '{label}'",
            details={"product_id": product_id, "requested_quantity": quantity},
        )
