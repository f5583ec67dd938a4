"""Stock ledger access: batch reads and the conditional decrement."""

import uuid
from decimal import Decimal

import pytest

from app.errors import ConflictError
from app.extensions import db
from app.services.stock_service import decrement_stock, fetch_stock
from tests.conftest import stock_of


def test_fetch_returns_found_products_only(make_product):
    a = make_product("Apple Juice", price="2.50", stock=4)
    b = make_product("Orange Juice", price="3.00", stock=0)
    missing = str(uuid.uuid4())

    records = fetch_stock(db.session, [a, b, missing])

    assert set(records) == {a, b}
    assert records[a].name == "Apple Juice"
    assert records[a].price == Decimal("2.50")
    assert records[a].stock == 4
    assert records[b].stock == 0


def test_fetch_with_no_ids_skips_query(db_session):
    assert fetch_stock(db_session, []) == {}


def test_decrement_applies_when_stock_suffices(make_product):
    product_id = make_product("Water", stock=5)

    decrement_stock(db.session, product_id, 5)
    db.session.commit()

    assert stock_of(product_id) == 0


def test_decrement_refuses_to_go_negative(make_product):
    product_id = make_product("Water", stock=2)

    with pytest.raises(ConflictError) as excinfo:
        decrement_stock(db.session, product_id, 3, product_name="Water")
    db.session.rollback()

    assert "Water" in excinfo.value.message
    assert stock_of(product_id) == 2


def test_decrement_of_vanished_product_fails(db_session):
    with pytest.raises(ConflictError):
        decrement_stock(db_session, str(uuid.uuid4()), 1)
    db_session.rollback()


def test_decrement_rejects_non_positive_quantity(make_product):
    product_id = make_product("Water", stock=2)
    with pytest.raises(ValueError):
        decrement_stock(db.session, product_id, 0)
