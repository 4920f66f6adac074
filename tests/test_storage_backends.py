from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from conftest import make_engine
from orderdesk.core.errors import ValidationError
from orderdesk.db.base import Base
from orderdesk.db.session import build_session_factory
from orderdesk.models.processed_event import ProcessedEvent
from orderdesk.schemas.cart import CartItemCreate
from orderdesk.schemas.donation import DonationCreate
from orderdesk.schemas.order import OrderCreate
from orderdesk.services.idempotency_ledger import DatabaseLedger, build_ledger
from orderdesk.services.order_store import build_order_store


@pytest.fixture()
def session_factory():
    engine = make_engine()
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(params=["memory", "database"])
def store(request, session_factory):
    return build_order_store(request.param, session_factory)


@pytest.fixture(params=["memory", "database"])
def ledger(request, session_factory):
    return build_ledger(request.param, session_factory)


def _order(name="Ada", amount="10.00"):
    return OrderCreate(
        customer_name=name,
        customer_email="ada@example.com",
        amount=Decimal(amount),
        payment_method="Link",
        description="Landing page",
    )


def test_ledger_claim_is_first_writer_wins(ledger):
    assert not ledger.is_processed("evt_1")
    assert ledger.claim("evt_1") is True
    assert ledger.claim("evt_1") is False
    assert ledger.is_processed("evt_1")


def test_ledger_mark_processed_is_idempotent(ledger):
    ledger.mark_processed("evt_2")
    ledger.mark_processed("evt_2")
    assert ledger.is_processed("evt_2")
    assert not ledger.is_processed("evt_3")


def test_database_ledger_degrades_to_process_memory():
    engine = make_engine()
    ledger = DatabaseLedger(sessionmaker(bind=engine))

    assert ledger.is_processed("evt_no_table") is False
    assert ledger.claim("evt_no_table") is True
    assert ledger.is_processed("evt_no_table") is True
    assert ledger.claim("evt_no_table") is False
    engine.dispose()


def test_database_ledger_keeps_healthy_markers_in_the_table_only(session_factory):
    ledger = DatabaseLedger(session_factory)

    assert ledger.claim("evt_healthy") is True
    assert ledger.claim("evt_healthy") is False
    ledger.mark_processed("evt_other")

    assert not ledger._shadow.is_processed("evt_healthy")
    assert not ledger._shadow.is_processed("evt_other")
    with session_factory() as db:
        assert db.scalar(select(func.count()).select_from(ProcessedEvent)) == 2


def test_order_numbers_are_unique_and_increasing(store):
    numbers = [store.create_order(_order()).order_number for _ in range(3)]
    assert numbers == ["ORD-1001", "ORD-1002", "ORD-1003"]
    assert [order.order_number for order in store.list_orders()] == list(reversed(numbers))


def test_order_amount_is_kept_as_money(store):
    order = store.create_order(_order(amount="19.5"))
    assert store.get_order(order.id).amount == Decimal("19.50")
    assert store.get_order("missing") is None


def test_rating_is_validated_before_storage(store):
    order = store.create_order(_order())
    for rating in (0, 6):
        with pytest.raises(ValidationError):
            store.update_order_rating(order.id, rating)
    assert store.get_order(order.id).rating is None
    assert store.update_order_rating(order.id, 5).rating == "5"
    assert store.update_order_rating("missing", 5) is None


def test_cart_operations(store):
    item = store.add_cart_item(CartItemCreate(product_id="bot", price="50"))
    assert item.quantity == "1"
    assert store.update_cart_item_quantity(item.id, 2).quantity == "2"
    with pytest.raises(ValidationError):
        store.update_cart_item_quantity(item.id, 0)
    assert store.remove_cart_item(item.id) is True
    assert store.remove_cart_item(item.id) is False
    store.add_cart_item(CartItemCreate(product_id="site"))
    store.clear_cart()
    assert store.list_cart_items() == []


def test_donations_listed_by_amount(store):
    for amount in ("3.00", "50.00", "12.00"):
        store.create_donation(
            DonationCreate(donor_name="Donor", donor_email="donor@example.com", amount=Decimal(amount))
        )
    assert [donation.amount for donation in store.list_donations()] == [
        Decimal("50.00"),
        Decimal("12.00"),
        Decimal("3.00"),
    ]


def test_unknown_backend_is_rejected(session_factory):
    with pytest.raises(ValueError):
        build_order_store("redis", session_factory)
    with pytest.raises(ValueError):
        build_ledger("redis", session_factory)
