from __future__ import annotations

import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.crud import activity as activity_crud
from app.crud.inventory import crud_inventory_item
from app.database import Base
from app.exceptions import InsufficientStockError, NotFoundError, ValidationError
from app.models import ActivityLog, Category, InventoryItem, StockTransaction, TransactionType, User
from app.services.inventory import InventoryService


def _transactions(db_session, item_id):
    return (
        db_session.query(StockTransaction)
        .filter(StockTransaction.item_id == item_id)
        .order_by(StockTransaction.id)
        .all()
    )


def test_add_stock_increments_quantity_and_value(make_item, service, user):
    item = make_item(quantity=4, unit_price="2.50")

    updated = service.add_stock(user, item.id, 6, reference="PO-1")

    assert updated.quantity == 10
    assert updated.total_value == Decimal("25.00")


def test_add_then_reduce_restores_quantity(make_item, service, user, db_session):
    item = make_item(quantity=7)

    service.add_stock(user, item.id, 3, reference="PO-9")
    service.reduce_stock(user, item.id, 3, reference="SO-9")

    assert service.get_item(item.id).quantity == 7
    transactions = _transactions(db_session, item.id)
    assert [t.transaction_type for t in transactions] == [TransactionType.IN, TransactionType.OUT]
    assert [t.quantity_change for t in transactions] == [3, 3]
    assert [t.reference_number for t in transactions] == ["PO-9", "SO-9"]
    assert all(t.performed_by == user.id for t in transactions)


def test_reduce_more_than_available_is_rejected(make_item, service, user, db_session):
    item = make_item(quantity=5, unit_price="1.00")

    with pytest.raises(InsufficientStockError) as exc_info:
        service.reduce_stock(user, item.id, 10)

    assert exc_info.value.available == 5
    assert exc_info.value.requested == 10
    refreshed = db_session.get(InventoryItem, item.id)
    assert refreshed.quantity == 5
    assert refreshed.total_value == Decimal("5.00")
    assert _transactions(db_session, item.id) == []


def test_reduce_to_exactly_zero(make_item, service, user):
    item = make_item(quantity=5, unit_price="3.00")

    updated = service.reduce_stock(user, item.id, 5)

    assert updated.quantity == 0
    assert updated.total_value == Decimal("0.00")


@pytest.mark.parametrize("quantity", [0, -3])
def test_stock_changes_require_positive_quantity(make_item, service, user, quantity):
    item = make_item()

    with pytest.raises(ValidationError):
        service.add_stock(user, item.id, quantity)
    with pytest.raises(ValidationError):
        service.reduce_stock(user, item.id, quantity)


def test_stock_change_on_missing_item(service, user):
    with pytest.raises(NotFoundError):
        service.add_stock(user, 999, 1)
    with pytest.raises(NotFoundError):
        service.reduce_stock(user, 999, 1)


def test_stock_change_rolls_back_when_audit_write_fails(make_item, service, user, db_session, monkeypatch):
    item = make_item(quantity=5, unit_price="1.00")
    logs_before = db_session.query(ActivityLog).count()

    def fail(*args, **kwargs):
        raise SQLAlchemyError("audit table unavailable")

    monkeypatch.setattr(activity_crud.crud_activity_log, "record", fail)

    with pytest.raises(SQLAlchemyError):
        service.add_stock(user, item.id, 5)

    refreshed = db_session.get(InventoryItem, item.id)
    assert refreshed.quantity == 5
    assert refreshed.total_value == Decimal("5.00")
    assert _transactions(db_session, item.id) == []
    assert db_session.query(ActivityLog).count() == logs_before


def test_ledger_quantity_matches_transaction_history(make_item, service, user, db_session):
    item = make_item(quantity=0)

    service.add_stock(user, item.id, 10)
    service.reduce_stock(user, item.id, 4)
    service.add_stock(user, item.id, 2)
    with pytest.raises(InsufficientStockError):
        service.reduce_stock(user, item.id, 100)

    net = sum(
        t.quantity_change if t.transaction_type == TransactionType.IN else -t.quantity_change
        for t in _transactions(db_session, item.id)
    )
    assert service.get_item(item.id).quantity == net == 8


def test_item_transactions_newest_first(make_item, service, user):
    item = make_item(quantity=0)
    service.add_stock(user, item.id, 1)
    service.add_stock(user, item.id, 2)
    service.reduce_stock(user, item.id, 3)

    transactions, total = service.item_transactions(item.id, page=0, size=2)

    assert total == 3
    assert [t.quantity_change for t in transactions] == [3, 2]
    assert transactions[0].transaction_type == TransactionType.OUT


def test_concurrent_reductions_cannot_overdraw(tmp_path, monkeypatch):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'stock.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )
    Base.metadata.create_all(engine)
    SessionFactory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    with SessionFactory() as setup:
        clerk = User(username="carol", email="carol@example.com", password_hash="x", full_name="Carol")
        shelf = Category(name="Hardware")
        setup.add_all([clerk, shelf])
        setup.commit()
        item = InventoryService(setup).create_item(
            clerk, name="Widget", category_id=shelf.id, quantity=5, unit_price=Decimal("1.00")
        )
        item_id, clerk_id = item.id, clerk.id

    # both writers have read the item before either one writes
    barrier = threading.Barrier(2, timeout=5)
    original_get_for_update = crud_inventory_item.get_for_update

    def get_for_update_then_wait(db, id):
        found = original_get_for_update(db, id)
        barrier.wait()
        return found

    monkeypatch.setattr(crud_inventory_item, "get_for_update", get_for_update_then_wait)

    outcomes = []

    def reduce_all():
        with SessionFactory() as session:
            actor = session.get(User, clerk_id)
            try:
                InventoryService(session).reduce_stock(actor, item_id, 5)
                outcomes.append("reduced")
            except InsufficientStockError as exc:
                outcomes.append(exc.available)

    workers = [threading.Thread(target=reduce_all) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=30)

    assert sorted(outcomes, key=str) == [0, "reduced"]
    with SessionFactory() as check:
        assert check.get(InventoryItem, item_id).quantity == 0
        out = check.query(StockTransaction).filter(StockTransaction.item_id == item_id).all()
        assert [(t.transaction_type, t.quantity_change) for t in out] == [(TransactionType.OUT, 5)]
    engine.dispose()
