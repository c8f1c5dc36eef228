from __future__ import annotations

from decimal import Decimal

import pytest

from app.exceptions import InsufficientStockError
from app.models import ActivityLog


def _entries(db_session):
    return db_session.query(ActivityLog).order_by(ActivityLog.id).all()


def test_each_mutation_writes_one_entry(make_item, service, user, category, db_session):
    item = make_item()
    service.update_item(user, item.id, name="Renamed", category_id=category.id, unit_price=Decimal("1"))
    service.add_stock(user, item.id, 4)
    service.reduce_stock(user, item.id, 2)
    service.delete_item(user, item.id)

    entries = _entries(db_session)

    assert [e.action for e in entries] == [
        "ITEM_CREATED",
        "ITEM_UPDATED",
        "STOCK_ADDED",
        "STOCK_REDUCED",
        "ITEM_DELETED",
    ]
    assert {e.entity_id for e in entries} == {item.id}
    assert {e.entity_type for e in entries} == {"InventoryItem"}
    assert {e.user_id for e in entries} == {user.id}
    assert entries[2].description == "Added 4 units"
    assert entries[3].description == "Reduced 2 units"


def test_failed_operations_write_nothing(make_item, service, user, db_session):
    item = make_item(quantity=1)

    with pytest.raises(InsufficientStockError):
        service.reduce_stock(user, item.id, 2)

    assert [e.action for e in _entries(db_session)] == ["ITEM_CREATED"]


def test_ip_address_is_recorded(db_session, user, category):
    from app.services.inventory import InventoryService

    service = InventoryService(db_session, ip_address="10.0.0.7")
    service.create_item(user, name="Tape", category_id=category.id, quantity=1, unit_price=Decimal("1"))

    assert _entries(db_session)[0].ip_address == "10.0.0.7"


def test_list_entries_by_user_and_action(make_item, service, user, inactive_user, db_session):
    item = make_item()
    service.add_stock(user, item.id, 1)
    service.add_stock(inactive_user, item.id, 1)

    by_user, total_user = service.activity_entries(user_id=inactive_user.id)
    by_action, total_action = service.activity_entries(action="STOCK_ADDED")

    assert total_user == 1
    assert by_user[0].user_id == inactive_user.id
    assert total_action == 2
    # newest first
    assert [e.user_id for e in by_action] == [inactive_user.id, user.id]
