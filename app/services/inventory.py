"""
Inventory service:
- total_value is recomputed on every create/update/stock change
- quantity never goes negative; over-reductions are rejected, not clamped
- each mutation and its activity entry commit or roll back together
- stock changes are a conditional UPDATE on the item row, so concurrent
  reductions can never overdraw it
"""
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.crud.activity import crud_activity_log
from app.crud.inventory import crud_inventory_item, crud_stock_transaction, crud_category
from app.exceptions import ValidationError, NotFoundError, InsufficientStockError
from app.models import (
    ActivityAction,
    ActivityLog,
    Category,
    InventoryItem,
    StockTransaction,
    TransactionType,
    User,
)

logger = logging.getLogger(__name__)

ITEM_ENTITY = "InventoryItem"

CENTS = Decimal("0.01")

def _to_money(value, field: str) -> Decimal:
    """Parse a price and round it to cents, the precision it is stored with"""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field} is out of range")

class InventoryService:
    """Use cases over the item ledger, transaction log and activity log.

    The acting user is resolved by the caller and passed into every
    mutating call; the service never looks it up itself.
    """

    def __init__(self, db: Session, ip_address: Optional[str] = None):
        self.db = db
        self.ip_address = ip_address

    @contextmanager
    def _unit_of_work(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _log_activity(self, user: User, action: ActivityAction, entity_id: int, description: str) -> ActivityLog:
        return crud_activity_log.record(
            self.db,
            user=user,
            action=action,
            entity_type=ITEM_ENTITY,
            entity_id=entity_id,
            description=description,
            ip_address=self.ip_address,
        )

    def _require_category(self, category_id: int) -> Category:
        category = crud_category.get(self.db, category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def _require_item(self, item_id: int, *, lock: bool = False) -> InventoryItem:
        if lock:
            item = crud_inventory_item.get_for_update(self.db, item_id)
        else:
            item = crud_inventory_item.get(self.db, item_id)
        if not item:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    def _validate_reorder_level(self, reorder_level: Optional[int]) -> None:
        if reorder_level is not None and reorder_level < 0:
            raise ValidationError("Reorder level cannot be negative")

    # ====================
    # ITEM LEDGER
    # ====================

    def create_item(
        self,
        user: User,
        *,
        name: str,
        category_id: int,
        quantity: int,
        unit_price,
        reorder_level: Optional[int] = None,
        location: Optional[str] = None,
        sku: Optional[str] = None,
        description: Optional[str] = None,
    ) -> InventoryItem:
        unit_price = _to_money(unit_price, "unit_price")
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative")
        if unit_price < 0:
            raise ValidationError("Unit price cannot be negative")
        self._validate_reorder_level(reorder_level)

        with self._unit_of_work():
            category = self._require_category(category_id)
            if sku and crud_inventory_item.get_by_sku(self.db, sku):
                raise ValidationError(f"SKU '{sku}' is already in use")

            item = InventoryItem(
                name=name,
                category=category,
                quantity=quantity,
                unit_price=unit_price,
                reorder_level=settings.DEFAULT_REORDER_LEVEL if reorder_level is None else reorder_level,
                location=location,
                sku=sku or None,
                description=description,
                creator=user,
            )
            item.calculate_total_value()
            crud_inventory_item.save(self.db, item)
            self._log_activity(user, ActivityAction.ITEM_CREATED, item.id, f"Created item: {item.name}")

        logger.info(f"User {user.username} created item {item.id} ({item.name})")
        return item

    def update_item(
        self,
        user: User,
        item_id: int,
        *,
        name: str,
        category_id: int,
        unit_price,
        reorder_level: Optional[int] = None,
        location: Optional[str] = None,
        description: Optional[str] = None,
    ) -> InventoryItem:
        """Overwrite the descriptive fields and price. Quantity only moves through stock operations."""
        unit_price = _to_money(unit_price, "unit_price")
        if unit_price < 0:
            raise ValidationError("Unit price cannot be negative")
        self._validate_reorder_level(reorder_level)

        with self._unit_of_work():
            item = self._require_item(item_id, lock=True)
            item.name = name
            item.category = self._require_category(category_id)
            item.description = description
            item.location = location
            item.unit_price = unit_price
            if reorder_level is not None:
                item.reorder_level = reorder_level
            item.calculate_total_value()
            crud_inventory_item.save(self.db, item)
            self._log_activity(user, ActivityAction.ITEM_UPDATED, item.id, f"Updated item: {item.name}")

        logger.info(f"User {user.username} updated item {item.id}")
        return item

    def delete_item(self, user: User, item_id: int) -> bool:
        with self._unit_of_work():
            item = self._require_item(item_id, lock=True)
            name = item.name
            crud_inventory_item.remove(self.db, id=item_id)
            self._log_activity(user, ActivityAction.ITEM_DELETED, item_id, f"Deleted item: {name}")

        logger.info(f"User {user.username} deleted item {item_id}")
        return True

    def get_item(self, item_id: int) -> InventoryItem:
        return self._require_item(item_id)

    def list_items(self, *, page: int = 0, size: int = 10, category_id: Optional[int] = None) -> Tuple[List[InventoryItem], int]:
        skip = page * size
        if category_id is not None:
            return crud_inventory_item.get_by_category(self.db, category_id, skip=skip, limit=size)
        return crud_inventory_item.page(self.db, skip=skip, limit=size)

    def search_items(self, query: str, *, page: int = 0, size: int = 10) -> Tuple[List[InventoryItem], int]:
        return crud_inventory_item.search_by_name(self.db, query, skip=page * size, limit=size)

    def low_stock_items(self) -> List[InventoryItem]:
        return crud_inventory_item.get_low_stock(self.db)

    def list_categories(self) -> List[Category]:
        return crud_category.get_multi(self.db, limit=1000)

    # ====================
    # STOCK OPERATIONS
    # ====================

    def _record_stock_change(
        self,
        user: User,
        item: InventoryItem,
        transaction_type: TransactionType,
        quantity: int,
        reference: Optional[str],
        notes: Optional[str],
    ) -> StockTransaction:
        transaction = StockTransaction(
            item_id=item.id,
            transaction_type=transaction_type,
            quantity_change=quantity,
            reference_number=reference,
            notes=notes,
            performed_by=user.id,
        )
        crud_stock_transaction.save(self.db, transaction)
        if transaction_type == TransactionType.IN:
            self._log_activity(user, ActivityAction.STOCK_ADDED, item.id, f"Added {quantity} units")
        else:
            self._log_activity(user, ActivityAction.STOCK_REDUCED, item.id, f"Reduced {quantity} units")
        return transaction

    def add_stock(
        self,
        user: User,
        item_id: int,
        quantity: int,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> InventoryItem:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")

        with self._unit_of_work():
            item = self._require_item(item_id, lock=True)
            crud_inventory_item.adjust_quantity(self.db, item_id, quantity)
            self.db.refresh(item)
            self._record_stock_change(user, item, TransactionType.IN, quantity, reference, notes)

        logger.info(f"User {user.username} added {quantity} units to item {item_id} (now {item.quantity})")
        return item

    def reduce_stock(
        self,
        user: User,
        item_id: int,
        quantity: int,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> InventoryItem:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")

        with self._unit_of_work():
            item = self._require_item(item_id, lock=True)
            applied = crud_inventory_item.adjust_quantity(self.db, item_id, -quantity)
            # the UPDATE bypasses the identity map
            self.db.refresh(item)
            if not applied:
                logger.warning(
                    f"Rejected reduction of {quantity} units on item {item_id}: only {item.quantity} in stock"
                )
                raise InsufficientStockError(item_id, item.quantity, quantity)
            self._record_stock_change(user, item, TransactionType.OUT, quantity, reference, notes)

        logger.info(f"User {user.username} reduced item {item_id} by {quantity} units (now {item.quantity})")
        return item

    def item_transactions(self, item_id: int, *, page: int = 0, size: int = 10) -> Tuple[List[StockTransaction], int]:
        self._require_item(item_id)
        return crud_stock_transaction.get_item_transactions(self.db, item_id, skip=page * size, limit=size)

    # ====================
    # ACTIVITY LOG
    # ====================

    def activity_entries(
        self,
        *,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        page: int = 0,
        size: int = 10,
    ) -> Tuple[List[ActivityLog], int]:
        return crud_activity_log.list_entries(self.db, user_id=user_id, action=action, skip=page * size, limit=size)
