"""
Inventory repositories:
- Items are read with a row lock before any stock change
- Quantity changes are a single conditional UPDATE so stock never goes negative
- Stock transactions are append-only
"""
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session
import logging
from typing import List, Optional, Tuple

from app.models import InventoryItem, StockTransaction, Category
from app.crud.base import CRUDBase

logger = logging.getLogger(__name__)

class CRUDInventoryItem(CRUDBase[InventoryItem]):
    def __init__(self):
        super().__init__(InventoryItem)

    def get_for_update(self, db: Session, id: int) -> Optional[InventoryItem]:
        """Get item and lock its row until the current transaction ends"""
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.id == id)
            .with_for_update(of=InventoryItem)
            .execution_options(populate_existing=True)
        )
        return db.execute(stmt).unique().scalar_one_or_none()

    def adjust_quantity(self, db: Session, id: int, delta: int) -> bool:
        """
        Apply a quantity delta and recompute total_value in one statement.
        A negative delta only applies while enough stock remains; returns
        False when no row was changed.
        """
        new_quantity = InventoryItem.quantity + delta
        stmt = (
            update(InventoryItem)
            .where(InventoryItem.id == id)
            .values(
                quantity=new_quantity,
                total_value=func.round(new_quantity * InventoryItem.unit_price, 2),
            )
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            stmt = stmt.where(InventoryItem.quantity >= -delta)
        result = db.execute(stmt)
        return result.rowcount == 1

    def get_by_sku(self, db: Session, sku: str) -> Optional[InventoryItem]:
        stmt = select(InventoryItem).where(InventoryItem.sku == sku)
        return db.execute(stmt).unique().scalar_one_or_none()

    def search_by_name(self, db: Session, query: str, *, skip: int = 0, limit: int = 100) -> Tuple[List[InventoryItem], int]:
        """Case-insensitive substring match on item name"""
        return self.page(db, InventoryItem.name.icontains(query, autoescape=True), skip=skip, limit=limit)

    def get_by_category(self, db: Session, category_id: int, *, skip: int = 0, limit: int = 100) -> Tuple[List[InventoryItem], int]:
        return self.page(db, InventoryItem.category_id == category_id, skip=skip, limit=limit)

    def get_low_stock(self, db: Session) -> List[InventoryItem]:
        """Items at or below their reorder level"""
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.quantity <= InventoryItem.reorder_level)
            .order_by(InventoryItem.id)
        )
        return list(db.execute(stmt).unique().scalars().all())

class CRUDStockTransaction(CRUDBase[StockTransaction]):
    def __init__(self):
        super().__init__(StockTransaction)

    def get_item_transactions(self, db: Session, item_id: int, *, skip: int = 0, limit: int = 100) -> Tuple[List[StockTransaction], int]:
        """Transactions for one item, newest first"""
        return self.page(
            db,
            StockTransaction.item_id == item_id,
            order_by=StockTransaction.id.desc(),
            skip=skip,
            limit=limit,
        )

class CRUDCategory(CRUDBase[Category]):
    def __init__(self):
        super().__init__(Category)

    def get_by_name(self, db: Session, name: str) -> Optional[Category]:
        stmt = select(Category).where(Category.name == name)
        return db.execute(stmt).scalar_one_or_none()

# Create instances
crud_inventory_item = CRUDInventoryItem()
crud_stock_transaction = CRUDStockTransaction()
crud_category = CRUDCategory()
