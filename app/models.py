"""
SQLAlchemy 2.x models.
Items carry a derived total_value that is recomputed from quantity and
unit_price, never written on its own.
"""
import enum
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Text, Enum, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base

class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"

class TransactionType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"

class ActivityAction(str, enum.Enum):
    ITEM_CREATED = "ITEM_CREATED"
    ITEM_UPDATED = "ITEM_UPDATED"
    ITEM_DELETED = "ITEM_DELETED"
    STOCK_ADDED = "STOCK_ADDED"
    STOCK_REDUCED = "STOCK_REDUCED"

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    role = Column(Enum(UserRole, native_enum=False, length=20), nullable=False, default=UserRole.STAFF)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    created_items = relationship("InventoryItem", back_populates="creator")
    transactions = relationship("StockTransaction", back_populates="performer")
    activity_logs = relationship("ActivityLog", back_populates="user")

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("InventoryItem", back_populates="category")

class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        Index("idx_item_name", "name"),
        Index("idx_item_quantity", "quantity"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_value = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    description = Column(Text)
    location = Column(String(100))
    sku = Column(String(50), unique=True)
    reorder_level = Column(Integer, nullable=False, default=5)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Loaded eagerly so responses never trigger lazy loads after the session closes
    category = relationship("Category", back_populates="items", lazy="joined")
    creator = relationship("User", back_populates="created_items", lazy="joined")
    transactions = relationship(
        "StockTransaction",
        back_populates="item",
        cascade="all, delete-orphan",
    )

    def calculate_total_value(self) -> Decimal:
        """Recompute total_value from quantity and unit_price."""
        quantity = self.quantity or 0
        unit_price = Decimal(str(self.unit_price or 0))
        self.total_value = (unit_price * quantity).quantize(Decimal("0.01"))
        return self.total_value

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.reorder_level

class StockTransaction(Base):
    __tablename__ = "stock_transactions"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_type = Column(Enum(TransactionType, native_enum=False, length=20), nullable=False, index=True)
    quantity_change = Column(Integer, nullable=False)
    reference_number = Column(String(50))
    notes = Column(Text)
    performed_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    item = relationship("InventoryItem", back_populates="transactions")
    performer = relationship("User", back_populates="transactions")

class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50))
    entity_id = Column(Integer)
    description = Column(Text)
    ip_address = Column(String(45))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    user = relationship("User", back_populates="activity_logs")
