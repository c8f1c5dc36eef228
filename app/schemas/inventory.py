"""
Inventory schemas:
- quantity and unit_price are never negative
- total_value is read-only, always derived from quantity x unit_price
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from app.models import TransactionType

# Inventory Item Schemas
class InventoryItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    category_id: int
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)
    unit_price: Decimal
    reorder_level: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

class InventoryItemCreate(InventoryItemBase):
    quantity: int = 0
    sku: Optional[str] = Field(None, max_length=50)

class InventoryItemUpdate(InventoryItemBase):
    pass

class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category_id: int
    category_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_value: Decimal
    description: Optional[str] = None
    location: Optional[str] = None
    sku: Optional[str] = None
    reorder_level: int
    low_stock: bool = False
    created_by: int
    added_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_item(cls, item) -> "InventoryItemResponse":
        response = cls.model_validate(item)
        response.category_name = item.category.name if item.category else None
        response.added_by = item.creator.full_name if item.creator else None
        response.low_stock = item.is_low_stock
        return response

# Transaction Schemas (append-only)
class StockTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    transaction_type: TransactionType
    quantity_change: int
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    performed_by: int
    created_at: Optional[datetime] = None

# Category Schemas
class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
