"""
Inventory router: item CRUD, stock movements, low stock, history.
Every route requires an authenticated user; all logic lives in InventoryService.
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app import models
from app.dependencies import PageParams, get_inventory_service, get_page_params
from app.schemas.common import ApiResponse, Page
from app.schemas.inventory import (
    InventoryItemCreate, InventoryItemUpdate, InventoryItemResponse,
    StockTransactionResponse, CategoryResponse
)
from app.security import get_current_user
from app.services.inventory import InventoryService

router = APIRouter(prefix="/items", tags=["inventory"])

def _item_page(items, total, params: PageParams) -> Page[InventoryItemResponse]:
    return Page.build(
        [InventoryItemResponse.from_item(item) for item in items],
        page=params.page,
        size=params.size,
        total=total,
    )

# ====================
# READS
# ====================

@router.get("", response_model=ApiResponse[Page[InventoryItemResponse]])
async def list_items(
    category_id: Optional[int] = None,
    params: PageParams = Depends(get_page_params),
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    items, total = service.list_items(page=params.page, size=params.size, category_id=category_id)
    return ApiResponse.ok("Items fetched", _item_page(items, total, params))

@router.get("/search", response_model=ApiResponse[Page[InventoryItemResponse]])
async def search_items(
    query: str = Query(..., min_length=1),
    params: PageParams = Depends(get_page_params),
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    items, total = service.search_items(query, page=params.page, size=params.size)
    return ApiResponse.ok("Search completed", _item_page(items, total, params))

@router.get("/low-stock", response_model=ApiResponse[List[InventoryItemResponse]])
async def low_stock_items(
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    items = service.low_stock_items()
    return ApiResponse.ok("Low stock items fetched", [InventoryItemResponse.from_item(i) for i in items])

@router.get("/{item_id}", response_model=ApiResponse[InventoryItemResponse])
async def get_item(
    item_id: int,
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    item = service.get_item(item_id)
    return ApiResponse.ok("Item fetched", InventoryItemResponse.from_item(item))

@router.get("/{item_id}/transactions", response_model=ApiResponse[Page[StockTransactionResponse]])
async def item_transactions(
    item_id: int,
    params: PageParams = Depends(get_page_params),
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    transactions, total = service.item_transactions(item_id, page=params.page, size=params.size)
    page = Page.build(
        [StockTransactionResponse.model_validate(t) for t in transactions],
        page=params.page,
        size=params.size,
        total=total,
    )
    return ApiResponse.ok("Transactions fetched", page)

# ====================
# ITEM LEDGER
# ====================

@router.post("", response_model=ApiResponse[InventoryItemResponse])
async def create_item(
    item: InventoryItemCreate,
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    created = service.create_item(current_user, **item.model_dump())
    return ApiResponse.ok("Item created", InventoryItemResponse.from_item(created))

@router.put("/{item_id}", response_model=ApiResponse[InventoryItemResponse])
async def update_item(
    item_id: int,
    item: InventoryItemUpdate,
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    updated = service.update_item(current_user, item_id, **item.model_dump())
    return ApiResponse.ok("Item updated", InventoryItemResponse.from_item(updated))

@router.delete("/{item_id}", response_model=ApiResponse[None])
async def delete_item(
    item_id: int,
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    service.delete_item(current_user, item_id)
    return ApiResponse.ok("Item deleted")

# ====================
# STOCK OPERATIONS
# ====================

@router.post("/{item_id}/add-stock", response_model=ApiResponse[InventoryItemResponse])
async def add_stock(
    item_id: int,
    quantity: int,
    reference: Optional[str] = Query(None, max_length=50),
    notes: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    item = service.add_stock(current_user, item_id, quantity, reference=reference, notes=notes)
    return ApiResponse.ok("Stock added", InventoryItemResponse.from_item(item))

@router.post("/{item_id}/reduce-stock", response_model=ApiResponse[InventoryItemResponse])
async def reduce_stock(
    item_id: int,
    quantity: int,
    reference: Optional[str] = Query(None, max_length=50),
    notes: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    item = service.reduce_stock(current_user, item_id, quantity, reference=reference, notes=notes)
    return ApiResponse.ok("Stock reduced", InventoryItemResponse.from_item(item))

# ====================
# CATEGORIES
# ====================

categories_router = APIRouter(prefix="/categories", tags=["categories"])

@categories_router.get("", response_model=ApiResponse[List[CategoryResponse]])
async def list_categories(
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    categories = service.list_categories()
    return ApiResponse.ok("Categories fetched", [CategoryResponse.model_validate(c) for c in categories])
