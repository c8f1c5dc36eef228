from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session
from dataclasses import dataclass

from app.config import settings
from app.database import get_db
from app.services.inventory import InventoryService

def get_inventory_service(request: Request, db: Session = Depends(get_db)) -> InventoryService:
    client_host = request.client.host if request.client else None
    return InventoryService(db, ip_address=client_host)

@dataclass
class PageParams:
    page: int
    size: int

def get_page_params(
    page: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> PageParams:
    return PageParams(page=page, size=size)
