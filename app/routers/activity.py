"""
Activity log router: read-only audit review.
"""
from fastapi import APIRouter, Depends
from typing import Optional

from app import models
from app.dependencies import PageParams, get_inventory_service, get_page_params
from app.schemas.activity import ActivityLogResponse
from app.schemas.common import ApiResponse, Page
from app.security import get_current_user
from app.services.inventory import InventoryService

router = APIRouter(prefix="/activity-logs", tags=["activity"])

@router.get("", response_model=ApiResponse[Page[ActivityLogResponse]])
async def list_activity(
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    params: PageParams = Depends(get_page_params),
    current_user: models.User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service)
):
    """Activity entries, newest first, optionally filtered by user or action tag"""
    entries, total = service.activity_entries(
        user_id=user_id, action=action, page=params.page, size=params.size
    )
    page = Page.build(
        [ActivityLogResponse.model_validate(e) for e in entries],
        page=params.page,
        size=params.size,
        total=total,
    )
    return ApiResponse.ok("Activity fetched", page)
