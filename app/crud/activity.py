"""
Activity log repository. Entries are written inside the caller's unit of
work so an audit record never exists without the change it describes.
"""
from sqlalchemy.orm import Session
import logging
from typing import List, Optional, Tuple, Union

from app.models import ActivityLog, ActivityAction, User
from app.crud.base import CRUDBase

logger = logging.getLogger(__name__)

class CRUDActivityLog(CRUDBase[ActivityLog]):
    def __init__(self):
        super().__init__(ActivityLog)

    def record(
        self,
        db: Session,
        *,
        user: User,
        action: Union[ActivityAction, str],
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        description: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> ActivityLog:
        """Append an activity entry"""
        entry = ActivityLog(
            user_id=user.id,
            action=action.value if isinstance(action, ActivityAction) else action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            ip_address=ip_address,
        )
        self.save(db, entry)
        logger.info(f"Activity recorded: {entry.action} on {entity_type} {entity_id} by user {user.id}")
        return entry

    def list_entries(
        self,
        db: Session,
        *,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[ActivityLog], int]:
        """Entries filtered by user and/or action, newest first"""
        where = []
        if user_id is not None:
            where.append(ActivityLog.user_id == user_id)
        if action:
            where.append(ActivityLog.action == action)
        return self.page(db, *where, order_by=ActivityLog.id.desc(), skip=skip, limit=limit)

crud_activity_log = CRUDActivityLog()
