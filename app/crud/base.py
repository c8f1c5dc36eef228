"""
Base repository operations with SQLAlchemy 2.x patterns.
Repositories never commit: the service that owns the unit of work decides
when to commit or roll back.
"""
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging
from typing import TypeVar, Generic, Type, Optional, List, Tuple
from app.database import Base

logger = logging.getLogger(__name__)
ModelType = TypeVar("ModelType", bound=Base)

class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: int) -> Optional[ModelType]:
        """Get record by ID using SQLAlchemy 2.x select()"""
        stmt = select(self.model).where(self.model.id == id)
        return db.execute(stmt).unique().scalar_one_or_none()

    def get_multi(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[ModelType]:
        """Get multiple records ordered by id"""
        stmt = select(self.model).order_by(self.model.id).offset(skip).limit(limit)
        return list(db.execute(stmt).unique().scalars().all())

    def count(self, db: Session, *where) -> int:
        stmt = select(func.count()).select_from(self.model)
        if where:
            stmt = stmt.where(*where)
        return db.execute(stmt).scalar_one()

    def page(self, db: Session, *where, order_by=None, skip: int = 0, limit: int = 100) -> Tuple[List[ModelType], int]:
        """Return one page of records matching the filters plus the total count"""
        stmt = select(self.model)
        if where:
            stmt = stmt.where(*where)
        stmt = stmt.order_by(order_by if order_by is not None else self.model.id)
        items = db.execute(stmt.offset(skip).limit(limit)).unique().scalars().all()
        return list(items), self.count(db, *where)

    def save(self, db: Session, obj: ModelType) -> ModelType:
        """Stage a new or changed record and flush it so generated ids are available"""
        try:
            db.add(obj)
            db.flush()
            return obj
        except SQLAlchemyError as e:
            logger.error(f"Error saving {self.model.__name__}: {e}")
            raise

    def remove(self, db: Session, *, id: int) -> Optional[ModelType]:
        """Delete record by ID, returning the deleted record or None"""
        obj = self.get(db, id)
        if not obj:
            return None
        try:
            db.delete(obj)
            db.flush()
            return obj
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {self.model.__name__} {id}: {e}")
            raise
