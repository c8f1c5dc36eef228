from sqlalchemy import select
from sqlalchemy.orm import Session
from typing import Optional

from app.models import User
from app.crud.base import CRUDBase

class CRUDUser(CRUDBase[User]):
    def __init__(self):
        super().__init__(User)

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        return db.execute(stmt).scalar_one_or_none()

crud_user = CRUDUser()
