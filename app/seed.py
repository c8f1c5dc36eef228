"""
Create the initial admin user and a default category.
Run with: python -m app.seed
"""
import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.crud.inventory import crud_category
from app.crud.user import crud_user
from app.database import SessionLocal, engine
from app.models import Base, Category, User, UserRole
from app.security import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"

def seed(db: Session) -> None:
    if not crud_user.get_by_username(db, settings.SEED_ADMIN_USERNAME):
        db.add(User(
            username=settings.SEED_ADMIN_USERNAME,
            email=f"{settings.SEED_ADMIN_USERNAME}@example.com",
            password_hash=get_password_hash(settings.SEED_ADMIN_PASSWORD),
            full_name="System Administrator",
            role=UserRole.ADMIN,
            is_active=True
        ))
        logger.info(f"Created admin user: {settings.SEED_ADMIN_USERNAME}")

    if not crud_category.get_by_name(db, DEFAULT_CATEGORY):
        db.add(Category(name=DEFAULT_CATEGORY, description="Uncategorised items"))
        logger.info(f"Created category: {DEFAULT_CATEGORY}")

    db.commit()

def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()

if __name__ == "__main__":
    main()
