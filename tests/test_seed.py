from __future__ import annotations

from app.config import settings
from app.models import Category, User, UserRole
from app.security import verify_password
from app.seed import DEFAULT_CATEGORY, seed


def test_seed_creates_admin_and_category_once(db_session):
    seed(db_session)
    seed(db_session)

    admins = db_session.query(User).filter(User.username == settings.SEED_ADMIN_USERNAME).all()
    assert len(admins) == 1
    assert admins[0].role == UserRole.ADMIN
    assert verify_password(settings.SEED_ADMIN_PASSWORD, admins[0].password_hash)
    assert db_session.query(Category).filter(Category.name == DEFAULT_CATEGORY).count() == 1
