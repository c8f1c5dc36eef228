"""
Database configuration:
- pool_pre_ping=True
- SQLite fallback for local development and tests
- One session per request, closed when the request ends
"""
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool
from dotenv import load_dotenv
import logging
from typing import Generator

from app.config import settings

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite database")

    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        DATABASE_URL,
        poolclass=QueuePool,
        pool_pre_ping=True,
        pool_size=5,                # Conservative pool size
        max_overflow=10,
        pool_recycle=300,
        pool_timeout=30,
        echo=False,
        connect_args={"connect_timeout": 10},
    )

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

# Declarative base for models
Base = declarative_base()

def get_db() -> Generator:
    """Yield a session for the duration of one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def test_connection() -> tuple[bool, str]:
    """Preflight check used on startup and by the health endpoint"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, "Database connection successful"
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        return False, f"Database connection failed: {str(e)}"
