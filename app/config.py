from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./stockroom.db"

    # JWT Authentication
    SECRET_KEY: str = "change-this-in-production-secret-key-12345"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Application
    APP_NAME: str = "Stockroom Inventory API"
    APP_VERSION: str = "1.0.0"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]  # Restrict in production

    # Password security
    BCRYPT_ROUNDS: int = 12

    # Inventory
    DEFAULT_REORDER_LEVEL: int = 5
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Seeding
    SEED_ADMIN_USERNAME: str = "admin"
    SEED_ADMIN_PASSWORD: str = "admin123"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
