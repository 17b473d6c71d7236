# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_inventory.db"

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # Quantity field commit delay (milliseconds)
    QUANTITY_DEBOUNCE_MS: int = 800

    # Spreadsheet import display limits
    IMPORT_PREVIEW_ROWS: int = 10
    IMPORT_MAX_ERRORS_SHOWN: int = 5
    # Unconfirmed import previews are dropped after this long
    IMPORT_SESSION_TTL_MINUTES: int = 30

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
