# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Literal, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./product_qr.db"

    # Object storage: "local" keeps buckets on disk, "http" talks to a storage API
    STORAGE_BACKEND: Literal["local", "http"] = "local"
    STORAGE_URL: Optional[str] = None
    STORAGE_KEY: Optional[str] = None
    STORAGE_DIR: str = "static/storage"
    STORAGE_TIMEOUT: float = 10.0

    PRODUCT_IMAGES_BUCKET: str = "product-images"
    QR_CODES_BUCKET: str = "qr-codes"

    # Public origin embedded in QR codes and local asset URLs
    PUBLIC_BASE_URL: str = "http://127.0.0.1:8000"
    FRONTEND_URL: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
