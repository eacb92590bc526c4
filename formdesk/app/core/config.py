"""Application configuration.

Defines `Settings` read from environment variables and the `.env` file.
"""
# app/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Formdesk"
    BACKEND_URL: str = "http://127.0.0.1:8000"
    DEBUG: bool = True
    LOG_PATH: str = "logging"
    SECRET_KEY: str = "change-me-in-env"
    DATABASE_URL: str = "sqlite:///./formdesk.db"

    OPERATOR_LINK_TTL: int = 60 * 60 * 24  # 24h

    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    UPLOAD_CONCURRENCY: int = 1  # 1 = one asset at a time
    ASSET_FETCH_TIMEOUT: float = 15.0

    EXPORT_TIMESTAMP_FORMAT: str = "%Y-%m-%d %H:%M:%S"


settings = Settings()
