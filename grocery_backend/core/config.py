"""
Application configuration module.

Provides strongly-typed settings using Pydantic BaseSettings. Values are loaded
from environment variables and .env (via python-dotenv automatically loaded by
Pydantic). Use get_settings() to obtain a cached Settings instance.

Storage:
- DATABASE_URL is any SQLAlchemy URL; the default is a SQLite file next to the process.
- An in-memory SQLite URL ("sqlite://") is supported and shares one connection.

Remote import:
- IMPORT_URL is the fixed list endpoint used by POST /groceries/import.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_IMPORT_URL = "https://67e1773958cc6bf78525efdf.mockapi.io/api/v1/22657391_VoTrieuAn"


# PUBLIC_INTERFACE
class Settings(BaseSettings):
    """Centralized application configuration powered by Pydantic BaseSettings."""

    # App
    APP_NAME: str = Field(default="Grocery List Service", description="Application name")
    APP_ENV: str = Field(default="development", description="Execution environment")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level (DEBUG, INFO, WARNING, ERROR)")
    PORT: int = Field(default=3001, description="Port for the FastAPI server")
    CORS_ALLOWED_ORIGINS: str = Field(default="*", description="Comma-separated list of allowed CORS origins or '*'")

    # Database (SQLAlchemy / SQLite)
    DATABASE_URL: str = Field(
        default="sqlite:///./grocery.db",
        description="SQLAlchemy connection string for the local grocery store",
    )
    DB_ECHO: bool = Field(default=False, description="If true, SQLAlchemy will echo SQL statements to logs")
    SEED_SAMPLE_ITEMS: bool = Field(
        default=True,
        description="Insert the sample groceries on startup when the table is empty",
    )

    # Remote import
    IMPORT_URL: str = Field(default=DEFAULT_IMPORT_URL, description="Remote list endpoint for bulk import")
    IMPORT_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, description="Timeout for the remote import request")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Convenience helpers (non-env)
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS_ALLOWED_ORIGINS into a list. '*' returns ['*'] to indicate permissive mode.
        """
        raw = (self.CORS_ALLOWED_ORIGINS or "").strip()
        if raw == "*" or raw == "":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
