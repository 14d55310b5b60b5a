"""Configuration settings using Pydantic BaseSettings."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Configuration
    app_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_port: int = Field(default=8000, description="FastAPI port")
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(default="development", description="Deployment environment name")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(default=Path("logs"), description="Directory for rotating log files")

    # Storage Configuration
    store_backend: Literal["memory", "sqlite"] = Field(default="memory", description="Task store backend")
    sqlite_path: Path = Field(default=Path("data/tasks.sqlite3"), description="SQLite database file")

    # Task Service Configuration
    default_page_limit: int = Field(default=50, ge=1, description="Page size used when a list request gives no limit")
    max_create_attempts: int = Field(default=3, ge=1, description="Attempts at a collision-free id before reporting a conflict")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
