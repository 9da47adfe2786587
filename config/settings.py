"""Application settings and configuration."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(
        default="Picture Store Service",
        description="Application name"
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )
    environment: Literal["local", "dev", "stage", "prod"] = Field(
        default="local",
        description="Deployment environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # API Configuration
    api_prefix: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )
    public_base_url: Optional[str] = Field(
        default=None,
        description="Base URL used in retrieval URLs (defaults to the request's base URL)"
    )

    # Blob storage configuration
    storage_root: Path = Field(
        default=Path("data/pictures"),
        description="Root directory for picture blobs"
    )
    upload_chunk_size: int = Field(
        default=64 * 1024,
        gt=0,
        description="Chunk size used when copying uploads to disk"
    )

    # Metadata Storage Configuration
    metadata_storage: Literal["memory", "database"] = Field(
        default="memory",
        description="Storage backend for picture metadata records"
    )

    @field_validator("storage_root", mode="before")
    @classmethod
    def resolve_storage_path(cls, v: str | Path) -> Path:
        """Ensure storage root is a Path object."""
        if isinstance(v, str):
            return Path(v)
        return v

    # Database Configuration (for metadata)
    database_url: str = Field(
        default="sqlite:///data/db.sqlite3",
        description="Database connection URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements (for debugging)"
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Path to log file (if None, logs to stdout only)"
    )

    # Upload limits
    max_upload_size: int = Field(
        default=10 * 1024 * 1024,  # 10MB
        description="Maximum picture upload size in bytes"
    )

    @property
    def log_level_numeric(self) -> int:
        """Get numeric log level."""
        return getattr(logging, self.log_level)

    def configure_logging(self) -> None:
        """Configure logging based on settings."""
        import sys

        handlers: list[logging.Handler] = []

        console_handler = logging.StreamHandler(sys.stdout)
        handlers.append(console_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file)
            handlers.append(file_handler)

        if self.log_json:
            import json

            class JSONFormatter(logging.Formatter):
                def format(self, record: logging.LogRecord) -> str:
                    log_obj = {
                        "timestamp": self.formatTime(record),
                        "level": record.levelname,
                        "logger": record.name,
                        "message": record.getMessage(),
                        "module": record.module,
                        "function": record.funcName,
                        "line": record.lineno,
                    }
                    if record.exc_info:
                        log_obj["exception"] = self.formatException(record.exc_info)
                    return json.dumps(log_obj)

            formatter = JSONFormatter()
        else:
            formatter = logging.Formatter(self.log_format)

        for handler in handlers:
            handler.setFormatter(formatter)

        logging.basicConfig(
            level=self.log_level_numeric,
            handlers=handlers,
            force=True,
        )

        if self.debug:
            logging.getLogger("picture_store").setLevel(logging.DEBUG)
        else:
            # PIL logs every plugin it tries while sniffing content types
            logging.getLogger("PIL").setLevel(logging.WARNING)
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
