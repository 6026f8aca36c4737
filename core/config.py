from __future__ import annotations
import os
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Base .env load first
load_dotenv()

class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # ignore unknown env keys to avoid crashes
    )

    # Environment
    environment: Literal["development", "staging", "production", "test"] = Field(default="development")
    log_level: str = Field(default="INFO")
    app_port: int = Field(default=8501, ge=1, le=65535)

    # Intake policy
    max_total_mb: int = Field(default=100, ge=1)
    max_files: int = Field(default=25, ge=1)

    # Paths
    data_dir: Path = Field(default=Path(os.getenv("DATA_DIR", "data")))
    logs_dir: Path = Field(default=Path(os.getenv("LOGS_DIR", "data/output")))
    log_file: Path | None = None
    templates_dir: Path | None = Field(default=None)

    # Ingestion service
    api_base_url: str = Field(default=os.getenv("API_BASE_URL", "http://localhost:3000"))
    templates_path: str = Field(default="/api/v1/bank_templates")
    statements_path: str = Field(default="/api/v1/statements")
    csrf_token: str | None = Field(default=os.getenv("CSRF_TOKEN"))
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    upload_chunk_size: int = Field(default=64 * 1024, ge=1024)

    # Status polling
    poll_interval_seconds: float = Field(default=1.0, ge=0)
    poll_max_attempts: int = Field(default=60, ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = str(value).upper() if value else "INFO"
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}
        if level not in allowed:
            # Fallback to INFO instead of raising to avoid boot failure
            return "INFO"
        return level

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return str(value).rstrip("/") if value else "http://localhost:3000"

    @model_validator(mode="after")
    def _derive_paths_and_ensure_dirs(self) -> "AppConfig":
        # Layered environment loading: .env.<ENVIRONMENT> overrides base
        env_file_variant = Path(f".env.{self.environment}")
        if env_file_variant.exists():
            load_dotenv(dotenv_path=env_file_variant, override=True)
            # Re-read dynamic fields that might be env-driven
            self.api_base_url = os.getenv("API_BASE_URL", self.api_base_url).rstrip("/")
            self.csrf_token = os.getenv("CSRF_TOKEN", self.csrf_token)

        if self.log_file is None:
            self.log_file = self.logs_dir / "app.log"

        # Ensure directories exist
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        return self

    @property
    def max_total_bytes(self) -> int:
        return self.max_total_mb * 1024 * 1024

config = AppConfig()
