"""TowerWatch configuration using Pydantic Settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TowerwatchConfig(BaseSettings):
    """Main configuration class. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "TOWERWATCH"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    # Data source
    data_source: str = "mock"  # mock / api
    seed_data_path: str = ""  # empty -> bundled seed
    api_base_url: str = "http://are.towerbuddy.tel:8000"
    api_incidents_path: str = "/api/v1/incidents/"
    api_timeout: float = 30.0
    api_page_limit: int = 50  # max pages followed per listing

    @field_validator("data_source")
    @classmethod
    def validate_data_source(cls, v: str) -> str:
        allowed = {"mock", "api"}
        if v not in allowed:
            raise ValueError(f"data_source must be one of {allowed}")
        return v

    @field_validator("api_page_limit")
    @classmethod
    def validate_page_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("api_page_limit must be at least 1")
        return v

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def resolved_seed_path(self) -> Path:
        if self.seed_data_path:
            return Path(self.seed_data_path)
        return self.base_dir / "data" / "seed" / "dashboard.json"


def get_config() -> TowerwatchConfig:
    """Factory function to create config instance."""
    return TowerwatchConfig()
