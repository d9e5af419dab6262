"""Configuration models and YAML loader for the job aggregator."""

from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from jobhub.core.schemas import ProviderSettings


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/jobs.db"


class HttpConfig(BaseModel):
    """Outbound HTTP settings shared by every provider."""

    timeout_s: float = Field(default=12.0, gt=0.0)


class ScraperConfig(BaseModel):
    """Bounds for a single provider scrape."""

    default_batch_size: int = Field(default=200, ge=1)
    max_jobs_per_run: int = Field(default=2000, ge=1)
    default_max_pages: int = Field(default=5, ge=1)
    upsert_chunk_size: int = Field(default=200, ge=1)
    max_tags: int = Field(default=8, ge=0)
    default_location: str = "France"


class SchedulerConfig(BaseModel):
    """Refresh policy for due-provider detection."""

    refresh_interval_days: float = Field(default=3.0, ge=0.0)

    @property
    def refresh_interval(self) -> timedelta:
        return timedelta(days=self.refresh_interval_days)


class SearchConfig(BaseModel):
    """Result window defaults for job search."""

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)
    enabled_providers: list[str] | None = None

    @field_validator("providers")
    @classmethod
    def provider_overrides_known(cls, v: dict[str, ProviderSettings]) -> dict[str, ProviderSettings]:
        _check_known(list(v))
        return v

    @field_validator("enabled_providers")
    @classmethod
    def enabled_providers_known(cls, v: list[str] | None) -> list[str] | None:
        if v is not None:
            _check_known(v)
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)


def _check_known(provider_ids: list[str]) -> None:
    from jobhub.providers.catalog import JOB_PROVIDER_IDS

    unknown = sorted(set(provider_ids) - set(JOB_PROVIDER_IDS))
    if unknown:
        msg = f"unknown provider ids: {', '.join(unknown)}"
        raise ValueError(msg)
