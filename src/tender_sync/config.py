"""Runtime settings and logging setup."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Annotated, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_FEED_URL = (
    "https://contrataciondelsectorpublico.gob.es/sindicacion/sindicacion_643/"
    "licitacionesPerfilesContratanteCompleto3.atom"
)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class Settings(BaseSettings):
    """
    Sync configuration read from environment variables (names are the
    field aliases). Keyword arguments and from_yaml() override them.
    """

    model_config = SettingsConfigDict(populate_by_name=True, env_ignore_empty=True, extra="ignore")

    feed_url: str = Field(default=DEFAULT_FEED_URL, validation_alias="TENDER_SYNC_FEED_URL")
    max_entries_to_process: int = Field(default=500, gt=0, validation_alias="TENDER_SYNC_MAX_ENTRIES")
    division_prefix: str = Field(default="45", validation_alias="TENDER_SYNC_DIVISION_PREFIX")
    staleness_hours: float = Field(default=24, ge=0, validation_alias="TENDER_SYNC_STALENESS_HOURS")
    match_threshold: int = Field(default=60, ge=0, le=100, validation_alias="TENDER_SYNC_MATCH_THRESHOLD")
    request_timeout: float = Field(default=60.0, gt=0, validation_alias="TENDER_SYNC_TIMEOUT")
    db_path: Path = Field(default=Path("tender_sync.db"), validation_alias="TENDER_SYNC_DB")
    cron_schedule: str = Field(default="0 */6 * * *", validation_alias="SYNC_CRON_SCHEDULE")
    run_on_start: bool = Field(default=False, validation_alias="RUN_ON_START")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="TENDER_SYNC_LOG_FILE")
    # Comma-separated in the environment
    active_statuses: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["trial", "active"],
        validation_alias="TENDER_SYNC_ACTIVE_STATUSES",
    )

    @field_validator("active_statuses", mode="before")
    @classmethod
    def _split_statuses(cls, value):
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Environment settings overlaid with flat keys (field names) from a YAML file."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        return cls(**{k: v for k, v in data.items() if k in cls.model_fields})


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Console logging, plus a rotating file when log_file is set."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
