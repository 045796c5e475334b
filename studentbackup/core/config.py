from __future__ import annotations

from datetime import timezone, tzinfo
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, PositiveInt, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STUDENTBACKUP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "StudentBackup"
    environment: str = "production"
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    log_level: str = "INFO"

    backup_dir: Path = Field(default=Path("backups"))
    backup_interval_ms: PositiveInt = 1000
    backup_max_consecutive_skips: PositiveInt = 3
    backup_autostart: bool = False

    report_timezone: str = "UTC"

    seed_students: bool = True
    students_file: Path | None = None

    @field_validator("backup_dir", "students_file", mode="before")
    @classmethod
    def _normalize_path(cls, value: str | Path | None) -> Path | None:
        if value is None or value == "":
            return None
        raw = str(value)
        if "~" in raw:
            raise ValueError("Home expansion syntax is not allowed in paths")
        if "$" in raw:
            raise ValueError("Environment variable syntax is not allowed in paths")
        return Path(raw)

    @model_validator(mode="after")
    def _validate_runtime_constraints(self) -> "Settings":
        self.backup_dir = self.backup_dir.resolve(strict=False)
        if self.students_file is not None:
            self.students_file = self.students_file.resolve(strict=False)

        normalized_level = self.log_level.upper().strip()
        if normalized_level not in SUPPORTED_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(SUPPORTED_LOG_LEVELS)}")
        self.log_level = normalized_level

        self.report_timezone = self.report_timezone.strip()
        if self.report_timezone.upper() != "UTC":
            try:
                ZoneInfo(self.report_timezone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"Unknown report_timezone: {self.report_timezone}") from exc

        return self

    @property
    def report_tzinfo(self) -> tzinfo:
        if self.report_timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.report_timezone)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
