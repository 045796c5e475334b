from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StartBackupRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    interval_ms: int | None = Field(default=None, ge=1, le=86_400_000)


class BackupStatusResponse(BaseModel):
    status: str
    running: bool
    pending: bool
    interval_ms: int | None
    consecutive_skips: int
    directory: str
    last_backup_file: str | None
    last_backup_at: datetime | None
    last_error: str | None


class BackupFileListResponse(BaseModel):
    directory: str
    items: list[str]


class BackupFileResponse(BaseModel):
    filename: str
    timestamp: datetime | None
    content: Any
