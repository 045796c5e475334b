from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import ClassVar

from studentbackup.core.events import Event


@dataclass(frozen=True, slots=True)
class BackupStarted(Event):
    kind: ClassVar[str] = "backupStarted"

    interval_ms: int


@dataclass(frozen=True, slots=True)
class BackupStopped(Event):
    kind: ClassVar[str] = "backupStopped"


@dataclass(frozen=True, slots=True)
class BackupCompleted(Event):
    kind: ClassVar[str] = "backupCompleted"

    filename: str
    path: Path
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class BackupFailed(Event):
    kind: ClassVar[str] = "backupFailed"

    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(frozen=True, slots=True)
class BackupSkipped(Event):
    kind: ClassVar[str] = "backupSkipped"

    skip_count: int
    reason: str


@dataclass(frozen=True, slots=True)
class BackupError(Event):
    kind: ClassVar[str] = "backupError"

    error: BaseException
    skip_count: int | None = None

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(frozen=True, slots=True)
class BackupAlreadyRunning(Event):
    kind: ClassVar[str] = "backupAlreadyRunning"


@dataclass(frozen=True, slots=True)
class BackupNotRunning(Event):
    kind: ClassVar[str] = "backupNotRunning"


@dataclass(frozen=True, slots=True)
class BackupDirectoryError(Event):
    kind: ClassVar[str] = "backupDirectoryError"

    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error)


BACKUP_EVENT_TYPES: tuple[type[Event], ...] = (
    BackupStarted,
    BackupStopped,
    BackupCompleted,
    BackupFailed,
    BackupSkipped,
    BackupError,
    BackupAlreadyRunning,
    BackupNotRunning,
    BackupDirectoryError,
)
