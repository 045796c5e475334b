from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Union

SnapshotRecords = Iterable[Any]
SnapshotSource = Callable[[], Union[SnapshotRecords, Awaitable[SnapshotRecords]]]


@dataclass(slots=True)
class BackupStatus:
    running: bool
    pending: bool
    interval_ms: int | None
    consecutive_skips: int
    directory: Path
    last_backup_file: str | None
    last_backup_at: datetime | None
    last_error: str | None
