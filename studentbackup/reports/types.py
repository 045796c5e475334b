from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class StudentOccurrence:
    id: str
    amount: int


@dataclass(slots=True)
class BackupFileContent:
    filename: str
    timestamp: datetime | None
    records: list[Any] = field(default_factory=list)


@dataclass(slots=True)
class BackupReport:
    total_backup_files: int
    latest_backup_file: str | None
    latest_backup_file_date: datetime | None
    latest_backup_file_readable: str | None
    students_by_id: list[StudentOccurrence]
    average_students_per_file: float
