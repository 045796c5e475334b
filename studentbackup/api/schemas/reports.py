from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StudentOccurrenceResponse(BaseModel):
    id: str
    amount: int


class BackupReportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_backup_files: int = Field(alias="totalBackupFiles")
    latest_backup_file: str | None = Field(alias="latestBackupFile")
    latest_backup_file_date: datetime | None = Field(alias="latestBackupFileDate")
    latest_backup_file_readable: str | None = Field(alias="latestBackupFileReadable")
    students_by_id: list[StudentOccurrenceResponse] = Field(alias="studentsById")
    average_students_per_file: float = Field(alias="averageStudentsPerFile")
