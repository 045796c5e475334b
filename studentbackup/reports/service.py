from __future__ import annotations

import json
import logging
import os
from collections import Counter
from datetime import datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any

from studentbackup.backup.naming import is_backup_filename, parse_backup_timestamp
from studentbackup.reports.types import BackupFileContent, BackupReport, StudentOccurrence


class BackupFileError(RuntimeError):
    pass


class BackupFileNotFoundError(BackupFileError):
    pass


def round_half_up(value: Decimal, places: str = "0.01") -> float:
    return float(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def format_readable_timestamp(moment: datetime, display_timezone: tzinfo = timezone.utc) -> str:
    local = moment.astimezone(display_timezone)
    return f"{local:%B} {local.day}, {local:%Y}, {local:%H:%M:%S}"


def _chronological_key(content: BackupFileContent) -> tuple[bool, float]:
    if content.timestamp is None:
        return (True, 0.0)
    return (False, -content.timestamp.timestamp())


class BackupReporter:
    """Aggregates every snapshot file found in a backup directory.

    Ordering is recovered from the filenames alone. Files whose content is not
    a JSON array (including partially written ones) count as empty snapshots.
    Only failures unrelated to file content, such as a permission error while
    listing the directory, are raised.
    """

    def __init__(
        self,
        directory: Path | str,
        *,
        display_timezone: tzinfo = timezone.utc,
        logger: logging.Logger | None = None,
    ):
        self._directory = Path(directory)
        self._display_timezone = display_timezone
        self._logger = logger or logging.getLogger("studentbackup.reports")

    @property
    def directory(self) -> Path:
        return self._directory

    @staticmethod
    def parse_timestamp(filename: str) -> datetime | None:
        return parse_backup_timestamp(filename)

    def list_backup_files(self) -> list[str]:
        try:
            with os.scandir(self._directory) as entries:
                names = [entry.name for entry in entries if entry.is_file()]
        except FileNotFoundError:
            return []
        return sorted(name for name in names if is_backup_filename(name))

    def read_backup_file(self, filename: str) -> Any:
        path = self._directory / filename
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise BackupFileNotFoundError(f"Backup file not found: {filename}") from exc
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise BackupFileError(f"Backup file is not valid JSON: {filename}") from exc

    def generate_report(self) -> BackupReport:
        filenames = self.list_backup_files()
        if not filenames:
            return BackupReport(
                total_backup_files=0,
                latest_backup_file=None,
                latest_backup_file_date=None,
                latest_backup_file_readable=None,
                students_by_id=[],
                average_students_per_file=0,
            )

        contents = [
            BackupFileContent(
                filename=filename,
                timestamp=parse_backup_timestamp(filename),
                records=self._load_records(filename),
            )
            for filename in filenames
        ]
        ordered = sorted(contents, key=_chronological_key)
        latest = ordered[0]

        occurrences: Counter[str] = Counter()
        for content in ordered:
            for record in content.records:
                if isinstance(record, dict) and record.get("id") is not None:
                    occurrences[str(record["id"])] += 1

        students_by_id = [
            StudentOccurrence(id=student_id, amount=amount)
            for student_id, amount in sorted(occurrences.items(), key=lambda item: (-item[1], item[0]))
        ]

        total_records = sum(len(content.records) for content in ordered)
        average = round_half_up(Decimal(total_records) / Decimal(len(filenames)))

        return BackupReport(
            total_backup_files=len(filenames),
            latest_backup_file=latest.filename,
            latest_backup_file_date=latest.timestamp,
            latest_backup_file_readable=(
                format_readable_timestamp(latest.timestamp, self._display_timezone)
                if latest.timestamp is not None
                else None
            ),
            students_by_id=students_by_id,
            average_students_per_file=average,
        )

    def _load_records(self, filename: str) -> list[Any]:
        try:
            content = self.read_backup_file(filename)
        except BackupFileNotFoundError:
            self._logger.warning("Backup file disappeared before it could be read: %s", filename)
            return []
        except (BackupFileError, UnicodeDecodeError) as exc:
            self._logger.warning("Skipping unreadable backup file %s: %s", filename, exc)
            return []

        if not isinstance(content, list):
            self._logger.warning("Backup file %s does not contain a JSON array", filename)
            return []
        return content


def report_to_dict(report: BackupReport) -> dict[str, Any]:
    return {
        "totalBackupFiles": report.total_backup_files,
        "latestBackupFile": report.latest_backup_file,
        "latestBackupFileDate": (
            report.latest_backup_file_date.isoformat() if report.latest_backup_file_date is not None else None
        ),
        "latestBackupFileReadable": report.latest_backup_file_readable,
        "studentsById": [{"id": item.id, "amount": item.amount} for item in report.students_by_id],
        "averageStudentsPerFile": report.average_students_per_file,
    }


def format_report(report: BackupReport) -> str:
    lines = ["", "=== Backup Statistics Report ===", "", f"Total backup files: {report.total_backup_files}"]

    if report.latest_backup_file:
        lines.extend(["", f"Latest backup file: {report.latest_backup_file}"])
        if report.latest_backup_file_readable:
            lines.append(f"Created at: {report.latest_backup_file_readable}")

    occurrences = [{"id": item.id, "amount": item.amount} for item in report.students_by_id]
    lines.extend(
        [
            "",
            "Students grouped by ID (occurrences across all files):",
            json.dumps(occurrences, indent=2),
            "",
            f"Average students per file: {report.average_students_per_file}",
            "",
            "================================",
            "",
        ]
    )
    return "\n".join(lines)
