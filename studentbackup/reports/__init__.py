from studentbackup.reports.service import (
    BackupFileError,
    BackupFileNotFoundError,
    BackupReporter,
    format_readable_timestamp,
    format_report,
    report_to_dict,
)
from studentbackup.reports.types import BackupFileContent, BackupReport, StudentOccurrence

__all__ = [
    "BackupFileContent",
    "BackupFileError",
    "BackupFileNotFoundError",
    "BackupReport",
    "BackupReporter",
    "StudentOccurrence",
    "format_readable_timestamp",
    "format_report",
    "report_to_dict",
]
