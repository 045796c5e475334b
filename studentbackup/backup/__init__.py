from studentbackup.backup.events import (
    BackupAlreadyRunning,
    BackupCompleted,
    BackupDirectoryError,
    BackupError,
    BackupFailed,
    BackupNotRunning,
    BackupSkipped,
    BackupStarted,
    BackupStopped,
)
from studentbackup.backup.log_listener import attach_backup_logging
from studentbackup.backup.naming import format_backup_filename, parse_backup_timestamp
from studentbackup.backup.scheduler import (
    BackupNotStartedError,
    BackupScheduler,
    BackupStalledError,
    status_to_dict,
)
from studentbackup.backup.types import BackupStatus

__all__ = [
    "BackupAlreadyRunning",
    "BackupCompleted",
    "BackupDirectoryError",
    "BackupError",
    "BackupFailed",
    "BackupNotRunning",
    "BackupNotStartedError",
    "BackupScheduler",
    "BackupSkipped",
    "BackupStalledError",
    "BackupStarted",
    "BackupStatus",
    "BackupStopped",
    "attach_backup_logging",
    "format_backup_filename",
    "parse_backup_timestamp",
    "status_to_dict",
]
