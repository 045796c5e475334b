from __future__ import annotations

import logging
from typing import Callable

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
from studentbackup.core.events import EventChannel


def attach_backup_logging(events: EventChannel, logger: logging.Logger) -> Callable[[], None]:
    """Log every backup event on ``logger``; returns a callable that detaches it."""

    def on_started(event: BackupStarted) -> None:
        logger.info("Backup started (interval: %sms)", event.interval_ms)

    def on_stopped(_event: BackupStopped) -> None:
        logger.info("Backup stopped")

    def on_completed(event: BackupCompleted) -> None:
        logger.info("Backup completed: %s", event.filename)

    def on_failed(event: BackupFailed) -> None:
        logger.error("Backup failed: %s", event.message)

    def on_skipped(event: BackupSkipped) -> None:
        logger.warning("Backup skipped (%s) - %s", event.skip_count, event.reason)

    def on_error(event: BackupError) -> None:
        if event.skip_count is not None:
            logger.error("Backup error after %s skipped intervals: %s", event.skip_count, event.message)
        else:
            logger.error("Backup error: %s", event.message)

    def on_already_running(_event: BackupAlreadyRunning) -> None:
        logger.warning("Backup is already running")

    def on_not_running(_event: BackupNotRunning) -> None:
        logger.warning("Backup is not running")

    def on_directory_error(event: BackupDirectoryError) -> None:
        logger.error("Backup directory error: %s", event.message)

    unsubscribers = [
        events.subscribe(BackupStarted, on_started),
        events.subscribe(BackupStopped, on_stopped),
        events.subscribe(BackupCompleted, on_completed),
        events.subscribe(BackupFailed, on_failed),
        events.subscribe(BackupSkipped, on_skipped),
        events.subscribe(BackupError, on_error),
        events.subscribe(BackupAlreadyRunning, on_already_running),
        events.subscribe(BackupNotRunning, on_not_running),
        events.subscribe(BackupDirectoryError, on_directory_error),
    ]

    def detach() -> None:
        for unsubscribe in unsubscribers:
            unsubscribe()

    return detach
