from __future__ import annotations

import asyncio
import inspect
import json
import os
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

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
from studentbackup.backup.naming import format_backup_filename
from studentbackup.backup.types import BackupStatus, SnapshotRecords, SnapshotSource
from studentbackup.core.events import EventChannel

DEFAULT_INTERVAL_MS = 1000
DEFAULT_MAX_CONSECUTIVE_SKIPS = 3
SKIP_REASON = "Previous operation still pending"


class BackupStalledError(RuntimeError):
    pass


class BackupNotStartedError(RuntimeError):
    pass


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_records(records: SnapshotRecords) -> str:
    return json.dumps(list(records), indent=2, default=_to_jsonable)


def _write_atomically(path: Path, payload: str) -> None:
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


class BackupScheduler:
    """Periodic snapshot job with a single in-flight write.

    Runs on the asyncio loop that is current when :meth:`start` is called.
    Every tick either starts a write, or is skipped because the previous write
    is still pending. Reaching ``max_consecutive_skips`` skips in a row stops
    the scheduler and raises :class:`BackupStalledError` out of the tick; the
    condition is re-raised to whoever awaits :meth:`wait`.

    All outcomes are published on ``events``; the scheduler does no logging.
    """

    def __init__(
        self,
        directory: Path | str,
        *,
        events: EventChannel | None = None,
        max_consecutive_skips: int = DEFAULT_MAX_CONSECUTIVE_SKIPS,
        now: Callable[[], datetime] | None = None,
    ):
        if max_consecutive_skips < 1:
            raise ValueError("max_consecutive_skips must be >= 1")
        self._directory = Path(directory)
        self._events = events or EventChannel()
        self._max_consecutive_skips = max_consecutive_skips
        self._clock = now or (lambda: datetime.now(tz=timezone.utc))

        self._timer: asyncio.Task[None] | None = None
        self._last_timer: asyncio.Task[None] | None = None
        self._source: SnapshotSource | None = None
        self._interval_ms: int | None = None
        self._pending = False
        self._consecutive_skips = 0
        self._writes: set[asyncio.Task[None]] = set()

        self._last_backup_file: str | None = None
        self._last_backup_at: datetime | None = None
        self._last_error: str | None = None

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def events(self) -> EventChannel:
        return self._events

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def consecutive_skips(self) -> int:
        return self._consecutive_skips

    @property
    def interval_ms(self) -> int | None:
        return self._interval_ms

    def start(self, snapshot_source: SnapshotSource, interval_ms: int = DEFAULT_INTERVAL_MS) -> bool:
        if self._timer is not None:
            self._events.emit(BackupAlreadyRunning())
            return False
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        loop = asyncio.get_running_loop()
        self._source = snapshot_source
        self._interval_ms = interval_ms
        self._consecutive_skips = 0
        self._timer = loop.create_task(self._run(interval_ms / 1000), name="backup-timer")
        self._timer.add_done_callback(self._on_timer_done)
        self._last_timer = self._timer
        self._events.emit(BackupStarted(interval_ms=interval_ms))
        return True

    def stop(self) -> bool:
        timer = self._timer
        if timer is None:
            self._events.emit(BackupNotRunning())
            return False

        self._timer = None
        if timer is not _current_task():
            timer.cancel()
        self._events.emit(BackupStopped())
        return True

    def tick(self) -> asyncio.Task[None] | None:
        source = self._source
        if source is None:
            raise BackupNotStartedError("Backup scheduler has no snapshot source; call start() first")

        if self._pending:
            self._consecutive_skips += 1
            skip_count = self._consecutive_skips
            self._events.emit(BackupSkipped(skip_count=skip_count, reason=SKIP_REASON))

            if skip_count >= self._max_consecutive_skips:
                error = BackupStalledError(
                    "Backup operation failed: I/O operation has been pending for "
                    f"{skip_count} consecutive intervals"
                )
                self._last_error = str(error)
                self._events.emit(BackupError(error=error, skip_count=skip_count))
                self.stop()
                raise error
            return None

        self._consecutive_skips = 0
        self._pending = True
        task = asyncio.get_running_loop().create_task(self._backup_once(source), name="backup-write")
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)
        return task

    async def wait(self) -> None:
        task = self._last_timer
        if task is None:
            return
        await asyncio.wait({task})
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            raise error

    async def wait_for_pending(self) -> None:
        if self._writes:
            await asyncio.gather(*list(self._writes))

    def generate_backup_filename(self) -> str:
        return format_backup_filename(self._clock())

    async def ensure_backup_directory(self) -> None:
        try:
            await asyncio.to_thread(self._directory.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            self._events.emit(BackupDirectoryError(error=exc))
            raise

    async def save_backup(self, records: SnapshotRecords) -> Path:
        try:
            await self.ensure_backup_directory()
            filename = self.generate_backup_filename()
            path = self._directory / filename
            payload = dump_records(records)
            await asyncio.to_thread(_write_atomically, path, payload)
        except Exception as exc:
            self._events.emit(BackupFailed(error=exc))
            raise

        completed_at = self._clock()
        self._last_backup_file = filename
        self._last_backup_at = completed_at
        self._events.emit(BackupCompleted(filename=filename, path=path, timestamp=completed_at))
        return path

    def status(self) -> BackupStatus:
        return BackupStatus(
            running=self.running,
            pending=self._pending,
            interval_ms=self._interval_ms,
            consecutive_skips=self._consecutive_skips,
            directory=self._directory,
            last_backup_file=self._last_backup_file,
            last_backup_at=self._last_backup_at,
            last_error=self._last_error,
        )

    async def _run(self, period_seconds: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            deadline += period_seconds
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            now = loop.time()
            if now - deadline >= period_seconds:
                # Deadlines missed while the loop was blocked are dropped, not replayed.
                deadline = now
            self.tick()

    async def _backup_once(self, source: SnapshotSource) -> None:
        try:
            records = source()
            if inspect.isawaitable(records):
                records = await records
            await self.save_backup(records)
        except Exception as exc:
            self._last_error = str(exc)
            self._events.emit(BackupError(error=exc))
        finally:
            self._pending = False

    def _on_timer_done(self, task: asyncio.Task[None]) -> None:
        if self._timer is task:
            self._timer = None
        if not task.cancelled():
            # Marks the exception retrieved; wait() still re-raises it.
            task.exception()


def _current_task() -> asyncio.Task[Any] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


def status_to_dict(status: BackupStatus) -> dict[str, Any]:
    return {
        "running": status.running,
        "pending": status.pending,
        "interval_ms": status.interval_ms,
        "consecutive_skips": status.consecutive_skips,
        "directory": status.directory.as_posix(),
        "last_backup_file": status.last_backup_file,
        "last_backup_at": status.last_backup_at,
        "last_error": status.last_error,
    }
