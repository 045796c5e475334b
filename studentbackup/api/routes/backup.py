from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from studentbackup.api.schemas.backup import (
    BackupFileListResponse,
    BackupFileResponse,
    BackupStatusResponse,
    StartBackupRequest,
)
from studentbackup.backup.naming import parse_backup_timestamp
from studentbackup.backup.scheduler import BackupScheduler, status_to_dict
from studentbackup.core.config import get_settings
from studentbackup.core.path_safety import PathSafetyError, resolve_under_backup_dir
from studentbackup.reports.service import BackupFileError, BackupFileNotFoundError, BackupReporter
from studentbackup.students.registry import StudentRegistry

router = APIRouter(prefix="/backup", tags=["backup"])


def get_backup_scheduler(request: Request) -> BackupScheduler:
    return request.app.state.backup_scheduler


def get_student_registry(request: Request) -> StudentRegistry:
    return request.app.state.student_registry


def get_backup_reporter(request: Request) -> BackupReporter:
    return request.app.state.backup_reporter


def _status_response(scheduler: BackupScheduler) -> BackupStatusResponse:
    payload = status_to_dict(scheduler.status())
    return BackupStatusResponse.model_validate({"status": "running" if payload["running"] else "stopped", **payload})


@router.get("/status", response_model=BackupStatusResponse)
def get_backup_status(scheduler: BackupScheduler = Depends(get_backup_scheduler)) -> BackupStatusResponse:
    return _status_response(scheduler)


@router.post("/start", response_model=BackupStatusResponse)
async def start_backup(
    payload: StartBackupRequest | None = None,
    scheduler: BackupScheduler = Depends(get_backup_scheduler),
    registry: StudentRegistry = Depends(get_student_registry),
) -> BackupStatusResponse:
    interval_ms = payload.interval_ms if payload and payload.interval_ms else get_settings().backup_interval_ms
    if not scheduler.start(registry.get_all_students, interval_ms):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Backup is already running")
    return _status_response(scheduler)


@router.post("/stop", response_model=BackupStatusResponse)
async def stop_backup(scheduler: BackupScheduler = Depends(get_backup_scheduler)) -> BackupStatusResponse:
    if not scheduler.stop():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Backup is not running")
    return _status_response(scheduler)


@router.get("/files", response_model=BackupFileListResponse)
def list_backup_files(reporter: BackupReporter = Depends(get_backup_reporter)) -> BackupFileListResponse:
    return BackupFileListResponse(directory=reporter.directory.as_posix(), items=reporter.list_backup_files())


@router.get("/files/{filename}", response_model=BackupFileResponse)
def get_backup_file(filename: str, reporter: BackupReporter = Depends(get_backup_reporter)) -> BackupFileResponse:
    try:
        path = resolve_under_backup_dir(reporter.directory, filename)
        content = reporter.read_backup_file(path.name)
    except PathSafetyError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except BackupFileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except BackupFileError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return BackupFileResponse(filename=path.name, timestamp=parse_backup_timestamp(path.name), content=content)
