from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from studentbackup.api.routes.backup import router as backup_router
from studentbackup.api.routes.health import router as health_router
from studentbackup.api.routes.reports import router as reports_router
from studentbackup.backup.log_listener import attach_backup_logging
from studentbackup.backup.scheduler import BackupScheduler
from studentbackup.core.config import Settings, get_settings
from studentbackup.core.events import EventChannel
from studentbackup.core.logging import configure_logging, get_logger
from studentbackup.reports.service import BackupReporter
from studentbackup.students.log_listener import attach_student_logging
from studentbackup.students.registry import StudentRegistry, default_students


def build_student_registry(settings: Settings, events: EventChannel) -> StudentRegistry:
    registry = StudentRegistry(events=events, students=default_students() if settings.seed_students else [])
    if settings.students_file is not None:
        registry.load_from_json(settings.students_file)
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    events = EventChannel(logger=get_logger("events"))
    attach_backup_logging(events, get_logger("backup"))
    attach_student_logging(events, get_logger("students"))

    scheduler = BackupScheduler(
        settings.backup_dir,
        events=events,
        max_consecutive_skips=settings.backup_max_consecutive_skips,
    )
    registry = build_student_registry(settings, events)

    app.state.events = events
    app.state.student_registry = registry
    app.state.backup_scheduler = scheduler
    app.state.backup_reporter = BackupReporter(
        settings.backup_dir,
        display_timezone=settings.report_tzinfo,
        logger=get_logger("reports"),
    )

    if settings.backup_autostart:
        scheduler.start(registry.get_all_students, settings.backup_interval_ms)
    try:
        yield
    finally:
        if scheduler.running:
            scheduler.stop()
        await scheduler.wait_for_pending()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(backup_router, prefix="/api/v1")
    app.include_router(reports_router, prefix="/api/v1")
    return app
