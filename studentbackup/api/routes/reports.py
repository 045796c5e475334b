from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from studentbackup.api.routes.backup import get_backup_reporter
from studentbackup.api.schemas.reports import BackupReportResponse
from studentbackup.reports.service import BackupReporter, format_report, report_to_dict

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/backups", response_model=BackupReportResponse)
def get_backup_report(reporter: BackupReporter = Depends(get_backup_reporter)) -> BackupReportResponse:
    return BackupReportResponse.model_validate(report_to_dict(reporter.generate_report()))


@router.get("/backups.txt", response_class=PlainTextResponse)
def get_backup_report_text(reporter: BackupReporter = Depends(get_backup_reporter)) -> str:
    return format_report(reporter.generate_report())
