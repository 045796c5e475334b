from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from studentbackup.reports.service import BackupReporter, format_report, report_to_dict


def _write_snapshot(backup_dir: Path, name: str, content: Any) -> None:
    backup_dir.mkdir(parents=True, exist_ok=True)
    payload = content if isinstance(content, str) else json.dumps(content, indent=2)
    (backup_dir / name).write_text(payload, encoding="utf-8")


def _students(*ids: str) -> list[dict[str, Any]]:
    return [{"id": student_id, "name": f"Student {student_id}", "age": 20, "group": 1} for student_id in ids]


def test_missing_directory_yields_zero_report(tmp_path: Path) -> None:
    reporter = BackupReporter(tmp_path / "does-not-exist")

    assert reporter.list_backup_files() == []
    report = report_to_dict(reporter.generate_report())
    assert report["totalBackupFiles"] == 0
    assert report["latestBackupFile"] is None
    assert report["latestBackupFileDate"] is None
    assert report["studentsById"] == []
    assert report["averageStudentsPerFile"] == 0


def test_empty_directory_yields_zero_report(tmp_path: Path) -> None:
    report = BackupReporter(tmp_path).generate_report()
    assert report.total_backup_files == 0
    assert report.latest_backup_file_readable is None


def test_listing_only_returns_snapshot_files(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-01.backup.json", [])
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", [])
    _write_snapshot(tmp_path, "notes.txt", "hello")
    _write_snapshot(tmp_path, ".2024-05-01_12-00-02.backup.json.tmp", "[")
    (tmp_path / "archive.backup.json").mkdir()

    assert BackupReporter(tmp_path).list_backup_files() == [
        "2024-05-01_12-00-00.backup.json",
        "2024-05-01_12-00-01.backup.json",
    ]


def test_listing_a_regular_file_raises(tmp_path: Path) -> None:
    target = tmp_path / "plain-file"
    target.write_text("x", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        BackupReporter(target).generate_report()


def test_occurrences_are_counted_per_file(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", _students("1", "2"))
    _write_snapshot(tmp_path, "2024-05-01_12-00-01.backup.json", _students("1"))

    report = report_to_dict(BackupReporter(tmp_path).generate_report())
    assert report["studentsById"] == [{"id": "1", "amount": 2}, {"id": "2", "amount": 1}]


def test_tied_counts_sort_by_id_ascending(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", _students("5", "2", "7"))
    _write_snapshot(tmp_path, "2024-05-01_12-00-01.backup.json", _students("5", "2"))

    report = BackupReporter(tmp_path).generate_report()
    assert [(item.id, item.amount) for item in report.students_by_id] == [("2", 2), ("5", 2), ("7", 1)]


def test_average_students_per_file(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", _students("1", "2", "3"))
    _write_snapshot(tmp_path, "2024-05-01_12-00-01.backup.json", _students("1", "2", "3", "4", "5"))

    assert BackupReporter(tmp_path).generate_report().average_students_per_file == 4.0


def test_average_uses_half_up_rounding(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", _students("1"))
    for second in range(1, 8):
        _write_snapshot(tmp_path, f"2024-05-01_12-00-0{second}.backup.json", [])

    assert BackupReporter(tmp_path).generate_report().average_students_per_file == 0.13


def test_non_array_content_contributes_nothing(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", _students("1", "2"))
    _write_snapshot(tmp_path, "2024-05-01_12-00-01.backup.json", {})

    report = BackupReporter(tmp_path).generate_report()
    assert report.total_backup_files == 2
    assert [(item.id, item.amount) for item in report.students_by_id] == [("1", 1), ("2", 1)]
    assert report.average_students_per_file == 1.0
    assert report.latest_backup_file == "2024-05-01_12-00-01.backup.json"


def test_partially_written_file_does_not_abort_report(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", _students("1"))
    _write_snapshot(tmp_path, "2024-05-01_12-00-01.backup.json", '[\n  {"id": "1", "na')
    (tmp_path / "2024-05-01_12-00-02.backup.json").write_bytes(b"\xff\xfe\x00")

    report = BackupReporter(tmp_path).generate_report()
    assert report.total_backup_files == 3
    assert [(item.id, item.amount) for item in report.students_by_id] == [("1", 1)]
    assert report.average_students_per_file == 0.33


def test_records_without_id_count_toward_average_only(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", [{"id": 7, "name": "x"}, {"name": "anonymous"}, "junk"])

    report = BackupReporter(tmp_path).generate_report()
    assert [(item.id, item.amount) for item in report.students_by_id] == [("7", 1)]
    assert report.average_students_per_file == 3.0


def test_latest_file_is_chosen_by_parsed_timestamp(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", [])
    _write_snapshot(tmp_path, "2024-12-31_23-59-59.backup.json", [])
    _write_snapshot(tmp_path, "2024-06-15_08-30-00.backup.json", [])
    _write_snapshot(tmp_path, "zzz-unparseable.backup.json", [])

    report = BackupReporter(tmp_path).generate_report()
    assert report.latest_backup_file == "2024-12-31_23-59-59.backup.json"
    assert report.latest_backup_file_date == datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    assert report.latest_backup_file_readable == "December 31, 2024, 23:59:59"
    assert report_to_dict(report)["latestBackupFileDate"] == "2024-12-31T23:59:59+00:00"


def test_unparseable_names_only_yield_no_latest_date(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "first.backup.json", _students("1"))
    _write_snapshot(tmp_path, "second.backup.json", _students("1"))

    report = BackupReporter(tmp_path).generate_report()
    assert report.latest_backup_file == "first.backup.json"
    assert report.latest_backup_file_date is None
    assert report.latest_backup_file_readable is None
    assert report.total_backup_files == 2


def test_readable_timestamp_uses_display_timezone(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-05.backup.json", [])

    reporter = BackupReporter(tmp_path, display_timezone=timezone(timedelta(hours=2)))
    assert reporter.generate_report().latest_backup_file_readable == "May 1, 2024, 14:00:05"


def test_report_is_recomputed_on_every_call(tmp_path: Path) -> None:
    reporter = BackupReporter(tmp_path)
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", _students("1"))
    assert reporter.generate_report().total_backup_files == 1

    _write_snapshot(tmp_path, "2024-05-01_12-00-01.backup.json", _students("1", "2"))
    report = reporter.generate_report()
    assert report.total_backup_files == 2
    assert report.latest_backup_file == "2024-05-01_12-00-01.backup.json"


def test_format_report_renders_summary(tmp_path: Path) -> None:
    _write_snapshot(tmp_path, "2024-05-01_12-00-00.backup.json", _students("1", "2"))

    text = format_report(BackupReporter(tmp_path).generate_report())
    assert "=== Backup Statistics Report ===" in text
    assert "Total backup files: 1" in text
    assert "Latest backup file: 2024-05-01_12-00-00.backup.json" in text
    assert "Created at: May 1, 2024, 12:00:00" in text
    assert '"amount": 1' in text
    assert "Average students per file: 2.0" in text
