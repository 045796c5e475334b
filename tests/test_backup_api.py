from __future__ import annotations

import json
import os
import time
from pathlib import Path

from fastapi.testclient import TestClient

from studentbackup.api.app import create_app
from studentbackup.core.config import get_settings


def _prepare_env(tmp_path: Path, *, autostart: bool = False, interval_ms: int = 50) -> Path:
    backup_dir = tmp_path / "backups"

    os.environ["STUDENTBACKUP_BACKUP_DIR"] = backup_dir.as_posix()
    os.environ["STUDENTBACKUP_BACKUP_INTERVAL_MS"] = str(interval_ms)
    os.environ["STUDENTBACKUP_BACKUP_AUTOSTART"] = "true" if autostart else "false"
    os.environ["STUDENTBACKUP_SEED_STUDENTS"] = "true"
    os.environ["STUDENTBACKUP_STUDENTS_FILE"] = ""
    os.environ["STUDENTBACKUP_REPORT_TIMEZONE"] = "UTC"
    os.environ["STUDENTBACKUP_LOG_LEVEL"] = "WARNING"

    get_settings.cache_clear()
    return backup_dir


def _seed_snapshot(backup_dir: Path, name: str, ids: list[str]) -> None:
    backup_dir.mkdir(parents=True, exist_ok=True)
    records = [{"id": student_id, "name": f"Student {student_id}", "age": 20, "group": 1} for student_id in ids]
    (backup_dir / name).write_text(json.dumps(records, indent=2), encoding="utf-8")


def test_health_reports_scheduler_state(tmp_path: Path) -> None:
    _prepare_env(tmp_path)
    with TestClient(create_app()) as client:
        response = client.get("/api/v1/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["backup_running"] is False


def test_start_stop_lifecycle_and_conflicts(tmp_path: Path) -> None:
    _prepare_env(tmp_path)
    with TestClient(create_app()) as client:
        initial = client.get("/api/v1/backup/status")
        assert initial.status_code == 200
        assert initial.json()["status"] == "stopped"
        assert initial.json()["running"] is False

        started = client.post("/api/v1/backup/start", json={"interval_ms": 60_000})
        assert started.status_code == 200
        assert started.json()["status"] == "running"
        assert started.json()["interval_ms"] == 60_000

        conflict = client.post("/api/v1/backup/start", json={})
        assert conflict.status_code == 409

        stopped = client.post("/api/v1/backup/stop")
        assert stopped.status_code == 200
        assert stopped.json()["running"] is False

        not_running = client.post("/api/v1/backup/stop")
        assert not_running.status_code == 409


def test_start_rejects_invalid_interval(tmp_path: Path) -> None:
    _prepare_env(tmp_path)
    with TestClient(create_app()) as client:
        response = client.post("/api/v1/backup/start", json={"interval_ms": 0})
    assert response.status_code == 422


def test_running_scheduler_snapshots_seeded_students(tmp_path: Path) -> None:
    _prepare_env(tmp_path)
    with TestClient(create_app()) as client:
        started = client.post("/api/v1/backup/start")
        assert started.status_code == 200
        assert started.json()["interval_ms"] == 50

        deadline = time.monotonic() + 5
        files: list[str] = []
        while time.monotonic() < deadline and not files:
            time.sleep(0.1)
            files = client.get("/api/v1/backup/files").json()["items"]
        client.post("/api/v1/backup/stop")

        assert files
        snapshot = client.get(f"/api/v1/backup/files/{files[0]}")
        assert snapshot.status_code == 200
        assert [record["id"] for record in snapshot.json()["content"]] == ["1", "2", "3"]

        status = client.get("/api/v1/backup/status").json()
        assert status["last_backup_file"] is not None
        assert status["consecutive_skips"] == 0


def test_autostart_runs_scheduler_from_lifespan(tmp_path: Path) -> None:
    _prepare_env(tmp_path, autostart=True, interval_ms=60_000)
    with TestClient(create_app()) as client:
        status = client.get("/api/v1/backup/status").json()
    assert status["running"] is True
    assert status["interval_ms"] == 60_000


def test_report_endpoint_aggregates_snapshots(tmp_path: Path) -> None:
    backup_dir = _prepare_env(tmp_path)
    _seed_snapshot(backup_dir, "2024-05-01_12-00-00.backup.json", ["1", "2", "3"])
    _seed_snapshot(backup_dir, "2024-05-01_12-00-05.backup.json", ["1", "2", "3", "4", "5"])

    with TestClient(create_app()) as client:
        response = client.get("/api/v1/reports/backups")
        text_response = client.get("/api/v1/reports/backups.txt")

    assert response.status_code == 200
    report = response.json()
    assert report["totalBackupFiles"] == 2
    assert report["latestBackupFile"] == "2024-05-01_12-00-05.backup.json"
    assert report["latestBackupFileDate"].startswith("2024-05-01T12:00:05")
    assert report["latestBackupFileReadable"] == "May 1, 2024, 12:00:05"
    assert report["studentsById"][:3] == [
        {"id": "1", "amount": 2},
        {"id": "2", "amount": 2},
        {"id": "3", "amount": 2},
    ]
    assert report["averageStudentsPerFile"] == 4.0

    assert text_response.status_code == 200
    assert "Total backup files: 2" in text_response.text


def test_report_endpoint_on_missing_directory(tmp_path: Path) -> None:
    _prepare_env(tmp_path)
    with TestClient(create_app()) as client:
        report = client.get("/api/v1/reports/backups").json()
    assert report["totalBackupFiles"] == 0
    assert report["latestBackupFile"] is None
    assert report["studentsById"] == []
    assert report["averageStudentsPerFile"] == 0


def test_snapshot_file_endpoint_validates_names(tmp_path: Path) -> None:
    backup_dir = _prepare_env(tmp_path)
    _seed_snapshot(backup_dir, "2024-05-01_12-00-00.backup.json", ["1"])
    (backup_dir / "2024-05-01_12-00-01.backup.json").write_text("[{", encoding="utf-8")

    with TestClient(create_app()) as client:
        ok = client.get("/api/v1/backup/files/2024-05-01_12-00-00.backup.json")
        wrong_suffix = client.get("/api/v1/backup/files/students.json")
        env_expansion = client.get("/api/v1/backup/files/$HOME.backup.json")
        missing = client.get("/api/v1/backup/files/2030-01-01_00-00-00.backup.json")
        malformed = client.get("/api/v1/backup/files/2024-05-01_12-00-01.backup.json")

    assert ok.status_code == 200
    assert ok.json()["timestamp"].startswith("2024-05-01T12:00:00")
    assert wrong_suffix.status_code == 422
    assert env_expansion.status_code == 422
    assert missing.status_code == 404
    assert malformed.status_code == 422
