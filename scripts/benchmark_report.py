from __future__ import annotations

import argparse
import json
import random
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

from studentbackup.backup.naming import format_backup_filename
from studentbackup.reports.service import BackupReporter


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark backup report aggregation")
    parser.add_argument("--backup-dir", required=True, help="Directory to seed with snapshot files")
    parser.add_argument("--files", type=int, default=2000, help="Number of snapshot files")
    parser.add_argument("--students", type=int, default=200, help="Students per snapshot (upper bound)")
    parser.add_argument("--malformed", type=int, default=0, help="Number of truncated snapshot files")
    parser.add_argument("--seed", type=int, default=7)
    return parser.parse_args()


def seed_fixture(backup_dir: Path, *, total_files: int, max_students: int, malformed: int, seed: int) -> None:
    backup_dir.mkdir(parents=True, exist_ok=True)
    rng = random.Random(seed)
    started_at = datetime(2024, 1, 1, tzinfo=timezone.utc)

    for file_idx in range(total_files):
        moment = started_at + timedelta(seconds=file_idx)
        count = rng.randint(1, max_students)
        records = [
            {"id": str(student_idx + 1), "name": f"Student {student_idx + 1}", "age": 18 + student_idx % 10, "group": student_idx % 5}
            for student_idx in range(count)
        ]
        payload = json.dumps(records, indent=2)
        if file_idx < malformed:
            payload = payload[: len(payload) // 2]
        (backup_dir / format_backup_filename(moment)).write_text(payload, encoding="utf-8")


def main() -> None:
    args = parse_args()
    backup_dir = Path(args.backup_dir)
    seed_fixture(
        backup_dir,
        total_files=args.files,
        max_students=args.students,
        malformed=args.malformed,
        seed=args.seed,
    )

    reporter = BackupReporter(backup_dir)
    start = time.perf_counter()
    report = reporter.generate_report()
    elapsed = time.perf_counter() - start
    print(
        f"files={report.total_backup_files} distinct_ids={len(report.students_by_id)} "
        f"average={report.average_students_per_file} elapsed_seconds={elapsed:.3f}"
    )


if __name__ == "__main__":
    main()
