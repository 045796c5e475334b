from __future__ import annotations

from pathlib import Path

from studentbackup.backup.naming import BACKUP_SUFFIX


class PathSafetyError(ValueError):
    pass


def validate_backup_filename(raw_name: str) -> str:
    if not raw_name:
        raise PathSafetyError("Backup filename cannot be empty")
    if "/" in raw_name or "\\" in raw_name:
        raise PathSafetyError("Backup filename must not contain path separators")
    if ".." in raw_name:
        raise PathSafetyError("Path traversal is not allowed")
    if "~" in raw_name:
        raise PathSafetyError("Home expansion is not allowed")
    if "$" in raw_name:
        raise PathSafetyError("Environment variable expansion is not allowed")
    if not raw_name.endswith(BACKUP_SUFFIX):
        raise PathSafetyError(f"Backup filename must end with {BACKUP_SUFFIX}")
    return raw_name


def resolve_under_backup_dir(backup_dir: Path, raw_name: str) -> Path:
    name = validate_backup_filename(raw_name)
    candidate = (backup_dir / name).resolve(strict=False)
    root = backup_dir.resolve(strict=False)

    if root in candidate.parents:
        return candidate

    raise PathSafetyError("Path escapes backup directory")
