from __future__ import annotations

from datetime import datetime, timezone

BACKUP_SUFFIX = ".backup.json"
FILENAME_TIME_FORMAT = "%Y-%m-%d_%H-%M-%S"


def is_backup_filename(name: str) -> bool:
    return name.endswith(BACKUP_SUFFIX)


def format_backup_filename(moment: datetime) -> str:
    """Encode ``moment`` as ``YYYY-MM-DD_HH-MM-SS.backup.json`` in UTC.

    Sub-second precision is dropped. Naive datetimes are taken as UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return f"{moment.astimezone(timezone.utc).strftime(FILENAME_TIME_FORMAT)}{BACKUP_SUFFIX}"


def parse_backup_timestamp(filename: str) -> datetime | None:
    """Invert :func:`format_backup_filename`; None when the layout does not match."""
    stem = filename.removesuffix(BACKUP_SUFFIX)

    parts = stem.split("_")
    if len(parts) != 2:
        return None
    date_part, time_part = parts

    time_parts = time_part.split("-")
    if len(time_parts) != 3:
        return None

    iso_string = f"{date_part}T{':'.join(time_parts)}"
    try:
        parsed = datetime.strptime(iso_string, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)
