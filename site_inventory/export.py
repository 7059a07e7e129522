"""CSV writers for per-source and combined inventory exports."""

from __future__ import annotations

import csv
import logging
import os
import tempfile
from collections.abc import Iterable, Sequence
from pathlib import Path

from .errors import ExportIOError
from .loader import (
    CREATED,
    EXPORT_COLUMNS,
    FILE_EXTENSION,
    FILE_NAME,
    FILE_PATH,
    FILE_SIZE,
    INVENTORY_COLUMNS,
    LIBRARY,
    MODIFIED,
    SOURCE_SITE,
    SOURCE_URL,
)
from .models import FileRecord

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


def record_to_row(record: FileRecord) -> dict[str, str]:
    """Flatten a record into persisted column names; all values are text."""

    return {
        FILE_NAME: record.name,
        FILE_PATH: record.path,
        FILE_SIZE: str(record.size),
        CREATED: record.created,
        MODIFIED: record.modified,
        LIBRARY: record.library,
        FILE_EXTENSION: record.extension,
        SOURCE_SITE: record.source_site or "",
        SOURCE_URL: record.source_url or "",
    }


def _write_rows(records: Iterable[FileRecord], destination: Path, columns: Sequence[str]) -> int:
    """Write rows through a sibling temp file and replace the destination.

    The destination is either fully written or left untouched.
    """

    temp_name: str | None = None
    count = 0
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
        with os.fdopen(fd, "w", encoding=ENCODING, newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(columns), extrasaction="ignore")
            writer.writeheader()
            for record in records:
                writer.writerow(record_to_row(record))
                count += 1
        os.replace(temp_name, destination)
        temp_name = None
    except OSError as exc:
        raise ExportIOError(destination, exc) from exc
    finally:
        if temp_name is not None:
            Path(temp_name).unlink(missing_ok=True)
    return count


def write_export(records: Iterable[FileRecord], destination: str | Path) -> None:
    """Write the combined, source-tagged export."""

    path = Path(destination)
    count = _write_rows(records, path, EXPORT_COLUMNS)
    logger.info("Wrote %d record(s) to combined export %s", count, path)


def write_inventory(records: Iterable[FileRecord], destination: str | Path) -> None:
    """Write one source's inventory without source tag columns."""

    path = Path(destination)
    count = _write_rows(records, path, INVENTORY_COLUMNS)
    logger.debug("Wrote %d record(s) to %s", count, path)
