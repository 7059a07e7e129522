"""Turn flat tabular rows into validated `FileRecord` inventories."""

from __future__ import annotations

import csv
import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias

from .errors import InventoryFileError, MalformedRecordError
from .models import DuplicatePath, FileRecord
from .normalize import file_extension, normalize_text, parse_size

logger = logging.getLogger(__name__)

FILE_NAME = "FileName"
FILE_PATH = "FilePath"
FILE_SIZE = "FileSize"
CREATED = "Created"
MODIFIED = "Modified"
LIBRARY = "Library"
FILE_EXTENSION = "FileExtension"
SOURCE_SITE = "SourceSite"
SOURCE_URL = "SourceUrl"

# Column order is the persisted CSV contract; renaming breaks older exports.
INVENTORY_COLUMNS = (FILE_NAME, FILE_PATH, FILE_SIZE, CREATED, MODIFIED, LIBRARY, FILE_EXTENSION)
EXPORT_COLUMNS = (*INVENTORY_COLUMNS, SOURCE_SITE, SOURCE_URL)
REQUIRED_COLUMNS = (FILE_NAME, FILE_PATH, FILE_SIZE, CREATED, MODIFIED, LIBRARY)

RawRow: TypeAlias = Mapping[str, str | None]
NumberedRow: TypeAlias = tuple[int, RawRow]


@dataclass(slots=True)
class LoadedInventory:
    """Records from one load plus the paths resolved by last-write-wins."""

    records: list[FileRecord]
    duplicates: list[DuplicatePath] = field(default_factory=list)

    @property
    def total_records(self) -> int:
        return len(self.records)


@dataclass(slots=True)
class SourceInventory:
    """One source's records recovered from a combined export."""

    name: str
    url: str
    records: list[FileRecord]
    duplicates: list[DuplicatePath] = field(default_factory=list)


def _to_record(raw_row: RawRow, row: int) -> FileRecord:
    """Validate one raw row and convert it to a `FileRecord`."""

    for column in REQUIRED_COLUMNS:
        if raw_row.get(column) is None:
            raise MalformedRecordError(row, column)

    name = raw_row[FILE_NAME] or ""
    return FileRecord(
        name=name,
        path=raw_row[FILE_PATH] or "",
        size=parse_size(raw_row[FILE_SIZE], row=row),
        created=raw_row[CREATED] or "",
        modified=raw_row[MODIFIED] or "",
        library=raw_row[LIBRARY] or "",
        extension=file_extension(name),
        source_site=normalize_text(raw_row.get(SOURCE_SITE)),
        source_url=normalize_text(raw_row.get(SOURCE_URL)),
    )


def _load_numbered(numbered_rows: Iterable[NumberedRow]) -> LoadedInventory:
    by_path: dict[str, FileRecord] = {}
    occurrences: Counter[str] = Counter()

    for row, raw_row in numbered_rows:
        record = _to_record(raw_row, row)
        occurrences[record.path] += 1
        if record.path in by_path:
            logger.debug("Row %d replaces earlier record for %s", row, record.path)
        # Last write wins; the path keeps the position of its first occurrence.
        by_path[record.path] = record

    duplicates = [
        DuplicatePath(path=path, occurrences=count) for path, count in sorted(occurrences.items()) if count > 1
    ]
    if duplicates:
        logger.warning("%d path(s) occurred more than once; the last occurrence was kept", len(duplicates))
    return LoadedInventory(records=list(by_path.values()), duplicates=duplicates)


def load_inventory(rows: Iterable[RawRow], *, first_row: int = 0) -> LoadedInventory:
    """Load rows and report which paths were collapsed by last-write-wins."""

    return _load_numbered(enumerate(rows, start=first_row))


def load(rows: Iterable[RawRow], *, first_row: int = 0) -> list[FileRecord]:
    """Validate raw rows and return one `FileRecord` per distinct path.

    Rows are numbered from `first_row` in error messages. A single bad row
    aborts the load with `MalformedRecordError` or `InvalidFieldError`.
    """

    return load_inventory(rows, first_row=first_row).records


def find_duplicate_paths(records: Iterable[FileRecord]) -> list[DuplicatePath]:
    """Return paths that occur more than once, sorted by path."""

    occurrences = Counter(record.path for record in records)
    return [DuplicatePath(path=path, occurrences=count) for path, count in sorted(occurrences.items()) if count > 1]


def check_header(headers: list[str] | None, required: Iterable[str] = REQUIRED_COLUMNS) -> None:
    """Fail fast when a CSV header lacks a required column.

    Headers must already be normalized with `normalize_header`.
    """

    present = set(headers or [])
    for column in required:
        if column not in present:
            raise MalformedRecordError(1, column)


def normalize_header(header: str | None) -> str:
    """Trim header names so lookups and header checks agree."""

    if header is None:
        return ""
    return header.strip()


def _is_blank_row(raw_row: RawRow, headers: list[str]) -> bool:
    """Return True when all declared columns in a row are empty."""

    for header in headers:
        value = raw_row.get(header)
        if value is None:
            continue
        if value.strip() != "":
            return False
    return True


def read_csv_rows(csv_path: str | Path, required: Iterable[str] = ()) -> list[NumberedRow]:
    """Read a UTF-8 CSV into `(line_number, row)` pairs.

    Header names are trimmed, fully blank rows are skipped, and cells beyond
    the header are dropped. Undecodable or unparseable files raise
    `InventoryFileError`.
    """

    path = Path(csv_path)
    numbered: list[NumberedRow] = []
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as handle:
            reader = csv.DictReader(handle)
            headers = [normalize_header(header) for header in reader.fieldnames or []]
            reader.fieldnames = headers
            check_header(headers, required)
            for line_number, raw_row in enumerate(reader, start=2):
                if None in raw_row:
                    # DictReader uses `None` for extra unnamed columns.
                    logger.warning("Row %d in %s has more columns than the header", line_number, path)
                    del raw_row[None]  # type: ignore[arg-type]
                if _is_blank_row(raw_row, headers):
                    logger.debug("Skipping blank row %d in %s", line_number, path)
                    continue
                numbered.append((line_number, raw_row))
    except UnicodeDecodeError as exc:
        raise InventoryFileError(path, f"not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc
    except csv.Error as exc:
        raise InventoryFileError(path, f"malformed CSV: {exc}") from exc
    return numbered


def read_inventory_csv(csv_path: str | Path) -> LoadedInventory:
    """Read one inventory CSV; row numbers in errors are CSV line numbers."""

    path = Path(csv_path)
    inventory = _load_numbered(read_csv_rows(path, REQUIRED_COLUMNS))
    logger.info("Loaded %d record(s) from %s", inventory.total_records, path)
    return inventory


def read_combined_export(csv_path: str | Path) -> list[SourceInventory]:
    """Split a combined export back into per-source inventories.

    Rows are grouped by `(SourceSite, SourceUrl)` so two sources sharing a
    display name stay apart. Sources are returned in the order they first
    appear in the file, and last-write-wins is applied within each source
    independently.
    """

    path = Path(csv_path)
    groups: dict[tuple[str, str], list[NumberedRow]] = {}

    for row, raw_row in read_csv_rows(path, (*REQUIRED_COLUMNS, SOURCE_SITE)):
        site = normalize_text(raw_row.get(SOURCE_SITE))
        if site is None:
            raise MalformedRecordError(row, SOURCE_SITE)
        url = normalize_text(raw_row.get(SOURCE_URL)) or ""
        groups.setdefault((site, url), []).append((row, raw_row))

    sources: list[SourceInventory] = []
    for (site, url), numbered_rows in groups.items():
        inventory = _load_numbered(numbered_rows)
        sources.append(SourceInventory(name=site, url=url, records=inventory.records, duplicates=inventory.duplicates))
    logger.info("Read %d source(s) from combined export %s", len(sources), path)
    return sources
