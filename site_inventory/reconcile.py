"""Reconciliation of two file inventories keyed by server-relative path."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ComparisonRecord, FileRecord, ReconciliationResult


def index_by_path(records: Iterable[FileRecord]) -> dict[str, FileRecord]:
    """Build a path lookup for one inventory.

    When a path repeats, the later record overwrites the earlier one
    (last-write-wins) while keeping the first occurrence's position.
    """

    index: dict[str, FileRecord] = {}
    for record in records:
        index[record.path] = record
    return index


def _by_path(record: FileRecord | ComparisonRecord) -> str:
    return record.path


def reconcile(a: Iterable[FileRecord], b: Iterable[FileRecord]) -> ReconciliationResult:
    """Classify every path as only in A, only in B, or present in both.

    Paths present on both sides produce a `ComparisonRecord` whose size flag
    is integer equality and whose modified flag is exact string equality.
    All three collections are sorted by path using ordinal comparison.
    """

    index_b = index_by_path(b)
    only_in_a: list[FileRecord] = []
    both: list[ComparisonRecord] = []

    # Each path is classified once, even when A repeats it.
    index_a = index_by_path(a)
    for path, record_a in index_a.items():
        record_b = index_b.get(path)
        if record_b is None:
            only_in_a.append(record_a)
        else:
            both.append(ComparisonRecord.from_pair(record_a, record_b))

    only_in_b = [record_b for path, record_b in index_b.items() if path not in index_a]

    return ReconciliationResult(
        only_in_a=tuple(sorted(only_in_a, key=_by_path)),
        only_in_b=tuple(sorted(only_in_b, key=_by_path)),
        both=tuple(sorted(both, key=_by_path)),
        inventory_a=tuple(index_a.values()),
        inventory_b=tuple(index_b.values()),
    )
