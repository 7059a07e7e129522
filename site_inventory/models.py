"""Core typed models shared by the loader, reconciliation and report modules."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TypedDict


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Canonical representation of one inventoried file.

    `path` is the server-relative path and the reconciliation key. Timestamps
    are kept exactly as the source serialized them.
    """

    name: str
    path: str
    size: int
    created: str
    modified: str
    library: str
    extension: str
    source_site: str | None = None
    source_url: str | None = None

    def tagged(self, source_site: str, source_url: str) -> FileRecord:
        """Return a copy of the record tagged with the source it came from."""

        return replace(self, source_site=source_site, source_url=source_url)


@dataclass(frozen=True, slots=True)
class ComparisonRecord:
    """Comparison details for a path present in both inventories."""

    path: str
    name: str
    library: str
    size_a: int
    size_b: int
    modified_a: str
    modified_b: str
    size_matches: bool
    modified_matches: bool

    @classmethod
    def from_pair(cls, record_a: FileRecord, record_b: FileRecord) -> ComparisonRecord:
        """Build a comparison from two records sharing one path.

        Name and library are taken from the A side.
        """

        return cls(
            path=record_a.path,
            name=record_a.name,
            library=record_a.library,
            size_a=record_a.size,
            size_b=record_b.size,
            modified_a=record_a.modified,
            modified_b=record_b.modified,
            size_matches=record_a.size == record_b.size,
            modified_matches=record_a.modified == record_b.modified,
        )

    @property
    def is_match(self) -> bool:
        return self.size_matches and self.modified_matches


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Three-way classification of two inventories keyed by path."""

    only_in_a: tuple[FileRecord, ...]
    only_in_b: tuple[FileRecord, ...]
    both: tuple[ComparisonRecord, ...]
    inventory_a: tuple[FileRecord, ...]
    inventory_b: tuple[FileRecord, ...]

    @property
    def total_a(self) -> int:
        """Return the number of distinct paths in inventory A."""

        return len(self.inventory_a)

    @property
    def total_b(self) -> int:
        """Return the number of distinct paths in inventory B."""

        return len(self.inventory_b)

    @property
    def total_unique_paths(self) -> int:
        """Return the number of distinct paths across both inventories."""

        return self.total_a + self.total_b - len(self.both)


@dataclass(frozen=True, slots=True)
class DuplicatePath:
    """A path that occurred more than once in one inventory."""

    path: str
    occurrences: int


class ReportSummary(TypedDict):
    """Summary counts shown at the top of a comparison report."""

    total_a: int
    total_b: int
    only_in_a: int
    only_in_b: int
    in_both: int
    in_both_matching: int
    size_mismatches: int
    modified_mismatches: int
    total_unique_paths: int
    total_bytes_a: int
    total_bytes_b: int


class LibraryBreakdown(TypedDict):
    """Per-library classification counts."""

    library: str
    only_in_a: int
    only_in_b: int
    in_both: int


@dataclass(frozen=True, slots=True)
class ReportModel:
    """Everything a renderer or exporter needs to present one comparison."""

    source_a_name: str
    source_a_url: str
    source_b_name: str
    source_b_url: str
    summary: ReportSummary
    only_in_a: tuple[FileRecord, ...]
    only_in_b: tuple[FileRecord, ...]
    both: tuple[ComparisonRecord, ...]
    combined: tuple[FileRecord, ...]
    libraries: tuple[LibraryBreakdown, ...] = ()
    duplicates_a: tuple[DuplicatePath, ...] = ()
    duplicates_b: tuple[DuplicatePath, ...] = ()

    @property
    def mismatched(self) -> tuple[ComparisonRecord, ...]:
        """Return matched paths whose size or modified time differ."""

        return tuple(item for item in self.both if not item.is_match)
