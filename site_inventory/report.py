"""Assemble reconciliation output into a report model and JSON payload."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from .errors import ExportIOError
from .models import (
    DuplicatePath,
    FileRecord,
    LibraryBreakdown,
    ReconciliationResult,
    ReportModel,
    ReportSummary,
)

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_NAME = "Source"


def default_source_name(location: str, fallback: str = DEFAULT_SOURCE_NAME) -> str:
    """Derive a display name from a site URL or inventory file path.

    `https://contoso.sharepoint.com/sites/Finance/` becomes `Finance` and
    `exports/site_a.csv` becomes `site_a`.
    """

    path = urlsplit(location).path if "://" in location else location
    segment = path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    if segment.lower().endswith(".csv"):
        segment = segment[: -len(".csv")]
    return segment or fallback


def summarize(result: ReconciliationResult) -> ReportSummary:
    """Return summary counts for one reconciliation result."""

    return {
        "total_a": result.total_a,
        "total_b": result.total_b,
        "only_in_a": len(result.only_in_a),
        "only_in_b": len(result.only_in_b),
        "in_both": len(result.both),
        "in_both_matching": sum(1 for item in result.both if item.is_match),
        "size_mismatches": sum(1 for item in result.both if not item.size_matches),
        "modified_mismatches": sum(1 for item in result.both if not item.modified_matches),
        "total_unique_paths": result.total_unique_paths,
        "total_bytes_a": sum(record.size for record in result.inventory_a),
        "total_bytes_b": sum(record.size for record in result.inventory_b),
    }


def library_breakdown(result: ReconciliationResult) -> list[LibraryBreakdown]:
    """Count only-A, only-B and matched paths per library, sorted by library.

    Matched paths are attributed to the A side's library.
    """

    counts: defaultdict[str, dict[str, int]] = defaultdict(lambda: {"only_in_a": 0, "only_in_b": 0, "in_both": 0})
    for record in result.only_in_a:
        counts[record.library]["only_in_a"] += 1
    for record in result.only_in_b:
        counts[record.library]["only_in_b"] += 1
    for item in result.both:
        counts[item.library]["in_both"] += 1

    return [
        {
            "library": library,
            "only_in_a": counts[library]["only_in_a"],
            "only_in_b": counts[library]["only_in_b"],
            "in_both": counts[library]["in_both"],
        }
        for library in sorted(counts)
    ]


def _tag_all(records: Iterable[FileRecord], name: str, url: str) -> list[FileRecord]:
    return [record.tagged(name, url) for record in records]


def assemble(
    result: ReconciliationResult,
    source_a_name: str | None,
    source_a_url: str,
    source_b_name: str | None,
    source_b_url: str,
    *,
    duplicates_a: Iterable[DuplicatePath] = (),
    duplicates_b: Iterable[DuplicatePath] = (),
) -> ReportModel:
    """Build the report model for one comparison.

    The combined sequence holds every A record tagged with source A followed
    by every B record tagged with source B. It is a raw union for export and
    is not de-duplicated across sources.
    """

    name_a = source_a_name or default_source_name(source_a_url, fallback="Source A")
    name_b = source_b_name or default_source_name(source_b_url, fallback="Source B")
    if name_a == name_b:
        # Combined exports are split by name and URL; keep the labels apart too.
        name_a, name_b = f"{name_a} (A)", f"{name_b} (B)"

    combined = [
        *_tag_all(result.inventory_a, name_a, source_a_url),
        *_tag_all(result.inventory_b, name_b, source_b_url),
    ]
    summary = summarize(result)
    logger.info(
        "Assembled report: %d only in %s, %d only in %s, %d in both (%d matching)",
        summary["only_in_a"],
        name_a,
        summary["only_in_b"],
        name_b,
        summary["in_both"],
        summary["in_both_matching"],
    )

    return ReportModel(
        source_a_name=name_a,
        source_a_url=source_a_url,
        source_b_name=name_b,
        source_b_url=source_b_url,
        summary=summary,
        only_in_a=result.only_in_a,
        only_in_b=result.only_in_b,
        both=result.both,
        combined=tuple(combined),
        libraries=tuple(library_breakdown(result)),
        duplicates_a=tuple(duplicates_a),
        duplicates_b=tuple(duplicates_b),
    )


def report_to_dict(report: ReportModel, *, generated_at: datetime) -> dict[str, Any]:
    """Serialize a report model into a JSON-friendly dictionary."""

    return {
        "metadata": {
            "generated_at": generated_at.isoformat(),
            "source_a": {"name": report.source_a_name, "url": report.source_a_url},
            "source_b": {"name": report.source_b_name, "url": report.source_b_url},
            "duplicate_rule": (
                "If a path occurs more than once within one source, the last occurrence is kept."
            ),
        },
        "summary": dict(report.summary),
        "libraries": [dict(item) for item in report.libraries],
        "only_in_a": [asdict(record) for record in report.only_in_a],
        "only_in_b": [asdict(record) for record in report.only_in_b],
        "in_both": [asdict(item) for item in report.both],
        "duplicate_paths": {
            "source_a": [asdict(item) for item in report.duplicates_a],
            "source_b": [asdict(item) for item in report.duplicates_b],
        },
    }


def write_json_report(report: ReportModel, *, output_path: Path, generated_at: datetime) -> None:
    """Write the report payload as JSON to disk."""

    payload = report_to_dict(report, generated_at=generated_at)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ExportIOError(output_path, exc) from exc
    logger.info("Wrote JSON report: %s", output_path)
