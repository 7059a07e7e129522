"""Tests for report assembly, summary counts and the JSON payload."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from site_inventory.errors import ExportIOError
from site_inventory.models import DuplicatePath, FileRecord
from site_inventory.reconcile import reconcile
from site_inventory.report import (
    assemble,
    default_source_name,
    library_breakdown,
    report_to_dict,
    summarize,
    write_json_report,
)

GENERATED_AT = datetime(2026, 1, 1, 12, 0, 0)
URL_A = "https://contoso.sharepoint.com/sites/Finance"
URL_B = "https://fabrikam.sharepoint.com/sites/FinanceMirror/"


def _record(path: str, *, size: int = 10, modified: str = "T1", library: str = "Documents") -> FileRecord:
    return FileRecord(
        name=path.rsplit("/", 1)[-1],
        path=path,
        size=size,
        created="T0",
        modified=modified,
        library=library,
        extension="",
    )


@pytest.fixture
def result():
    a = [
        _record("/b", size=5),
        _record("/a", size=1),
        _record("/shared", size=7, modified="T1"),
        _record("/assets/logo.png", size=3, library="Assets"),
    ]
    b = [
        _record("/shared", size=7, modified="T2"),
        _record("/assets/logo.png", size=4, library="Assets"),
        _record("/c", size=100, library="Archive"),
    ]
    return reconcile(a, b)


def test_summarize_counts(result) -> None:
    assert summarize(result) == {
        "total_a": 4,
        "total_b": 3,
        "only_in_a": 2,
        "only_in_b": 1,
        "in_both": 2,
        "in_both_matching": 0,
        "size_mismatches": 1,
        "modified_mismatches": 1,
        "total_unique_paths": 5,
        "total_bytes_a": 16,
        "total_bytes_b": 111,
    }


def test_library_breakdown_sorted_by_library(result) -> None:
    assert library_breakdown(result) == [
        {"library": "Archive", "only_in_a": 0, "only_in_b": 1, "in_both": 0},
        {"library": "Assets", "only_in_a": 0, "only_in_b": 0, "in_both": 1},
        {"library": "Documents", "only_in_a": 2, "only_in_b": 0, "in_both": 1},
    ]


def test_assemble_combined_is_a_then_b_and_tagged(result) -> None:
    """The combined sequence lists all of A, then all of B, each tagged."""
    report = assemble(result, "Finance", URL_A, "Mirror", URL_B)

    assert [record.path for record in report.combined] == [
        "/b",
        "/a",
        "/shared",
        "/assets/logo.png",
        "/shared",
        "/assets/logo.png",
        "/c",
    ]
    assert {(record.source_site, record.source_url) for record in report.combined[:4]} == {("Finance", URL_A)}
    assert {(record.source_site, record.source_url) for record in report.combined[4:]} == {("Mirror", URL_B)}


def test_assemble_does_not_tag_reconciled_collections(result) -> None:
    report = assemble(result, "Finance", URL_A, "Mirror", URL_B)

    assert report.only_in_a == result.only_in_a
    assert all(record.source_site is None for record in report.only_in_a)
    assert report.both == result.both


def test_assemble_echoes_sources_and_summary(result) -> None:
    report = assemble(result, "Finance", URL_A, "Mirror", URL_B, duplicates_a=[DuplicatePath("/a", 2)])

    assert (report.source_a_name, report.source_a_url) == ("Finance", URL_A)
    assert (report.source_b_name, report.source_b_url) == ("Mirror", URL_B)
    assert report.summary == summarize(result)
    assert report.duplicates_a == (DuplicatePath("/a", 2),)
    assert report.duplicates_b == ()
    assert [item.path for item in report.mismatched] == ["/assets/logo.png", "/shared"]


def test_assemble_derives_missing_display_names(result) -> None:
    """Missing display names degrade to a name derived from the URL."""
    report = assemble(result, None, URL_A, "", URL_B)

    assert report.source_a_name == "Finance"
    assert report.source_b_name == "FinanceMirror"
    assert report.combined[-1].source_site == "FinanceMirror"


def test_assemble_labels_same_named_sources_apart(result) -> None:
    """Identical display names get an (A)/(B) suffix in the report and combined tags."""
    report = assemble(result, None, "old/Docs.csv", None, "new/Docs.csv")

    assert report.source_a_name == "Docs (A)"
    assert report.source_b_name == "Docs (B)"
    assert {record.source_site for record in report.combined} == {"Docs (A)", "Docs (B)"}
    assert report.combined[0].source_url == "old/Docs.csv"


def test_assemble_empty_inventories() -> None:
    report = assemble(reconcile([], []), "A", "", "B", "")

    assert report.combined == ()
    assert report.summary["total_unique_paths"] == 0
    assert report.libraries == ()


@pytest.mark.parametrize(
    ("location", "expected"),
    [
        ("https://contoso.sharepoint.com/sites/Finance", "Finance"),
        ("https://contoso.sharepoint.com/sites/Finance/", "Finance"),
        ("https://contoso.sharepoint.com", "Source"),
        ("exports/site_a.csv", "site_a"),
        ("C:\\exports\\Site B.CSV", "Site B"),
        ("", "Source"),
    ],
)
def test_default_source_name(location: str, expected: str) -> None:
    assert default_source_name(location) == expected


def test_report_to_dict_sections(result) -> None:
    report = assemble(result, "Finance", URL_A, "Mirror", URL_B)
    payload = report_to_dict(report, generated_at=GENERATED_AT)

    assert payload["metadata"]["generated_at"] == "2026-01-01T12:00:00"
    assert payload["metadata"]["source_a"] == {"name": "Finance", "url": URL_A}
    assert "last occurrence" in payload["metadata"]["duplicate_rule"]
    assert payload["summary"]["in_both"] == 2
    assert [item["path"] for item in payload["only_in_a"]] == ["/a", "/b"]
    assert payload["in_both"][0] == {
        "path": "/assets/logo.png",
        "name": "logo.png",
        "library": "Assets",
        "size_a": 3,
        "size_b": 4,
        "modified_a": "T1",
        "modified_b": "T1",
        "size_matches": False,
        "modified_matches": True,
    }


def test_write_json_report_writes_valid_json(tmp_path: Path, result) -> None:
    """`write_json_report` should create the parent directory and emit valid JSON."""
    report = assemble(result, "Finance", URL_A, "Mirror", URL_B)
    output_path = tmp_path / "output" / "report.json"

    write_json_report(report, output_path=output_path, generated_at=GENERATED_AT)

    parsed = json.loads(output_path.read_text(encoding="utf-8"))
    assert parsed == report_to_dict(report, generated_at=GENERATED_AT)


def test_write_json_report_wraps_os_errors(tmp_path: Path, result) -> None:
    report = assemble(result, "Finance", URL_A, "Mirror", URL_B)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ExportIOError):
        write_json_report(report, output_path=blocker / "report.json", generated_at=GENERATED_AT)
