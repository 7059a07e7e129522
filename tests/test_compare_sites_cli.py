"""Tests for the command-line runner and its settings resolution."""

from __future__ import annotations

import argparse
from pathlib import Path

import pytest

import compare_sites
from site_inventory.config import ComparisonSettings

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SITE_A = PROJECT_ROOT / "data" / "site_a.csv"
SITE_B = PROJECT_ROOT / "data" / "site_b.csv"


def test_main_writes_outputs_and_prints_summary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output_dir = tmp_path / "output"

    exit_code = compare_sites.main(
        [str(SITE_A), str(SITE_B), "--name-a", "Finance", "--output-dir", str(output_dir), "--no-browser"]
    )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Only in Finance" in out
    assert "Only in site_b" in out
    assert "Wrote combined export:" in out
    assert len(list(output_dir.glob("combined_*.csv"))) == 1
    assert len(list(output_dir.glob("comparison_*.html"))) == 1
    assert len(list(output_dir.glob("comparison_*.json"))) == 1


def test_main_opens_browser_by_default(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    opened: list[str] = []
    monkeypatch.setattr(compare_sites.webbrowser, "open", opened.append)

    exit_code = compare_sites.main([str(SITE_A), str(SITE_B), "--output-dir", str(tmp_path)])

    assert exit_code == 0
    assert len(opened) == 1
    assert opened[0].startswith("file://")
    assert opened[0].endswith(".html")


def test_main_reports_failing_stage(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = compare_sites.main(
        [str(SITE_A), str(tmp_path / "missing.csv"), "--output-dir", str(tmp_path / "output"), "--no-browser"]
    )

    assert exit_code == 1
    err = capsys.readouterr().err
    assert err.startswith("error: load source B: ")
    assert not (tmp_path / "output").exists()


def test_main_from_combined_export(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    first_dir = tmp_path / "first"
    assert compare_sites.main([str(SITE_A), str(SITE_B), "--output-dir", str(first_dir), "--no-browser"]) == 0
    combined = next(first_dir.glob("combined_*.csv"))
    capsys.readouterr()

    exit_code = compare_sites.main(
        ["--from-combined", str(combined), "--output-dir", str(tmp_path / "rerun"), "--no-browser"]
    )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Wrote combined export:" not in out
    assert "Only in site_a" in out


@pytest.mark.parametrize(
    "argv",
    [
        [],
        [str(SITE_A)],
        ["--from-combined", "combined.csv", str(SITE_A), str(SITE_B)],
        [str(SITE_A), str(SITE_B), "--log-level", "LOUD"],
    ],
)
def test_main_rejects_invalid_arguments(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        compare_sites.main(argv)
    assert excinfo.value.code == 2


def test_settings_prefer_per_source_tokens() -> None:
    args = argparse.Namespace(
        source_a="https://contoso/sites/A",
        source_b="https://contoso/sites/B",
        name_a=None,
        name_b="Mirror",
        output_dir=Path("out"),
    )
    environ = {"SITE_INVENTORY_TOKEN": "shared", "SITE_INVENTORY_TOKEN_B": "token-b"}

    settings = ComparisonSettings.from_args(args, environ)

    assert settings.source_a.access_token == "shared"
    assert settings.source_b.access_token == "token-b"
    assert settings.source_b.name == "Mirror"
    assert settings.output_dir == Path("out")


def test_main_reports_undecodable_source(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    latin1 = tmp_path / "latin1.csv"
    latin1.write_bytes(
        b"FileName,FilePath,FileSize,Created,Modified,Library\n"
        b"caf\xe9.txt,/lib/caf\xe9.txt,10,T0,T1,Documents\n"
    )

    exit_code = compare_sites.main(
        [str(latin1), str(SITE_B), "--output-dir", str(tmp_path / "output"), "--no-browser"]
    )

    assert exit_code == 1
    err = capsys.readouterr().err
    assert err.startswith("error: load source A: Cannot read inventory file ")
    assert "not valid UTF-8" in err
