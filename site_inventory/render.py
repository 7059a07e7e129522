"""Renderers that turn a `ReportModel` into HTML or terminal text."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from jinja2 import Environment, PackageLoader, select_autoescape

from .errors import ExportIOError
from .models import ReportModel

logger = logging.getLogger(__name__)

REPORT_TEMPLATE = "report.html.j2"


def format_bytes(size: int) -> str:
    """Render a byte count with a binary unit, e.g. ``1536`` as ``1.50 KB``."""
    if size < 1024:
        return f"{size} B"
    scaled = size / 1024
    unit = "KB"
    for larger in ("MB", "GB", "TB"):
        if scaled < 1024:
            break
        scaled /= 1024
        unit = larger
    return f"{scaled:.2f} {unit}"


def yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _build_environment() -> Environment:
    environment = Environment(
        loader=PackageLoader("site_inventory", "templates"),
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    environment.filters["filesize"] = format_bytes
    environment.filters["yesno"] = yes_no
    return environment


_ENVIRONMENT = _build_environment()


def render_html(report: ReportModel, *, generated_at: datetime) -> str:
    """Render the comparison report as a standalone HTML document."""

    template = _ENVIRONMENT.get_template(REPORT_TEMPLATE)
    return template.render(report=report, summary=report.summary, generated_at=generated_at)


def write_html_report(report: ReportModel, output_path: Path, *, generated_at: datetime) -> None:
    """Render the HTML report and write it to `output_path`."""

    html = render_html(report, generated_at=generated_at)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html, encoding="utf-8")
    except OSError as exc:
        raise ExportIOError(output_path, exc) from exc
    logger.info("Wrote HTML report: %s", output_path)


def render_text(report: ReportModel) -> str:
    """Render a short plain-text summary for the terminal."""

    summary = report.summary
    label_a = f"Only in {report.source_a_name}"
    label_b = f"Only in {report.source_b_name}"
    rows = [
        (f"Files in {report.source_a_name}", f"{summary['total_a']:,}"),
        (f"Files in {report.source_b_name}", f"{summary['total_b']:,}"),
        (label_a, f"{summary['only_in_a']:,}"),
        (label_b, f"{summary['only_in_b']:,}"),
        ("In both", f"{summary['in_both']:,}"),
        ("  matching", f"{summary['in_both_matching']:,}"),
        ("  size differs", f"{summary['size_mismatches']:,}"),
        ("  modified differs", f"{summary['modified_mismatches']:,}"),
        ("Unique paths", f"{summary['total_unique_paths']:,}"),
    ]
    width = max(len(label) for label, _ in rows)
    lines = [f"{report.source_a_name} ({report.source_a_url}) vs {report.source_b_name} ({report.source_b_url})"]
    lines.extend(f"{label.ljust(width)}  {value}" for label, value in rows)
    return "\n".join(lines)
