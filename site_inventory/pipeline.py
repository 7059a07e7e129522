"""End-to-end comparison run: load, reconcile, assemble, export, render.

Sources are loaded one after the other and each provider is closed before
the next is opened. Per-source intermediate exports live in a temporary work
directory that is removed whether or not the run succeeds; the combined
export and the reports are kept in the output directory.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .config import ComparisonSettings, SourceSettings
from .errors import InventoryError, PipelineError
from .export import write_export, write_inventory
from .loader import LoadedInventory, load_inventory, read_combined_export, read_inventory_csv
from .models import DuplicatePath, ReconciliationResult, ReportModel
from .providers import InventoryProvider, open_provider
from .reconcile import reconcile
from .render import write_html_report
from .report import assemble, write_json_report

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[SourceSettings], InventoryProvider]


@dataclass(frozen=True, slots=True)
class ComparisonOutputs:
    """Report model and durable files produced by one run."""

    report: ReportModel
    html_report: Path
    json_report: Path
    combined_export: Path | None = None


@dataclass(frozen=True, slots=True)
class _LoadedSource:
    name: str
    url: str
    intermediate: Path
    duplicates: list[DuplicatePath]


def _open_source(source: SourceSettings) -> InventoryProvider:
    return open_provider(source.location, name=source.name, access_token=source.access_token)


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Re-raise failures inside a pipeline step as `PipelineError`."""

    logger.info("Stage: %s", name)
    try:
        yield
    except (InventoryError, OSError) as exc:
        logger.error("Stage %s failed: %s", name, exc)
        raise PipelineError(name, exc) from exc


def _load_source(
    source: SourceSettings,
    *,
    label: str,
    work_dir: Path,
    provider_factory: ProviderFactory,
) -> _LoadedSource:
    with provider_factory(source) as provider:
        rows = provider.fetch_rows()
        name, url = provider.name, provider.url
    # The provider is released before the rows are validated and persisted.
    inventory: LoadedInventory = load_inventory(rows)
    intermediate = work_dir / f"source_{label}.csv"
    write_inventory(inventory.records, intermediate)
    logger.info("Loaded %d file(s) from %s", inventory.total_records, name)
    return _LoadedSource(name=name, url=url, intermediate=intermediate, duplicates=inventory.duplicates)


def _publish(
    result: ReconciliationResult,
    *,
    names: tuple[str | None, str | None],
    urls: tuple[str, str],
    duplicates: tuple[list[DuplicatePath], list[DuplicatePath]],
    output_dir: Path,
    generated_at: datetime,
    write_combined: bool,
) -> ComparisonOutputs:
    report = assemble(
        result,
        names[0],
        urls[0],
        names[1],
        urls[1],
        duplicates_a=duplicates[0],
        duplicates_b=duplicates[1],
    )
    stamp = generated_at.strftime("%Y%m%d_%H%M%S")

    combined_path: Path | None = None
    if write_combined:
        with _stage("export"):
            combined_path = output_dir / f"combined_{stamp}.csv"
            write_export(report.combined, combined_path)

    with _stage("render"):
        html_path = output_dir / f"comparison_{stamp}.html"
        json_path = output_dir / f"comparison_{stamp}.json"
        write_html_report(report, html_path, generated_at=generated_at)
        write_json_report(report, output_path=json_path, generated_at=generated_at)

    return ComparisonOutputs(
        report=report,
        html_report=html_path,
        json_report=json_path,
        combined_export=combined_path,
    )


def run_comparison(
    settings: ComparisonSettings,
    *,
    provider_factory: ProviderFactory = _open_source,
    work_root: Path | None = None,
    now: datetime | None = None,
) -> ComparisonOutputs:
    """Compare two sources and write the combined export and reports."""

    generated_at = now or datetime.now()
    with tempfile.TemporaryDirectory(prefix="site-inventory-", dir=work_root) as work:
        work_dir = Path(work)
        with _stage("load source A"):
            loaded_a = _load_source(
                settings.source_a, label="a", work_dir=work_dir, provider_factory=provider_factory
            )
        with _stage("load source B"):
            loaded_b = _load_source(
                settings.source_b, label="b", work_dir=work_dir, provider_factory=provider_factory
            )
        with _stage("reconcile"):
            inventory_a = read_inventory_csv(loaded_a.intermediate)
            inventory_b = read_inventory_csv(loaded_b.intermediate)
            result = reconcile(inventory_a.records, inventory_b.records)

        return _publish(
            result,
            names=(loaded_a.name, loaded_b.name),
            urls=(loaded_a.url, loaded_b.url),
            duplicates=(loaded_a.duplicates, loaded_b.duplicates),
            output_dir=settings.output_dir,
            generated_at=generated_at,
            write_combined=True,
        )


def compare_combined_export(
    export_path: str | Path,
    *,
    output_dir: Path,
    name_a: str | None = None,
    name_b: str | None = None,
    now: datetime | None = None,
) -> ComparisonOutputs:
    """Re-run a comparison from a previously written combined export."""

    generated_at = now or datetime.now()
    with _stage("load combined export"):
        sources = read_combined_export(export_path)
        if len(sources) != 2:
            raise InventoryError(f"Expected exactly two sources in {export_path}, found {len(sources)}")
    source_a, source_b = sources

    with _stage("reconcile"):
        result = reconcile(source_a.records, source_b.records)

    return _publish(
        result,
        names=(name_a or source_a.name, name_b or source_b.name),
        urls=(source_a.url, source_b.url),
        duplicates=(source_a.duplicates, source_b.duplicates),
        output_dir=output_dir,
        generated_at=generated_at,
        write_combined=False,
    )
