"""Command-line runner for comparing the file inventories of two sites.

This script loads both inventories, reconciles them by path, writes a
combined CSV export plus HTML and JSON reports under `output/` by default,
and opens the HTML report in a browser.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import webbrowser
from collections.abc import Sequence
from pathlib import Path

from site_inventory.config import DEFAULT_LOG_LEVEL, DEFAULT_OUTPUT_DIR, ComparisonSettings
from site_inventory.errors import InventoryError
from site_inventory.pipeline import ComparisonOutputs, compare_combined_export, run_comparison
from site_inventory.render import render_text

logger = logging.getLogger("compare_sites")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for a comparison run."""

    parser = argparse.ArgumentParser(
        description="Compare the file inventories of two document sites and emit a report.",
        epilog=(
            "Sources may be site URLs or inventory CSV files. Bearer tokens for site URLs are read from "
            "SITE_INVENTORY_TOKEN_A / SITE_INVENTORY_TOKEN_B, falling back to SITE_INVENTORY_TOKEN."
        ),
    )
    parser.add_argument("source_a", nargs="?", help="Site URL or inventory CSV for source A")
    parser.add_argument("source_b", nargs="?", help="Site URL or inventory CSV for source B")
    parser.add_argument("--name-a", help="Display name for source A")
    parser.add_argument("--name-b", help="Display name for source B")
    parser.add_argument(
        "--from-combined",
        type=Path,
        metavar="CSV",
        help="Re-run the comparison from a previously written combined export",
    )
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR, help="Directory for exports and reports")
    parser.add_argument("--no-browser", action="store_true", help="Do not open the HTML report")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=DEFAULT_LOG_LEVEL,
        help="Logging verbosity",
    )
    args = parser.parse_args(argv)

    if args.from_combined is None and (args.source_a is None or args.source_b is None):
        parser.error("SOURCE_A and SOURCE_B are required unless --from-combined is given")
    if args.from_combined is not None and (args.source_a is not None or args.source_b is not None):
        parser.error("--from-combined cannot be combined with SOURCE_A/SOURCE_B")
    return args


def _run(args: argparse.Namespace) -> ComparisonOutputs:
    if args.from_combined is not None:
        return compare_combined_export(
            args.from_combined,
            output_dir=args.output_dir,
            name_a=args.name_a,
            name_b=args.name_b,
        )
    return run_comparison(ComparisonSettings.from_args(args, os.environ))


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint for command-line execution."""

    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    try:
        outputs = _run(args)
    except InventoryError as exc:
        logger.debug("Comparison failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(render_text(outputs.report))
    if outputs.combined_export is not None:
        print(f"Wrote combined export: {outputs.combined_export}")
    print(f"Wrote HTML report: {outputs.html_report}")
    print(f"Wrote JSON report: {outputs.json_report}")

    if not args.no_browser:
        webbrowser.open(outputs.html_report.resolve().as_uri())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
