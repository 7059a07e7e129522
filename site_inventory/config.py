"""Run settings for one site comparison."""

from __future__ import annotations

import argparse
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_OUTPUT_DIR = Path("output")
DEFAULT_LOG_LEVEL = "INFO"

TOKEN_ENV = "SITE_INVENTORY_TOKEN"
TOKEN_ENV_A = "SITE_INVENTORY_TOKEN_A"
TOKEN_ENV_B = "SITE_INVENTORY_TOKEN_B"


@dataclass(frozen=True, slots=True)
class SourceSettings:
    """Where one inventory comes from and how to label it."""

    location: str
    name: str | None = None
    access_token: str | None = None


@dataclass(frozen=True, slots=True)
class ComparisonSettings:
    """Everything `run_comparison` needs for one run."""

    source_a: SourceSettings
    source_b: SourceSettings
    output_dir: Path = DEFAULT_OUTPUT_DIR

    @classmethod
    def from_args(cls, args: argparse.Namespace, environ: Mapping[str, str]) -> ComparisonSettings:
        """Build settings from parsed CLI arguments and environment tokens.

        Per-source tokens take precedence over the shared token.
        """

        shared_token = environ.get(TOKEN_ENV)
        return cls(
            source_a=SourceSettings(
                location=args.source_a,
                name=args.name_a,
                access_token=environ.get(TOKEN_ENV_A) or shared_token,
            ),
            source_b=SourceSettings(
                location=args.source_b,
                name=args.name_b,
                access_token=environ.get(TOKEN_ENV_B) or shared_token,
            ),
            output_dir=args.output_dir,
        )
