"""Public API exports for site inventory loading, reconciliation and reporting."""

from .errors import (
    ExportIOError,
    InvalidFieldError,
    InventoryError,
    MalformedRecordError,
    PipelineError,
    ProviderError,
)
from .export import write_export, write_inventory
from .loader import find_duplicate_paths, load, load_inventory, read_combined_export, read_inventory_csv
from .models import ComparisonRecord, DuplicatePath, FileRecord, ReconciliationResult, ReportModel
from .reconcile import reconcile
from .report import assemble

__all__ = [
    "ComparisonRecord",
    "DuplicatePath",
    "ExportIOError",
    "FileRecord",
    "InvalidFieldError",
    "InventoryError",
    "MalformedRecordError",
    "PipelineError",
    "ProviderError",
    "ReconciliationResult",
    "ReportModel",
    "assemble",
    "find_duplicate_paths",
    "load",
    "load_inventory",
    "read_combined_export",
    "read_inventory_csv",
    "reconcile",
    "write_export",
    "write_inventory",
]
