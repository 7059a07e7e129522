"""Exception types raised while loading, comparing and exporting inventories."""

from __future__ import annotations


class InventoryError(Exception):
    """Base class for every failure surfaced by the comparison pipeline."""


class MalformedRecordError(InventoryError, ValueError):
    """A row is missing a required field."""

    def __init__(self, row: int, field: str) -> None:
        self.row = row
        self.field = field
        super().__init__(f"Row {row} is missing required field {field!r}")


class InvalidFieldError(InventoryError, ValueError):
    """A required field is present but cannot be parsed."""

    def __init__(self, row: int, field: str, value: str | None, reason: str = "invalid value") -> None:
        self.row = row
        self.field = field
        self.value = value
        super().__init__(f"Row {row} field {field!r} has {reason}: {value!r}")


class InventoryFileError(InventoryError):
    """An inventory CSV could not be decoded or parsed."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read inventory file {path}: {reason}")


class ExportIOError(InventoryError):
    """An export or report file could not be created or written."""

    def __init__(self, destination: object, cause: OSError) -> None:
        self.destination = destination
        self.cause = cause
        super().__init__(f"Unable to write {destination}: {cause}")


class ProviderError(InventoryError):
    """The inventory provider failed to produce a complete inventory."""


class PipelineError(InventoryError):
    """A comparison run failed; `stage` names the step that failed."""

    def __init__(self, stage: str, cause: Exception) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")
