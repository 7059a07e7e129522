"""Field-level parsing helpers used by inventory loading."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .errors import InvalidFieldError


def normalize_text(value: str | None) -> str | None:
    """Trim text and collapse empty values to None."""

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def parse_size(value: str | None, *, row: int, field: str = "FileSize") -> int:
    """Parse a byte count from text.

    Integral decimal renderings such as `"2048.0"` are accepted since some
    exporters write every number as a float. Empty, non-numeric, fractional
    and negative values are rejected.
    """

    cleaned = normalize_text(value)
    if cleaned is None:
        raise InvalidFieldError(row, field, value, reason="an empty value")

    try:
        parsed = Decimal(cleaned)
    except InvalidOperation as exc:
        raise InvalidFieldError(row, field, value, reason="a non-numeric value") from exc

    if not parsed.is_finite() or parsed != parsed.to_integral_value():
        raise InvalidFieldError(row, field, value, reason="a non-integral value")

    size = int(parsed)
    if size < 0:
        raise InvalidFieldError(row, field, value, reason="a negative value")
    return size


def file_extension(name: str) -> str:
    """Return the text after the last `.` in a file name, or `""` without one."""

    _, dot, extension = name.rpartition(".")
    return extension if dot else ""
