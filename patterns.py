"""Centralized regex patterns for Abacus time tracking."""

import re


class Patterns:
    """Regex patterns used throughout the automation."""

    # Date format: YYYY-MM-DD
    DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")

    # Grid date format: DD.MM.YYYY
    DISPLAY_DATE = re.compile(r"^(\d{2})\.(\d{2})\.(\d{4})$")

    # Month filter format: MM.YYYY
    MONTH_YEAR = re.compile(r"^(\d{2})\.(\d{4})$")

    # Weekly report total cell: 40.00, -5.79
    REPORT_DECIMAL = re.compile(r"^-?\d+\.\d{2}$")

    # Everything that cannot be part of a number: "40.00 STD" -> "40.00"
    NON_NUMERIC = re.compile(r"[^\d.,-]")

    # Trailing unit on an hours cell: "8.00 STD"
    HOURS_UNIT_SUFFIX = re.compile(r"\s*[A-Za-z]+$")


def parse_decimal(text: str) -> float | None:
    """Parse a locale formatted decimal ("8,50", "40.00 STD", "-5.79").

    Returns None when no number can be read.
    """
    cleaned = Patterns.NON_NUMERIC.sub("", text or "").replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return None


def project_pattern(project_id: str) -> re.Pattern:
    """Pattern matching a project id as a whole token inside a grid label.

    The grid shows labels like "71100000001 – Internal". A plain substring
    test would let "711" match that label, so the id must not touch another
    letter or digit on either side.
    """
    return re.compile(rf"(?<![0-9A-Za-z]){re.escape(project_id.strip())}(?![0-9A-Za-z])")


def project_matches(label: str, project_id: str) -> bool:
    if not project_id.strip():
        return False
    return project_pattern(project_id).search(label or "") is not None


def strip_hours_unit(hours: str) -> str:
    return Patterns.HOURS_UNIT_SUFFIX.sub("", hours)
