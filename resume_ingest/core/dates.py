"""
Freeform resume date normalization.

Turns strings like "June 2025", "Sept 2019", "2025" or "08/2023" into a
sortable YYYY-MM-DD string. Month-precision inputs resolve to the first
of the month. Anything unrecognized becomes None; this module never raises.
"""

import logging
import re
from datetime import datetime
from types import MappingProxyType
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


MONTHS = MappingProxyType({
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
})

MIN_YEAR = 1900
MAX_YEAR = 2100

# Full calendar dates written out in words or US order. Checked after ISO.
CALENDAR_FORMATS = (
    "%B %d, %Y",   # June 5, 2025
    "%b %d, %Y",   # Jun 5, 2025
    "%d %B %Y",    # 5 June 2025
    "%d %b %Y",    # 5 Jun 2025
    "%m/%d/%Y",    # 06/05/2025
)

MONTH_YEAR_RE = re.compile(r"^([a-z]+)\.?\s+(\d{4})$", re.IGNORECASE)
YEAR_RE = re.compile(r"^(\d{4})$")
NUMERIC_MONTH_YEAR_RE = re.compile(r"^(\d{1,2})[/\-](\d{4})$")

# ===== DATE RANGES IN RESUME LINES =====

MONTH_NAME_PATTERN = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?"
)
# One side of a range: "Jun 2024", "June 2024", "06/2024", "2024"
DATE_TOKEN_PATTERN = rf"(?:{MONTH_NAME_PATTERN}\s+\d{{4}}|\d{{1,2}}/\d{{4}}|\d{{4}})"
PRESENT_PATTERN = r"(?:Present|Current|Now|Ongoing)"
DATE_RANGE_PATTERN = (
    rf"(?P<start>{DATE_TOKEN_PATTERN})\s*(?:[-–—]|to)\s*(?P<end>{DATE_TOKEN_PATTERN}|{PRESENT_PATTERN})\b"
)

DATE_RANGE_RE = re.compile(DATE_RANGE_PATTERN, re.IGNORECASE)
PRESENT_RE = re.compile(rf"^{PRESENT_PATTERN}$", re.IGNORECASE)


def is_present_marker(value: Optional[str]) -> bool:
    """True for end-date words meaning the role is ongoing ("Present", "current", ...)."""
    return bool(value) and isinstance(value, str) and bool(PRESENT_RE.match(value.strip()))


def find_date_range(text: str) -> Optional[Tuple[str, Optional[str], bool, Tuple[int, int]]]:
    """
    Locate a date range inside a line.

    Returns (start, end, is_current, (span_start, span_end)) with start/end as the
    raw matched strings, or None when the line has no range.

    "Acme - Intern Jun 2024 – Present" -> ("Jun 2024", None, True, (14, 32))
    """
    m = DATE_RANGE_RE.search(text)
    if not m:
        return None
    start = m.group("start").strip()
    end = m.group("end").strip()
    if is_present_marker(end):
        return start, None, True, m.span()
    return start, end, False, m.span()


def _parse_calendar_date(text: str) -> Optional[str]:
    """Strict full-date parse. Returns the ISO date portion or None."""
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass
    for fmt in CALENDAR_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def _year_in_range(year: int) -> bool:
    return MIN_YEAR <= year <= MAX_YEAR


def normalize_date(value: Optional[str]) -> Optional[str]:
    """
    Normalize a freeform date string. First match wins:

    1. Full calendar date (ISO or written out) -> that date, unchanged
    2. "Month Year" (full name or abbreviation) -> YYYY-MM-01
    3. Bare year in [1900, 2100] -> YYYY-01-01
    4. MM/YYYY or MM-YYYY -> YYYY-MM-01
    5. Otherwise None

    Examples:
        "June 2025" -> "2025-06-01"
        "2025" -> "2025-01-01"
        "08/2023" -> "2023-08-01"
        "13/2025" -> None
        "2025-06-01" -> "2025-06-01"
    """
    if value is None or not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    iso = _parse_calendar_date(text)
    if iso:
        return iso

    m = MONTH_YEAR_RE.match(text)
    if m:
        month = MONTHS.get(m.group(1).lower())
        year = int(m.group(2))
        if month and _year_in_range(year):
            return f"{year:04d}-{month:02d}-01"

    m = YEAR_RE.match(text)
    if m:
        year = int(m.group(1))
        if _year_in_range(year):
            return f"{year:04d}-01-01"

    m = NUMERIC_MONTH_YEAR_RE.match(text)
    if m:
        month = int(m.group(1))
        year = int(m.group(2))
        if 1 <= month <= 12 and _year_in_range(year):
            return f"{year:04d}-{month:02d}-01"

    logger.warning(f"Could not parse date string: {text!r}")
    return None
