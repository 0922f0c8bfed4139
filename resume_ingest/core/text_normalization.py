"""
Line-level text helpers shared by the fallback extractors.

Resume text pasted from PDFs carries a few recurring artifacts:
- letter-spaced headings ("E X P E R I E N C E")
- assorted bullet glyphs (•, ●, ▪, -, *, "1.")
- "City,ST" locations with missing or doubled spaces

Everything here is a pure function on a single line.
"""

import re
from typing import Optional


# ============================================================================
# Letter-spacing repair
# ============================================================================

SPACED_CHARS_RE = re.compile(r"^(?:[A-Za-z0-9&@.()\-+]\s+){2,}[A-Za-z0-9&@.()\-+]+$")


def despace_if_needed(text: str) -> str:
    """
    Undo letter-spacing on lines that are mostly single characters.

    Examples:
      'E X P E R I E N C E' -> 'EXPERIENCE'
      'W O R K   E X P E R I E N C E' -> 'WORK EXPERIENCE'   (2+ spaces are word breaks)
      'Acme Corp' -> 'Acme Corp'   (unchanged)
    """
    t = text.strip()
    if not t:
        return t

    if SPACED_CHARS_RE.match(t):
        parts = re.split(r"\s{2,}", t)
        parts = ["".join(p.split()) for p in parts]
        return " ".join(p for p in parts if p)

    return t


def heading_key(text: str) -> str:
    """
    Matching key for section headings: lowercase letters only.

    'E X P E R I E N C E' -> 'experience'
    'Leadership & Activities:' -> 'leadershipactivities'
    """
    return re.sub(r"[^a-z]", "", text.lower())


def heading_label(text: str) -> str:
    """Display form of a heading line: 'W O R K  E X P E R I E N C E' -> 'Work Experience'."""
    t = despace_if_needed(text).rstrip(":").strip()
    t = " ".join(t.split())
    if t.isupper():
        return t.title()
    return t


# ============================================================================
# Bullets
# ============================================================================

BULLET_RE = re.compile(r"^(?:[•●▪◦‣·∙\-*–]|\d{1,2}[.)])\s+")
# Glyph bullets are unambiguous even without a following space
GLYPH_BULLET_RE = re.compile(r"^[•●▪◦‣·∙]\s*")


def is_bullet_line(text: str) -> bool:
    t = text.strip()
    return bool(BULLET_RE.match(t) or GLYPH_BULLET_RE.match(t))


def strip_bullet_marker(text: str) -> str:
    """'• Led a team' -> 'Led a team'; '2. Shipped X' -> 'Shipped X'."""
    t = text.strip()
    t = BULLET_RE.sub("", t, count=1)
    t = GLYPH_BULLET_RE.sub("", t, count=1)
    return t.strip()


# ============================================================================
# Locations
# ============================================================================

# "Austin, TX", "New York,NY", "Berlin, Germany", "San Francisco, California"
LOCATION_LINE_RE = re.compile(r"^[A-Z][A-Za-z .'-]*,\s*(?:[A-Z]{2}|[A-Z][A-Za-z]+(?: [A-Z][A-Za-z]+)*)$")
# Anything that opens like "City, X" counts as location-shaped for continuation checks
LOCATION_PREFIX_RE = re.compile(r"^[A-Z][A-Za-z]+,\s*[A-Z]")


def is_location_line(text: str) -> bool:
    return bool(LOCATION_LINE_RE.match(text.strip()))


def looks_like_location(text: str) -> bool:
    t = text.strip()
    return is_location_line(t) or bool(LOCATION_PREFIX_RE.match(t))


def format_location(s: str) -> str:
    # Remove spaces before commas: "New York , NY" -> "New York, NY"
    s = re.sub(r"\s+,", ",", s)
    # Collapse whitespace
    return " ".join(s.split()).strip()


# ============================================================================
# Misc
# ============================================================================

ALL_CAPS_RE = re.compile(r"^[A-Z\s]+$")


def is_all_caps(text: str) -> bool:
    return bool(ALL_CAPS_RE.match(text.strip()))


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim and collapse internal whitespace. Empty strings become None."""
    if value is None:
        return None
    t = " ".join(str(value).split())
    return t or None
