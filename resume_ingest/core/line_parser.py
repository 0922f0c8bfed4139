"""
Deterministic fallback extraction of experience-like entries.

Used when the model returns no experiences. Scans the raw text line by line:

  EXPERIENCE                                            <- section heading
  Acme Corp - Software Intern Jun 2024 - Aug 2024 New York,NY   <- entry line
  • Built the billing dashboard                          <- achievement
  • Cut page load time by 40%, measured in production    <- achievement (commas kept)
                                                         <- blank line closes the entry

Entry lines are recognized by two patterns, strict first:
  (a) "Organization - Role  <start> - <end|Present>  [Location]"
  (b) "Organization - Role" with the dates optional
Lines that follow an entry are sorted into location, dates, bullets, or
unmarked continuation text. The output is intentionally lossy; it exists so
that plain text still yields some structure when the AI path is unavailable.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from resume_ingest.core.dates import DATE_RANGE_PATTERN, DATE_RANGE_RE, find_date_range, is_present_marker
from resume_ingest.core.education_parser import detect_section_type
from resume_ingest.core.text_normalization import (
    clean_text,
    format_location,
    heading_label,
    is_all_caps,
    is_bullet_line,
    is_location_line,
    looks_like_location,
    strip_bullet_marker,
)

logger = logging.getLogger(__name__)


# ===== EXPERIENCE PARSING PATTERNS =====

# " - " needs spaces so hyphenated names ("Coca-Cola") stay whole; dashes and pipes don't
ENTRY_SEPARATOR = r"(?:\s+-\s+|\s*[–—|]\s*)"

# Strict: "Morgan Stanley - Wealth Management Intern June 2025 – Aug 2025 New York City,NY"
STRICT_ENTRY_RE = re.compile(
    rf"^(?P<org>[A-Za-z0-9][\w&.,'’()/ -]*?){ENTRY_SEPARATOR}"
    rf"(?P<role>[A-Za-z][\w&.,'’()/ -]*?)\s+{DATE_RANGE_PATTERN}"
    rf"(?:\s*[,|]?\s*(?P<location>[A-Za-z][A-Za-z .,'-]*?))?\s*$",
    re.IGNORECASE,
)

# Loose: "Robotics Club - Team Lead" (dates, if any, are searched for in the remainder)
LOOSE_ENTRY_RE = re.compile(rf"^(?P<org>[A-Za-z0-9][^–—|]*?){ENTRY_SEPARATOR}(?P<rest>[A-Z].*)$")

MAX_ENTRY_LINE = 200
MIN_LOOSE_ENTRY_LINE = 11
MAX_ORG_WORDS = 8
MAX_TRAILING_LOCATION = 60
MIN_BULLET_LENGTH = 4
MIN_CONTINUATION_LENGTH = 21


def _new_entry(
    organization: str,
    role_title: str,
    section_label: Optional[str],
    start: Optional[str] = None,
    end: Optional[str] = None,
    is_current: bool = False,
    location: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "organization": clean_text(organization.strip(" ,")),
        "role_title": clean_text(role_title.strip(" ,")) or "Unknown Role",
        "section_label": section_label,
        "location": format_location(location) if location else None,
        "start_date": start,
        "end_date": None if is_current else end,
        "is_current": is_current,
        "summary": None,
        "achievements": [],
        "skills": [],
    }


def _starts_with_dates(line: str) -> bool:
    """'Sep 2021 - May 2022' is a dates line for the open entry, not 'Org - Role'."""
    return bool(DATE_RANGE_RE.match(line))


def _match_strict_entry(line: str, section_label: Optional[str]) -> Optional[Dict[str, Any]]:
    if len(line) > MAX_ENTRY_LINE or _starts_with_dates(line):
        return None
    m = STRICT_ENTRY_RE.match(line)
    if not m:
        return None
    end = m.group("end")
    is_current = is_present_marker(end)
    return _new_entry(
        organization=m.group("org"),
        role_title=m.group("role"),
        section_label=section_label,
        start=m.group("start"),
        end=None if is_current else end,
        is_current=is_current,
        location=m.group("location"),
    )


def _match_loose_entry(line: str, section_label: Optional[str]) -> Optional[Dict[str, Any]]:
    if len(line) < MIN_LOOSE_ENTRY_LINE or len(line) > MAX_ENTRY_LINE or _starts_with_dates(line):
        return None
    m = LOOSE_ENTRY_RE.match(line)
    if not m:
        return None
    org = m.group("org").strip()
    if len(org.split()) > MAX_ORG_WORDS:
        return None

    rest = m.group("rest").strip()
    found = find_date_range(rest)
    if not found:
        return _new_entry(org, rest, section_label)

    start, end, is_current, (lo, hi) = found
    role = rest[:lo].strip(" ,|–—-")
    trailing = rest[hi:].strip(" ,|–—-")
    location = trailing if trailing and len(trailing) <= MAX_TRAILING_LOCATION else None
    return _new_entry(org, role, section_label, start, end, is_current, location)


def _absorb_line(entry: Dict[str, Any], line: str) -> None:
    """Attach a non-entry line to the open entry."""
    if is_location_line(line):
        if not entry["location"]:
            entry["location"] = format_location(line)
        return

    # Dates on their own line: "Jun 2024 - Aug 2024" or "Jun 2024 - Present  Austin, TX"
    if entry["start_date"] is None and not is_bullet_line(line):
        found = find_date_range(line)
        if found:
            start, end, is_current, (lo, hi) = found
            leftover = (line[:lo] + " " + line[hi:]).strip(" ,|–—-")
            if not leftover or looks_like_location(leftover):
                entry["start_date"] = start
                entry["end_date"] = end
                entry["is_current"] = is_current
                if leftover and not entry["location"]:
                    entry["location"] = format_location(leftover)
                return

    if is_bullet_line(line):
        bullet = strip_bullet_marker(line)
        if len(bullet) >= MIN_BULLET_LENGTH:
            entry["achievements"].append(bullet)
        return

    # Un-marked wrapped text still belongs to the entry
    if len(line) >= MIN_CONTINUATION_LENGTH and not is_all_caps(line) and not looks_like_location(line):
        entry["achievements"].append(line)


def extract_experiences_from_text(text: str) -> List[Dict[str, Any]]:
    """
    Fallback experience extraction over raw resume text.

    Entry lines open new entries inside experience-like sections (Experience,
    Projects, Leadership, Activities, Internships, Research, Volunteering, Work).
    Before the first heading, only the strict dated pattern is accepted; inside
    Education or Skills sections nothing opens an entry. A blank line or a new
    heading closes the open entry.

    Returned dicts are candidate records with raw date strings; run them
    through the field normalizer before use.
    """
    results: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None
    current_section: Optional[str] = None
    in_experience = False
    seen_heading = False

    def flush() -> None:
        nonlocal current
        if current is not None:
            results.append(current)
            current = None

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()

        section = detect_section_type(line)
        if section is not None:
            flush()
            seen_heading = True
            in_experience = section == "experience"
            current_section = heading_label(line) if in_experience else None
            logger.debug(f"Section heading {line!r} -> {section}")
            continue

        if not line:
            flush()
            continue

        # "1. Built the API - Python and Flask" is an achievement of the open entry
        opens_entry = current is None or not is_bullet_line(line)
        if opens_entry and (in_experience or not seen_heading):
            entry = _match_strict_entry(line, current_section)
            if entry is None and in_experience:
                entry = _match_loose_entry(line, current_section)
            if entry is not None:
                flush()
                current = entry
                continue

        if current is not None:
            _absorb_line(current, line)

    flush()
    logger.debug(f"Experience fallback produced {len(results)} entries")
    return results
