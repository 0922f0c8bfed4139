"""
Section detection and the deterministic education fallback.

Section headings are matched on a letters-only key so that letter-spaced
PDF headings ("E D U C A T I O N") and decorated ones ("Education:") resolve
the same way. The education extractor is a small state machine: once inside
an Education section, lines naming an institution open a new entry and every
other non-blank line is kept as an achievement (coursework, GPA, honors).
"""

import logging
import re
from typing import Any, Dict, List, Literal, Optional

from resume_ingest.core.dates import find_date_range
from resume_ingest.core.text_normalization import (
    clean_text,
    despace_if_needed,
    heading_key,
    strip_bullet_marker,
)

logger = logging.getLogger(__name__)

SectionType = Literal["education", "experience", "other"]


# ===== SECTION DETECTION KEYWORDS =====
# Keys are heading_key() forms: lowercase letters only, no spaces.

EDUCATION_SECTION_HEADERS = frozenset({
    "education",
    "academicbackground",
    "educationtraining",
    "academic",
    "academics",
    "schooling",
})

EXPERIENCE_SECTION_HEADERS = frozenset({
    "experience",
    "experiences",
    "workexperience",
    "professionalexperience",
    "relevantexperience",
    "additionalexperience",
    "work",
    "workhistory",
    "employment",
    "employmenthistory",
    "projects",
    "project",
    "personalprojects",
    "academicprojects",
    "leadership",
    "leadershipexperience",
    "leadershipactivities",
    "activities",
    "extracurricularactivities",
    "extracurriculars",
    "internships",
    "internship",
    "internshipexperience",
    "research",
    "researchexperience",
    "volunteering",
    "volunteer",
    "volunteerexperience",
})

# Headings that end an experience or education section without starting one
OTHER_SECTION_HEADERS = frozenset({
    "skills",
    "technicalskills",
    "skillsinterests",
    "summary",
    "professionalsummary",
    "objective",
    "profile",
    "certifications",
    "certificationslicenses",
    "licenses",
    "awards",
    "honors",
    "honorsawards",
    "publications",
    "interests",
    "languages",
    "references",
    "coursework",
    "relevantcoursework",
    "additionalinformation",
})

# Heading lines are short; long lines that merely contain a heading word are content
MAX_HEADING_LENGTH = 60


# ===== INSTITUTION / DEGREE KEYWORDS =====

INSTITUTION_RE = re.compile(
    r"\b(?:University|College|School|Institute|Academy|Polytechnic|Universit[äé]t?)\b",
    re.IGNORECASE,
)
MIN_INSTITUTION_LINE = 6
MAX_INSTITUTION_LINE = 99

DEGREE_RE = re.compile(
    r"(?:\bbachelor(?:'s)?\b|\bmaster(?:'s)?\b|\bassociate(?:'s)?\s+(?:of|degree)\b|\bdoctor(?:ate)?\b"
    r"|\bph\.?d\b|\bm\.?b\.?a\b|\bb\.(?:s|a|sc|eng)\.|\bm\.(?:s|a|sc|eng)\.|\bdiploma\b)",
    re.IGNORECASE,
)

MIN_ACHIEVEMENT_LENGTH = 4


def detect_section_type(line: str) -> Optional[SectionType]:
    """
    Classify a line as a section heading.

    Returns "education", "experience" (any experience-like heading: work,
    projects, leadership, activities, internships, research, volunteering),
    "other" for known non-record headings such as Skills, or None when the
    line is not a heading at all.

    Examples:
        "EDUCATION" -> "education"
        "E X P E R I E N C E" -> "experience"
        "Leadership & Activities" -> "experience"
        "Technical Skills:" -> "other"
        "Acme Corp - Intern" -> None
    """
    t = line.strip()
    if not t or len(t) > MAX_HEADING_LENGTH:
        return None
    key = heading_key(despace_if_needed(t))
    if not key:
        return None
    if key in EDUCATION_SECTION_HEADERS:
        return "education"
    if key in EXPERIENCE_SECTION_HEADERS:
        return "experience"
    if key in OTHER_SECTION_HEADERS:
        return "other"
    return None


def is_institution_line(line: str) -> bool:
    """Length-bounded institution test: 'Stanford University' yes, a long coursework line no."""
    t = line.strip()
    return MIN_INSTITUTION_LINE <= len(t) <= MAX_INSTITUTION_LINE and bool(INSTITUTION_RE.search(t))


def has_degree_keyword(text: str) -> bool:
    return bool(DEGREE_RE.search(text))


def _new_education_entry(line: str) -> Dict[str, Any]:
    institution = line.strip()
    start_date = end_date = None
    found = find_date_range(institution)
    if found:
        start_date, end_date, _, (lo, hi) = found
        stripped = (institution[:lo] + institution[hi:]).strip(" ,|–—-")
        # Keep the full line if removing the dates leaves nothing useful
        if stripped and INSTITUTION_RE.search(stripped):
            institution = stripped
    return {
        "institution": clean_text(institution),
        "degree": None,
        "field_of_study": None,
        "start_date": start_date,
        "end_date": end_date,
        "achievements": [],
    }


def extract_education_from_text(text: str) -> List[Dict[str, Any]]:
    """
    Fallback education extraction over raw resume text.

    Only lines under an Education heading are considered. A blank line or
    any other heading closes the open entry. Returned dicts are candidate
    records; run them through the field normalizer before use.
    """
    results: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None
    in_education = False

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
            in_education = section == "education"
            continue

        if not in_education:
            continue

        if not line:
            flush()
            continue

        if is_institution_line(line):
            flush()
            current = _new_education_entry(strip_bullet_marker(line))
            continue

        if current is None:
            continue

        detail = strip_bullet_marker(line)
        if len(detail) < MIN_ACHIEVEMENT_LENGTH:
            continue
        current["achievements"].append(detail)

        if current["degree"] is None and has_degree_keyword(detail):
            degree = detail
            found = find_date_range(detail)
            if found:
                lo, hi = found[3]
                degree = (detail[:lo] + detail[hi:]).strip(" ,|–—-") or detail
            current["degree"] = degree
        if current["start_date"] is None and current["end_date"] is None:
            found = find_date_range(detail)
            if found:
                current["start_date"], current["end_date"] = found[0], found[1]

    flush()
    logger.debug(f"Education fallback produced {len(results)} entries")
    return results
