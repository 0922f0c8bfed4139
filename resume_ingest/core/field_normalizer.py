"""
Shape normalization for candidate records.

Model output and fallback output arrive with unpredictable keys ("company"
vs "organization", "bullets" vs "achievements", a bare string instead of an
object, ...). Each canonical field below lists the source keys it may come
from, in priority order; the first present, non-empty value wins.

The normalizers never raise. Missing or malformed fields fall back to the
defaults on the record models ("Unknown", "Unknown Role",
"Unknown institution", empty lists) so a partially understood entry is
still returned with its bullets intact.
"""

import logging
import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel

from resume_ingest.core.dates import is_present_marker, normalize_date
from resume_ingest.core.schemas import (
    Category,
    Diagnostic,
    EducationRecord,
    ExperienceRecord,
    SkillGroupRecord,
)

logger = logging.getLogger(__name__)


# ===== CANDIDATE KEY TABLES =====

EXPERIENCE_KEYS = MappingProxyType({
    "organization": ("organization", "company", "employer", "institution", "school"),
    "role_title": ("role_title", "title", "position", "role", "job_title"),
    "achievements": ("achievements", "bullets", "details", "items", "responsibilities"),
    "location": ("location", "city", "place"),
    "start_date": ("start_date", "start", "startDate"),
    "end_date": ("end_date", "end", "endDate"),
    "summary": ("summary", "description"),
    "section_label": ("section_label", "section"),
    "skills": ("skills", "technologies", "tools"),
    "is_current": ("is_current", "current", "ongoing"),
})

EDUCATION_KEYS = MappingProxyType({
    "institution": ("institution", "school", "organization", "university", "college"),
    "degree": ("degree", "program", "major", "field", "field_of_study"),
    "field_of_study": ("field_of_study", "major", "program", "focus", "concentration"),
    "achievements": ("achievements", "bullets", "details", "items"),
    "start_date": ("start_date", "start", "startDate"),
    "end_date": ("end_date", "end", "endDate"),
})

SKILL_GROUP_KEYS = MappingProxyType({
    "category": ("category", "label", "name", "group"),
    "skills": ("skills", "items", "values"),
})

# Keys that mark a mapping as one skill group rather than a category -> skills map
SKILL_GROUP_MARKERS = frozenset(SKILL_GROUP_KEYS["category"] + SKILL_GROUP_KEYS["skills"])

# Keys tried when a bullet arrives as an object instead of a string
BULLET_TEXT_KEYS = ("text", "description", "bullet", "content", "value")

# Only bare skill strings are split. Achievement bullets never are.
SKILL_DELIMITER_RE = re.compile(r"[,;•\n]+")
LIST_DELIMITER_RE = re.compile(r"[\n•]+")

TRUE_STRINGS = frozenset({"true", "yes", "y", "1"})

MAX_NAME_LENGTH = 200

DEFAULT_ORGANIZATION = "Unknown"
DEFAULT_ROLE_TITLE = "Unknown Role"
DEFAULT_INSTITUTION = "Unknown institution"


# ===== VALUE COERCION =====

def _as_text(value: Any) -> Optional[str]:
    """Trimmed string for str/number scalars, None for everything else or blank."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    return None


def _clip(text: str) -> str:
    return text[:MAX_NAME_LENGTH].rstrip()


def _candidate_texts(record: Mapping, keys: Tuple[str, ...]) -> List[str]:
    texts = []
    for key in keys:
        text = _as_text(record.get(key))
        if text:
            texts.append(text)
    return texts


def _first_text(record: Mapping, keys: Tuple[str, ...]) -> Optional[str]:
    texts = _candidate_texts(record, keys)
    return texts[0] if texts else None


def _first_present(record: Mapping, keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record.get(key)
    return None


def _bullet_text(item: Any) -> Optional[str]:
    if isinstance(item, Mapping):
        return _first_text(item, BULLET_TEXT_KEYS)
    if isinstance(item, bool):
        return None
    return _as_text(item)


def as_bullet_list(value: Any) -> List[str]:
    """
    Coerce an achievements value to a list of complete bullets.

    A list keeps one entry per element (trimmed, blanks dropped). A single
    string becomes a one-element list. Nothing is split on commas.
    """
    if isinstance(value, (list, tuple)):
        return [text for text in (_bullet_text(item) for item in value) if text]
    text = _bullet_text(value)
    return [text] if text else []


def _first_bullets(record: Mapping, keys: Tuple[str, ...]) -> List[str]:
    for key in keys:
        bullets = as_bullet_list(record.get(key))
        if bullets:
            return bullets
    return []


def split_skill_strings(value: Any) -> List[str]:
    """
    Flatten a skills value to trimmed, non-empty strings.

    "Python, SQL; Docker" -> ["Python", "SQL", "Docker"]
    ["Go", ["Rust", "C"]] -> ["Go", "Rust", "C"]
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for item in value:
            out.extend(split_skill_strings(item))
        return out
    if isinstance(value, str):
        return [part.strip() for part in SKILL_DELIMITER_RE.split(value) if part.strip()]
    if isinstance(value, bool):
        return ["true" if value else "false"]
    if isinstance(value, (int, float)):
        return [str(value)]
    return []


def _string_or_list(value: Any):
    """Degree / field of study: a trimmed string, a non-empty list of strings, or None."""
    if isinstance(value, (list, tuple)):
        items = [text for text in (_as_text(item) for item in value) if text]
        return items or None
    return _as_text(value)


def _first_string_or_list(record: Mapping, keys: Tuple[str, ...]):
    for key in keys:
        value = _string_or_list(record.get(key))
        if value:
            return value
    return None


def _is_flag_set(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False


def _to_mapping(raw: Any) -> Optional[Mapping]:
    if isinstance(raw, BaseModel):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return raw
    return None


def _normalize_date_field(
    raw_text: Optional[str],
    field: str,
    category: Category,
    diagnostics: Optional[List[Diagnostic]],
) -> Optional[str]:
    if not raw_text:
        return None
    normalized = normalize_date(raw_text)
    if normalized is None and diagnostics is not None:
        diagnostics.append(Diagnostic(
            phase="normalize",
            category=category,
            message=f"Unparseable {field} {raw_text!r}; stored as null",
        ))
    return normalized


# ===== EXPERIENCE =====

def normalize_experience(raw: Any, diagnostics: Optional[List[Diagnostic]] = None) -> ExperienceRecord:
    """
    Build a canonical ExperienceRecord from any raw value.

    - Object: keys resolved through EXPERIENCE_KEYS.
    - Bare string: treated as the role title.
    - Anything else: all defaults.

    is_current is set by an explicit current/ongoing flag, by an end date of
    "Present"/"Current"/"Now", or by a start date with no end date at all.
    A current entry never carries an end_date.
    """
    record = _to_mapping(raw)
    if record is None:
        title = _as_text(raw) if isinstance(raw, str) else None
        return ExperienceRecord(role_title=_clip(title) if title else DEFAULT_ROLE_TITLE)

    keys = EXPERIENCE_KEYS
    achievements = _first_bullets(record, keys["achievements"])
    org_candidates = _candidate_texts(record, keys["organization"])
    role_candidates = _candidate_texts(record, keys["role_title"])

    if org_candidates:
        organization = org_candidates[0]
    elif role_candidates and not achievements:
        organization = role_candidates[0]
    else:
        organization = DEFAULT_ORGANIZATION

    raw_start = _first_text(record, keys["start_date"])
    raw_end = _first_text(record, keys["end_date"])
    ended_present = is_present_marker(raw_end)
    if ended_present:
        raw_end = None

    explicit_current = any(_is_flag_set(record.get(key)) for key in keys["is_current"])
    is_current = explicit_current or ended_present or (raw_start is not None and raw_end is None)

    start_date = _normalize_date_field(raw_start, "start_date", "experiences", diagnostics)
    end_date = None if is_current else _normalize_date_field(raw_end, "end_date", "experiences", diagnostics)

    return ExperienceRecord(
        organization=_clip(organization),
        role_title=_clip(role_candidates[0]) if role_candidates else DEFAULT_ROLE_TITLE,
        section_label=_first_text(record, keys["section_label"]),
        location=_first_text(record, keys["location"]),
        start_date=start_date,
        end_date=end_date,
        is_current=is_current,
        summary=_first_text(record, keys["summary"]),
        achievements=achievements,
        skills=split_skill_strings(_first_present(record, keys["skills"])),
    )


# ===== EDUCATION =====

def normalize_education(raw: Any, diagnostics: Optional[List[Diagnostic]] = None) -> EducationRecord:
    """
    Build a canonical EducationRecord from any raw value.

    A bare string is read as lines: the first is the institution, the rest
    are achievements. When an object names no institution but has
    achievements, the first achievement becomes the institution (the
    school's heading line was filed as a bullet).
    """
    record = _to_mapping(raw)
    if record is None:
        text = _as_text(raw)
        lines = [part.strip() for part in LIST_DELIMITER_RE.split(text or "") if part.strip()]
        if not lines:
            return EducationRecord(institution=DEFAULT_INSTITUTION)
        return EducationRecord(institution=_clip(lines[0]), achievements=lines[1:])

    keys = EDUCATION_KEYS
    achievements = _first_bullets(record, keys["achievements"])
    institution = _first_text(record, keys["institution"])
    if institution is None and achievements:
        institution = achievements[0]

    return EducationRecord(
        institution=_clip(institution) if institution else DEFAULT_INSTITUTION,
        degree=_first_string_or_list(record, keys["degree"]),
        field_of_study=_first_string_or_list(record, keys["field_of_study"]),
        start_date=_normalize_date_field(_first_text(record, keys["start_date"]), "start_date", "education", diagnostics),
        end_date=_normalize_date_field(_first_text(record, keys["end_date"]), "end_date", "education", diagnostics),
        achievements=achievements,
    )


# ===== SKILLS =====

def normalize_skill_group(raw: Any) -> SkillGroupRecord:
    """One skill group from an object, a list, or a delimited string."""
    record = _to_mapping(raw)
    if record is None:
        return SkillGroupRecord(category=None, skills=split_skill_strings(raw))

    category = _first_text(record, SKILL_GROUP_KEYS["category"])
    raw_skills = None
    for key in SKILL_GROUP_KEYS["skills"]:
        if key in record:
            raw_skills = record.get(key)
            break
    return SkillGroupRecord(category=category, skills=split_skill_strings(raw_skills))


def _keep_group(group: SkillGroupRecord) -> bool:
    return bool(group.skills) or bool(group.category)


def normalize_skill_groups(raw: Any) -> List[SkillGroupRecord]:
    """
    Normalize the whole skills value of a response.

    Accepts a list of groups, a single group object, a category -> skills
    map ({"Languages": ["Python", "Go"], "Tools": "Git, Docker"}), or a bare
    string. Groups with neither skills nor a category are dropped.
    """
    if not raw:
        return []
    if isinstance(raw, (list, tuple)):
        groups = [normalize_skill_group(entry) for entry in raw]
        return [g for g in groups if _keep_group(g)]

    record = _to_mapping(raw)
    if record is not None:
        if any(key in record for key in SKILL_GROUP_MARKERS):
            group = normalize_skill_group(record)
            return [group] if _keep_group(group) else []
        logger.debug(f"Reading skills as a category map with {len(record)} categories")
        groups = [
            SkillGroupRecord(category=_as_text(category), skills=split_skill_strings(value))
            for category, value in record.items()
        ]
        return [g for g in groups if _keep_group(g)]

    group = normalize_skill_group(raw)
    return [group] if _keep_group(group) else []


# ===== CATEGORY ARRAYS =====

def normalize_experiences(raw: Any, diagnostics: Optional[List[Diagnostic]] = None) -> List[ExperienceRecord]:
    """The experiences value of a response: a list, a single object, or junk (-> [])."""
    if not raw:
        return []
    if isinstance(raw, (list, tuple)):
        return [normalize_experience(entry, diagnostics) for entry in raw]
    if _to_mapping(raw) is not None:
        return [normalize_experience(raw, diagnostics)]
    return []


def normalize_education_entries(raw: Any, diagnostics: Optional[List[Diagnostic]] = None) -> List[EducationRecord]:
    if not raw:
        return []
    if isinstance(raw, (list, tuple)):
        return [normalize_education(entry, diagnostics) for entry in raw]
    if _to_mapping(raw) is not None:
        return [normalize_education(raw, diagnostics)]
    return []
