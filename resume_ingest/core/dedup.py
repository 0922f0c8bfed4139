"""
Duplicate detection and merging for parsed records.

Two uses share the same predicates:

- intra-batch consolidation: duplicates inside one parse result are merged
  (deduplicate_experiences / deduplicate_education / deduplicate_skill_groups)
- cross-batch filtering: new records that duplicate an already stored record
  are dropped, never merged (filter_new_* / filter_batch_against_existing)

Predicates accept full records, the Existing* views, or plain mappings with
the same keys, since stored records usually arrive as partial rows.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from resume_ingest.core.schemas import (
    Category,
    EducationRecord,
    ExperienceRecord,
    ParsedResumeBatch,
    SkillGroupRecord,
)
from resume_ingest.core.similarity import jaccard_overlap, string_similarity

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ===== THRESHOLDS =====

EXPERIENCE_ORG_THRESHOLD = 0.8
EXPERIENCE_ROLE_THRESHOLD = 0.8
EXPERIENCE_SAME_ORG_THRESHOLD = 0.9
EXPERIENCE_START_DATE_THRESHOLD = 0.7

EDUCATION_INSTITUTION_THRESHOLD = 0.85
EDUCATION_DETAIL_THRESHOLD = 0.7

SKILL_OVERLAP_THRESHOLD = 0.7

# Trailing words dropped before comparing organizations: "Acme Corp" ~ "Acme"
LEGAL_SUFFIXES = frozenset({
    "inc", "incorporated", "corp", "corporation", "co", "company",
    "llc", "llp", "ltd", "limited", "plc", "gmbh", "ag", "sa", "group",
})

_ORG_PUNCT_RE = re.compile(r"[.,]")


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _joined(value: Any) -> str:
    """Degree / field of study as one comparable string ("BS, MS" for lists)."""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value if v and str(v).strip())
    if value is None:
        return ""
    return str(value).strip()


def canonical_organization(name: Optional[str]) -> str:
    """
    Lowercased organization name without punctuation or trailing legal suffixes.

    "Acme Corp." -> "acme"
    "Acme Co, LLC" -> "acme"
    "Company" -> "company"   (a lone suffix is kept)
    """
    words = _ORG_PUNCT_RE.sub(" ", (name or "").lower()).split()
    stripped = list(words)
    while len(stripped) > 1 and stripped[-1] in LEGAL_SUFFIXES:
        stripped.pop()
    return " ".join(stripped)


def organization_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Best of the raw score and the score on canonical names."""
    raw = string_similarity(a, b)
    canon_a, canon_b = canonical_organization(a), canonical_organization(b)
    if not canon_a or not canon_b:
        return raw
    return max(raw, string_similarity(canon_a, canon_b))


# ===== PREDICATES =====

def are_experiences_duplicate(a: Any, b: Any) -> bool:
    """
    Same organization and role, or same organization and start date.

    - org > 0.8 and role > 0.8
    - org > 0.9 and both start dates present with similarity > 0.7
    """
    org_sim = organization_similarity(_field(a, "organization"), _field(b, "organization"))
    role_sim = string_similarity(_field(a, "role_title"), _field(b, "role_title"))
    if org_sim > EXPERIENCE_ORG_THRESHOLD and role_sim > EXPERIENCE_ROLE_THRESHOLD:
        return True

    start_a = _field(a, "start_date")
    start_b = _field(b, "start_date")
    if org_sim > EXPERIENCE_SAME_ORG_THRESHOLD and start_a and start_b:
        return string_similarity(start_a, start_b) > EXPERIENCE_START_DATE_THRESHOLD
    return False


def are_education_duplicate(a: Any, b: Any) -> bool:
    """
    Same institution plus a matching degree or field of study.

    Two entries at the same institution with no degree and no field on
    either side are the same entry.
    """
    inst_sim = string_similarity(_field(a, "institution"), _field(b, "institution"))
    if inst_sim <= EDUCATION_INSTITUTION_THRESHOLD:
        return False

    degree_a, degree_b = _joined(_field(a, "degree")), _joined(_field(b, "degree"))
    field_a, field_b = _joined(_field(a, "field_of_study")), _joined(_field(b, "field_of_study"))

    if degree_a and degree_b and string_similarity(degree_a, degree_b) > EDUCATION_DETAIL_THRESHOLD:
        return True
    if field_a and field_b and string_similarity(field_a, field_b) > EDUCATION_DETAIL_THRESHOLD:
        return True
    return not (degree_a or degree_b or field_a or field_b)


def is_skill_group_duplicate(a: Any, b: Any) -> bool:
    """Same category (case-insensitive) and skill sets overlapping by more than 70%."""
    if string_similarity(_field(a, "category"), _field(b, "category")) < 1.0:
        return False
    return jaccard_overlap(_field(a, "skills"), _field(b, "skills")) > SKILL_OVERLAP_THRESHOLD


# ===== MERGE =====

def _union(*lists: Optional[Sequence[str]]) -> List[str]:
    """Order-preserving union, exact-match dedup only."""
    seen = set()
    out: List[str] = []
    for items in lists:
        for item in items or []:
            if item not in seen:
                seen.add(item)
                out.append(item)
    return out


def _as_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [v for v in value if v]
    return [value] if value else []


def _string_or_list_union(a: Any, b: Any):
    merged = _union(_as_list(a), _as_list(b))
    if not merged:
        return None
    if len(merged) == 1:
        return merged[0]
    return merged


def merge_experiences(a: ExperienceRecord, b: ExperienceRecord) -> ExperienceRecord:
    """Left-biased scalars, unioned achievements and skills."""
    is_current = a.is_current or b.is_current
    return ExperienceRecord(
        organization=a.organization or b.organization,
        role_title=a.role_title or b.role_title,
        section_label=a.section_label or b.section_label,
        location=a.location or b.location,
        start_date=a.start_date or b.start_date,
        end_date=None if is_current else (a.end_date or b.end_date),
        is_current=is_current,
        summary=a.summary or b.summary,
        achievements=_union(a.achievements, b.achievements),
        skills=_union(a.skills, b.skills),
    )


def merge_education(a: EducationRecord, b: EducationRecord) -> EducationRecord:
    return EducationRecord(
        institution=a.institution or b.institution,
        degree=_string_or_list_union(a.degree, b.degree),
        field_of_study=_string_or_list_union(a.field_of_study, b.field_of_study),
        start_date=a.start_date or b.start_date,
        end_date=a.end_date or b.end_date,
        achievements=_union(a.achievements, b.achievements),
    )


def merge_skill_groups(a: SkillGroupRecord, b: SkillGroupRecord) -> SkillGroupRecord:
    return SkillGroupRecord(category=a.category or b.category, skills=_union(a.skills, b.skills))


# ===== INTRA-BATCH =====

def deduplicate(
    records: Sequence[T],
    is_duplicate: Callable[[T, T], bool],
    merge: Callable[[T, T], T],
) -> List[T]:
    """
    Single-pass pairwise consolidation.

    Each unprocessed record i accumulates every later unprocessed record j
    that the predicate matches against the running merge, then is emitted.
    """
    processed = [False] * len(records)
    out: List[T] = []
    for i, record in enumerate(records):
        if processed[i]:
            continue
        merged = record
        for j in range(i + 1, len(records)):
            if processed[j]:
                continue
            if is_duplicate(merged, records[j]):
                merged = merge(merged, records[j])
                processed[j] = True
        processed[i] = True
        out.append(merged)
    return out


def deduplicate_experiences(records: Sequence[ExperienceRecord]) -> List[ExperienceRecord]:
    return deduplicate(records, are_experiences_duplicate, merge_experiences)


def deduplicate_education(records: Sequence[EducationRecord]) -> List[EducationRecord]:
    return deduplicate(records, are_education_duplicate, merge_education)


def deduplicate_skill_groups(records: Sequence[SkillGroupRecord]) -> List[SkillGroupRecord]:
    return deduplicate(records, is_skill_group_duplicate, merge_skill_groups)


# ===== CROSS-BATCH =====

def _filter_new(new: Sequence[T], existing: Sequence[Any], is_duplicate: Callable[[Any, Any], bool]) -> List[T]:
    return [record for record in new if not any(is_duplicate(record, old) for old in existing)]


def filter_new_experiences(new: Sequence[ExperienceRecord], existing: Sequence[Any]) -> List[ExperienceRecord]:
    """New experiences with no duplicate among the stored ones. Nothing is merged."""
    return _filter_new(new, existing, are_experiences_duplicate)


def filter_new_education(new: Sequence[EducationRecord], existing: Sequence[Any]) -> List[EducationRecord]:
    return _filter_new(new, existing, are_education_duplicate)


def filter_new_skill_groups(new: Sequence[SkillGroupRecord], existing: Sequence[Any]) -> List[SkillGroupRecord]:
    return _filter_new(new, existing, is_skill_group_duplicate)


def filter_batch_against_existing(
    batch: ParsedResumeBatch,
    existing_experiences: Sequence[Any] = (),
    existing_education: Sequence[Any] = (),
    existing_skills: Sequence[Any] = (),
) -> Tuple[ParsedResumeBatch, Dict[Category, int]]:
    """
    Drop every record of the batch that is already stored.

    Returns the filtered batch and how many records were dropped per category.
    """
    experiences = filter_new_experiences(batch.experiences, existing_experiences)
    education = filter_new_education(batch.education, existing_education)
    skills = filter_new_skill_groups(batch.skills, existing_skills)

    dropped: Dict[Category, int] = {
        "experiences": len(batch.experiences) - len(experiences),
        "education": len(batch.education) - len(education),
        "skills": len(batch.skills) - len(skills),
    }
    logger.info(f"Cross-batch filter dropped {dropped}")
    return ParsedResumeBatch(experiences=experiences, education=education, skills=skills), dropped
