"""
Resume text -> ParsedResumeBatch.

Three phases, always run to completion:

1. AI: one completion request, JSON parsed, every category normalized on its
   own so a malformed "skills" value cannot cost the experiences.
2. Fallback: experiences and education that came back empty are rebuilt by
   the deterministic line parsers.
3. Consolidation: intra-batch duplicates are merged.

Failures along the way become Diagnostics on the outcome; parse_resume_text
itself never raises.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from resume_ingest.core.config import settings
from resume_ingest.core.dedup import (
    deduplicate_education,
    deduplicate_experiences,
    deduplicate_skill_groups,
)
from resume_ingest.core.education_parser import extract_education_from_text
from resume_ingest.core.errors import CompletionError
from resume_ingest.core.field_normalizer import (
    normalize_education_entries,
    normalize_experiences,
    normalize_skill_groups,
)
from resume_ingest.core.line_parser import extract_experiences_from_text
from resume_ingest.core.llm_client import CompletionClient, extract_json
from resume_ingest.core.schemas import Category, Diagnostic, ParseOutcome

logger = logging.getLogger(__name__)


_PROMPT_EXAMPLE = {
    "experiences": [
        {
            "organization": "Company Name",
            "role_title": "Job Title",
            "section_label": "Experience",
            "location": "City, State",
            "start_date": "Month Year",
            "end_date": "Month Year",
            "is_current": False,
            "achievements": ["Achievement 1", "Achievement 2"],
            "skills": [],
        }
    ],
    "education": [
        {
            "institution": "University Name",
            "degree": "B.S. in Computer Science",
            "field_of_study": "Computer Science",
            "start_date": None,
            "end_date": "Year",
            "achievements": ["GPA: 3.8", "Relevant Coursework: ..."],
        }
    ],
    "skills": [
        {"category": "Programming", "skills": ["Python", "JavaScript"]},
    ],
}

SYSTEM_PROMPT = "\n".join([
    "You are an expert resume parser. Extract experiences, education, and skills into separate arrays.",
    "",
    "CATEGORIES:",
    "- experiences: work, internships, jobs, projects, leadership roles, club positions, research,",
    "  volunteering, activities and competitions. Each needs organization, role_title, dates and",
    "  achievements (all bullets).",
    "- education: ONLY schools, universities and colleges, with degree, field_of_study and",
    "  achievements (GPA, coursework, honors).",
    "- skills: technical skills, programming languages, tools and software, grouped by category.",
    "",
    "RULES:",
    "- Work experiences and projects go in 'experiences', NOT 'education'.",
    "- Extract EVERY entry from the resume.",
    "- Include ALL bullet points as separate strings.",
    "- Each achievement is a COMPLETE bullet point. Do NOT split a bullet on commas.",
    "- Preserve the text of each bullet exactly as written.",
    "- Use null for unknown dates. Use \"Present\" as end_date for ongoing roles.",
    "",
    "Output ONLY valid JSON shaped like:",
    json.dumps(_PROMPT_EXAMPLE, indent=2),
])

USER_PROMPT_TEMPLATE = "Parse this resume and extract all experiences, education, and skills:\n\n{text}"

# Prefix of a bad completion kept in the logs
LOG_PREVIEW_CHARS = 200


def _diag(diagnostics: List[Diagnostic], phase, message: str, category: Optional[Category] = None, level="warning"):
    diagnostics.append(Diagnostic(phase=phase, category=category, level=level, message=message))


# ===== PHASE 1: AI =====

def _request_payload(text: str, client: Optional[CompletionClient], diagnostics: List[Diagnostic]) -> Optional[Dict[str, Any]]:
    """Run the completion and parse it. None means every category falls through to phase 2."""
    if client is None:
        _diag(diagnostics, "ai", "AI extraction unavailable; using deterministic extraction", level="info")
        return None
    if not text.strip():
        _diag(diagnostics, "ai", "Empty resume text; nothing to send", level="info")
        return None

    if len(text) > settings.max_resume_chars:
        _diag(diagnostics, "ai", f"Resume text truncated to {settings.max_resume_chars} characters", level="info")
        text = text[: settings.max_resume_chars]

    try:
        raw = client.complete(SYSTEM_PROMPT, USER_PROMPT_TEMPLATE.format(text=text))
    except CompletionError as e:
        logger.warning(f"AI extraction failed, using fallback: {e}")
        _diag(diagnostics, "ai", f"Completion failed: {e}")
        return None
    except Exception as e:
        logger.warning(f"AI extraction raised {type(e).__name__}, using fallback: {e}")
        _diag(diagnostics, "ai", f"Completion failed: {type(e).__name__}: {e}")
        return None

    try:
        payload = extract_json(raw)
    except (json.JSONDecodeError, ValueError, TypeError, RecursionError) as e:
        logger.warning(f"AI response is not a JSON object ({e}); starts with {str(raw)[:LOG_PREVIEW_CHARS]!r}")
        _diag(diagnostics, "ai", f"Unparseable AI response: {e}")
        return None

    logger.debug(f"AI response keys: {sorted(payload)}")
    return payload


def _normalize_category(
    category: Category,
    normalizer: Callable[..., list],
    raw: Any,
    diagnostics: List[Diagnostic],
) -> list:
    try:
        if category == "skills":
            return normalizer(raw)
        return normalizer(raw, diagnostics)
    except Exception as e:
        logger.warning(f"Could not normalize AI {category}: {type(e).__name__}: {e}")
        _diag(diagnostics, "normalize", f"Discarded AI {category}: {type(e).__name__}: {e}", category=category)
        return []


# ===== PHASE 2: FALLBACK =====

def _run_fallback(
    category: Category,
    extractor: Callable[[str], List[Dict[str, Any]]],
    normalizer: Callable[..., list],
    text: str,
    diagnostics: List[Diagnostic],
) -> list:
    logger.info(f"Using fallback parser for {category}")
    try:
        records = normalizer(extractor(text), diagnostics)
    except Exception as e:
        logger.warning(f"Fallback {category} extraction failed: {type(e).__name__}: {e}")
        _diag(diagnostics, "fallback", f"Fallback extraction failed: {type(e).__name__}: {e}", category=category)
        return []
    _diag(
        diagnostics,
        "fallback",
        f"Deterministic extraction produced {len(records)} {category} record(s)",
        category=category,
        level="info",
    )
    return records


# ===== ORCHESTRATION =====

def parse_resume_text(raw_text: str, client: Optional[CompletionClient] = None) -> ParseOutcome:
    """
    Extract experiences, education and skills from plain resume text.

    'client' is the completion provider; None skips straight to the
    deterministic path. The result is always a valid batch, possibly with
    empty lists, plus the diagnostics collected on the way.
    """
    text = raw_text if isinstance(raw_text, str) else ""
    outcome = ParseOutcome()
    diagnostics = outcome.diagnostics
    batch = outcome.batch

    # Phase 1
    payload = _request_payload(text, client, diagnostics)
    if payload is not None:
        batch.experiences = _normalize_category("experiences", normalize_experiences, payload.get("experiences"), diagnostics)
        batch.education = _normalize_category("education", normalize_education_entries, payload.get("education"), diagnostics)
        batch.skills = _normalize_category("skills", normalize_skill_groups, payload.get("skills"), diagnostics)
        for category in ("experiences", "education", "skills"):
            if getattr(batch, category):
                outcome.sources[category] = "ai"
        logger.info(
            f"AI extracted {len(batch.experiences)} experiences, {len(batch.education)} education, "
            f"{len(batch.skills)} skill groups"
        )

    # Phase 2
    if not batch.experiences:
        batch.experiences = _run_fallback(
            "experiences", extract_experiences_from_text, normalize_experiences, text, diagnostics
        )
        if batch.experiences:
            outcome.sources["experiences"] = "fallback"
    if not batch.education:
        batch.education = _run_fallback(
            "education", extract_education_from_text, normalize_education_entries, text, diagnostics
        )
        if batch.education:
            outcome.sources["education"] = "fallback"

    # Phase 3
    for category, dedupe in (
        ("experiences", deduplicate_experiences),
        ("education", deduplicate_education),
        ("skills", deduplicate_skill_groups),
    ):
        before = getattr(batch, category)
        after = dedupe(before)
        if len(after) < len(before):
            _diag(
                diagnostics,
                "consolidate",
                f"Merged {len(before) - len(after)} duplicate {category} record(s)",
                category=category,
                level="info",
            )
        setattr(batch, category, after)

    logger.debug(f"Parse finished with sources {outcome.sources} and {len(diagnostics)} diagnostics")
    return outcome
