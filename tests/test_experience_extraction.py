"""Tests for the deterministic experience fallback (line_parser)."""

from resume_ingest.core.field_normalizer import normalize_experiences
from resume_ingest.core.line_parser import extract_experiences_from_text


SAMPLE_RESUME = """EXPERIENCE
Acme Corp - Software Intern Jun 2024 - Aug 2024 New York,NY
• Built the billing dashboard
• Cut page load time by 40%, measured in production
"""


def test_strict_entry_with_bullets():
    """Heading, dated entry line, two bullets -> one entry with raw dates."""
    entries = extract_experiences_from_text(SAMPLE_RESUME)
    assert len(entries) == 1
    entry = entries[0]
    assert entry["organization"] == "Acme Corp"
    assert entry["role_title"] == "Software Intern"
    assert entry["start_date"] == "Jun 2024"
    assert entry["end_date"] == "Aug 2024"
    assert entry["location"] == "New York,NY"
    assert entry["section_label"] == "Experience"
    assert entry["achievements"] == [
        "Built the billing dashboard",
        "Cut page load time by 40%, measured in production",
    ]


def test_normalized_fallback_record():
    """Fallback output runs through the same normalizer as model output."""
    record = normalize_experiences(extract_experiences_from_text(SAMPLE_RESUME))[0]
    assert record.organization == "Acme Corp"
    assert record.role_title == "Software Intern"
    assert record.start_date == "2024-06-01"
    assert record.end_date == "2024-08-01"
    assert record.is_current is False
    assert record.location == "New York,NY"
    assert len(record.achievements) == 2


def test_present_range_with_pipe_separator():
    entries = extract_experiences_from_text(
        "WORK EXPERIENCE\nGlobex | Data Analyst Jan 2023 – Present Austin, TX\n- Automated weekly reporting"
    )
    assert len(entries) == 1
    entry = entries[0]
    assert entry["organization"] == "Globex"
    assert entry["role_title"] == "Data Analyst"
    assert entry["is_current"] is True
    assert entry["end_date"] is None
    assert entry["location"] == "Austin, TX"
    assert entry["section_label"] == "Work Experience"


def test_loose_entry_with_dates_on_next_line():
    text = "\n".join([
        "P R O J E C T S",
        "Robotics Club - Team Lead",
        "Sep 2021 - May 2022",
        "San Jose, CA",
        "- Built a sorting robot, tested at regionals",
    ])
    entries = extract_experiences_from_text(text)
    assert len(entries) == 1
    entry = entries[0]
    assert entry["organization"] == "Robotics Club"
    assert entry["role_title"] == "Team Lead"
    assert entry["start_date"] == "Sep 2021"
    assert entry["end_date"] == "May 2022"
    assert entry["location"] == "San Jose, CA"
    assert entry["section_label"] == "Projects"
    assert entry["achievements"] == ["Built a sorting robot, tested at regionals"]


def test_hyphenated_organization_stays_whole():
    entries = extract_experiences_from_text("EXPERIENCE\nCoca-Cola - Marketing Intern Jun 2022 - Aug 2022")
    assert entries[0]["organization"] == "Coca-Cola"
    assert entries[0]["role_title"] == "Marketing Intern"


def test_blank_line_and_new_entry_flush():
    text = "\n".join([
        "EXPERIENCE",
        "Acme - Intern Jun 2023 - Aug 2023",
        "• Wrote tests",
        "Globex - Engineer Sep 2023 - Present",
        "• Shipped features",
        "",
        "Some stray trailing line that is long enough",
    ])
    entries = extract_experiences_from_text(text)
    assert [e["organization"] for e in entries] == ["Acme", "Globex"]
    assert entries[0]["achievements"] == ["Wrote tests"]
    assert entries[1]["achievements"] == ["Shipped features"]


def test_numbered_bullets_with_dashes_stay_achievements():
    text = "\n".join([
        "EXPERIENCE",
        "Acme Corp - Software Intern Jun 2024 - Aug 2024 New York,NY",
        "1. Built the billing API - Python and Flask",
        "2. Wrote integration tests for checkout",
    ])
    entries = extract_experiences_from_text(text)
    assert len(entries) == 1
    assert entries[0]["organization"] == "Acme Corp"
    assert entries[0]["achievements"] == [
        "Built the billing API - Python and Flask",
        "Wrote integration tests for checkout",
    ]


def test_unmarked_continuation_text_is_kept():
    text = "\n".join([
        "EXPERIENCE",
        "Acme - Intern Jun 2023 - Aug 2023",
        "Partnered with sales to redesign onboarding for new customers",
        "SHORT CAPS LINE",
    ])
    entries = extract_experiences_from_text(text)
    assert entries[0]["achievements"] == ["Partnered with sales to redesign onboarding for new customers"]


def test_other_sections_close_experience():
    text = "\n".join([
        "EXPERIENCE",
        "Acme - Intern Jun 2024 - Aug 2024",
        "• Did a thing well",
        "SKILLS",
        "Python, SQL, Docker and more tooling",
        "Programming - Python and friends",
    ])
    entries = extract_experiences_from_text(text)
    assert len(entries) == 1
    assert entries[0]["achievements"] == ["Did a thing well"]


def test_education_section_lines_are_not_experiences():
    text = "EDUCATION\nState University - BS Computer Science 2019 - 2023\n"
    assert extract_experiences_from_text(text) == []


def test_strict_entry_accepted_before_any_heading():
    entries = extract_experiences_from_text("Acme Corp - Intern Jun 2024 - Aug 2024\n• Did X well")
    assert len(entries) == 1
    assert entries[0]["section_label"] is None


def test_loose_entry_needs_experience_section():
    assert extract_experiences_from_text("Jane Doe - Software Engineer\njane@example.com") == []


def test_empty_text():
    assert extract_experiences_from_text("") == []
    assert extract_experiences_from_text(None) == []
