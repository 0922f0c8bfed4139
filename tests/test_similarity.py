import pytest

from resume_ingest.core.similarity import jaccard_overlap, string_similarity


def test_identical_strings():
    assert string_similarity("Google", "Google") == 1.0
    assert string_similarity("Google", "  google ") == 1.0


def test_empty_side_scores_zero():
    assert string_similarity("", "x") == 0.0
    assert string_similarity(None, "x") == 0.0


def test_containment_is_length_ratio():
    score = string_similarity("Google Inc", "Google")
    assert 0 < score <= 1
    assert score == pytest.approx(6 / 10)


def test_word_overlap():
    assert string_similarity("Data Engineer", "Software Engineer") == pytest.approx(1 / 3)
    assert string_similarity("Marketing", "Finance") == 0.0


@pytest.mark.parametrize(
    "a, b",
    [
        ("Acme Corp", "Acme"),
        ("Data Analyst", "Senior Data Analyst"),
        ("", "Globex"),
        ("State University", "University of State"),
        ("B.S.", "B.S., M.S."),
    ],
)
def test_symmetric(a, b):
    assert string_similarity(a, b) == string_similarity(b, a)


def test_jaccard_overlap_case_insensitive():
    assert jaccard_overlap(["Python", "SQL"], ["python", "sql", "Go"]) == pytest.approx(2 / 3)
    assert jaccard_overlap([], []) == 0.0
    assert jaccard_overlap(None, ["Go"]) == 0.0
