"""Tests for freeform date normalization and date-range detection."""

import pytest

from resume_ingest.core.dates import find_date_range, is_present_marker, normalize_date


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("June 2025", "2025-06-01"),
        ("Jun 2025", "2025-06-01"),
        ("Sept 2019", "2019-09-01"),
        ("Sep. 2019", "2019-09-01"),
        ("december 2020", "2020-12-01"),
        ("2025", "2025-01-01"),
        ("08/2023", "2023-08-01"),
        ("8-2023", "2023-08-01"),
        ("2025-06-01", "2025-06-01"),
        ("March 5, 2024", "2024-03-05"),
        ("06/05/2025", "2025-06-05"),
    ],
)
def test_normalize_date_formats(raw, expected):
    assert normalize_date(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["13/2025", "", "   ", "Present", "sometime soon", "1850", "Smarch 2020", "00/2020"],
)
def test_normalize_date_rejects(raw):
    assert normalize_date(raw) is None


def test_normalize_date_non_string_input():
    assert normalize_date(None) is None
    assert normalize_date(2025) is None


@pytest.mark.parametrize(
    "raw",
    ["June 2025", "2025", "08/2023", "2025-06-01", "13/2025", "", "garbage", "March 5, 2024"],
)
def test_normalize_date_is_idempotent(raw):
    once = normalize_date(raw)
    assert normalize_date(once) == once


def test_unparseable_date_logs_warning(caplog):
    with caplog.at_level("WARNING"):
        assert normalize_date("the summer") is None
    assert "the summer" in caplog.text


def test_present_markers():
    assert is_present_marker("Present")
    assert is_present_marker(" current ")
    assert is_present_marker("Now")
    assert not is_present_marker("Aug 2024")
    assert not is_present_marker(None)


class TestFindDateRange:

    def test_month_year_range(self):
        start, end, is_current, _ = find_date_range("Acme - Intern Jun 2024 - Aug 2024 NYC")
        assert (start, end, is_current) == ("Jun 2024", "Aug 2024", False)

    def test_present_range_with_span(self):
        found = find_date_range("Acme - Intern Jun 2024 – Present")
        assert found == ("Jun 2024", None, True, (14, 32))

    def test_numeric_and_year_ranges(self):
        assert find_date_range("06/2021 – 05/2022")[:3] == ("06/2021", "05/2022", False)
        assert find_date_range("State University 2019 - 2023")[:3] == ("2019", "2023", False)
        assert find_date_range("Jan 2020 to Current")[:3] == ("Jan 2020", None, True)

    def test_no_range(self):
        assert find_date_range("Built the billing dashboard") is None
        assert find_date_range("Founded in 2019") is None
