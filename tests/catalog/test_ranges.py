"""
Tests for date helpers and the range filter normalizer.
"""

from datetime import date, datetime, timezone

import pytest

from catalog.dates import add_days, is_before, parse_date, to_naive_utc
from catalog.models import DateRange
from catalog.ranges import author_date_filter, back_filter, default_range, normalize_range

NOW = datetime(2024, 5, 1, 12, 0, 0)


class TestDates:
    """Test cases for the date helpers."""

    def test_parse_iso_string(self):
        assert parse_date("2022-10-15") == datetime(2022, 10, 15)

    def test_parse_zulu_time(self):
        assert parse_date("2022-10-15T08:30:00.000Z") == datetime(2022, 10, 15, 8, 30)

    def test_parse_date_object(self):
        assert parse_date(date(2022, 10, 15)) == datetime(2022, 10, 15)

    def test_aware_datetime_converted_to_naive_utc(self):
        aware = datetime(2022, 10, 15, 10, 0, tzinfo=timezone.utc)
        assert to_naive_utc(aware) == datetime(2022, 10, 15, 10, 0)
        assert to_naive_utc(aware).tzinfo is None

    def test_add_days(self):
        assert add_days("2022-10-15") == datetime(2022, 10, 16)
        assert add_days("2022-12-31", 2) == datetime(2023, 1, 2)

    def test_is_before(self):
        assert is_before("2022-10-15", "2022-10-16")
        assert not is_before("2022-10-16", "2022-10-16")

    def test_invalid_date_raises(self):
        with pytest.raises(ValueError):
            parse_date("not a date")

    def test_slash_separated_dates_are_rejected(self):
        with pytest.raises(ValueError):
            parse_date("10/15/2022")


class TestNormalizeRange:
    """Test cases for normalize_range."""

    def test_pass_through_operators(self):
        result = normalize_range({"gt": "2000-01-01", "lte": "2010-01-01"})
        assert result == {"$gt": datetime(2000, 1, 1), "$lte": datetime(2010, 1, 1)}

    def test_equals_expands_to_day(self):
        """e becomes the half-open day [e, e + 1 day)."""
        result = normalize_range({"e": "2022-10-15"})
        assert result == {"$gte": datetime(2022, 10, 15), "$lt": datetime(2022, 10, 16)}

    def test_equals_replaces_other_keys(self):
        result = normalize_range({"e": "2022-10-15", "gt": "1990-01-01"})
        assert result == {"$gte": datetime(2022, 10, 15), "$lt": datetime(2022, 10, 16)}

    def test_equals_without_expansion(self):
        result = normalize_range({"e": "2030-01-01"}, expand_equals=False)
        assert result == {"$eq": datetime(2030, 1, 1)}

    def test_accepts_date_range_model(self):
        result = normalize_range(DateRange(lt="2000-01-01"))
        assert result == {"$lt": datetime(2000, 1, 1)}

    def test_default_range(self):
        assert normalize_range(default_range(NOW)) == {"$lte": NOW}


class TestAuthorDateFilter:
    """Test cases for author_date_filter."""

    def test_defaults(self):
        """Born up to now, and dead up to now or not dead."""
        query = author_date_filter(now=NOW)
        assert query == {
            "dateOfBirth": {"$lte": NOW},
            "$or": [{"dateOfDeath": {"$lte": NOW}}, {"dateOfDeath": None}],
        }

    def test_death_filter_drops_absent_branch(self):
        query = author_date_filter(date_of_death={"lt": "1950-01-01"}, now=NOW)
        assert query["dateOfDeath"] == {"$lt": datetime(1950, 1, 1)}
        assert "$or" not in query

    def test_birth_day_range(self):
        query = author_date_filter(date_of_birth={"e": "1920-01-02"}, now=NOW)
        assert query["dateOfBirth"] == {"$gte": datetime(1920, 1, 2), "$lt": datetime(1920, 1, 3)}

    def test_empty_death_filter_requires_death_date(self):
        query = author_date_filter(date_of_death=DateRange(), now=NOW)
        assert query["dateOfDeath"] == {"$ne": None}


class TestBackFilter:
    """Test cases for back_filter."""

    def test_no_default(self):
        assert back_filter(None) == {}

    def test_exact_date(self):
        assert back_filter({"e": "2030-01-01"}) == {"back": {"$eq": datetime(2030, 1, 1)}}

    def test_operators_pass_through(self):
        assert back_filter({"gte": "2030-01-01"}) == {"back": {"$gte": datetime(2030, 1, 1)}}
