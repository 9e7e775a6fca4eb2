"""Tests for BusinessCalendar domain service."""

from datetime import UTC, date, datetime

import pytest

from buddyflow.domain.assignment.services.business_calendar import BusinessCalendar, Holiday

# Friday
FRIDAY = datetime(2026, 3, 6, 15, 30, tzinfo=UTC)


class TestBusinessCalendar:
    def test_skips_weekend(self) -> None:
        calendar = BusinessCalendar()
        assert calendar.add_business_days(FRIDAY, 1) == datetime(2026, 3, 9, 15, 30, tzinfo=UTC)
        assert calendar.add_business_days(FRIDAY, 5) == datetime(2026, 3, 13, 15, 30, tzinfo=UTC)

    def test_zero_days_is_identity(self) -> None:
        assert BusinessCalendar().add_business_days(FRIDAY, 0) == FRIDAY

    def test_negative_days_move_back(self) -> None:
        monday = datetime(2026, 3, 9, 8, 0, tzinfo=UTC)
        assert BusinessCalendar().add_business_days(monday, -1) == datetime(
            2026, 3, 6, 8, 0, tzinfo=UTC
        )

    def test_skips_holidays(self) -> None:
        calendar = BusinessCalendar(holidays=[Holiday("Founders day", date(2026, 3, 9))])
        assert calendar.add_business_days(FRIDAY, 1) == datetime(2026, 3, 10, 15, 30, tzinfo=UTC)
        assert not calendar.is_business_day(date(2026, 3, 9))

    def test_recurring_holiday_matches_any_year(self) -> None:
        holiday = Holiday("New year", date(2000, 1, 1), is_recurring=True)
        calendar = BusinessCalendar(holidays=[holiday])
        # 2027-01-01 is a Friday
        assert not calendar.is_business_day(date(2027, 1, 1))
        assert calendar.is_business_day(date(2027, 1, 4))

    def test_custom_working_week(self) -> None:
        calendar = BusinessCalendar(working_days={6, 0, 1, 2, 3})
        assert calendar.is_business_day(date(2026, 3, 8))
        assert not calendar.is_business_day(date(2026, 3, 6))

    def test_business_days_between(self) -> None:
        calendar = BusinessCalendar()
        assert calendar.business_days_between(date(2026, 3, 6), date(2026, 3, 13)) == 5

    @pytest.mark.parametrize("working_days", [set(), {7}])
    def test_invalid_working_days(self, working_days: set[int]) -> None:
        with pytest.raises(ValueError):
            BusinessCalendar(working_days=working_days)
