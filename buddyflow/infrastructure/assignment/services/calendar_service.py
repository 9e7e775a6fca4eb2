"""Business calendar backed by settings and the holidays table."""

from collections.abc import Iterable
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from buddyflow.domain.assignment.services.business_calendar import BusinessCalendar, Holiday
from buddyflow.models import Holiday as HolidayORM


class CalendarService:
    """
    Adds business days using the configured working week.

    Holidays come from two places: dates listed in settings and rows in the
    holidays table. Rows are read once, when the service is built.
    """

    def __init__(
        self,
        db: Session,
        working_days: Iterable[int],
        holidays: Iterable[date] = (),
    ) -> None:
        configured = [Holiday(name="configured", day=day) for day in holidays]
        self.calendar = BusinessCalendar(working_days, [*configured, *self._load_holidays(db)])

    def add_business_days(self, start: datetime, days: int) -> datetime:
        return self.calendar.add_business_days(start, days)

    def is_business_day(self, day: date) -> bool:
        return self.calendar.is_business_day(day)

    @staticmethod
    def _load_holidays(db: Session) -> list[Holiday]:
        rows = db.execute(select(HolidayORM).order_by(HolidayORM.day)).scalars().all()
        return [Holiday(name=r.name, day=r.day, is_recurring=r.is_recurring) for r in rows]
