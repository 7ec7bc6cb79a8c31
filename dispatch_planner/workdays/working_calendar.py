"""
Working-day calendar.

A date is non-working when it is the weekly rest day or a fixed holiday,
unless a company override says otherwise. Overrides are absolute:
``include`` always means working, ``exclude`` always means non-working.
"""
import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional

from dispatch_planner.datetime_utils import parse_date, to_date_key
from dispatch_planner.exceptions import CalendarIterationLimit, InvalidDateInput
from dispatch_planner.logging_config import get_logger
from dispatch_planner.workdays.holidays import FixedHolidayTable
from dispatch_planner.workdays.overrides import (
    CompanyCalendarService,
    HolidayOverride,
    OverrideAction,
    next_override_action,
)

logger = get_logger(__name__)

SUNDAY = 6  # date.weekday() numbering, Monday=0
FIXED_HOLIDAY_REASON = "Gazetted Holiday"
DEFAULT_MAX_ITERATIONS = 3650

ONE_DAY = timedelta(days=1)


@dataclass
class HolidayCount:
    """Non-working days found in a range, with the base reason for each."""
    count: int = 0
    holidays: List[Dict[str, Optional[str]]] = field(default_factory=list)

    def to_dict(self):
        return {'count': self.count, 'holidays': list(self.holidays)}


class WorkingCalendar:
    """Classifies dates as working/non-working and walks working days."""

    def __init__(
        self,
        holidays: Optional[FixedHolidayTable] = None,
        overrides: Optional[CompanyCalendarService] = None,
        weekly_rest_day: int = SUNDAY,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        if not 0 <= weekly_rest_day <= 6:
            raise ValueError(f"weekly_rest_day must be 0-6 (Monday=0). Got: {weekly_rest_day}")
        self.holidays = holidays if holidays is not None else FixedHolidayTable()
        self.overrides = overrides
        self.weekly_rest_day = weekly_rest_day
        self.max_iterations = max_iterations

    @property
    def weekly_rest_day_name(self) -> str:
        return calendar.day_name[self.weekly_rest_day]

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def is_weekly_rest_day(self, value) -> bool:
        return parse_date(value).weekday() == self.weekly_rest_day

    def is_fixed_holiday(self, value) -> bool:
        return self.holidays.contains(value)

    def is_base_non_working_day(self, value) -> bool:
        """Base rules only, ignoring overrides."""
        return self.is_weekly_rest_day(value) or self.is_fixed_holiday(value)

    def is_non_working_day(self, value) -> bool:
        """
        True if the date is not a working day.

        Override beats base: include -> working, exclude -> non-working,
        no override -> weekly rest day or fixed holiday.
        """
        d = parse_date(value)
        override = self.get_override_for_date(d)
        if override is OverrideAction.INCLUDE:
            return False
        if override is OverrideAction.EXCLUDE:
            return True
        return self.is_base_non_working_day(d)

    def is_working_day(self, value) -> bool:
        return not self.is_non_working_day(value)

    def get_restriction_reason(self, value) -> Optional[str]:
        """
        Base-rule reason for a date, e.g. "Sunday" or "Gazetted Holiday".

        Overrides are not reflected: an included Sunday still reports "Sunday",
        an excluded weekday reports None.
        """
        if self.is_weekly_rest_day(value):
            return self.weekly_rest_day_name
        if self.is_fixed_holiday(value):
            return FIXED_HOLIDAY_REASON
        return None

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    @staticmethod
    def _shift(start: date, current: date, step: timedelta) -> date:
        try:
            return current + step
        except OverflowError:
            raise InvalidDateInput(
                start.isoformat(),
                f"Walking from {start.isoformat()} runs past the supported date range",
            ) from None

    def _step_to_working_day(self, start: date, step: timedelta) -> date:
        current = self._shift(start, start, step)
        steps = 1
        while self.is_non_working_day(current):
            if steps >= self.max_iterations:
                raise CalendarIterationLimit(start.isoformat(), self.max_iterations)
            current = self._shift(start, current, step)
            steps += 1
        return current

    def next_working_day(self, value) -> date:
        return self._step_to_working_day(parse_date(value), ONE_DAY)

    def previous_working_day(self, value) -> date:
        return self._step_to_working_day(parse_date(value), -ONE_DAY)

    def _walk_working_days(self, value, working_days: int, step: timedelta) -> date:
        start = parse_date(value)
        if isinstance(working_days, bool) or not isinstance(working_days, int):
            raise InvalidDateInput(working_days, f"Working day count must be an integer. Got: {working_days!r}")
        if working_days < 0:
            raise InvalidDateInput(working_days, f"Working day count cannot be negative. Got: {working_days}")

        current = start
        counted = 0
        steps = 0
        while counted < working_days:
            current = self._shift(start, current, step)
            steps += 1
            if steps > self.max_iterations:
                raise CalendarIterationLimit(start.isoformat(), self.max_iterations)
            if not self.is_non_working_day(current):
                counted += 1
        return current

    def add_working_days(self, value, working_days: int) -> date:
        """
        Date that is ``working_days`` working days after ``value``.

        The start date is never counted, so the result is strictly later
        (for working_days > 0).
        """
        return self._walk_working_days(value, working_days, ONE_DAY)

    def subtract_working_days(self, value, working_days: int) -> date:
        """Mirror of add_working_days, walking backwards."""
        return self._walk_working_days(value, working_days, -ONE_DAY)

    # ------------------------------------------------------------------
    # Counting
    # ------------------------------------------------------------------

    def _iter_range(self, start, end):
        current = parse_date(start)
        last = parse_date(end)
        while current <= last:
            yield current
            if current == last:
                # date.max has no successor
                break
            current += ONE_DAY

    def count_working_days(self, start, end) -> int:
        """Working days between start and end, both inclusive."""
        return sum(1 for d in self._iter_range(start, end) if not self.is_non_working_day(d))

    def count_holidays_between(self, start, end) -> HolidayCount:
        """Non-working days between start and end, both inclusive."""
        holidays = [
            {'date': d.isoformat(), 'reason': self.get_restriction_reason(d)}
            for d in self._iter_range(start, end)
            if self.is_non_working_day(d)
        ]
        return HolidayCount(count=len(holidays), holidays=holidays)

    def restricted_dates_for_month(self, year: int, month: int) -> List[Dict[str, Optional[str]]]:
        """All non-working days in a calendar month, for the holiday manager view."""
        if not 1 <= month <= 12:
            raise InvalidDateInput(month, f"Month must be 1-12. Got: {month}")
        last_day = calendar.monthrange(year, month)[1]
        return self.count_holidays_between(date(year, month, 1), date(year, month, last_day)).holidays

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    def load_overrides(self, force_refresh: bool = False):
        if self.overrides is None:
            return {}
        return self.overrides.load(force_refresh=force_refresh)

    def get_override_for_date(self, value) -> Optional[OverrideAction]:
        if self.overrides is None:
            return None
        return self.overrides.get(value)

    def set_override(self, value, action=None, note: str = "") -> Optional[HolidayOverride]:
        if self.overrides is None:
            raise RuntimeError("This calendar has no override store configured")
        return self.overrides.set(value, action, note)

    def toggle_override(self, value, note: str = "") -> Optional[HolidayOverride]:
        """Advance a date one step through the holiday manager's click cycle."""
        key = to_date_key(value)
        current = self.get_override_for_date(key)
        next_action = next_override_action(current, self.is_base_non_working_day(key))
        logger.info(
            "Toggling calendar override",
            date=key,
            current=current.value if current else None,
            next=next_action.value if next_action else None,
        )
        return self.set_override(key, next_action, note)
