"""
Stage planning module.

Backward planning from a dispatch date, forward re-projection from an edited
stage date, dispatch date validation and the holiday advisory. All dates come
from the injected WorkingCalendar; the planner itself holds no state.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from dispatch_planner.datetime_utils import (
    days_between,
    end_of_day,
    format_display_date,
    parse_date,
    to_iso,
)
from dispatch_planner.exceptions import InvalidDateInput
from dispatch_planner.logging_config import get_logger
from dispatch_planner.planning.config import PlanningConfig
from dispatch_planner.workdays.working_calendar import WorkingCalendar

logger = get_logger(__name__)

COMPANY_HOLIDAY_REASON = "Company Holiday"


@dataclass
class StageDueDateSet:
    """Due dates for every stage, each at end of day."""
    store1_due_date: datetime
    cable_production_due_date: datetime
    store2_due_date: datetime
    moulding_due_date: datetime
    fg_section_due_date: datetime
    dispatch_date: datetime
    use_working_days: bool = True
    is_urgent_dispatch: bool = False

    def for_stage(self, stage: str) -> datetime:
        return {
            PlanningConfig.STORE1: self.store1_due_date,
            PlanningConfig.CABLE_PRODUCTION: self.cable_production_due_date,
            PlanningConfig.STORE2: self.store2_due_date,
            PlanningConfig.MOULDING: self.moulding_due_date,
            PlanningConfig.FG_SECTION: self.fg_section_due_date,
            PlanningConfig.DISPATCH: self.dispatch_date,
        }[stage]

    def ordered(self) -> List[datetime]:
        return [self.for_stage(stage) for stage in PlanningConfig.STAGE_ORDER]

    def to_dict(self) -> Dict[str, Any]:
        """Field names as stored on the Dispatch and PO records."""
        result = {
            PlanningConfig.STAGE_DUE_DATE_FIELDS[stage]: to_iso(self.for_stage(stage))
            for stage in PlanningConfig.STAGE_ORDER
        }
        result['useWorkingDays'] = self.use_working_days
        result['isUrgentDispatch'] = self.is_urgent_dispatch
        return result


@dataclass
class ValidationResult:
    is_valid: bool
    message: str

    def __bool__(self):
        return self.is_valid

    def to_dict(self):
        return {'isValid': self.is_valid, 'message': self.message}


@dataclass
class HolidayAdvisory:
    """Non-blocking holiday impact report. can_proceed=False rejects the date for normal flow."""
    has_holidays: bool
    can_proceed: bool
    original_date: date
    suggested_date: date
    message: str
    holiday_count: int = 0
    holidays: List[Dict[str, Optional[str]]] = field(default_factory=list)

    def to_dict(self):
        return {
            'hasHolidays': self.has_holidays,
            'canProceed': self.can_proceed,
            'holidayCount': self.holiday_count,
            'holidays': list(self.holidays),
            'originalDate': to_iso(self.original_date),
            'suggestedDate': to_iso(self.suggested_date),
            'message': self.message,
        }


def _plural(count: int) -> str:
    return 's' if count > 1 else ''


class StagePlanner:
    """Computes stage due dates against a WorkingCalendar."""

    def __init__(self, calendar: WorkingCalendar, today: Optional[Callable[[], date]] = None):
        self.calendar = calendar
        self.today = today or date.today

    def _today(self) -> date:
        return parse_date(self.today())

    def _reason(self, value) -> str:
        # Excluded weekdays have no base reason
        return self.calendar.get_restriction_reason(value) or COMPANY_HOLIDAY_REASON

    def _describe_holidays(self, holidays) -> str:
        return ', '.join(
            f"{format_display_date(h['date'])} ({h['reason'] or COMPANY_HOLIDAY_REASON})"
            for h in holidays
        )

    # ------------------------------------------------------------------
    # Backward planning
    # ------------------------------------------------------------------

    def plan_from_dispatch_date(
        self,
        dispatch_date,
        order_type: str = PlanningConfig.DEFAULT_ORDER_TYPE,
        use_working_days: bool = True,
        is_urgent: bool = False,
    ) -> StageDueDateSet:
        """
        Calculate due dates for all stages working back from the dispatch date.

        Args:
            dispatch_date: Target dispatch date (D)
            order_type: 'POWER_CORD' or 'CABLE_ONLY'. Accepted for the surrounding
                workflow; it does not change the offsets.
            use_working_days: Skip non-working days (False = plain calendar days)
            is_urgent: Collapse every stage onto the dispatch date

        Returns:
            StageDueDateSet

        Raises:
            InvalidDateInput: If dispatch_date cannot be parsed
        """
        d = parse_date(dispatch_date)
        dispatch_eod = end_of_day(d)

        if is_urgent:
            logger.info("Urgent dispatch planned", dispatch_date=d.isoformat(), order_type=order_type)
            return StageDueDateSet(
                store1_due_date=dispatch_eod,
                cable_production_due_date=dispatch_eod,
                store2_due_date=dispatch_eod,
                moulding_due_date=dispatch_eod,
                fg_section_due_date=dispatch_eod,
                dispatch_date=dispatch_eod,
                use_working_days=use_working_days,
                is_urgent_dispatch=True,
            )

        def stage_due(stage):
            offset = PlanningConfig.STAGE_OFFSETS[stage]
            if use_working_days:
                return end_of_day(self.calendar.subtract_working_days(d, offset))
            return end_of_day(d - timedelta(days=offset))

        due_dates = StageDueDateSet(
            store1_due_date=stage_due(PlanningConfig.STORE1),
            cable_production_due_date=stage_due(PlanningConfig.CABLE_PRODUCTION),
            store2_due_date=stage_due(PlanningConfig.STORE2),
            moulding_due_date=stage_due(PlanningConfig.MOULDING),
            fg_section_due_date=stage_due(PlanningConfig.FG_SECTION),
            dispatch_date=dispatch_eod,
            use_working_days=use_working_days,
            is_urgent_dispatch=False,
        )
        logger.debug(
            "Backward plan calculated",
            dispatch_date=d.isoformat(),
            order_type=order_type,
            store1=due_dates.store1_due_date.date().isoformat(),
            use_working_days=use_working_days,
        )
        return due_dates

    def get_due_date_for_stage(
        self,
        dispatch_date,
        stage: str,
        order_type: str = PlanningConfig.DEFAULT_ORDER_TYPE,
    ) -> Optional[datetime]:
        """Due date for one stage, or None if the stage is unknown."""
        code = PlanningConfig.normalize_stage(stage)
        if code is None:
            return None
        return self.plan_from_dispatch_date(dispatch_date, order_type).for_stage(code)

    # ------------------------------------------------------------------
    # Forward re-projection
    # ------------------------------------------------------------------

    def plan_forward(self, from_stage: str, stage_date, reference_task: Optional[Mapping] = None) -> Dict[str, str]:
        """
        Recalculate the stages after an edited stage date.

        Only ``from_stage`` and the stages after it are returned; earlier stages
        are left to the caller untouched.

        Args:
            from_stage: Stage code (or field/display name) that was edited
            stage_date: The new date for that stage
            reference_task: The task being edited. Accepted for the edit dialog,
                not used in the calculation.

        Returns:
            dict: due-date field name -> 'YYYY-MM-DD'

        Raises:
            ValueError: If the stage is unknown
            InvalidDateInput: If stage_date cannot be parsed
        """
        code = PlanningConfig.normalize_stage(from_stage)
        if code is None:
            raise ValueError(
                f"Unknown stage {from_stage!r}. Must be one of: {', '.join(PlanningConfig.STAGE_ORDER)}"
            )

        start = parse_date(stage_date)
        start_index = PlanningConfig.STAGE_ORDER.index(code)

        dates = {PlanningConfig.STAGE_DUE_DATE_FIELDS[code]: start.isoformat()}
        for distance, stage in enumerate(PlanningConfig.STAGE_ORDER[start_index + 1:], start=1):
            dates[PlanningConfig.STAGE_DUE_DATE_FIELDS[stage]] = (
                self.calendar.add_working_days(start, distance).isoformat()
            )

        logger.info("Forward plan calculated", from_stage=code, stage_date=start.isoformat(), dates=dates)
        return dates

    # ------------------------------------------------------------------
    # Validation and advisory
    # ------------------------------------------------------------------

    def validate_dispatch_date(
        self,
        dispatch_date,
        order_type: str = PlanningConfig.DEFAULT_ORDER_TYPE,
        is_urgent: bool = False,
        today=None,
    ) -> ValidationResult:
        """
        Check a candidate dispatch date.

        Urgent dispatch only has to be today or later. A normal dispatch must
        also fall on a working day and leave REQUIRED_WORKING_DAYS working days
        from today.
        """
        if dispatch_date is None or (isinstance(dispatch_date, str) and not dispatch_date.strip()):
            return ValidationResult(False, 'Please select a dispatch date')

        try:
            d = parse_date(dispatch_date)
        except InvalidDateInput:
            return ValidationResult(False, f"Invalid dispatch date: {dispatch_date}")

        today = parse_date(today) if today is not None else self._today()

        if d < today:
            return ValidationResult(False, 'Dispatch date cannot be in the past')

        if is_urgent:
            return ValidationResult(True, 'Valid urgent dispatch date')

        if self.calendar.is_non_working_day(d):
            return ValidationResult(
                False,
                f"Dispatch not available on {self._reason(d)}. Please select a working day.",
            )

        earliest_start = self.calendar.subtract_working_days(d, PlanningConfig.REQUIRED_WORKING_DAYS)
        if earliest_start < today:
            days_short = days_between(today, earliest_start)
            return ValidationResult(
                False,
                f"Not enough working days for production. Need to start {days_short} day(s) earlier. "
                f"Please select a later dispatch date.",
            )

        return ValidationResult(True, 'Valid dispatch date')

    def suggest_adjusted_dispatch_date(
        self,
        selected_date,
        start_date=None,
        order_type: str = PlanningConfig.DEFAULT_ORDER_TYPE,
        is_urgent: bool = False,
    ) -> HolidayAdvisory:
        """
        Report how holidays affect the production window ending on selected_date.

        Holidays that do not eat into the D-5..D-1 working days are informational
        only. When the window is too short the suggested date is pushed out by a
        fixed count of working days; it is a suggestion, not a recomputed minimum.

        Raises:
            InvalidDateInput: If either date cannot be parsed
        """
        selected = parse_date(selected_date)
        start = parse_date(start_date) if start_date is not None else self._today()
        required = PlanningConfig.REQUIRED_WORKING_DAYS

        if is_urgent:
            return HolidayAdvisory(
                has_holidays=False,
                can_proceed=True,
                original_date=selected,
                suggested_date=selected,
                message='Urgent dispatch mode: All production stages will be scheduled on the dispatch date.',
            )

        earliest_start = self.calendar.subtract_working_days(selected, required)

        if earliest_start < start:
            days_short = days_between(start, earliest_start)
            suggested = self.calendar.add_working_days(selected, days_short)
            logger.info(
                "Dispatch date leaves too few working days",
                selected_date=selected.isoformat(),
                start_date=start.isoformat(),
                days_short=days_short,
                suggested_date=suggested.isoformat(),
            )
            return HolidayAdvisory(
                has_holidays=True,
                can_proceed=False,
                original_date=selected,
                suggested_date=suggested,
                message=(
                    f"Cannot proceed with this dispatch date. Production requires {required} working days "
                    f"(D-5 to D-1), but you're {days_short} day(s) short. Please select a later dispatch date."
                ),
            )

        holiday_info = self.calendar.count_holidays_between(start, selected)

        if holiday_info.count == 0:
            return HolidayAdvisory(
                has_holidays=False,
                can_proceed=True,
                original_date=selected,
                suggested_date=selected,
                message='No holidays detected in your timeline. All production stages can be scheduled.',
            )

        details = self._describe_holidays(holiday_info.holidays)
        count = holiday_info.count

        if earliest_start >= start:
            return HolidayAdvisory(
                has_holidays=True,
                can_proceed=True,
                holiday_count=count,
                holidays=holiday_info.holidays,
                original_date=selected,
                suggested_date=selected,
                message=(
                    f"{count} holiday{_plural(count)} detected ({details}), but all required production "
                    f"stages (D-5 to D-1) can be scheduled on working days. Dispatch can proceed as planned."
                ),
            )

        suggested = self.calendar.add_working_days(selected, count)
        return HolidayAdvisory(
            has_holidays=True,
            can_proceed=False,
            holiday_count=count,
            holidays=holiday_info.holidays,
            original_date=selected,
            suggested_date=suggested,
            message=(
                f"You selected {format_display_date(selected)}. There {'is' if count == 1 else 'are'} "
                f"{count} holiday{_plural(count)} in your timeline ({details}). "
                f"Consider selecting {format_display_date(suggested)} to account for non-working days."
            ),
        )

    # ------------------------------------------------------------------
    # Helpers for dispatch creation and display
    # ------------------------------------------------------------------

    def check_schedule_integrity(self, due_dates: StageDueDateSet) -> List[str]:
        """
        Problems with a calculated schedule before it is persisted.

        Store stages of a normal dispatch must be working days. Urgent
        dispatches are exempt.
        """
        if due_dates.is_urgent_dispatch:
            return []

        problems = []
        for stage in PlanningConfig.STORE_STAGES:
            due = due_dates.for_stage(stage)
            if self.calendar.is_non_working_day(due):
                problems.append(
                    f"{PlanningConfig.STAGE_LONG_NAMES[stage]} due date "
                    f"{due.date().isoformat()} falls on {self._reason(due)}"
                )
        if problems:
            logger.error("Stage schedule falls on non-working days", problems=problems)
        return problems

    @staticmethod
    def ordered_stage_due_dates(due_dates: Union[StageDueDateSet, Mapping[str, Any], None]) -> List[Dict[str, Any]]:
        """Rows of stage, status, due date, offset and D-n label in production order."""
        if not due_dates:
            return []
        values = due_dates.to_dict() if isinstance(due_dates, StageDueDateSet) else due_dates

        return [
            {
                'stage': PlanningConfig.STAGE_DISPLAY_NAMES[stage],
                'status': stage,
                'due_date': values.get(PlanningConfig.STAGE_DUE_DATE_FIELDS[stage]),
                'days_before_dispatch': PlanningConfig.STAGE_OFFSETS[stage],
                'label': PlanningConfig.stage_label(stage),
            }
            for stage in PlanningConfig.STAGE_ORDER
        ]
