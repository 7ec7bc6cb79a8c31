"""
Tests for backward/forward stage planning, dispatch validation and the
holiday advisory. "Today" is pinned to Friday 10 Jan 2025.
"""
import pytest
from datetime import date, datetime

from dispatch_planner.exceptions import InvalidDateInput
from dispatch_planner.planning import PlanningConfig, StagePlanner
from dispatch_planner.workdays import (
    CompanyCalendarService,
    InMemoryRowStore,
    WorkingCalendar,
    load_default_table,
)

TODAY = date(2025, 1, 10)


@pytest.fixture
def calendar():
    return WorkingCalendar(
        holidays=load_default_table(),
        overrides=CompanyCalendarService(InMemoryRowStore()),
    )


@pytest.fixture
def planner(calendar):
    return StagePlanner(calendar, today=lambda: TODAY)


def eod(year, month, day):
    return datetime(year, month, day, 23, 59, 59, 999000)


# ==============================================================================
# BACKWARD PLANNING
# ==============================================================================

class TestPlanFromDispatchDate:
    """Tests for backward planning from the dispatch date."""

    def test_plain_week(self, planner):
        result = planner.plan_from_dispatch_date("2025-01-20")

        assert result.fg_section_due_date == eod(2025, 1, 18)
        assert result.moulding_due_date == eod(2025, 1, 17)
        assert result.store2_due_date == eod(2025, 1, 16)
        assert result.cable_production_due_date == eod(2025, 1, 15)
        assert result.store1_due_date == eod(2025, 1, 14)
        assert result.dispatch_date == eod(2025, 1, 20)
        assert not result.is_urgent_dispatch

    def test_skips_sunday_and_gazetted_holiday(self, planner):
        # Tue 7 Oct 2025: Sun 5 Oct and Gandhi Jayanti (Thu 2 Oct) are skipped
        result = planner.plan_from_dispatch_date("2025-10-07")

        assert [d.date() for d in result.ordered()] == [
            date(2025, 9, 30),
            date(2025, 10, 1),
            date(2025, 10, 3),
            date(2025, 10, 4),
            date(2025, 10, 6),
            date(2025, 10, 7),
        ]

    def test_stages_are_strictly_increasing_working_days(self, planner, calendar):
        for day in ("2025-01-20", "2025-04-16", "2025-08-18", "2025-10-22"):
            ordered = planner.plan_from_dispatch_date(day).ordered()
            assert ordered == sorted(ordered)
            assert len(set(ordered)) == len(ordered)
            for earlier, later in zip(ordered, ordered[1:]):
                assert calendar.add_working_days(earlier, 1) == later.date()

    def test_every_stage_is_end_of_day(self, planner):
        for due in planner.plan_from_dispatch_date(datetime(2025, 1, 20, 9, 30)).ordered():
            assert due.time() == eod(2025, 1, 1).time()

    def test_calendar_day_mode(self, planner):
        result = planner.plan_from_dispatch_date("2025-01-20", use_working_days=False)

        assert [d.day for d in result.ordered()] == [15, 16, 17, 18, 19, 20]
        assert not result.use_working_days

    def test_urgent_collapses_onto_dispatch(self, planner):
        result = planner.plan_from_dispatch_date("2025-01-12", is_urgent=True)

        assert result.is_urgent_dispatch
        assert set(result.ordered()) == {eod(2025, 1, 12)}

    def test_order_type_does_not_change_offsets(self, planner):
        power_cord = planner.plan_from_dispatch_date("2025-01-20", order_type=PlanningConfig.POWER_CORD)
        cable_only = planner.plan_from_dispatch_date("2025-01-20", order_type=PlanningConfig.CABLE_ONLY)
        assert power_cord == cable_only

    def test_company_exclusion_shifts_plan(self, planner, calendar):
        calendar.set_override("2025-01-16", "exclude", "Maintenance")

        result = planner.plan_from_dispatch_date("2025-01-20")

        assert result.store2_due_date == eod(2025, 1, 15)
        assert result.store1_due_date == eod(2025, 1, 13)

    def test_to_dict_uses_record_field_names(self, planner):
        result = planner.plan_from_dispatch_date("2025-01-20").to_dict()

        assert result == {
            "Store1DueDate": "2025-01-14T23:59:59.999",
            "CableProductionDueDate": "2025-01-15T23:59:59.999",
            "Store2DueDate": "2025-01-16T23:59:59.999",
            "MouldingDueDate": "2025-01-17T23:59:59.999",
            "FGSectionDueDate": "2025-01-18T23:59:59.999",
            "DispatchDate": "2025-01-20T23:59:59.999",
            "useWorkingDays": True,
            "isUrgentDispatch": False,
        }

    def test_invalid_dispatch_date_raises(self, planner):
        with pytest.raises(InvalidDateInput):
            planner.plan_from_dispatch_date("20/13/2025")

    def test_get_due_date_for_stage(self, planner):
        assert planner.get_due_date_for_stage("2025-01-20", "STORE2") == eod(2025, 1, 16)
        assert planner.get_due_date_for_stage("2025-01-20", "Moulding") == eod(2025, 1, 17)
        assert planner.get_due_date_for_stage("2025-01-20", "FGSectionDueDate") == eod(2025, 1, 18)
        assert planner.get_due_date_for_stage("2025-01-20", "PACKING") is None


# ==============================================================================
# FORWARD PLANNING
# ==============================================================================

class TestPlanForward:
    """Tests for re-projecting later stages after a stage date edit."""

    def test_from_store1(self, planner):
        assert planner.plan_forward("STORE1", "2025-01-13") == {
            "Store1DueDate": "2025-01-13",
            "CableProductionDueDate": "2025-01-14",
            "Store2DueDate": "2025-01-15",
            "MouldingDueDate": "2025-01-16",
            "FGSectionDueDate": "2025-01-17",
            "DispatchDate": "2025-01-18",
        }

    def test_from_moulding_across_holiday(self, planner):
        # Sat 12 Apr 2025: Sun 13 Apr and Ambedkar Jayanti (Mon 14 Apr) are skipped
        assert planner.plan_forward("MOULDING", "2025-04-12") == {
            "MouldingDueDate": "2025-04-12",
            "FGSectionDueDate": "2025-04-15",
            "DispatchDate": "2025-04-16",
        }

    def test_earlier_stages_are_not_returned(self, planner):
        dates = planner.plan_forward("FG_SECTION", "2025-01-17")
        assert list(dates) == ["FGSectionDueDate", "DispatchDate"]
        assert dates["DispatchDate"] == "2025-01-18"

    def test_dispatch_only(self, planner):
        assert planner.plan_forward("DISPATCH", "2025-01-20") == {"DispatchDate": "2025-01-20"}

    def test_display_name_accepted(self, planner):
        assert planner.plan_forward("Store 2", "2025-01-13")["DispatchDate"] == "2025-01-16"

    def test_unknown_stage_raises(self, planner):
        with pytest.raises(ValueError):
            planner.plan_forward("PACKING", "2025-01-13")

    def test_reference_task_is_ignored(self, planner):
        task = {"Store1DueDate": "2025-01-01"}
        assert planner.plan_forward("STORE1", "2025-01-13", task) == planner.plan_forward("STORE1", "2025-01-13")


# ==============================================================================
# VALIDATION
# ==============================================================================

class TestValidateDispatchDate:
    """Tests for dispatch date validation."""

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_missing_date(self, planner, value):
        result = planner.validate_dispatch_date(value)
        assert not result
        assert result.message == "Please select a dispatch date"

    def test_unparseable_date(self, planner):
        result = planner.validate_dispatch_date("next tuesday")
        assert not result.is_valid
        assert result.message == "Invalid dispatch date: next tuesday"

    def test_past_date(self, planner):
        result = planner.validate_dispatch_date("2025-01-09")
        assert result.message == "Dispatch date cannot be in the past"

    def test_past_date_rejected_even_when_urgent(self, planner):
        assert not planner.validate_dispatch_date("2025-01-09", is_urgent=True)

    def test_urgent_accepts_today_and_non_working_days(self, planner):
        assert planner.validate_dispatch_date("2025-01-10", is_urgent=True).message == "Valid urgent dispatch date"
        assert planner.validate_dispatch_date("2025-01-12", is_urgent=True)

    def test_sunday_rejected(self, planner):
        result = planner.validate_dispatch_date("2025-01-12")
        assert result.message == "Dispatch not available on Sunday. Please select a working day."

    def test_gazetted_holiday_rejected(self, planner):
        result = planner.validate_dispatch_date("2025-04-14", today=date(2025, 4, 1))
        assert result.message == "Dispatch not available on Gazetted Holiday. Please select a working day."

    def test_company_holiday_rejected(self, planner, calendar):
        calendar.set_override("2025-01-22", "exclude")
        result = planner.validate_dispatch_date("2025-01-22")
        assert result.message == "Dispatch not available on Company Holiday. Please select a working day."

    def test_included_sunday_accepted(self, planner, calendar):
        calendar.set_override("2025-01-19", "include")
        assert planner.validate_dispatch_date("2025-01-19").message == "Valid dispatch date"

    @pytest.mark.parametrize("dispatch_date,days_short", [
        ("2025-01-13", 3),
        ("2025-01-15", 1),
    ])
    def test_not_enough_working_days(self, planner, dispatch_date, days_short):
        result = planner.validate_dispatch_date(dispatch_date)
        assert not result.is_valid
        assert result.message.startswith(
            f"Not enough working days for production. Need to start {days_short} day(s) earlier."
        )

    def test_earliest_start_today_is_valid(self, planner):
        # D-5 of Thu 16 Jan is Fri 10 Jan
        assert planner.validate_dispatch_date("2025-01-16").message == "Valid dispatch date"

    def test_valid_date(self, planner):
        result = planner.validate_dispatch_date(date(2025, 1, 20))
        assert result.to_dict() == {"isValid": True, "message": "Valid dispatch date"}


# ==============================================================================
# HOLIDAY ADVISORY
# ==============================================================================

class TestHolidayAdvisory:
    """Tests for suggest_adjusted_dispatch_date."""

    def test_urgent(self, planner):
        advisory = planner.suggest_adjusted_dispatch_date("2025-01-12", is_urgent=True)

        assert advisory.can_proceed
        assert not advisory.has_holidays
        assert advisory.suggested_date == date(2025, 1, 12)
        assert advisory.message.startswith("Urgent dispatch mode")

    def test_shortfall_blocks(self, planner):
        advisory = planner.suggest_adjusted_dispatch_date("2025-01-13", start_date="2025-01-10")

        assert not advisory.can_proceed
        assert advisory.has_holidays
        assert advisory.suggested_date == date(2025, 1, 16)
        assert "you're 3 day(s) short" in advisory.message

    def test_no_holidays(self, planner):
        advisory = planner.suggest_adjusted_dispatch_date("2025-01-18", start_date="2025-01-13")

        assert advisory.can_proceed
        assert not advisory.has_holidays
        assert advisory.suggested_date == date(2025, 1, 18)
        assert advisory.message == "No holidays detected in your timeline. All production stages can be scheduled."

    def test_informational_holidays(self, planner):
        advisory = planner.suggest_adjusted_dispatch_date("2025-01-20", start_date="2025-01-10")

        assert advisory.can_proceed
        assert advisory.has_holidays
        assert advisory.holiday_count == 2
        assert advisory.suggested_date == advisory.original_date == date(2025, 1, 20)
        assert advisory.message.startswith(
            "2 holidays detected (Jan 12, 2025 (Sunday), Jan 19, 2025 (Sunday))"
        )
        assert advisory.message.endswith("Dispatch can proceed as planned.")

    def test_sunday_and_gazetted_holiday_counted(self, planner):
        advisory = planner.suggest_adjusted_dispatch_date("2025-04-16", start_date="2025-04-08")

        assert advisory.can_proceed
        assert [h["reason"] for h in advisory.holidays] == ["Sunday", "Gazetted Holiday"]

    def test_single_holiday_wording(self, planner):
        advisory = planner.suggest_adjusted_dispatch_date("2025-01-18", start_date="2025-01-11")
        assert advisory.holiday_count == 1
        assert advisory.message.startswith("1 holiday detected (Jan 12, 2025 (Sunday))")

    def test_company_holiday_named_in_message(self, planner, calendar):
        calendar.set_override("2025-01-15", "exclude")
        advisory = planner.suggest_adjusted_dispatch_date("2025-01-20", start_date="2025-01-10")

        assert advisory.holiday_count == 3
        assert "Jan 15, 2025 (Company Holiday)" in advisory.message

    def test_start_defaults_to_today(self, planner):
        assert planner.suggest_adjusted_dispatch_date("2025-01-13").suggested_date == date(2025, 1, 16)

    def test_to_dict(self, planner):
        result = planner.suggest_adjusted_dispatch_date("2025-01-13", start_date="2025-01-10").to_dict()

        assert result["canProceed"] is False
        assert result["originalDate"] == "2025-01-13"
        assert result["suggestedDate"] == "2025-01-16"
        assert result["holidays"] == []

    def test_invalid_selected_date_raises(self, planner):
        with pytest.raises(InvalidDateInput):
            planner.suggest_adjusted_dispatch_date("soon")


# ==============================================================================
# SCHEDULE HELPERS
# ==============================================================================

class TestScheduleHelpers:
    """Tests for integrity checks and ordered stage rows."""

    def test_working_day_plan_has_no_problems(self, planner):
        assert planner.check_schedule_integrity(planner.plan_from_dispatch_date("2025-01-20")) == []

    def test_calendar_day_plan_flags_store_on_sunday(self, planner):
        due_dates = planner.plan_from_dispatch_date("2025-01-15", use_working_days=False)

        assert planner.check_schedule_integrity(due_dates) == [
            "Store 2 Moulding FG due date 2025-01-12 falls on Sunday"
        ]

    def test_urgent_plan_is_exempt(self, planner):
        due_dates = planner.plan_from_dispatch_date("2025-01-12", is_urgent=True)
        assert planner.check_schedule_integrity(due_dates) == []

    def test_ordered_stage_rows(self, planner):
        rows = StagePlanner.ordered_stage_due_dates(planner.plan_from_dispatch_date("2025-01-20"))

        assert [r["label"] for r in rows] == ["D-5", "D-4", "D-3", "D-2", "D-1", "D"]
        assert rows[0] == {
            "stage": "Store 1",
            "status": "STORE1",
            "due_date": "2025-01-14T23:59:59.999",
            "days_before_dispatch": 5,
            "label": "D-5",
        }

    def test_ordered_stage_rows_from_record(self):
        rows = StagePlanner.ordered_stage_due_dates({"DispatchDate": "2025-01-20"})
        assert rows[-1]["due_date"] == "2025-01-20"
        assert rows[0]["due_date"] is None

    def test_ordered_stage_rows_empty(self):
        assert StagePlanner.ordered_stage_due_dates(None) == []
