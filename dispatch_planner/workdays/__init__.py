"""
Working-day calendar: base rules (weekly rest day, fixed holidays) plus
company overrides persisted in the CompanyCalendar sheet.
"""

from dispatch_planner.workdays.holidays import FixedHolidayTable, load_default_table
from dispatch_planner.workdays.overrides import (
    CompanyCalendarService,
    HolidayOverride,
    OverrideAction,
    next_override_action,
    plan_override_import,
    read_override_file,
)
from dispatch_planner.workdays.row_store import InMemoryRowStore, RowStore, SqlRowStore
from dispatch_planner.workdays.working_calendar import HolidayCount, WorkingCalendar

__all__ = [
    'FixedHolidayTable',
    'load_default_table',
    'CompanyCalendarService',
    'HolidayOverride',
    'OverrideAction',
    'next_override_action',
    'plan_override_import',
    'read_override_file',
    'RowStore',
    'InMemoryRowStore',
    'SqlRowStore',
    'HolidayCount',
    'WorkingCalendar',
]
