"""
Stage planning for order-to-dispatch production.

Backward planning from a dispatch date through Store 1, Cable Production,
Store 2, Moulding and FG Section, plus forward re-projection and the holiday
advisory, all computed on a WorkingCalendar.
"""

from dispatch_planner.planning.config import PlanningConfig
from dispatch_planner.planning.planner import (
    HolidayAdvisory,
    StageDueDateSet,
    StagePlanner,
    ValidationResult,
)

__all__ = [
    'PlanningConfig',
    'HolidayAdvisory',
    'StageDueDateSet',
    'StagePlanner',
    'ValidationResult',
]
