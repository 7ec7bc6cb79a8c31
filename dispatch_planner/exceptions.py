"""
Exceptions raised by the calendar and planning layers.

Business outcomes (holidays, short lead time) are returned as data, never raised.
Only malformed input ends up here.
"""


class PlannerError(Exception):
    """Base class for dispatch planner errors."""


class InvalidDateInput(PlannerError, ValueError):
    """A date was missing or could not be parsed where one was required."""

    def __init__(self, value, message=None):
        self.value = value
        if message is None:
            message = f"Invalid date input: {value!r}"
        super().__init__(message)


class CalendarIterationLimit(InvalidDateInput):
    """A working-day walk ran past the configured safety bound."""

    def __init__(self, value, limit):
        self.limit = limit
        super().__init__(
            value,
            f"No working day found within {limit} days of {value!r}; check the holiday calendar",
        )
