"""
Helpers shared by the API routes.
"""
from flask import current_app


def get_calendar():
    """The WorkingCalendar built in create_app()."""
    return current_app.extensions["working_calendar"]


def get_planner():
    """The StagePlanner built in create_app()."""
    return current_app.extensions["stage_planner"]


def parse_bool(value, default=False):
    """Interpret JSON booleans and query-string flags ("1", "true", "yes")."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y", "on")


def parse_int(value, name):
    """Parse a required integer argument, raising ValueError with the argument name."""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer") from None
