"""
API routes for the working calendar and stage planning.

Business outcomes (invalid dispatch date, advisory with canProceed=false) are
200 responses with a structured body. Malformed input is a 400.
"""
from flask import jsonify, request

from dispatch_planner.api import api_bp
from dispatch_planner.api.helpers import get_calendar, get_planner, parse_bool, parse_int
from dispatch_planner.datetime_utils import days_between
from dispatch_planner.exceptions import InvalidDateInput
from dispatch_planner.logging_config import PlanningContext, get_logger
from dispatch_planner.models import db
from dispatch_planner.planning import PlanningConfig

logger = get_logger(__name__)


def _bad_request(error, exc):
    return jsonify({"error": error, "details": str(exc)}), 400


# ==============================================================================
# CALENDAR
# ==============================================================================

@api_bp.route("/calendar/overrides", methods=["GET"])
def list_overrides():
    """Return all company calendar overrides. ?refresh=1 reloads from the sheet."""
    try:
        calendar = get_calendar()
        calendar.load_overrides(force_refresh=parse_bool(request.args.get("refresh")))
        overrides = calendar.overrides.all() if calendar.overrides else []
        return jsonify({
            "overrides": [o.to_dict() for o in overrides],
            "total_count": len(overrides),
        }), 200
    except Exception as exc:
        logger.error("Error listing calendar overrides", error=str(exc), exc_info=True)
        return jsonify({"error": "Failed to list calendar overrides", "details": str(exc)}), 500


@api_bp.route("/calendar/overrides/<day>", methods=["PUT"])
def set_override(day):
    """Set or clear (action=null) the override for a date."""
    try:
        data = request.get_json(silent=True) or {}
        calendar = get_calendar()
        override = calendar.set_override(day, data.get("action"), data.get("note") or "")
        return jsonify({
            "success": True,
            "date": override.date if override else day,
            "override": override.to_dict() if override else None,
            "is_non_working": calendar.is_non_working_day(day),
        }), 200
    except InvalidDateInput as exc:
        return _bad_request("Invalid date", exc)
    except ValueError as exc:
        return _bad_request("Invalid override action", exc)
    except Exception as exc:
        logger.error("Error saving calendar override", date=day, error=str(exc), exc_info=True)
        db.session.rollback()
        return jsonify({"error": "Failed to save calendar override", "details": str(exc)}), 500


@api_bp.route("/calendar/overrides/<day>/toggle", methods=["POST"])
def toggle_override(day):
    """Advance a date one step through the holiday manager click cycle."""
    try:
        data = request.get_json(silent=True) or {}
        calendar = get_calendar()
        override = calendar.toggle_override(day, data.get("note") or "")
        return jsonify({
            "success": True,
            "override": override.to_dict() if override else None,
            "is_non_working": calendar.is_non_working_day(day),
        }), 200
    except InvalidDateInput as exc:
        return _bad_request("Invalid date", exc)
    except Exception as exc:
        logger.error("Error toggling calendar override", date=day, error=str(exc), exc_info=True)
        db.session.rollback()
        return jsonify({"error": "Failed to toggle calendar override", "details": str(exc)}), 500


@api_bp.route("/calendar/restricted", methods=["GET"])
def restricted_dates():
    """Non-working days of one month: ?year=2025&month=1"""
    try:
        year = parse_int(request.args.get("year"), "year")
        month = parse_int(request.args.get("month"), "month")
        dates = get_calendar().restricted_dates_for_month(year, month)
        return jsonify({"year": year, "month": month, "restricted_dates": dates}), 200
    except ValueError as exc:
        return _bad_request("Invalid month", exc)
    except Exception as exc:
        logger.error("Error listing restricted dates", error=str(exc), exc_info=True)
        return jsonify({"error": "Failed to list restricted dates", "details": str(exc)}), 500


@api_bp.route("/calendar/holidays", methods=["GET"])
def holidays_between():
    """Non-working days and working-day count between ?start= and ?end= (inclusive)."""
    try:
        start = request.args.get("start")
        end = request.args.get("end")
        calendar = get_calendar()
        span = days_between(end, start) + 1
        if span > calendar.max_iterations:
            return jsonify({
                "error": "Invalid date range",
                "details": f"Range covers {span} days; at most {calendar.max_iterations} are allowed",
            }), 400
        holiday_info = calendar.count_holidays_between(start, end)
        return jsonify({
            **holiday_info.to_dict(),
            "working_days": calendar.count_working_days(start, end),
        }), 200
    except InvalidDateInput as exc:
        return _bad_request("Invalid date range", exc)
    except Exception as exc:
        logger.error("Error counting holidays", error=str(exc), exc_info=True)
        return jsonify({"error": "Failed to count holidays", "details": str(exc)}), 500


# ==============================================================================
# PLANNING
# ==============================================================================

@api_bp.route("/planning/plan", methods=["POST"])
def plan_dispatch():
    """Backward plan: stage due dates for a dispatch date."""
    try:
        data = request.get_json(silent=True) or {}
        planner = get_planner()
        with PlanningContext("backward_plan", dispatch_date=data.get("dispatch_date")):
            due_dates = planner.plan_from_dispatch_date(
                data.get("dispatch_date"),
                order_type=data.get("order_type") or PlanningConfig.DEFAULT_ORDER_TYPE,
                use_working_days=parse_bool(data.get("use_working_days"), default=True),
                is_urgent=parse_bool(data.get("is_urgent")),
            )
        return jsonify({
            "due_dates": due_dates.to_dict(),
            "stages": planner.ordered_stage_due_dates(due_dates),
            "problems": planner.check_schedule_integrity(due_dates),
        }), 200
    except InvalidDateInput as exc:
        return _bad_request("Invalid dispatch date", exc)
    except Exception as exc:
        logger.error("Error planning dispatch", error=str(exc), exc_info=True)
        return jsonify({"error": "Failed to plan dispatch", "details": str(exc)}), 500


@api_bp.route("/planning/forward", methods=["POST"])
def plan_forward():
    """Forward plan after a stage date edit: {stage, date}."""
    try:
        data = request.get_json(silent=True) or {}
        with PlanningContext("forward_plan", stage=data.get("stage"), stage_date=data.get("date")):
            dates = get_planner().plan_forward(data.get("stage"), data.get("date"))
        return jsonify({"dates": dates}), 200
    except InvalidDateInput as exc:
        return _bad_request("Invalid stage date", exc)
    except ValueError as exc:
        return _bad_request("Invalid stage", exc)
    except Exception as exc:
        logger.error("Error planning forward", error=str(exc), exc_info=True)
        return jsonify({"error": "Failed to plan forward", "details": str(exc)}), 500


@api_bp.route("/planning/validate", methods=["POST"])
def validate_dispatch():
    """Validate a dispatch date. Always 200; see isValid/message."""
    try:
        data = request.get_json(silent=True) or {}
        result = get_planner().validate_dispatch_date(
            data.get("dispatch_date"),
            order_type=data.get("order_type") or PlanningConfig.DEFAULT_ORDER_TYPE,
            is_urgent=parse_bool(data.get("is_urgent")),
        )
        return jsonify(result.to_dict()), 200
    except Exception as exc:
        logger.error("Error validating dispatch date", error=str(exc), exc_info=True)
        return jsonify({"error": "Failed to validate dispatch date", "details": str(exc)}), 500


@api_bp.route("/planning/advisory", methods=["POST"])
def holiday_advisory():
    """Holiday advisory for a selected dispatch date."""
    try:
        data = request.get_json(silent=True) or {}
        with PlanningContext("holiday_advisory", selected_date=data.get("selected_date")):
            advisory = get_planner().suggest_adjusted_dispatch_date(
                data.get("selected_date"),
                start_date=data.get("start_date"),
                order_type=data.get("order_type") or PlanningConfig.DEFAULT_ORDER_TYPE,
                is_urgent=parse_bool(data.get("is_urgent")),
            )
        return jsonify(advisory.to_dict()), 200
    except InvalidDateInput as exc:
        return _bad_request("Invalid date", exc)
    except Exception as exc:
        logger.error("Error building holiday advisory", error=str(exc), exc_info=True)
        return jsonify({"error": "Failed to build holiday advisory", "details": str(exc)}), 500
