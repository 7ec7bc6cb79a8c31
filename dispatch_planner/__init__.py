import os

from flask import Flask, jsonify
from flask_cors import CORS

from dispatch_planner.logging_config import configure_logging, get_logger
from dispatch_planner.models import db

logger = get_logger(__name__)


def build_working_calendar(app):
    """Build the process-wide WorkingCalendar from app config."""
    from dispatch_planner.workdays import (
        CompanyCalendarService,
        SqlRowStore,
        WorkingCalendar,
        load_default_table,
    )

    holidays = load_default_table(app.config.get("FIXED_HOLIDAYS_FILE"))
    overrides = CompanyCalendarService(SqlRowStore(), sheet_name=app.config["CALENDAR_SHEET_NAME"])
    return WorkingCalendar(
        holidays=holidays,
        overrides=overrides,
        weekly_rest_day=app.config["WEEKLY_REST_DAY"],
        max_iterations=app.config["CALENDAR_MAX_ITERATIONS"],
    )


def create_app(config_class=None):
    # Import config after dotenv is loaded
    from dispatch_planner.config import get_config
    from dispatch_planner.db_config import configure_database
    from dispatch_planner.planning import StagePlanner
    from dispatch_planner.api import api_bp

    config_class = config_class or get_config()

    app = Flask(__name__)
    app.config.from_object(config_class)

    log_file = app.config.get("LOG_FILE")
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    configure_logging(log_level=app.config["LOG_LEVEL"], log_file=log_file)

    configure_database(app)
    db.init_app(app)

    logger.info(f"Starting application in {config_class.ENV} environment")
    logger.info(f"Database URI: {app.config.get('SQLALCHEMY_DATABASE_URI', 'Not set')[:50]}...")

    allowed_origins = app.config.get("CORS_ORIGINS", "*")
    if allowed_origins != "*":
        allowed_origins = [origin.strip() for origin in allowed_origins.split(",")]

    CORS(app,
         resources={r"/api/*": {"origins": allowed_origins}},
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"])

    with app.app_context():
        db.create_all()

    calendar = build_working_calendar(app)
    app.extensions["working_calendar"] = calendar
    app.extensions["stage_planner"] = StagePlanner(calendar)

    app.register_blueprint(api_bp, url_prefix="/api")

    @app.route("/health")
    def health():
        return jsonify({
            "status": "ok",
            "environment": config_class.ENV,
            "holiday_years": calendar.holidays.years(),
        }), 200

    return app
