import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration class with common settings."""
    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE")  # e.g. logs/app.log, stdout only when unset

    # Working calendar
    WEEKLY_REST_DAY = int(os.environ.get("WEEKLY_REST_DAY", "6"))  # date.weekday(), Sunday=6
    FIXED_HOLIDAYS_FILE = os.environ.get("FIXED_HOLIDAYS_FILE")  # packaged 2024-2025 list when unset
    CALENDAR_SHEET_NAME = os.environ.get("CALENDAR_SHEET_NAME", "CompanyCalendar")
    CALENDAR_MAX_ITERATIONS = int(os.environ.get("CALENDAR_MAX_ITERATIONS", "3650"))

    # CORS configuration
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")


class LocalConfig(Config):
    """Configuration for local development."""
    ENV = "local"
    DEBUG = True


class SandboxConfig(Config):
    """Configuration for sandbox/staging environment."""
    ENV = "sandbox"
    DEBUG = False


class ProductionConfig(Config):
    """Configuration for production environment."""
    ENV = "production"
    DEBUG = False


class TestingConfig(Config):
    """Configuration for the test suite (in-memory SQLite)."""
    ENV = "testing"
    DEBUG = False
    TESTING = True
    LOG_FILE = None
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False


def get_config():
    """Get the appropriate configuration class based on environment variable.

    Environment is determined by FLASK_ENV or ENVIRONMENT variable:
    - 'local' or 'development' -> LocalConfig
    - 'sandbox' or 'staging' -> SandboxConfig
    - 'production' or 'prod' -> ProductionConfig
    - 'testing' or 'test' -> TestingConfig

    Defaults to LocalConfig if not set.
    """
    env = (os.environ.get("FLASK_ENV") or os.environ.get("ENVIRONMENT", "local")).lower()

    if env in ["local", "development", "dev"]:
        return LocalConfig
    elif env in ["sandbox", "staging", "stage"]:
        return SandboxConfig
    elif env in ["production", "prod"]:
        return ProductionConfig
    elif env in ["testing", "test"]:
        return TestingConfig
    else:
        # Default to local for safety
        return LocalConfig
