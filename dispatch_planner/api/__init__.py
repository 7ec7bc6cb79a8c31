# Package
from flask import Blueprint

from dispatch_planner.logging_config import get_logger

logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)

from dispatch_planner.api import routes
