"""
Operational routes.

Handles:
- /health - Health check endpoint
"""

from flask import Blueprint, current_app

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    # Product cache: a stale catalog is still served, so it only degrades
    # health when nothing has ever been fetched
    product_cache = current_app.config.get("PRODUCT_CACHE")
    if product_cache is None:
        health_status["checks"]["product_cache"] = "not_available"
        health_status["status"] = "degraded"
    elif product_cache.snapshot is None:
        health_status["checks"]["product_cache"] = "empty"
        if product_cache.is_running:
            health_status["status"] = "degraded"
    elif product_cache.is_stale:
        health_status["checks"]["product_cache"] = "stale"
    else:
        health_status["checks"]["product_cache"] = "ok"

    health_status["checks"]["product_refresh"] = (
        "running" if product_cache is not None and product_cache.is_running else "stopped"
    )

    if current_app.config.get("QUOTE_WORKFLOW"):
        health_status["checks"]["quote_workflow"] = "ok"
    else:
        health_status["checks"]["quote_workflow"] = "not_available"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
