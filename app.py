"""
Quote Desk - Flask Application Entry Point.

This is a slim app factory that:
1. Builds the upstream token cache and distributor client
2. Opens the quote store (fail-fast if tables cannot be created)
3. Starts the product cache refresh thread
4. Registers route blueprints (with CORS on /api)
5. Sets up JSON error handlers

ARCHITECTURE:
    Request threads (Flask)
    ├── AuthGate validates the bearer session token
    ├── ProductCache serves the catalog snapshot (read-through when cold)
    └── QuoteWorkflow creates/approves quotes (upstream, then quote store)

    ProductRefresh thread (background)
    └── 30-minute refresh loop, swaps the catalog snapshot atomically

Both paths share one UpstreamClient and one TokenCache.
"""

from __future__ import annotations

import atexit
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS

from logging_config import setup_logging, get_logger
from core.auth_gate import AuthGate, StaticCredentialVerifier
from core.exceptions import PersistenceError, QuoteDeskError
from core.token_cache import TokenCache
from core.upstream_client import UpstreamClient
from persistence.quote_repository import QuoteRepository
from routes import register_blueprints
from services.product_cache import ProductCache
from services.quote_workflow import QuoteWorkflow


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def create_app(
    config_object: Any = "config.Config",
    overrides: Optional[Dict[str, Any]] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Collaborators already present in the config (TOKEN_CACHE,
    UPSTREAM_CLIENT, QUOTE_REPOSITORY, PRODUCT_CACHE, QUOTE_WORKFLOW,
    AUTH_GATE) are used as given; missing ones are built from settings.

    Args:
        config_object: Import path or class for app.config.from_object
        overrides: Extra config values applied after config_object

    Returns:
        Configured Flask application

    Raises:
        PersistenceError: If the quote store cannot be initialized
    """
    env_file = Path(__file__).parent / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting Quote Desk in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # UPSTREAM
    # =========================================================================

    timeout = app.config.get("UPSTREAM_TIMEOUT_SECONDS", 30.0)

    token_cache = app.config.get("TOKEN_CACHE")
    if token_cache is None:
        token_cache = TokenCache(
            token_url=app.config["UPSTREAM_TOKEN_URL"],
            client_id=app.config["UPSTREAM_CLIENT_ID"],
            client_secret=app.config["UPSTREAM_CLIENT_SECRET"],
            expiry_margin_seconds=app.config.get("TOKEN_EXPIRY_MARGIN_SECONDS", 60),
            timeout_seconds=timeout,
        )
        app.config["TOKEN_CACHE"] = token_cache

    upstream_client = app.config.get("UPSTREAM_CLIENT")
    if upstream_client is None:
        if not app.config.get("UPSTREAM_CLIENT_ID"):
            logger.warning("UPSTREAM_CLIENT_ID is not set - upstream calls will fail")
        upstream_client = UpstreamClient(
            api_url=app.config["UPSTREAM_API_URL"],
            customer_number=app.config["UPSTREAM_CUSTOMER_NUMBER"],
            token_cache=token_cache,
            country_code=app.config.get("UPSTREAM_COUNTRY_CODE", "US"),
            timeout_seconds=timeout,
        )
        app.config["UPSTREAM_CLIENT"] = upstream_client

    # =========================================================================
    # PERSISTENCE (FAIL-FAST)
    # =========================================================================

    repository = app.config.get("QUOTE_REPOSITORY")
    if repository is None:
        repository = QuoteRepository.from_url(app.config["DATABASE_URL"])
        app.config["QUOTE_REPOSITORY"] = repository

    try:
        repository.create_tables()
    except PersistenceError as e:
        logger.error(f"FATAL: Cannot start application - {e}")
        raise

    # =========================================================================
    # SERVICES
    # =========================================================================

    product_cache = app.config.get("PRODUCT_CACHE")
    if product_cache is None:
        product_cache = ProductCache(
            upstream_client,
            refresh_interval_seconds=app.config.get("PRODUCT_REFRESH_INTERVAL_SECONDS", 1800.0),
        )
        app.config["PRODUCT_CACHE"] = product_cache

    if app.config.get("START_PRODUCT_REFRESH", True):
        product_cache.start()
        logger.info("Product refresh thread started")

    if app.config.get("QUOTE_WORKFLOW") is None:
        app.config["QUOTE_WORKFLOW"] = QuoteWorkflow(upstream_client, repository)

    if app.config.get("AUTH_GATE") is None:
        verifier = StaticCredentialVerifier(
            email=app.config["LOGIN_EMAIL"],
            password=app.config["LOGIN_PASSWORD"],
            user_id=app.config.get("LOGIN_USER_ID", 1),
        )
        app.config["AUTH_GATE"] = AuthGate(
            verifier,
            secret=app.config["JWT_SECRET"],
            session_ttl_seconds=app.config.get("SESSION_TTL_SECONDS", 3600),
        )

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        atexit.unregister(cleanup)
        logger.info("Shutting down...")
        product_cache.stop()
        repository.dispose()
        logger.info("Shutdown complete")

    atexit.register(cleanup)
    app.config["CLEANUP"] = cleanup

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # Browser frontend is served from another origin
    CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(QuoteDeskError)
    def handle_quote_desk_error(e: QuoteDeskError):
        if e.status_code >= 500:
            logger.error(f"{type(e).__name__}: {e}")
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    # Reloader would start a second refresh thread
    app.run(debug=debug_mode, use_reloader=False, threaded=True)
