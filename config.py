"""
Configuration for Quote Desk.

Values come from the environment (optionally a .env file). Upstream
credentials have no defaults; the token exchange fails with
UpstreamAuthError until they are set.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Session tokens (AuthGate)
    # ==========================================================================
    JWT_SECRET = os.environ.get("JWT_SECRET", "your_jwt_secret")
    SESSION_TTL_SECONDS = int(os.environ.get("SESSION_TTL_SECONDS", "3600"))

    # Frontend origins allowed to call /api (comma-separated, "*" for any)
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
    ]

    # Single-tenant login identity
    LOGIN_EMAIL = os.environ.get("LOGIN_EMAIL", "customer@vcronglobal.com")
    LOGIN_PASSWORD = os.environ.get("LOGIN_PASSWORD", "securepassword")
    LOGIN_USER_ID = int(os.environ.get("LOGIN_USER_ID", "1"))

    # ==========================================================================
    # Upstream distributor API
    # ==========================================================================
    UPSTREAM_API_URL = os.environ.get(
        "UPSTREAM_API_URL", "https://api.ingrammicro.com:443/resellers/v6"
    )
    UPSTREAM_TOKEN_URL = os.environ.get(
        "UPSTREAM_TOKEN_URL", "https://api.ingrammicro.com:443/oauth/oauth20/token"
    )
    UPSTREAM_CLIENT_ID = os.environ.get("UPSTREAM_CLIENT_ID", "")
    UPSTREAM_CLIENT_SECRET = os.environ.get("UPSTREAM_CLIENT_SECRET", "")
    UPSTREAM_CUSTOMER_NUMBER = os.environ.get("UPSTREAM_CUSTOMER_NUMBER", "")
    UPSTREAM_COUNTRY_CODE = os.environ.get("UPSTREAM_COUNTRY_CODE", "US")
    UPSTREAM_TIMEOUT_SECONDS = float(os.environ.get("UPSTREAM_TIMEOUT_SECONDS", "30"))

    # Bearer tokens are treated as expired this many seconds early
    TOKEN_EXPIRY_MARGIN_SECONDS = int(os.environ.get("TOKEN_EXPIRY_MARGIN_SECONDS", "60"))

    # ==========================================================================
    # Product cache
    # ==========================================================================
    # Refresh interval doubles as the cache TTL (30 minutes)
    PRODUCT_REFRESH_INTERVAL_SECONDS = float(
        os.environ.get("PRODUCT_REFRESH_INTERVAL_SECONDS", "1800")
    )
    START_PRODUCT_REFRESH = _env_bool("START_PRODUCT_REFRESH", "1")

    # ==========================================================================
    # Persistence
    # ==========================================================================
    DATABASE_URL = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'quote_desk.db'}"
    )


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    ENVIRONMENT = "production"


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    ENVIRONMENT = "testing"
    JWT_SECRET = "test-secret"
    DATABASE_URL = "sqlite://"
    START_PRODUCT_REFRESH = False
    UPSTREAM_CLIENT_ID = "test-client"
    UPSTREAM_CLIENT_SECRET = "test-secret"
    UPSTREAM_CUSTOMER_NUMBER = "20-222222"
