"""
Flask route blueprints for Quote Desk.

This module contains all route handlers organized by functionality:
- auth: Login and the require_session decorator
- products: Cached catalog reads
- quotes: Quote create/approve/read
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .auth import auth_bp, require_session
from .products import products_bp
from .quotes import quotes_bp
from .api import api_bp

__all__ = [
    "auth_bp",
    "products_bp",
    "quotes_bp",
    "api_bp",
    "require_session",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(quotes_bp)
    app.register_blueprint(api_bp)
