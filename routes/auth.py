"""
Authentication routes.

Handles:
- POST /api/login - Exchange email/password for a session token

Also provides the require_session decorator used by every protected route.
"""

from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request

from core.auth_gate import extract_bearer
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def json_object():
    """Request body as a dict; anything other than a JSON object reads as empty."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def require_session(view):
    """
    Reject the request unless it carries a valid bearer session token.

    The verified Identity is stored on flask.g.identity. Failures raise
    Unauthenticated, rendered by the app's error handler (401/403).
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        auth_gate = current_app.config["AUTH_GATE"]
        token = extract_bearer(request.headers.get("Authorization"))
        g.identity = auth_gate.authenticate(token)
        return view(*args, **kwargs)

    return wrapper


@auth_bp.route("/login", methods=["POST"])
def login():
    """Issue a 1-hour session token for the configured identity."""
    body = json_object()
    email = body.get("email") or ""
    password = body.get("password") or ""

    auth_gate = current_app.config["AUTH_GATE"]
    token = auth_gate.login(str(email), str(password))
    return jsonify({"token": token})
