"""
Custom exceptions for Quote Desk.

Exception Hierarchy:
    QuoteDeskError (base)
    ├── AuthError
    │   ├── InvalidCredentials  - login rejected (401)
    │   └── Unauthenticated     - missing/invalid/expired session (401/403)
    ├── UpstreamError
    │   ├── UpstreamAuthError   - client-credentials exchange failed
    │   └── UpstreamUnavailable - catalog or quote call failed
    ├── QuoteNotFound           - quote id absent (404)
    ├── InvalidQuoteRequest     - quote body unusable (400)
    └── PersistenceError        - storage read/write failed

Usage:
    Every exception carries the HTTP status the route layer answers with.
    Nothing in the core retries; callers decide whether to fall back
    (ProductCache serves stale data) or surface the error.
"""

from typing import Optional, Dict, Any


class QuoteDeskError(Exception):
    """
    Base exception for all Quote Desk errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# AUTHENTICATION ERRORS - surfaced immediately, never retried
# =============================================================================

class AuthError(QuoteDeskError):
    """Base class for session authentication failures."""

    status_code = 401


class InvalidCredentials(AuthError):
    """The email/password pair did not match the configured identity."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class Unauthenticated(AuthError):
    """
    A request arrived without a usable session token.

    Missing tokens answer 401; malformed, badly signed or expired tokens
    answer 403. Both block access to products and quotes.
    """

    def __init__(self, message: str = "Access token required", status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code

    @classmethod
    def missing(cls) -> "Unauthenticated":
        return cls("Access token required", 401)

    @classmethod
    def invalid(cls, reason: str = "") -> "Unauthenticated":
        error = cls("Invalid or expired token", 403)
        if reason:
            error.details["reason"] = reason
        return error


# =============================================================================
# UPSTREAM ERRORS - the distributor API failed
# =============================================================================

class UpstreamError(QuoteDeskError):
    """Base class for failures talking to the upstream distributor API."""


class UpstreamAuthError(UpstreamError):
    """
    The client-credentials exchange failed.

    Typical causes:
    - UPSTREAM_CLIENT_ID / UPSTREAM_CLIENT_SECRET missing or wrong
    - Token endpoint unreachable
    - Token response without an access_token
    """

    def __init__(self, message: str = "Upstream credential exchange failed",
                 status: Optional[int] = None):
        details = {}
        if status is not None:
            details["status"] = status
        super().__init__(message, details)
        self.status = status


class UpstreamUnavailable(UpstreamError):
    """
    A catalog or quote call failed (transport error, timeout, non-2xx,
    or a response body that could not be mapped).
    """

    def __init__(
        self,
        operation: str,
        message: Optional[str] = None,
        status: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if status is not None:
            details["status"] = status
        if correlation_id:
            details["correlation_id"] = correlation_id
        super().__init__(message or f"Upstream {operation} failed", details)
        self.operation = operation
        self.status = status
        self.correlation_id = correlation_id


# =============================================================================
# QUOTE WORKFLOW ERRORS
# =============================================================================

class QuoteNotFound(QuoteDeskError):
    """No quote exists with the requested id."""

    status_code = 404

    def __init__(self, quote_id: int):
        super().__init__("Quote not found", {"quote_id": quote_id})
        self.quote_id = quote_id


class InvalidQuoteRequest(QuoteDeskError):
    """The quote body could not be turned into product lines."""

    status_code = 400


class PersistenceError(QuoteDeskError):
    """
    The quote store failed to read or write.

    When raised after a successful upstream quote creation, the upstream
    quote number is carried in details so the orphan can be traced.
    """

    def __init__(self, operation: str, message: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        error_details = dict(details or {})
        error_details["operation"] = operation
        super().__init__(message or f"Quote store {operation} failed", error_details)
        self.operation = operation
