"""
Core module for Quote Desk.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- token_cache: Upstream OAuth token lifecycle
- upstream_client: Distributor API request/response mapping
- auth_gate: Session token issue and validation
"""

from .exceptions import (
    QuoteDeskError,
    AuthError,
    InvalidCredentials,
    Unauthenticated,
    UpstreamError,
    UpstreamAuthError,
    UpstreamUnavailable,
    QuoteNotFound,
    InvalidQuoteRequest,
    PersistenceError,
)
from .token_cache import TokenCache
from .upstream_client import UpstreamClient
from .auth_gate import AuthGate, IdentityVerifier, StaticCredentialVerifier, extract_bearer

__all__ = [
    "QuoteDeskError",
    "AuthError",
    "InvalidCredentials",
    "Unauthenticated",
    "UpstreamError",
    "UpstreamAuthError",
    "UpstreamUnavailable",
    "QuoteNotFound",
    "InvalidQuoteRequest",
    "PersistenceError",
    "TokenCache",
    "UpstreamClient",
    "AuthGate",
    "IdentityVerifier",
    "StaticCredentialVerifier",
    "extract_bearer",
]
