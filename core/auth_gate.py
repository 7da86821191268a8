"""
Session authentication for Quote Desk.

AuthGate issues signed session tokens on login and turns them back into an
Identity on every protected request. Identity checks are delegated to an
IdentityVerifier so the credential source can be swapped out; the only
implementation today is a single configured email/password pair.

Session tokens are HS256 JWTs carrying {userId, iat, exp}. Expiry is
absolute (no refresh) and is checked against the injected clock.

Failure policy (fail closed):
    - no token                         -> Unauthenticated (401)
    - malformed, bad signature, expired -> Unauthenticated (403)
    - wrong email/password at login     -> InvalidCredentials (401)
"""

from __future__ import annotations

import hmac
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import jwt

from logging_config import get_logger
from models.session import Identity
from .exceptions import InvalidCredentials, Unauthenticated


# Module logger
logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_SESSION_TTL_SECONDS = 3600


class IdentityVerifier(ABC):
    """Checks a login attempt and names the user it belongs to."""

    @abstractmethod
    def verify(self, email: str, password: str) -> Optional[int]:
        """Return the user id for a valid pair, None otherwise."""


class StaticCredentialVerifier(IdentityVerifier):
    """Single-tenant verifier backed by one configured credential pair."""

    def __init__(self, email: str, password: str, user_id: int = 1):
        self._email = email
        self._password = password
        self._user_id = user_id

    def verify(self, email: str, password: str) -> Optional[int]:
        if not email or not password:
            return None
        email_ok = hmac.compare_digest(email.encode("utf-8"), self._email.encode("utf-8"))
        password_ok = hmac.compare_digest(
            password.encode("utf-8"), self._password.encode("utf-8")
        )
        if email_ok and password_ok:
            return self._user_id
        return None


def extract_bearer(header_value: Optional[str]) -> Optional[str]:
    """Pull the token out of an 'Authorization: Bearer <token>' header."""
    if not header_value:
        return None
    parts = header_value.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


class AuthGate:
    """
    Issues and validates session tokens.

    Attributes:
        session_ttl_seconds: Absolute lifetime of an issued token
    """

    def __init__(
        self,
        verifier: IdentityVerifier,
        secret: str,
        session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("A signing secret is required for session tokens")

        self._verifier = verifier
        self._secret = secret
        self._clock = clock
        self.session_ttl_seconds = session_ttl_seconds

    def login(self, email: str, password: str) -> str:
        """
        Exchange an email/password pair for a signed session token.

        Raises:
            InvalidCredentials: If the verifier rejects the pair
        """
        user_id = self._verifier.verify(email, password)
        if user_id is None:
            logger.warning("Rejected login attempt")
            raise InvalidCredentials()

        issued_at = int(self._clock())
        claims = {
            "userId": user_id,
            "iat": issued_at,
            "exp": issued_at + self.session_ttl_seconds,
        }
        token = jwt.encode(claims, self._secret, algorithm=JWT_ALGORITHM)
        logger.info(f"Session issued for user {user_id}")
        return token

    def authenticate(self, token: Optional[str]) -> Identity:
        """
        Verify a session token and return the caller's identity.

        Raises:
            Unauthenticated: If the token is missing, malformed, badly
                signed or expired
        """
        if not token:
            raise Unauthenticated.missing()

        try:
            # Timestamps are checked below against the injected clock
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["exp", "userId"],
                },
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Session token rejected: {e}")
            raise Unauthenticated.invalid(str(e)) from e

        try:
            expires_at = float(claims["exp"])
            user_id = int(claims["userId"])
        except (TypeError, ValueError) as e:
            raise Unauthenticated.invalid("malformed claims") from e

        if self._clock() >= expires_at:
            raise Unauthenticated.invalid("expired")

        return Identity(user_id=user_id, expires_at=expires_at)
