"""
Upstream OAuth token cache.

Holds the distributor bearer token and exchanges client credentials for a
new one when the cached token is missing or about to expire.

THREAD SAFETY:
    - Reads copy the current AccessToken reference under a short lock
    - Cache misses are coalesced behind a refresh lock: the first thread
      exchanges credentials, threads that waited re-check the cache and
      reuse the fresh token instead of issuing their own grant
    - AccessToken is frozen; replacing it is a single assignment

Usage:
    token_cache = TokenCache(token_url, client_id, client_secret)
    token = token_cache.get_token()   # AccessToken
    headers = {"Authorization": f"Bearer {token.value}"}
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

import requests

from logging_config import get_logger
from models.session import AccessToken
from .exceptions import UpstreamAuthError


# Module logger
logger = get_logger(__name__)

DEFAULT_EXPIRY_MARGIN_SECONDS = 60


class TokenCache:
    """
    Client-credentials token cache for the upstream distributor API.

    Attributes:
        expiry_margin_seconds: How long before the server expiry a token
            stops being handed out
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        expiry_margin_seconds: int = DEFAULT_EXPIRY_MARGIN_SECONDS,
        timeout_seconds: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._timeout = timeout_seconds
        self._clock = clock
        self.expiry_margin_seconds = expiry_margin_seconds

        self._token: Optional[AccessToken] = None
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()

    def get_token(self) -> AccessToken:
        """
        Return a usable bearer token, exchanging credentials on a miss.

        Returns:
            AccessToken valid for at least expiry_margin_seconds more

        Raises:
            UpstreamAuthError: If the credential exchange fails (nothing cached)
        """
        token = self._cached()
        if token is not None:
            return token

        with self._refresh_lock:
            # Another thread may have refreshed while we waited
            token = self._cached()
            if token is not None:
                return token

            token = self._exchange()
            with self._lock:
                self._token = token
            return token

    def invalidate(self) -> None:
        """Drop the cached token so the next call exchanges credentials."""
        with self._lock:
            self._token = None
        logger.info("Upstream access token invalidated")

    def _cached(self) -> Optional[AccessToken]:
        with self._lock:
            token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token
        return None

    def _exchange(self) -> AccessToken:
        """POST the client-credentials grant and build an AccessToken."""
        logger.debug("Requesting new upstream access token")

        try:
            response = requests.post(
                self._token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error fetching upstream access token: {e}")
            raise UpstreamAuthError(f"Token request failed: {e}") from e

        if not response.ok:
            logger.error(f"Token endpoint answered {response.status_code}")
            raise UpstreamAuthError(
                f"Token endpoint answered {response.status_code}",
                status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Token endpoint returned invalid JSON: {e}")
            raise UpstreamAuthError("Token response was not JSON") from e

        value = body.get("access_token") if isinstance(body, dict) else None
        if not value:
            logger.error("Token response missing access_token")
            raise UpstreamAuthError("Token response missing access_token")

        try:
            expires_in = float(body.get("expires_in", 0))
        except (TypeError, ValueError):
            expires_in = 0.0

        if expires_in <= self.expiry_margin_seconds:
            logger.error(f"Token lifetime {expires_in:.0f}s is inside the expiry margin")
            raise UpstreamAuthError(
                f"Token lifetime {expires_in:.0f}s shorter than the "
                f"{self.expiry_margin_seconds}s expiry margin"
            )

        expires_at = self._clock() + expires_in - self.expiry_margin_seconds
        logger.info(f"Upstream access token acquired (expires_in={expires_in:.0f}s)")
        return AccessToken(value=value, expires_at=expires_at)
