"""
Credential models: the upstream bearer token and the local session identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AccessToken:
    """
    Upstream OAuth bearer token.

    expires_at already has the safety margin subtracted, so a token is
    usable exactly while clock() < expires_at. Never mutated, only replaced.
    """

    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def __repr__(self) -> str:
        # Keep the secret out of logs
        return f"AccessToken(value='***', expires_at={self.expires_at})"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, rebuilt from a verified session token."""

    user_id: int
    expires_at: float
    email: Optional[str] = None
