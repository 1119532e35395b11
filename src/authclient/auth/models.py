"""Credential data models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class CredentialPair:
    """
    Short-lived access token plus long-lived refresh token.

    A pair is either fully present or fully absent; from_dict() returns None
    for anything partial.

    Attributes:
        access: Short-lived token attached to every authenticated call
        refresh: Long-lived token used only for the renewal exchange
    """

    access: str
    refresh: str

    @classmethod
    def from_dict(cls, data: Any) -> "CredentialPair | None":
        """
        Build a pair from a decoded record or renewal response.

        Args:
            data: Mapping with "access" and "refresh" keys

        Returns:
            CredentialPair, or None when either token is missing, empty
            or not a string
        """
        if not isinstance(data, dict):
            return None

        access = data.get("access")
        refresh = data.get("refresh")
        if not isinstance(access, str) or not access:
            return None
        if not isinstance(refresh, str) or not refresh:
            return None

        return cls(access=access, refresh=refresh)

    def to_dict(self) -> dict[str, str]:
        return {"access": self.access, "refresh": self.refresh}

    def __repr__(self) -> str:
        return "CredentialPair(access=***, refresh=***)"


def _as_timestamp(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _as_text(*values: Any) -> str | None:
    for value in values:
        if value is not None and value != "":
            return str(value)
    return None


@dataclass(frozen=True)
class DecodedClaims:
    """
    Read-only view of a token's claims.

    Recomputed from the token on every use and never cached, since validity
    depends on the wall clock.

    Attributes:
        expires_at: `exp` claim (epoch seconds), None when absent or non-numeric
        subject: `user_id`, falling back to `sub`
        tenant: `tenant`, falling back to `tenant_id`
        email: `email` claim
        issued_at: `iat` claim (epoch seconds)
        raw: All decoded claims
    """

    expires_at: float | None
    subject: str | None = None
    tenant: str | None = None
    email: str | None = None
    issued_at: float | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "DecodedClaims":
        return cls(
            expires_at=_as_timestamp(claims.get("exp")),
            subject=_as_text(claims.get("user_id"), claims.get("sub")),
            tenant=_as_text(claims.get("tenant"), claims.get("tenant_id")),
            email=_as_text(claims.get("email")),
            issued_at=_as_timestamp(claims.get("iat")),
            raw=dict(claims),
        )

    @property
    def expires_at_datetime(self) -> datetime | None:
        """UTC expiry, for diagnostics."""
        if self.expires_at is None:
            return None
        return datetime.fromtimestamp(self.expires_at, UTC)


__all__ = ["CredentialPair", "DecodedClaims"]
