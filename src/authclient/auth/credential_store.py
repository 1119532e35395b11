"""
Credential store with expiry validation.

Persists the access/refresh credential pair under a single well-known key and
answers validity questions about the stored tokens. Tokens are decoded on
every call (no claims caching) because validity depends on the wall clock.

Failure policy:
    Persistence failures never propagate. Losing the pair only forces the
    user to authenticate again, so save/clear log and continue, and load
    treats an unreadable or partial record as absent (clearing it).

Example:
    >>> store = CredentialStore(FileTokenStorage("~/.config/authclient/tokens.json"))
    >>> store.save(CredentialPair(access="eyJ...", refresh="eyJ..."))
    >>> token = store.valid_access_token()
    >>> if token is None:
    ...     # expired or absent; the next call will get a 401 and renew
"""

import json
import logging
import time
from collections.abc import Callable

from jose import jwt
from jose.exceptions import JOSEError

from authclient.auth.models import CredentialPair, DecodedClaims
from authclient.auth.storage import MemoryTokenStorage
from authclient.types import TokenStorage

logger = logging.getLogger(__name__)

TOKEN_STORAGE_KEY = "auth_tokens"

# Buffer used by is_expiring_soon() (5 minutes before actual expiry)
DEFAULT_EXPIRY_BUFFER_SECONDS = 300


class CredentialStore:
    """
    Data access for the stored credential pair.

    Pure data access: no locking and no coordination. Writers are the refresh
    coordinator and explicit login/logout; reads are snapshot reads.
    """

    def __init__(
        self,
        storage: TokenStorage | None = None,
        key: str = TOKEN_STORAGE_KEY,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize credential store.

        Args:
            storage: Key/value backend (in-memory when omitted)
            key: Storage key holding the credential record
            clock: Returns current epoch seconds; injectable for tests
        """
        self._storage = storage if storage is not None else MemoryTokenStorage()
        self.key = key
        self._clock = clock

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, pair: CredentialPair) -> None:
        """Persist a credential pair. Never raises."""
        try:
            self._storage.set_item(self.key, json.dumps(pair.to_dict()))
        except Exception as e:
            logger.error(
                "Failed to store credentials",
                extra={"error_type": type(e).__name__, "error_message": str(e)[:200]},
            )

    def load(self) -> CredentialPair | None:
        """
        Return the stored pair if structurally valid.

        Invalid, partial or unreadable records are cleared and reported as
        absent.
        """
        try:
            raw = self._storage.get_item(self.key)
        except Exception as e:
            logger.error(
                "Failed to read credentials",
                extra={"error_type": type(e).__name__, "error_message": str(e)[:200]},
            )
            self.clear()
            return None

        if raw is None:
            return None

        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Stored credentials are not valid JSON, clearing")
            self.clear()
            return None

        pair = CredentialPair.from_dict(data)
        if pair is None:
            logger.warning("Invalid credential structure, clearing")
            self.clear()
            return None

        return pair

    def clear(self) -> None:
        """Remove any stored pair. Idempotent; never raises."""
        try:
            self._storage.remove_item(self.key)
        except Exception as e:
            logger.error(
                "Failed to clear credentials",
                extra={"error_type": type(e).__name__, "error_message": str(e)[:200]},
            )

    # -------------------------------------------------------------------------
    # Token validation
    # -------------------------------------------------------------------------

    @staticmethod
    def decode(token: str) -> DecodedClaims | None:
        """
        Decode a token's claims without verifying its signature.

        Signature verification belongs to the server; the client only needs
        expiry and identity hints.

        Returns:
            DecodedClaims, or None if the token cannot be decoded
        """
        if not isinstance(token, str) or not token:
            return None
        try:
            claims = jwt.get_unverified_claims(token)
        except (JOSEError, TypeError, ValueError):
            logger.debug("Failed to decode token")
            return None
        return DecodedClaims.from_claims(claims)

    def now(self) -> float:
        return self._clock()

    def is_expired(self, token: str, buffer_seconds: float = 0) -> bool:
        """
        Check whether a token is expired, failing closed.

        Args:
            token: Encoded token
            buffer_seconds: Treat tokens expiring within this window as expired

        Returns:
            True if the token cannot be decoded, has no numeric exp, or
            exp <= now + buffer_seconds
        """
        claims = self.decode(token)
        if claims is None or claims.expires_at is None:
            return True
        return claims.expires_at <= self.now() + buffer_seconds

    def is_expiring_soon(
        self, token: str, buffer_seconds: float = DEFAULT_EXPIRY_BUFFER_SECONDS
    ) -> bool:
        return self.is_expired(token, buffer_seconds)

    def valid_access_token(self) -> str | None:
        """Stored access token if present and not expired (zero buffer)."""
        pair = self.load()
        if pair is None:
            return None
        if self.is_expired(pair.access):
            return None
        return pair.access

    # -------------------------------------------------------------------------
    # Session introspection
    # -------------------------------------------------------------------------

    def _access_claims(self) -> DecodedClaims | None:
        pair = self.load()
        if pair is None:
            return None
        return self.decode(pair.access)

    def tenant_from_token(self) -> str | None:
        claims = self._access_claims()
        return claims.tenant if claims else None

    def user_id_from_token(self) -> str | None:
        claims = self._access_claims()
        return claims.subject if claims else None

    def token_expiration(self) -> float | None:
        """Access token `exp` claim in epoch seconds, or None."""
        claims = self._access_claims()
        return claims.expires_at if claims else None

    def remaining_lifetime(self) -> int:
        """Seconds until the access token expires; 0 if expired or absent."""
        expires_at = self.token_expiration()
        if expires_at is None:
            return 0
        return max(int(expires_at - self.now()), 0)

    def has_valid_session(self) -> bool:
        """True when a refresh token is stored and not yet expired."""
        pair = self.load()
        if pair is None:
            return False
        return not self.is_expired(pair.refresh)


__all__ = [
    "CredentialStore",
    "TOKEN_STORAGE_KEY",
    "DEFAULT_EXPIRY_BUFFER_SECONDS",
]
