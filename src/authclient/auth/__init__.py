"""
Credential management.

Components:
    - CredentialStore: persists and validates the access/refresh pair
    - FileTokenStorage / MemoryTokenStorage: storage backends
    - RefreshCoordinator: single-flight credential renewal
    - RefreshExchange: the renewal call over the client transport
"""

from authclient.auth.credential_store import (
    DEFAULT_EXPIRY_BUFFER_SECONDS,
    TOKEN_STORAGE_KEY,
    CredentialStore,
)
from authclient.auth.models import CredentialPair, DecodedClaims
from authclient.auth.refresh import (
    RENEWAL_FAILURE_CODE,
    CredentialExchange,
    RefreshCoordinator,
    RefreshExchange,
    RefreshState,
    RenewalWaiters,
    renewal_failure_error,
)
from authclient.auth.storage import FileTokenStorage, MemoryTokenStorage

__all__ = [
    # Models
    "CredentialPair",
    "DecodedClaims",
    # Store
    "CredentialStore",
    "TOKEN_STORAGE_KEY",
    "DEFAULT_EXPIRY_BUFFER_SECONDS",
    # Storage
    "FileTokenStorage",
    "MemoryTokenStorage",
    # Renewal
    "RefreshCoordinator",
    "RefreshExchange",
    "RefreshState",
    "RenewalWaiters",
    "CredentialExchange",
    "renewal_failure_error",
    "RENEWAL_FAILURE_CODE",
]
