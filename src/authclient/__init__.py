"""
authclient: authenticated HTTP client with single-flight credential renewal.

Quick start:
    from authclient import ApiClient, CredentialPair, load_config

    async with ApiClient(load_config()) as client:
        client.set_credentials(CredentialPair(access=access, refresh=refresh))
        me = await client.get("/auth/me/")
"""

from authclient.auth import (
    CredentialPair,
    CredentialStore,
    DecodedClaims,
    FileTokenStorage,
    MemoryTokenStorage,
    RefreshCoordinator,
    RefreshState,
)
from authclient.config import ClientConfig, load_config
from authclient.errors import ApiError, normalize_error
from authclient.http import (
    AiohttpTransport,
    ApiClient,
    AuthService,
    LoginCredentials,
    RegisterData,
    RequestOptions,
    User,
)
from authclient.logging import setup_logging
from authclient.resilience import RetryPolicy

__version__ = "0.1.0"

__all__ = [
    "ApiClient",
    "RequestOptions",
    "AiohttpTransport",
    "AuthService",
    "User",
    "LoginCredentials",
    "RegisterData",
    "CredentialPair",
    "CredentialStore",
    "DecodedClaims",
    "FileTokenStorage",
    "MemoryTokenStorage",
    "RefreshCoordinator",
    "RefreshState",
    "RetryPolicy",
    "ApiError",
    "normalize_error",
    "ClientConfig",
    "load_config",
    "setup_logging",
]
