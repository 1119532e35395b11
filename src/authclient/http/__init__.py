"""
HTTP layer.

Components:
    - ApiClient: authenticated request pipeline
    - AiohttpTransport: aiohttp-backed transport
    - AuthService: login, registration and session restore endpoints
"""

from authclient.http.auth_service import (
    AuthService,
    LoginCredentials,
    RegisterData,
    TokenVerification,
    User,
)
from authclient.http.client import ApiClient, PendingCall, RequestOptions
from authclient.http.transport import AiohttpTransport

__all__ = [
    "ApiClient",
    "PendingCall",
    "RequestOptions",
    "AiohttpTransport",
    "AuthService",
    "User",
    "LoginCredentials",
    "RegisterData",
    "TokenVerification",
]
