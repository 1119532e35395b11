"""
Authentication endpoints on top of ApiClient.

Schemas accept the API's camelCase field names and expose snake_case
attributes.
"""

import logging
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from authclient.auth.models import CredentialPair
from authclient.errors.exceptions import ApiError
from authclient.errors.messages import log_error
from authclient.http.client import ApiClient, RequestOptions

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login/"
REGISTER_PATH = "/auth/register/"
LOGOUT_PATH = "/auth/logout/"
ME_PATH = "/auth/me/"
VERIFY_PATH = "/auth/token/verify/"


class User(BaseModel):
    """Authenticated user profile returned by /auth/me/."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="User identifier")
    email: str = Field(..., description="Login email")
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    role: str | None = Field(default=None, description="Role within the tenant")
    tenant_id: str = Field(..., alias="tenantId", description="Owning tenant")
    project_ids: list[str] = Field(default_factory=list, alias="projectIds")

    @field_validator("id", "tenant_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        """Numeric primary keys are accepted and kept as strings."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LoginCredentials(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)
    tenant: str | None = Field(default=None, description="Tenant slug")


class RegisterData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    tenant_slug: str = Field(..., alias="tenantSlug", min_length=1)


class TokenVerification(BaseModel):
    valid: bool


ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: type[ModelT], data, what: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ApiError.unknown(f"Malformed {what} in response", cause=e) from e


def _pair_from_body(body) -> CredentialPair:
    pair = CredentialPair.from_dict(body)
    if pair is None:
        raise ApiError.unknown("Authentication response did not contain a credential pair")
    return pair


class AuthService:
    """
    Login, registration and session restore.

    Every method raises ApiError on failure except logout(), which always
    succeeds locally, and restore_session(), which reports failure as None.
    """

    def __init__(self, client: ApiClient):
        self._client = client

    async def login(self, credentials: LoginCredentials) -> CredentialPair:
        """Exchange credentials for a token pair and store it."""
        try:
            body = await self._client.public_post(
                LOGIN_PATH, credentials.model_dump(exclude_none=True)
            )
            pair = _pair_from_body(body)
        except ApiError as e:
            log_error(e, {"action": "login"})
            raise

        self._client.set_credentials(pair)
        logger.info("Logged in")
        return pair

    async def register(self, data: RegisterData) -> User:
        """Create an account; the returned tokens are stored."""
        body = await self._client.public_post(REGISTER_PATH, data.model_dump(by_alias=True))
        if not isinstance(body, dict):
            raise ApiError.unknown("Registration response was not a JSON object")

        pair = _pair_from_body(body.get("tokens"))
        user = _parse(User, body.get("user") or {}, "user profile")
        self._client.set_credentials(pair)
        logger.info("Registered new user")
        return user

    async def logout(self) -> None:
        """Invalidate the session server-side; local credentials are always cleared."""
        try:
            await self._client.post(LOGOUT_PATH, options=RequestOptions(retry=False))
        except ApiError as e:
            logger.warning(
                "Server logout failed",
                extra={"error_code": e.code, "status_code": e.status_code},
            )
        finally:
            self._client.clear_credentials()

    async def get_current_user(self) -> User:
        body = await self._client.get(ME_PATH)
        return _parse(User, body, "user profile")

    async def verify_token(self, token: str) -> TokenVerification:
        """
        Ask the server whether a token is valid.

        A 401/403 from the verify endpoint means "invalid" and is not raised.
        """
        try:
            body = await self._client.public_post(VERIFY_PATH, {"token": token})
        except ApiError as e:
            if e.is_auth_error:
                return TokenVerification(valid=False)
            raise

        if isinstance(body, dict) and "valid" in body:
            return _parse(TokenVerification, body, "token verification")
        return TokenVerification(valid=True)

    async def restore_session(self) -> User | None:
        """
        Resume a stored session.

        Renews the pair when only the access token has expired, clears it
        when both have. Returns the current user, or None when there is no
        usable session.
        """
        store = self._client.store
        pair = store.load()
        if pair is None:
            return None

        if store.is_expired(pair.access):
            if store.is_expired(pair.refresh):
                logger.info("Stored session expired, clearing credentials")
                store.clear()
                return None
            if not await self._client.refresh_session():
                return None

        try:
            return await self.get_current_user()
        except ApiError as e:
            if e.is_auth_error:
                self._client.clear_credentials()
            log_error(e, {"action": "restore_session"})
            return None


__all__ = [
    "AuthService",
    "User",
    "LoginCredentials",
    "RegisterData",
    "TokenVerification",
]
