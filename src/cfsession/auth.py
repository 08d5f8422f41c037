"""OAuth credential exchange against the UAA token endpoint."""

from __future__ import annotations

import enum
from typing import Mapping

import httpx
import jwt
import structlog
from pydantic import ValidationError

from .common.errors import (
    AuthenticationError,
    CFSessionError,
    ResourceError,
    TokenRefreshError,
)
from .common.schemas import TokenClaims, TokenGrant
from .config import Configuration
from .net.gateway import Gateway

LOGGER = structlog.get_logger("cfsession.auth")


class TokenState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    FAILED = "failed"


def decode_token_claims(authorization: str) -> TokenClaims:
    """Decode the claims of a ``"bearer <jwt>"`` value without verifying its signature."""

    _, _, raw = authorization.partition(" ")
    try:
        claims = jwt.decode(raw or authorization, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise AuthenticationError(f"Access token is not a valid JWT: {exc}") from exc
    try:
        return TokenClaims.model_validate(claims)
    except ValidationError as exc:
        raise AuthenticationError(f"Access token carries unexpected claims: {exc}") from exc


class AuthManager:
    """Obtains and renews bearer tokens; acts as the gateways' token refresher."""

    def __init__(self, gateway: Gateway, config: Configuration) -> None:
        self._gateway = gateway
        self._config = config
        self.state = TokenState.UNAUTHENTICATED
        self.refresh_count = 0

    async def authenticate(self, credentials: Mapping[str, str]) -> None:
        """Exchange username/password for an access and refresh token pair."""

        form = {"grant_type": "password", "scope": ""}
        form.update(credentials)
        try:
            grant = await self._request_token(form, self._cli_client_auth())
        except AuthenticationError:
            self.state = TokenState.FAILED
            raise
        self._config.set_token_pair(grant.authorization, grant.refresh_token or "")
        self.state = TokenState.AUTHENTICATED
        LOGGER.info("Authenticated", user=credentials.get("username"), endpoint=self._config.uaa_endpoint)

    async def refresh_auth_token(self) -> str:
        """Trade the stored refresh token for a new access token and return it."""

        if not self._config.refresh_token:
            self.state = TokenState.FAILED
            raise TokenRefreshError("No refresh token available; authenticate again")

        self.state = TokenState.REFRESHING
        form = {"grant_type": "refresh_token", "refresh_token": self._config.refresh_token, "scope": ""}
        try:
            grant = await self._request_token(form, self._cli_client_auth())
        except AuthenticationError as exc:
            self.state = TokenState.FAILED
            raise TokenRefreshError(f"Authentication has expired: {exc}") from exc

        self._config.set_token_pair(grant.authorization, grant.refresh_token or self._config.refresh_token)
        self.state = TokenState.AUTHENTICATED
        self.refresh_count += 1
        LOGGER.info("Access token refreshed", refresh_count=self.refresh_count)
        return self._config.access_token

    async def client_token(self, client_id: str, client_secret: str) -> str:
        """Run a client-credentials grant and return the ``Authorization`` value."""

        form = {"grant_type": "client_credentials"}
        grant = await self._request_token(form, httpx.BasicAuth(client_id, client_secret))
        LOGGER.info("Client token issued", client_id=client_id)
        return grant.authorization

    def token_claims(self) -> TokenClaims:
        if not self._config.access_token:
            raise AuthenticationError("Not authenticated")
        return decode_token_claims(self._config.access_token)

    def _cli_client_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self._config.uaa_oauth_client, self._config.uaa_oauth_client_secret)

    async def _request_token(self, form: Mapping[str, str], client_auth: httpx.Auth) -> TokenGrant:
        if not self._config.uaa_endpoint:
            raise AuthenticationError("Token endpoint is not configured")
        url = f"{self._config.uaa_endpoint}/oauth/token"
        try:
            response = await self._gateway.request("POST", url, data=form, auth=client_auth)
        except ResourceError as exc:
            if exc.status_code in {400, 401}:
                raise AuthenticationError(
                    f"Credentials were rejected, please try again: {exc.description or exc.error_code}"
                ) from exc
            raise AuthenticationError(f"Token request failed: {exc}") from exc
        except CFSessionError as exc:
            raise AuthenticationError(f"Token request failed: {exc}") from exc

        try:
            return TokenGrant.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise AuthenticationError(f"Malformed token response: {exc}") from exc
