"""Exception hierarchy raised by cfsession."""

from __future__ import annotations

from typing import Optional


class CFSessionError(Exception):
    """Base class for every error surfaced by this package."""


class TransportError(CFSessionError):
    """The request never produced an HTTP response."""


class ResponseFormatError(CFSessionError):
    """A response body was not valid JSON or did not match the expected shape."""


class ResourceError(CFSessionError):
    """Non-2xx response from the Cloud Controller or UAA."""

    def __init__(
        self,
        status_code: int,
        error_code: str = "",
        description: str = "",
        *,
        url: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.error_code = error_code
        self.description = description
        self.url = url
        message = f"Server error, status code: {status_code}, error code: {error_code or '-'}"
        if description:
            message = f"{message}, message: {description}"
        super().__init__(message)


class ResourceNotFoundError(ResourceError):
    """The requested resource does not exist (HTTP 404)."""


class AsyncJobError(CFSessionError):
    """A polled Cloud Controller job failed or did not finish in time."""


class DiscoveryError(CFSessionError):
    """The platform discovery document could not be fetched or decoded."""


class ConfigurationError(CFSessionError):
    """The session configuration could not be built from the endpoint or discovery data."""


class PersistenceError(ConfigurationError):
    """The configuration persistor failed to load or save."""


class AuthenticationError(CFSessionError):
    """Credential exchange with the token issuer failed."""


class TokenRefreshError(AuthenticationError):
    """The refresh-token grant was rejected; the session has to be re-created."""


class ManagerConstructionError(CFSessionError):
    """A resource manager failed its startup probe during session bootstrap."""

    def __init__(self, manager: str, cause: BaseException) -> None:
        self.manager = manager
        self.cause = cause
        super().__init__(f"{manager} manager: {cause}")
