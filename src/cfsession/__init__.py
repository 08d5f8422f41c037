"""Authenticated Cloud Controller sessions with auto-refreshing credentials."""

from .common.errors import (
    AsyncJobError,
    AuthenticationError,
    CFSessionError,
    ConfigurationError,
    DiscoveryError,
    ManagerConstructionError,
    PersistenceError,
    ResourceError,
    ResourceNotFoundError,
    ResponseFormatError,
    TokenRefreshError,
    TransportError,
)
from .common.identifiers import new_random_string, new_uuid
from .common.schemas import CCInfo
from .common.settings import SessionSettings
from .session import Session

__all__ = [
    "AsyncJobError",
    "AuthenticationError",
    "CCInfo",
    "CFSessionError",
    "ConfigurationError",
    "DiscoveryError",
    "ManagerConstructionError",
    "PersistenceError",
    "ResourceError",
    "ResourceNotFoundError",
    "ResponseFormatError",
    "Session",
    "SessionSettings",
    "TokenRefreshError",
    "TransportError",
    "new_random_string",
    "new_uuid",
]
