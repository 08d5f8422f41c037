"""Session-scoped configuration shared by gateways, the auth manager and managers."""

from __future__ import annotations

from typing import Any, Protocol

import structlog
from pydantic import BaseModel, ValidationError

from .common.errors import PersistenceError

LOGGER = structlog.get_logger("cfsession.config")

CF_OAUTH_CLIENT = "cf"


class ConfigData(BaseModel):
    """Fields tracked for one connection to one endpoint."""

    api_endpoint: str = ""
    api_version: str = ""
    authorization_endpoint: str = ""
    uaa_endpoint: str = ""
    loggregator_endpoint: str = ""
    doppler_endpoint: str = ""
    routing_api_endpoint: str = ""
    ssh_oauth_client: str = ""
    min_cli_version: str = ""
    min_recommended_cli_version: str = ""
    access_token: str = ""
    refresh_token: str = ""
    uaa_oauth_client: str = CF_OAUTH_CLIENT
    uaa_oauth_client_secret: str = ""
    ssl_disabled: bool = False


class Persistor(Protocol):
    """Storage backend for ``ConfigData``."""

    def exists(self) -> bool: ...

    def load(self, data: ConfigData) -> None: ...

    def save(self, data: ConfigData) -> None: ...

    def delete(self) -> None: ...


class NullPersistor:
    """Persistor that keeps configuration in memory only."""

    def exists(self) -> bool:
        return False

    def load(self, data: ConfigData) -> None:
        return None

    def save(self, data: ConfigData) -> None:
        return None

    def delete(self) -> None:
        return None


class Configuration:
    """Mutable view over ``ConfigData`` that writes through a ``Persistor``."""

    def __init__(self, persistor: Persistor, data: ConfigData | None = None) -> None:
        self._persistor = persistor
        self._data = data or ConfigData()

    @classmethod
    def from_persistor(cls, persistor: Persistor) -> "Configuration":
        data = ConfigData()
        try:
            if persistor.exists():
                persistor.load(data)
        except Exception as exc:  # noqa: BLE001 - persistor backends raise anything
            raise PersistenceError(f"Unable to load configuration: {exc}") from exc
        return cls(persistor, data)

    def update(self, **changes: Any) -> None:
        unknown = set(changes) - set(ConfigData.model_fields)
        if unknown:
            raise AttributeError(f"Unknown configuration fields: {sorted(unknown)}")
        try:
            updated = self._data.model_copy(update=changes)
            self._data = ConfigData.model_validate(updated.model_dump())
        except ValidationError as exc:
            raise PersistenceError(f"Invalid configuration value: {exc}") from exc
        try:
            self._persistor.save(self._data)
        except Exception as exc:  # noqa: BLE001
            raise PersistenceError(f"Unable to save configuration: {exc}") from exc
        LOGGER.debug("Configuration updated", fields=sorted(changes))

    def snapshot(self) -> ConfigData:
        return self._data.model_copy()

    def set_token_pair(self, access_token: str, refresh_token: str) -> None:
        self.update(access_token=access_token, refresh_token=refresh_token)

    def has_api_endpoint(self) -> bool:
        return bool(self._data.api_endpoint)

    @property
    def api_endpoint(self) -> str:
        return self._data.api_endpoint

    @property
    def api_version(self) -> str:
        return self._data.api_version

    @property
    def authorization_endpoint(self) -> str:
        return self._data.authorization_endpoint

    @property
    def uaa_endpoint(self) -> str:
        return self._data.uaa_endpoint

    @property
    def loggregator_endpoint(self) -> str:
        return self._data.loggregator_endpoint

    @property
    def doppler_endpoint(self) -> str:
        return self._data.doppler_endpoint

    @property
    def routing_api_endpoint(self) -> str:
        return self._data.routing_api_endpoint

    @property
    def access_token(self) -> str:
        return self._data.access_token

    @property
    def refresh_token(self) -> str:
        return self._data.refresh_token

    @property
    def uaa_oauth_client(self) -> str:
        return self._data.uaa_oauth_client

    @property
    def uaa_oauth_client_secret(self) -> str:
        return self._data.uaa_oauth_client_secret

    @property
    def ssl_disabled(self) -> bool:
        return self._data.ssl_disabled
