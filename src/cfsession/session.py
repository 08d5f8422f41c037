"""Authenticated session against one Cloud Controller endpoint."""

from __future__ import annotations

import ssl
from typing import Mapping, Optional

import httpx
import structlog
from opentelemetry import trace

from .auth import AuthManager
from .bootstrap import (
    SessionManagers,
    build_managers,
    complete_info,
    fetch_info,
    normalize_endpoint,
    populate_configuration,
)
from .common.errors import ConfigurationError
from .common.observability import SessionLogger
from .common.schemas import CCInfo, FeatureFlag
from .common.settings import SessionSettings, load_settings
from .config import Configuration, NullPersistor, Persistor
from .managers import (
    AppManager,
    ASGManager,
    BuildpackManager,
    DomainManager,
    EVGManager,
    OrgManager,
    QuotaManager,
    RouteManager,
    ServiceManager,
    SpaceManager,
    StackManager,
    UserManager,
)
from .net.gateway import Gateway, TokenRefreshAuth, cloud_controller_gateway, ssl_verify, uaa_gateway

LOGGER = structlog.get_logger("cfsession.session")
TRACER = trace.get_tracer("cfsession.session")

FEATURE_FLAGS_PATH = "/v2/config/feature_flags"


class Session:
    """Owns the configuration, both gateways, the auth manager and every resource manager.

    Build one with ``await Session.create(...)``; the constructor only wires
    already-initialised parts together.
    """

    def __init__(
        self,
        *,
        info: CCInfo,
        config: Configuration,
        cc_gateway: Gateway,
        uaa_gateway: Gateway,
        auth_manager: AuthManager,
        managers: SessionManagers,
        logger: SessionLogger,
    ) -> None:
        self._info = info
        self._config = config
        self._cc = cc_gateway
        self._uaa = uaa_gateway
        self._auth_manager = auth_manager
        self._managers = managers
        self.log = logger

    @classmethod
    async def create(
        cls,
        endpoint: str,
        user: str,
        password: str,
        uaa_client_id: str = "",
        uaa_client_secret: str = "",
        ca_cert: str = "",
        skip_ssl_validation: bool = False,
        *,
        settings: Optional[SessionSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        persistor: Optional[Persistor] = None,
    ) -> "Session":
        """Discover, authenticate and build every manager, or raise on the first failure."""

        settings = settings or load_settings()
        endpoint = normalize_endpoint(endpoint)
        config = Configuration.from_persistor(persistor or NullPersistor())
        config.update(ssl_disabled=skip_ssl_validation)
        try:
            verify = ssl_verify(skip_ssl_validation, ca_cert)
        except (ssl.SSLError, OSError, ValueError) as exc:
            raise ConfigurationError(f"Invalid CA certificate: {exc}") from exc

        logger = SessionLogger(settings, endpoint=endpoint)
        auth = TokenRefreshAuth(config)
        cc = cloud_controller_gateway(config, logger, settings, auth, verify=verify, transport=transport)
        uaa = uaa_gateway(config, logger, settings, auth, verify=verify, transport=transport)
        auth_manager = AuthManager(uaa, config)

        try:
            with TRACER.start_as_current_span("session.bootstrap"):
                discovered = await fetch_info(cc, endpoint)
                info = complete_info(discovered, endpoint, user, password, skip_ssl_validation)
                populate_configuration(config, info)

                await auth_manager.authenticate({"username": user, "password": password})
                cc.set_token_refresher(auth_manager)
                uaa.set_token_refresher(auth_manager)
                cc.polling_enabled = False

                managers = await build_managers(config, cc, uaa, logger)
                if uaa_client_id:
                    managers.user.client_token = await auth_manager.client_token(uaa_client_id, uaa_client_secret)
                    await managers.user.load_groups()
        except BaseException:
            await cc.aclose()
            await uaa.aclose()
            logger.close()
            raise

        LOGGER.info("Session established", endpoint=endpoint, api_version=info.api_version, user=user)
        return cls(
            info=info,
            config=config,
            cc_gateway=cc,
            uaa_gateway=uaa,
            auth_manager=auth_manager,
            managers=managers,
            logger=logger,
        )

    async def aclose(self) -> None:
        await self._cc.aclose()
        await self._uaa.aclose()
        self.log.close()

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def info(self) -> CCInfo:
        return self._info

    @property
    def config(self) -> Configuration:
        return self._config

    @property
    def auth_manager(self) -> AuthManager:
        return self._auth_manager

    @property
    def user_manager(self) -> UserManager:
        return self._managers.user

    @property
    def stack_manager(self) -> StackManager:
        return self._managers.stack

    @property
    def domain_manager(self) -> DomainManager:
        return self._managers.domain

    @property
    def asg_manager(self) -> ASGManager:
        return self._managers.asg

    @property
    def evg_manager(self) -> EVGManager:
        return self._managers.evg

    @property
    def quota_manager(self) -> QuotaManager:
        return self._managers.quota

    @property
    def org_manager(self) -> OrgManager:
        return self._managers.org

    @property
    def space_manager(self) -> SpaceManager:
        return self._managers.space

    @property
    def service_manager(self) -> ServiceManager:
        return self._managers.service

    @property
    def buildpack_manager(self) -> BuildpackManager:
        return self._managers.buildpack

    @property
    def route_manager(self) -> RouteManager:
        return self._managers.route

    @property
    def app_manager(self) -> AppManager:
        return self._managers.app

    async def get_feature_flags(self) -> dict[str, bool]:
        """Read every feature flag; a name listed twice keeps its last value."""

        flags = await self._cc.get_resource(
            f"{self._config.api_endpoint}{FEATURE_FLAGS_PATH}",
            list[FeatureFlag],
        )
        return {flag.name: flag.enabled for flag in flags or []}

    async def set_feature_flags(self, flags: Mapping[str, bool]) -> None:
        """Write flags in iteration order and stop at the first failure.

        Flags written before the failing one stay written.
        """

        for name, enabled in flags.items():
            await self._cc.update_resource(
                self._config.api_endpoint,
                f"{FEATURE_FLAGS_PATH}/{name}",
                {"enabled": bool(enabled)},
            )
            LOGGER.info("Feature flag updated", flag=name, enabled=bool(enabled))
