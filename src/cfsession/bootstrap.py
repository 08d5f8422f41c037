"""Endpoint discovery and the ordered construction of resource managers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import structlog
from pydantic import SecretStr

from .common.errors import CFSessionError, ConfigurationError, DiscoveryError, ManagerConstructionError
from .common.observability import SessionLogger
from .common.schemas import CCInfo
from .config import Configuration
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
from .net.gateway import Gateway

LOGGER = structlog.get_logger("cfsession.bootstrap")

ENDPOINT_DOMAIN_PATTERN = re.compile(r"^http(s?)://[^\.]+\.([^:]+)")

MANAGER_ORDER = (
    "user",
    "stack",
    "domain",
    "asg",
    "evg",
    "quota",
    "org",
    "space",
    "service",
    "buildpack",
    "route",
    "app",
)

T = TypeVar("T")


def normalize_endpoint(endpoint: str) -> str:
    """Drop one trailing slash and default the scheme to https."""

    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if not endpoint.startswith(("http://", "https://")):
        endpoint = "https://" + endpoint
    return endpoint


def synthesize_logging_endpoint(endpoint: str) -> str:
    """Derive ``ws[s]://loggregator.<domain>:<port>`` from the API endpoint's domain."""

    match = ENDPOINT_DOMAIN_PATTERN.match(endpoint)
    if match is None:
        raise ConfigurationError(
            f"Unable to derive a logging endpoint from API endpoint '{endpoint}': "
            "expected scheme://host.domain"
        )
    secure = match.group(1) == "s"
    scheme = "wss" if secure else "ws"
    port = 443 if secure else 80
    return f"{scheme}://loggregator.{match.group(2)}:{port}"


async def fetch_info(gateway: Gateway, endpoint: str) -> CCInfo:
    try:
        return await gateway.get_resource(f"{endpoint}/v2/info", CCInfo)
    except CFSessionError as exc:
        raise DiscoveryError(str(exc)) from exc


def complete_info(info: CCInfo, endpoint: str, user: str, password: str, skip_ssl_validation: bool) -> CCInfo:
    updates = {
        "api_endpoint": endpoint,
        "user": user,
        "password": SecretStr(password),
        "skip_ssl_validation": skip_ssl_validation,
    }
    if not info.loggregator_endpoint:
        updates["loggregator_endpoint"] = synthesize_logging_endpoint(endpoint)
    return info.model_copy(update=updates)


def populate_configuration(config: Configuration, info: CCInfo) -> None:
    config.update(
        api_endpoint=info.api_endpoint,
        api_version=info.api_version,
        authorization_endpoint=info.authorization_endpoint,
        uaa_endpoint=info.token_endpoint,
        ssh_oauth_client=info.ssh_oauth_client,
        min_cli_version=info.min_cli_version,
        min_recommended_cli_version=info.min_recommended_cli_version,
        doppler_endpoint=info.doppler_endpoint,
        routing_api_endpoint=info.routing_api_endpoint,
        loggregator_endpoint=info.loggregator_endpoint,
    )


@dataclass(frozen=True)
class SessionManagers:
    user: UserManager
    stack: StackManager
    domain: DomainManager
    asg: ASGManager
    evg: EVGManager
    quota: QuotaManager
    org: OrgManager
    space: SpaceManager
    service: ServiceManager
    buildpack: BuildpackManager
    route: RouteManager
    app: AppManager


async def _construct(kind: str, factory: Callable[[], Awaitable[T]]) -> T:
    try:
        manager = await factory()
    except CFSessionError as exc:
        LOGGER.warning("Manager construction failed", manager=kind, error=str(exc))
        raise ManagerConstructionError(kind, exc) from exc
    LOGGER.debug("Manager ready", manager=kind)
    return manager


async def build_managers(
    config: Configuration,
    cc_gateway: Gateway,
    uaa_gateway: Gateway,
    logger: SessionLogger,
) -> SessionManagers:
    """Construct every manager in ``MANAGER_ORDER``; the first failure aborts."""

    user = await _construct("user", lambda: UserManager.create(config, uaa_gateway, cc_gateway, logger))
    stack = await _construct("stack", lambda: StackManager.create(config, cc_gateway, logger))
    domain = await _construct("domain", lambda: DomainManager.create(config, cc_gateway, logger))
    asg = await _construct("asg", lambda: ASGManager.create(config, cc_gateway, logger))
    evg = await _construct("evg", lambda: EVGManager.create(config, cc_gateway, logger))
    quota = await _construct("quota", lambda: QuotaManager.create(config, cc_gateway, logger))
    org = await _construct("org", lambda: OrgManager.create(config, cc_gateway, logger))
    space = await _construct("space", lambda: SpaceManager.create(config, cc_gateway, logger))
    service = await _construct("service", lambda: ServiceManager.create(config, cc_gateway, logger))
    buildpack = await _construct("buildpack", lambda: BuildpackManager.create(config, cc_gateway, logger))
    route = await _construct("route", lambda: RouteManager.create(config, cc_gateway, logger))
    app = await _construct(
        "app",
        lambda: AppManager.create(config, cc_gateway, domain.repo, route.repo, logger),
    )
    return SessionManagers(
        user=user,
        stack=stack,
        domain=domain,
        asg=asg,
        evg=evg,
        quota=quota,
        org=org,
        space=space,
        service=service,
        buildpack=buildpack,
        route=route,
        app=app,
    )
