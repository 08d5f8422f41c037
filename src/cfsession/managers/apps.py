"""Applications, their lifecycle and route mappings."""

from __future__ import annotations

from typing import Any, Optional

from ..common.observability import SessionLogger
from ..common.schemas import Resource
from ..config import Configuration
from ..net.gateway import Gateway
from .base import ResourceManager, ResourceRepository
from .domains import DomainRepository
from .routes import RouteRepository


class AppRepository(ResourceRepository):
    path = "/v2/apps"


class AppManager(ResourceManager):
    """Application operations; route mapping goes through the domain and route repositories."""

    kind = "app"

    def __init__(
        self,
        config: Configuration,
        gateway: Gateway,
        domain_repo: DomainRepository,
        route_repo: RouteRepository,
        logger: SessionLogger,
    ) -> None:
        super().__init__(config, gateway, logger)
        self.repo = AppRepository(config, gateway)
        self._domains = domain_repo
        self._routes = route_repo

    async def list_apps(self, space_guid: Optional[str] = None) -> list[Resource]:
        if space_guid:
            return await self.repo.list(path=f"/v2/spaces/{space_guid}/apps")
        return await self.repo.list()

    async def find_app(self, name: str, space_guid: str) -> Optional[Resource]:
        return await self.repo.find_by_name(name, f"space_guid:{space_guid}")

    async def get_app(self, name: str, space_guid: str) -> Resource:
        return self.require(await self.find_app(name, space_guid), "App", name)

    async def create_app(self, name: str, space_guid: str, **attributes: Any) -> Resource:
        app = await self.repo.create({"name": name, "space_guid": space_guid, **attributes})
        self._log.info("App created", app=name, space_guid=space_guid)
        return app

    async def update_app(self, app_guid: str, **attributes: Any) -> Resource:
        return await self.repo.update(app_guid, attributes)

    async def start_app(self, app_guid: str) -> Resource:
        return await self.repo.update(app_guid, {"state": "STARTED"})

    async def stop_app(self, app_guid: str) -> Resource:
        return await self.repo.update(app_guid, {"state": "STOPPED"})

    async def delete_app(self, app_guid: str) -> None:
        await self.repo.delete(app_guid, recursive=True)

    async def map_route(self, app_guid: str, host: str, domain_name: str, path: str = "") -> Resource:
        """Bind ``host.domain_name/path`` to the app, creating the route when missing."""

        domain = self.require(await self._domains.find_by_name(domain_name), "Domain", domain_name)
        route = await self._routes.find(host, domain.guid, path)
        if route is None:
            app = await self.repo.get(app_guid)
            route = await self._routes.create_route(host, domain.guid, app.entity["space_guid"], path)
        await self._routes.bind(route.guid, app_guid)
        self._log.info("Route mapped", app_guid=app_guid, host=host, domain=domain_name, path=path or None)
        return route

    async def unmap_route(self, app_guid: str, host: str, domain_name: str, path: str = "") -> None:
        domain = self.require(await self._domains.find_by_name(domain_name), "Domain", domain_name)
        route = self.require(
            await self._routes.find(host, domain.guid, path),
            "Route",
            f"{host}.{domain_name}{path}",
        )
        await self._routes.unbind(route.guid, app_guid)
