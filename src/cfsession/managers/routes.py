"""Routes (host + domain + path) and their application bindings."""

from __future__ import annotations

from typing import Any, Optional

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository


class RouteRepository(ResourceRepository):
    path = "/v2/routes"

    async def find(self, host: str, domain_guid: str, path: str = "", port: Optional[int] = None) -> Optional[Resource]:
        queries = [f"host:{host}", f"domain_guid:{domain_guid}"]
        if path:
            queries.append(f"path:{path}")
        if port is not None:
            queries.append(f"port:{port}")
        matches = await self.list(*queries)
        return matches[0] if matches else None

    async def create_route(
        self,
        host: str,
        domain_guid: str,
        space_guid: str,
        path: str = "",
        port: Optional[int] = None,
    ) -> Resource:
        body: dict[str, Any] = {"host": host, "domain_guid": domain_guid, "space_guid": space_guid}
        if path:
            body["path"] = path
        if port is not None:
            body["port"] = port
        return await self.create(body)

    async def bind(self, route_guid: str, app_guid: str) -> None:
        await self.associate(route_guid, "apps", app_guid)

    async def unbind(self, route_guid: str, app_guid: str) -> None:
        await self.dissociate(route_guid, "apps", app_guid)

    async def list_for_app(self, app_guid: str) -> list[Resource]:
        return await self.list(path=f"/v2/apps/{app_guid}/routes")


class RouteManager(ResourceManager):
    kind = "route"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.repo = RouteRepository(config, gateway)

    async def list_routes(self, space_guid: Optional[str] = None) -> list[Resource]:
        if space_guid:
            return await self.repo.list(path=f"/v2/spaces/{space_guid}/routes")
        return await self.repo.list()

    async def find_route(self, host: str, domain_guid: str, path: str = "") -> Optional[Resource]:
        return await self.repo.find(host, domain_guid, path)

    async def create_route(self, host: str, domain_guid: str, space_guid: str, path: str = "") -> Resource:
        route = await self.repo.create_route(host, domain_guid, space_guid, path)
        self._log.info("Route created", host=host, domain_guid=domain_guid, path=path or None)
        return route

    async def delete_route(self, route_guid: str) -> None:
        await self.repo.delete(route_guid)

    async def list_app_routes(self, app_guid: str) -> list[Resource]:
        return await self.repo.list_for_app(app_guid)
