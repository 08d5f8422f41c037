"""Shared plumbing for Cloud Controller resource managers."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping, Optional, TypeVar
from urllib.parse import quote

from ..common.errors import ResourceNotFoundError
from ..common.observability import SessionLogger
from ..common.schemas import Resource
from ..config import Configuration
from ..net.gateway import Gateway

ManagerT = TypeVar("ManagerT", bound="ResourceManager")


def name_query(name: str) -> str:
    return f"name:{name}"


def not_found(kind: str, name: str) -> ResourceNotFoundError:
    return ResourceNotFoundError(404, "CF-NotFound", f"{kind} '{name}' not found")


class ResourceRepository:
    """CRUD over one Cloud Controller v2 collection."""

    path: ClassVar[str] = ""

    def __init__(self, config: Configuration, gateway: Gateway) -> None:
        self._config = config
        self._gateway = gateway

    @property
    def base_url(self) -> str:
        return self._config.api_endpoint

    def _collection(self, path: Optional[str], queries: tuple[str, ...]) -> str:
        collection = path or self.path
        if not queries:
            return collection
        joined = "&".join(f"q={quote(query, safe=':')}" for query in queries)
        separator = "&" if "?" in collection else "?"
        return f"{collection}{separator}{joined}"

    async def list(self, *queries: str, path: Optional[str] = None) -> list[Resource]:
        resources: list[Resource] = []
        async for item in self._gateway.list_paginated_resources(self.base_url, self._collection(path, queries)):
            resources.append(Resource.model_validate(item))
        return resources

    async def find_by_name(self, name: str, *extra_queries: str, path: Optional[str] = None) -> Optional[Resource]:
        matches = await self.list(name_query(name), *extra_queries, path=path)
        return matches[0] if matches else None

    async def get(self, guid: str) -> Resource:
        return await self._gateway.get_resource(f"{self.base_url}{self.path}/{guid}", Resource)

    async def create(self, body: Mapping[str, Any]) -> Resource:
        return await self._gateway.create_resource(self.base_url, self.path, body, Resource)

    async def update(self, guid: str, body: Mapping[str, Any]) -> Resource:
        return await self._gateway.update_resource(self.base_url, f"{self.path}/{guid}", body, Resource)

    async def delete(self, guid: str, *, recursive: bool = False) -> None:
        suffix = "?recursive=true&async=true" if recursive else "?async=true"
        await self._gateway.delete_resource(self.base_url, f"{self.path}/{guid}{suffix}")

    async def associate(self, guid: str, relation: str, other_guid: str) -> None:
        await self._gateway.update_resource(self.base_url, f"{self.path}/{guid}/{relation}/{other_guid}", None)

    async def dissociate(self, guid: str, relation: str, other_guid: str) -> None:
        await self._gateway.delete_resource(self.base_url, f"{self.path}/{guid}/{relation}/{other_guid}")


class ResourceManager:
    """Base class for managers; ``create`` builds the manager and runs its startup probe."""

    kind: ClassVar[str] = "resource"

    def __init__(self, config: Configuration, gateway: Gateway, logger: SessionLogger) -> None:
        self._config = config
        self._gateway = gateway
        self._log = logger.bind(manager=self.kind)

    @classmethod
    async def create(cls: type[ManagerT], *args: Any, **kwargs: Any) -> ManagerT:
        manager = cls(*args, **kwargs)
        await manager.startup()
        return manager

    async def startup(self) -> None:
        """Probe run once while the session is being built. No-op by default."""

    @staticmethod
    def require(resource: Optional[Resource], kind: str, name: str) -> Resource:
        if resource is None:
            raise not_found(kind, name)
        return resource
