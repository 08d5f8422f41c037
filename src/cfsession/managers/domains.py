"""Shared and private (organization-owned) domains."""

from __future__ import annotations

from typing import Optional

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository


class DomainRepository(ResourceRepository):
    """Looks domains up across both the shared and the private collections."""

    path = "/v2/shared_domains"
    private_path = "/v2/private_domains"

    async def list_shared(self) -> list[Resource]:
        return await self.list()

    async def list_private(self, org_guid: Optional[str] = None) -> list[Resource]:
        if org_guid:
            return await self.list(path=f"/v2/organizations/{org_guid}/private_domains")
        return await self.list(path=self.private_path)

    async def find_by_name(self, name: str, *extra_queries: str, path: Optional[str] = None) -> Optional[Resource]:
        if path is not None:
            return await super().find_by_name(name, *extra_queries, path=path)
        shared = await super().find_by_name(name, *extra_queries)
        if shared is not None:
            return shared
        return await super().find_by_name(name, *extra_queries, path=self.private_path)

    async def create_shared(self, name: str, router_group_guid: Optional[str] = None) -> Resource:
        body: dict[str, str] = {"name": name}
        if router_group_guid:
            body["router_group_guid"] = router_group_guid
        return await self.create(body)

    async def create_private(self, name: str, org_guid: str) -> Resource:
        return await self._gateway.create_resource(
            self.base_url,
            self.private_path,
            {"name": name, "owning_organization_guid": org_guid},
            Resource,
        )

    async def delete_domain(self, domain: Resource) -> None:
        collection = self.private_path if domain.entity.get("owning_organization_guid") else self.path
        await self._gateway.delete_resource(self.base_url, f"{collection}/{domain.guid}?async=true")


class DomainManager(ResourceManager):
    kind = "domain"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.repo = DomainRepository(config, gateway)

    async def list_shared_domains(self) -> list[Resource]:
        return await self.repo.list_shared()

    async def list_private_domains(self, org_guid: Optional[str] = None) -> list[Resource]:
        return await self.repo.list_private(org_guid)

    async def find_domain(self, name: str) -> Optional[Resource]:
        return await self.repo.find_by_name(name)

    async def create_shared_domain(self, name: str, router_group_guid: Optional[str] = None) -> Resource:
        existing = await self.repo.find_by_name(name)
        if existing is not None:
            return existing
        domain = await self.repo.create_shared(name, router_group_guid)
        self._log.info("Shared domain created", domain=name)
        return domain

    async def create_private_domain(self, name: str, org_guid: str) -> Resource:
        existing = await self.repo.find_by_name(name)
        if existing is not None:
            return existing
        domain = await self.repo.create_private(name, org_guid)
        self._log.info("Private domain created", domain=name, org_guid=org_guid)
        return domain

    async def delete_domain(self, name: str) -> None:
        domain = self.require(await self.repo.find_by_name(name), "Domain", name)
        await self.repo.delete_domain(domain)
        self._log.info("Domain deleted", domain=name)
