"""Organizations and organization roles."""

from __future__ import annotations

from typing import Optional

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository

ORG_ROLES = {
    "OrgManager": "managers",
    "BillingManager": "billing_managers",
    "OrgAuditor": "auditors",
    "OrgUser": "users",
}


class OrgRepository(ResourceRepository):
    path = "/v2/organizations"


class OrgManager(ResourceManager):
    kind = "org"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.repo = OrgRepository(config, gateway)

    async def list_orgs(self) -> list[Resource]:
        return await self.repo.list()

    async def find_org(self, name: str) -> Optional[Resource]:
        return await self.repo.find_by_name(name)

    async def get_org(self, name: str) -> Resource:
        return self.require(await self.repo.find_by_name(name), "Organization", name)

    async def create_org(self, name: str, quota_guid: Optional[str] = None) -> Resource:
        body = {"name": name}
        if quota_guid:
            body["quota_definition_guid"] = quota_guid
        org = await self.repo.create(body)
        self._log.info("Organization created", org=name)
        return org

    async def rename_org(self, name: str, new_name: str) -> Resource:
        org = await self.get_org(name)
        return await self.repo.update(org.guid, {"name": new_name})

    async def set_quota(self, name: str, quota_guid: str) -> Resource:
        org = await self.get_org(name)
        return await self.repo.update(org.guid, {"quota_definition_guid": quota_guid})

    async def delete_org(self, name: str) -> None:
        org = await self.get_org(name)
        await self.repo.delete(org.guid, recursive=True)
        self._log.info("Organization deleted", org=name)

    async def list_users(self, name: str, role: str = "OrgUser") -> list[Resource]:
        org = await self.get_org(name)
        return await self.repo.list(path=f"{self.repo.path}/{org.guid}/{ORG_ROLES[role]}")

    async def add_user(self, name: str, username: str, role: str = "OrgUser") -> None:
        org = await self.get_org(name)
        await self._gateway.update_resource(
            self.repo.base_url,
            f"{self.repo.path}/{org.guid}/{ORG_ROLES[role]}",
            {"username": username},
        )
        self._log.info("Organization role granted", org=name, user=username, role=role)

    async def remove_user(self, name: str, username: str, role: str = "OrgUser") -> None:
        org = await self.get_org(name)
        await self._gateway.request(
            "POST",
            f"{self.repo.base_url}{self.repo.path}/{org.guid}/{ORG_ROLES[role]}/remove",
            body={"username": username},
        )
