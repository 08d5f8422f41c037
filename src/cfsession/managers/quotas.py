"""Organization and space quota definitions."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository


class QuotaRepository(ResourceRepository):
    path = "/v2/quota_definitions"


class SpaceQuotaRepository(ResourceRepository):
    path = "/v2/space_quota_definitions"


def _quota_body(name: str, limits: Mapping[str, Any]) -> dict[str, Any]:
    return {"name": name, **limits}


class QuotaManager(ResourceManager):
    kind = "quota"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.repo = QuotaRepository(config, gateway)
        self.space_repo = SpaceQuotaRepository(config, gateway)

    async def list_quotas(self) -> list[Resource]:
        return await self.repo.list()

    async def find_quota(self, name: str) -> Optional[Resource]:
        return await self.repo.find_by_name(name)

    async def create_quota(self, name: str, **limits: Any) -> Resource:
        quota = await self.repo.create(_quota_body(name, limits))
        self._log.info("Quota created", quota=name)
        return quota

    async def update_quota(self, name: str, **limits: Any) -> Resource:
        quota = self.require(await self.repo.find_by_name(name), "Quota", name)
        return await self.repo.update(quota.guid, _quota_body(name, limits))

    async def delete_quota(self, name: str) -> None:
        quota = self.require(await self.repo.find_by_name(name), "Quota", name)
        await self.repo.delete(quota.guid)

    async def list_space_quotas(self, org_guid: str) -> list[Resource]:
        return await self.space_repo.list(path=f"/v2/organizations/{org_guid}/space_quota_definitions")

    async def create_space_quota(self, name: str, org_guid: str, **limits: Any) -> Resource:
        body = _quota_body(name, limits)
        body["organization_guid"] = org_guid
        return await self.space_repo.create(body)

    async def assign_space_quota(self, quota_guid: str, space_guid: str) -> None:
        await self.space_repo.associate(quota_guid, "spaces", space_guid)

    async def delete_space_quota(self, quota_guid: str) -> None:
        await self.space_repo.delete(quota_guid)
