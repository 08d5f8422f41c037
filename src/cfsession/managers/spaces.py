"""Spaces and space roles."""

from __future__ import annotations

from typing import Any, Optional

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository

SPACE_ROLES = {
    "SpaceManager": "managers",
    "SpaceDeveloper": "developers",
    "SpaceAuditor": "auditors",
}


class SpaceRepository(ResourceRepository):
    path = "/v2/spaces"


class SpaceManager(ResourceManager):
    kind = "space"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.repo = SpaceRepository(config, gateway)

    async def list_spaces(self, org_guid: str) -> list[Resource]:
        return await self.repo.list(path=f"/v2/organizations/{org_guid}/spaces")

    async def find_space(self, name: str, org_guid: str) -> Optional[Resource]:
        return await self.repo.find_by_name(name, f"organization_guid:{org_guid}")

    async def get_space(self, name: str, org_guid: str) -> Resource:
        return self.require(await self.find_space(name, org_guid), "Space", name)

    async def create_space(self, name: str, org_guid: str, **attributes: Any) -> Resource:
        space = await self.repo.create({"name": name, "organization_guid": org_guid, **attributes})
        self._log.info("Space created", space=name, org_guid=org_guid)
        return space

    async def update_space(self, name: str, org_guid: str, **attributes: Any) -> Resource:
        space = await self.get_space(name, org_guid)
        return await self.repo.update(space.guid, attributes)

    async def delete_space(self, name: str, org_guid: str) -> None:
        space = await self.get_space(name, org_guid)
        await self.repo.delete(space.guid, recursive=True)
        self._log.info("Space deleted", space=name, org_guid=org_guid)

    async def add_user(self, space_guid: str, username: str, role: str = "SpaceDeveloper") -> None:
        await self._gateway.update_resource(
            self.repo.base_url,
            f"{self.repo.path}/{space_guid}/{SPACE_ROLES[role]}",
            {"username": username},
        )
        self._log.info("Space role granted", space_guid=space_guid, user=username, role=role)

    async def remove_user(self, space_guid: str, username: str, role: str = "SpaceDeveloper") -> None:
        await self._gateway.request(
            "POST",
            f"{self.repo.base_url}{self.repo.path}/{space_guid}/{SPACE_ROLES[role]}/remove",
            body={"username": username},
        )
