"""Application security groups (ASGs)."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository

RUNNING_DEFAULTS = "/v2/config/running_security_groups"
STAGING_DEFAULTS = "/v2/config/staging_security_groups"


class SecurityGroupRepository(ResourceRepository):
    path = "/v2/security_groups"


class ASGManager(ResourceManager):
    kind = "asg"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.repo = SecurityGroupRepository(config, gateway)

    async def list_security_groups(self) -> list[Resource]:
        return await self.repo.list()

    async def find_security_group(self, name: str) -> Optional[Resource]:
        return await self.repo.find_by_name(name)

    async def create_security_group(self, name: str, rules: Sequence[dict[str, Any]]) -> Resource:
        group = await self.repo.create({"name": name, "rules": list(rules)})
        self._log.info("Security group created", security_group=name, rules=len(rules))
        return group

    async def update_rules(self, name: str, rules: Sequence[dict[str, Any]]) -> Resource:
        group = self.require(await self.repo.find_by_name(name), "Security group", name)
        return await self.repo.update(group.guid, {"rules": list(rules)})

    async def delete_security_group(self, name: str) -> None:
        group = self.require(await self.repo.find_by_name(name), "Security group", name)
        await self.repo.delete(group.guid)
        self._log.info("Security group deleted", security_group=name)

    async def bind_to_space(self, name: str, space_guid: str, *, staging: bool = False) -> None:
        group = self.require(await self.repo.find_by_name(name), "Security group", name)
        relation = "staging_spaces" if staging else "spaces"
        await self.repo.associate(group.guid, relation, space_guid)

    async def unbind_from_space(self, name: str, space_guid: str, *, staging: bool = False) -> None:
        group = self.require(await self.repo.find_by_name(name), "Security group", name)
        relation = "staging_spaces" if staging else "spaces"
        await self.repo.dissociate(group.guid, relation, space_guid)

    async def list_default_groups(self, *, staging: bool = False) -> list[Resource]:
        return await self.repo.list(path=STAGING_DEFAULTS if staging else RUNNING_DEFAULTS)

    async def bind_default(self, name: str, *, staging: bool = False) -> None:
        group = self.require(await self.repo.find_by_name(name), "Security group", name)
        collection = STAGING_DEFAULTS if staging else RUNNING_DEFAULTS
        await self._gateway.update_resource(self.repo.base_url, f"{collection}/{group.guid}", None)

    async def unbind_default(self, name: str, *, staging: bool = False) -> None:
        group = self.require(await self.repo.find_by_name(name), "Security group", name)
        collection = STAGING_DEFAULTS if staging else RUNNING_DEFAULTS
        await self._gateway.delete_resource(self.repo.base_url, f"{collection}/{group.guid}")
