"""Stacks available to applications."""

from __future__ import annotations

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository


class StackRepository(ResourceRepository):
    path = "/v2/stacks"


class StackManager(ResourceManager):
    kind = "stack"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.repo = StackRepository(config, gateway)

    async def list_stacks(self) -> list[Resource]:
        return await self.repo.list()

    async def get_stack(self, name: str) -> Resource:
        return self.require(await self.repo.find_by_name(name), "Stack", name)
