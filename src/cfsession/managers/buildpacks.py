"""Admin buildpacks."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository


class BuildpackRepository(ResourceRepository):
    path = "/v2/buildpacks"


class BuildpackManager(ResourceManager):
    kind = "buildpack"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.repo = BuildpackRepository(config, gateway)

    async def list_buildpacks(self) -> list[Resource]:
        return await self.repo.list()

    async def find_buildpack(self, name: str, stack: Optional[str] = None) -> Optional[Resource]:
        extra = (f"stack:{stack}",) if stack else ()
        return await self.repo.find_by_name(name, *extra)

    async def create_buildpack(
        self,
        name: str,
        *,
        position: Optional[int] = None,
        enabled: bool = True,
        locked: bool = False,
        stack: Optional[str] = None,
    ) -> Resource:
        body: dict[str, Any] = {"name": name, "enabled": enabled, "locked": locked}
        if position is not None:
            body["position"] = position
        if stack:
            body["stack"] = stack
        buildpack = await self.repo.create(body)
        self._log.info("Buildpack created", buildpack=name)
        return buildpack

    async def update_buildpack(self, name: str, **attributes: Any) -> Resource:
        buildpack = self.require(await self.repo.find_by_name(name), "Buildpack", name)
        return await self.repo.update(buildpack.guid, attributes)

    async def upload_bits(self, name: str, archive: Path) -> Resource:
        buildpack = self.require(await self.repo.find_by_name(name), "Buildpack", name)
        url = f"{self.repo.base_url}{self.repo.path}/{buildpack.guid}/bits"
        with Path(archive).open("rb") as handle:
            response = await self._gateway.request(
                "PUT",
                url,
                files={"buildpack": (Path(archive).name, handle, "application/zip")},
            )
        self._log.info("Buildpack bits uploaded", buildpack=name, archive=str(archive))
        return Resource.model_validate(response.json())

    async def delete_buildpack(self, name: str) -> None:
        buildpack = self.require(await self.repo.find_by_name(name), "Buildpack", name)
        await self.repo.delete(buildpack.guid)
        self._log.info("Buildpack deleted", buildpack=name)
