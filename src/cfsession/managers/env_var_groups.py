"""Running and staging environment variable groups (EVGs)."""

from __future__ import annotations

from typing import Mapping

from .base import ResourceManager

RUNNING_GROUP = "/v2/config/environment_variable_groups/running"
STAGING_GROUP = "/v2/config/environment_variable_groups/staging"


class EVGManager(ResourceManager):
    kind = "evg"

    def _path(self, staging: bool) -> str:
        return STAGING_GROUP if staging else RUNNING_GROUP

    async def get_variables(self, *, staging: bool = False) -> dict[str, str]:
        payload = await self._gateway.get_resource(self._config.api_endpoint + self._path(staging))
        return {key: str(value) for key, value in (payload or {}).items()}

    async def set_variables(self, variables: Mapping[str, str], *, staging: bool = False) -> None:
        await self._gateway.update_resource(self._config.api_endpoint, self._path(staging), dict(variables))
        self._log.info(
            "Environment variable group updated",
            group="staging" if staging else "running",
            keys=sorted(variables),
        )
