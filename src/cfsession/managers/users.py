"""Platform users: UAA identities, group memberships and Cloud Controller roles."""

from __future__ import annotations

from typing import Any, Optional

from ..auth import decode_token_claims
from ..common.errors import ResponseFormatError
from ..common.identifiers import new_random_string
from ..common.observability import SessionLogger
from ..common.schemas import Resource, UAAGroup, UAAUser
from ..config import Configuration
from ..net.gateway import Gateway
from .base import ResourceManager, ResourceRepository, not_found

GROUP_PAGE_SIZE = 100
GENERATED_PASSWORD_LENGTH = 16

USER_ORG_RELATIONS = {
    "OrgUser": "organizations",
    "OrgManager": "managed_organizations",
    "BillingManager": "billing_managed_organizations",
    "OrgAuditor": "audited_organizations",
}
USER_SPACE_RELATIONS = {
    "SpaceDeveloper": "spaces",
    "SpaceManager": "managed_spaces",
    "SpaceAuditor": "audited_spaces",
}


class UserRepository(ResourceRepository):
    path = "/v2/users"


class UserManager(ResourceManager):
    kind = "user"

    def __init__(
        self,
        config: Configuration,
        uaa_gateway: Gateway,
        cc_gateway: Gateway,
        logger: SessionLogger,
    ) -> None:
        super().__init__(config, cc_gateway, logger)
        self._uaa = uaa_gateway
        self.repo = UserRepository(config, cc_gateway)
        self.client_token: Optional[str] = None
        self.groups: dict[str, str] = {}
        self.current_user: Optional[str] = None
        self.current_user_id: Optional[str] = None

    async def startup(self) -> None:
        claims = decode_token_claims(self._config.access_token)
        self.current_user = claims.user_name
        self.current_user_id = claims.user_id

    def _uaa_headers(self) -> dict[str, str]:
        return {"Authorization": self.client_token} if self.client_token else {}

    async def _uaa_call(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._uaa.request(
            method,
            f"{self._config.uaa_endpoint}{path}",
            headers=self._uaa_headers(),
            **kwargs,
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseFormatError(f"Invalid JSON response from UAA {path}: {exc}") from exc

    async def load_groups(self) -> dict[str, str]:
        """Read every UAA group into ``groups`` (display name to id)."""

        groups: dict[str, str] = {}
        start_index = 1
        while True:
            page = await self._uaa_call(
                "GET",
                "/Groups",
                params={"attributes": "id,displayName", "startIndex": start_index, "count": GROUP_PAGE_SIZE},
            )
            resources = (page or {}).get("resources", [])
            for item in resources:
                group = UAAGroup.model_validate(item)
                groups[group.display_name] = group.id
            total = int((page or {}).get("totalResults", 0))
            start_index += len(resources)
            if not resources or start_index > total:
                break
        self.groups = groups
        self._log.info("UAA groups loaded", count=len(groups))
        return groups

    async def find_uaa_user(self, username: str) -> Optional[UAAUser]:
        page = await self._uaa_call("GET", "/Users", params={"filter": f'userName eq "{username}"'})
        resources = (page or {}).get("resources", [])
        return UAAUser.model_validate(resources[0]) if resources else None

    async def list_users(self) -> list[Resource]:
        return await self.repo.list()

    async def create_user(
        self,
        username: str,
        password: Optional[str] = None,
        origin: str = "uaa",
        email: Optional[str] = None,
    ) -> tuple[UAAUser, Optional[str]]:
        """Create the UAA identity and the matching Cloud Controller user.

        Returns the UAA user and the password that was set, which is generated
        when none is given. Non-UAA origins have no password.
        """

        body: dict[str, Any] = {
            "userName": username,
            "origin": origin,
            "emails": [{"value": email or username}],
        }
        if origin == "uaa":
            password = password or new_random_string(GENERATED_PASSWORD_LENGTH)
            body["password"] = password
        else:
            password = None
            body["externalId"] = username

        created = UAAUser.model_validate(await self._uaa_call("POST", "/Users", body=body))
        await self._gateway.create_resource(self.repo.base_url, self.repo.path, {"guid": created.id})
        self._log.info("User created", user=username, origin=origin)
        return created, password

    async def delete_user(self, username: str) -> None:
        user = await self.find_uaa_user(username)
        if user is None:
            raise not_found("User", username)
        await self.repo.delete(user.id)
        await self._uaa_call("DELETE", f"/Users/{user.id}")
        self._log.info("User deleted", user=username)

    async def add_to_group(self, username: str, group_name: str) -> None:
        if not self.groups:
            await self.load_groups()
        group_id = self.groups.get(group_name)
        if group_id is None:
            raise not_found("Group", group_name)
        user = await self.find_uaa_user(username)
        if user is None:
            raise not_found("User", username)
        await self._uaa_call(
            "POST",
            f"/Groups/{group_id}/members",
            body={"origin": user.origin, "type": "USER", "value": user.id},
        )

    async def set_org_role(self, user_guid: str, org_guid: str, role: str = "OrgUser") -> None:
        await self.repo.associate(user_guid, USER_ORG_RELATIONS[role], org_guid)

    async def set_space_role(self, user_guid: str, space_guid: str, role: str = "SpaceDeveloper") -> None:
        await self.repo.associate(user_guid, USER_SPACE_RELATIONS[role], space_guid)
