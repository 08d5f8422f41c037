"""Service brokers, service offerings and plan visibility."""

from __future__ import annotations

from typing import Optional

from ..common.schemas import Resource
from .base import ResourceManager, ResourceRepository


class ServiceBrokerRepository(ResourceRepository):
    path = "/v2/service_brokers"


class ServiceRepository(ResourceRepository):
    path = "/v2/services"


class ServicePlanRepository(ResourceRepository):
    path = "/v2/service_plans"


class ServicePlanVisibilityRepository(ResourceRepository):
    path = "/v2/service_plan_visibilities"


class ServiceManager(ResourceManager):
    kind = "service"

    def __init__(self, config, gateway, logger) -> None:
        super().__init__(config, gateway, logger)
        self.brokers = ServiceBrokerRepository(config, gateway)
        self.services = ServiceRepository(config, gateway)
        self.plans = ServicePlanRepository(config, gateway)
        self.visibilities = ServicePlanVisibilityRepository(config, gateway)

    async def list_brokers(self) -> list[Resource]:
        return await self.brokers.list()

    async def find_broker(self, name: str) -> Optional[Resource]:
        return await self.brokers.find_by_name(name)

    async def create_broker(
        self,
        name: str,
        url: str,
        username: str,
        password: str,
        space_guid: Optional[str] = None,
    ) -> Resource:
        body = {"name": name, "broker_url": url, "auth_username": username, "auth_password": password}
        if space_guid:
            body["space_guid"] = space_guid
        broker = await self.brokers.create(body)
        self._log.info("Service broker created", broker=name, url=url)
        return broker

    async def update_broker(self, name: str, url: str, username: str, password: str) -> Resource:
        broker = self.require(await self.brokers.find_by_name(name), "Service broker", name)
        return await self.brokers.update(
            broker.guid,
            {"broker_url": url, "auth_username": username, "auth_password": password},
        )

    async def delete_broker(self, name: str) -> None:
        broker = self.require(await self.brokers.find_by_name(name), "Service broker", name)
        await self._gateway.delete_resource(self.brokers.base_url, f"{self.brokers.path}/{broker.guid}")
        self._log.info("Service broker deleted", broker=name)

    async def list_services(self, broker_guid: Optional[str] = None) -> list[Resource]:
        if broker_guid:
            return await self.services.list(f"service_broker_guid:{broker_guid}")
        return await self.services.list()

    async def list_plans(self, service_guid: str) -> list[Resource]:
        return await self.plans.list(f"service_guid:{service_guid}")

    async def set_plan_public(self, plan_guid: str, public: bool) -> Resource:
        return await self.plans.update(plan_guid, {"public": public})

    async def enable_plan_for_org(self, plan_guid: str, org_guid: str) -> Resource:
        existing = await self.visibilities.list(f"service_plan_guid:{plan_guid}", f"organization_guid:{org_guid}")
        if existing:
            return existing[0]
        return await self.visibilities.create({"service_plan_guid": plan_guid, "organization_guid": org_guid})

    async def disable_plan_for_org(self, plan_guid: str, org_guid: str) -> None:
        for visibility in await self.visibilities.list(
            f"service_plan_guid:{plan_guid}", f"organization_guid:{org_guid}"
        ):
            await self._gateway.delete_resource(
                self.visibilities.base_url, f"{self.visibilities.path}/{visibility.guid}"
            )
