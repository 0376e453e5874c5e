"""Test fixtures for cf-operations tests."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from cf_operations.client.memory import InMemoryPlatformClient
from cf_operations.jobs import JobPoller
from cf_operations.models import Domain, ResourceRef
from cf_operations.routes import RouteOrchestrator
from cf_operations.telemetry import InMemoryTelemetrySink


async def no_sleep(seconds: float) -> None:
    _ = seconds


@dataclass
class Platform:
    """A seeded in-memory platform with one organization and one space."""

    client: InMemoryPlatformClient
    organization: ResourceRef
    space: ResourceRef

    def orchestrator(
        self,
        *,
        space_id: str | None = "default",
        telemetry: InMemoryTelemetrySink | None = None,
    ) -> RouteOrchestrator:
        poller = JobPoller(
            self.client, poll_interval=0.0, sleep=no_sleep, telemetry_sink=telemetry
        )
        return RouteOrchestrator(
            self.client,
            self.organization.id,
            self.space.id if space_id == "default" else space_id,
            poller=poller,
            telemetry_sink=telemetry,
        )

    def private_domain(self, name: str = "test-domain") -> Domain:
        return self.client.add_private_domain(self.organization.id, name)

    def shared_domain(self, name: str = "test-domain") -> Domain:
        return self.client.add_shared_domain(name)


def make_platform(page_size: int = 50, substring_filters: bool = False) -> Platform:
    client = InMemoryPlatformClient(page_size=page_size, substring_filters=substring_filters)
    organization = client.add_organization("test-org")
    space = client.add_space(organization.id, "test-space")
    return Platform(client=client, organization=organization, space=space)


@pytest.fixture()
def platform() -> Platform:
    return make_platform()
