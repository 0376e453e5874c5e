"""Platform client protocol -- the async surface the orchestration layer uses.

Defines the contract every client (HTTP, in-memory) must satisfy, plus a
factory for instantiation by name.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from cf_operations.models import Job, Page, ResourceType, Route

if TYPE_CHECKING:
    from cf_operations.config import OperationsConfig


@runtime_checkable
class PlatformClient(Protocol):
    """Abstract interface to the platform API.

    ``filters`` keys used by the resolver: ``name``, ``organization_id``,
    ``space_id``, ``route_id``, ``domain_id``, ``host``, ``path``.  Keys
    that identify the parent of a nested listing (for example
    ``organization_id`` for ``ORGANIZATION_SPACES``) are required; the rest
    narrow the result server-side.
    """

    async def list_resources(
        self,
        resource: ResourceType,
        filters: Mapping[str, str],
        page: int,
    ) -> Page[Any]: ...

    async def create_route(
        self,
        domain_id: str,
        space_id: str,
        host: str = "",
        path: str = "",
    ) -> Route: ...

    async def delete_route(self, route_id: str) -> Job:
        """Start an asynchronous delete and return the job tracking it."""
        ...

    async def get_job(self, job_id: str) -> Job: ...

    async def associate_route(self, application_id: str, route_id: str) -> None: ...

    async def remove_route(self, application_id: str, route_id: str) -> None: ...


def create_client(
    client_name: str,
    config: OperationsConfig | None = None,
) -> PlatformClient:
    """Factory function to create a platform client by name.

    Args:
        client_name: "http" or "memory".
        config: Connection settings; required for "http".

    Returns:
        A PlatformClient instance.

    Raises:
        ValueError: If *client_name* is not recognised.
    """
    if client_name == "http":
        from cf_operations.client.http import HttpPlatformClient

        if config is None:
            raise ValueError("The http client requires an OperationsConfig")
        return HttpPlatformClient.from_config(config)
    elif client_name == "memory":
        from cf_operations.client.memory import InMemoryPlatformClient

        page_size = config.page_size if config is not None else 50
        return InMemoryPlatformClient(page_size=page_size)
    else:
        raise ValueError(f"Unknown platform client: {client_name}")
