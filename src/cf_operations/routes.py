"""Route operations: check, create, map, unmap, delete, list, delete-orphaned.

Each operation is one linear pipeline over the resolver, the client and the
job poller.  Steps run in the order written; the only batching is in
:meth:`RouteOrchestrator.list`, which loads every domain and space name up
front instead of looking them up per route.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from enum import Enum

from cf_operations.client.base import PlatformClient
from cf_operations.errors import (
    ConfigurationError,
    JobFailedError,
    NotFoundError,
    OrphanedRouteDeletionError,
    PlatformAPIError,
    PollTimeoutError,
)
from cf_operations.jobs import JobPoller
from cf_operations.models import Domain, ResourceType, Route, RouteRecord
from cf_operations.pagination import first
from cf_operations.resolver import ResourceResolver, describe_route
from cf_operations.telemetry import NoOpTelemetrySink, TelemetrySink, emit

logger = logging.getLogger(__name__)


class Level(str, Enum):
    ORGANIZATION = "organization"
    SPACE = "space"


class RouteOrchestrator:
    """Compound route operations scoped to one organization and, optionally, one space.

    Parameters
    ----------
    client:
        The platform client every request goes through.
    organization_id:
        Organization that owns private domains and spaces.
    space_id:
        Current space.  Required by ``map``, ``unmap``, ``delete_orphaned_routes``
        and ``list(Level.SPACE)``.
    resolver / poller:
        Defaults are built on ``client``.
    """

    def __init__(
        self,
        client: PlatformClient,
        organization_id: str,
        space_id: str | None = None,
        *,
        resolver: ResourceResolver | None = None,
        poller: JobPoller | None = None,
        telemetry_sink: TelemetrySink | None = None,
    ) -> None:
        self.client = client
        self.organization_id = organization_id
        self.space_id = space_id
        self.telemetry = telemetry_sink or NoOpTelemetrySink()
        self.resolver = resolver or ResourceResolver(client)
        self.poller = poller or JobPoller(client, telemetry_sink=self.telemetry)

    @classmethod
    async def for_names(
        cls,
        client: PlatformClient,
        *,
        organization: str,
        space: str | None = None,
        poller: JobPoller | None = None,
        telemetry_sink: TelemetrySink | None = None,
    ) -> RouteOrchestrator:
        """Resolve organization and space names, then build an orchestrator."""
        resolver = ResourceResolver(client)
        org = await resolver.resolve_organization(organization)
        space_id = None
        if space:
            space_id = (await resolver.resolve_space(org.id, space)).id
        return cls(
            client,
            org.id,
            space_id,
            resolver=resolver,
            poller=poller,
            telemetry_sink=telemetry_sink,
        )

    def _require_space(self) -> str:
        if not self.space_id:
            raise ConfigurationError("No space targeted; this operation requires a space")
        return self.space_id

    def _emit(self, name: str, route: Route, domain: Domain | None = None) -> None:
        attrs: dict[str, str] = {"route_id": route.id, "host": route.host, "path": route.path}
        if domain is not None:
            attrs["domain"] = domain.name
        emit(self.telemetry, name, **attrs)

    async def _delete(self, route: Route) -> None:
        job = await self.client.delete_route(route.id)
        logger.debug("Delete of route %s started as job %s", route.id, job.id)
        await self.poller.await_job(job)
        self._emit("route.deleted", route)

    # ── operations ────────────────────────────────────────────────

    async def check(
        self, domain: str, host: str | None = None, path: str | None = None
    ) -> bool:
        """True iff the route exists.  An unknown domain means False, not an error."""
        try:
            resolved = await self.resolver.resolve_domain(self.organization_id, domain)
        except NotFoundError:
            return False
        return await self.resolver.find_route(resolved, host, path) is not None

    async def create(
        self,
        domain: str,
        space: str,
        host: str | None = None,
        path: str | None = None,
    ) -> Route:
        """Create the route in ``space``, or return it if it already exists."""
        space_ref = await self.resolver.resolve_space(self.organization_id, space)
        resolved = await self.resolver.resolve_domain(self.organization_id, domain)
        route = await self.resolver.resolve_or_create_route(resolved, host, path, space_ref.id)
        self._emit("route.created", route, resolved)
        return route

    async def map(
        self,
        application: str,
        domain: str,
        host: str | None = None,
        path: str | None = None,
    ) -> Route:
        space_id = self._require_space()
        app = await self.resolver.resolve_application(space_id, application)
        resolved = await self.resolver.resolve_domain(self.organization_id, domain)
        route = await self.resolver.resolve_or_create_route(resolved, host, path, space_id)
        await self.client.associate_route(app.id, route.id)
        logger.info(
            "Mapped %s to application %s", describe_route(resolved.name, host, path), app.name
        )
        self._emit("route.mapped", route, resolved)
        return route

    async def unmap(
        self,
        application: str,
        domain: str,
        host: str | None = None,
        path: str | None = None,
    ) -> None:
        space_id = self._require_space()
        app = await self.resolver.resolve_application(space_id, application)
        resolved = await self.resolver.resolve_domain(self.organization_id, domain)
        route = await self.resolver.resolve_route(resolved, host, path)
        await self.client.remove_route(app.id, route.id)
        logger.info(
            "Unmapped %s from application %s", describe_route(resolved.name, host, path), app.name
        )
        self._emit("route.unmapped", route, resolved)

    async def delete(
        self, domain: str, host: str | None = None, path: str | None = None
    ) -> None:
        resolved = await self.resolver.resolve_domain(self.organization_id, domain)
        route = await self.resolver.resolve_route(resolved, host, path)
        await self._delete(route)
        logger.info("Deleted route %s", describe_route(resolved.name, host, path))

    async def list(self, level: Level = Level.SPACE) -> AsyncIterator[RouteRecord]:
        """Yield every route at ``level`` joined with domain, space and application names."""
        paginator = self.resolver.paginator
        if level is Level.SPACE:
            routes = paginator.list(ResourceType.SPACE_ROUTES, space_id=self._require_space())
        else:
            routes = paginator.list(ResourceType.ROUTES, organization_id=self.organization_id)

        domains: dict[str, str] = {}
        for resource, filters in (
            (ResourceType.ORGANIZATION_PRIVATE_DOMAINS, {"organization_id": self.organization_id}),
            (ResourceType.SHARED_DOMAINS, {}),
        ):
            async for domain in paginator.list(resource, **filters):
                domains[domain.id] = domain.name
        spaces = {
            space.id: space.name
            async for space in paginator.list(
                ResourceType.ORGANIZATION_SPACES, organization_id=self.organization_id
            )
        }

        async for route in routes:
            applications = await paginator.list_all(
                ResourceType.ROUTE_APPLICATIONS, route_id=route.id
            )
            yield RouteRecord(
                id=route.id,
                host=route.host,
                path=route.path,
                domain=domains.get(route.domain_id, ""),
                space=spaces.get(route.space_id, ""),
                applications=[app.name for app in applications],
                service_instance_id=route.service_instance_id,
            )

    async def delete_orphaned_routes(self) -> list[str]:
        """Delete every route in the current space with no application and no service.

        Each route is handled on its own: a failed deletion is logged and
        recorded, and the remaining routes are still attempted.

        Returns:
            Ids of the deleted routes.

        Raises:
            OrphanedRouteDeletionError: At least one deletion failed.
        """
        paginator = self.resolver.paginator
        deleted: list[str] = []
        failures: dict[str, Exception] = {}

        # Collected up front: deleting while paging would shift later pages.
        routes = await paginator.list_all(
            ResourceType.SPACE_ROUTES, space_id=self._require_space()
        )
        for route in routes:
            if route.service_instance_id:
                self._emit("route.orphan_skipped", route)
                continue
            try:
                applications = paginator.list(ResourceType.ROUTE_APPLICATIONS, route_id=route.id)
                if await first(applications) is not None:
                    self._emit("route.orphan_skipped", route)
                    continue
                await self._delete(route)
            except (JobFailedError, PollTimeoutError, PlatformAPIError) as exc:
                logger.warning("Failed to delete orphaned route %s: %s", route.id, exc)
                failures[route.id] = exc
                continue
            deleted.append(route.id)

        if failures:
            raise OrphanedRouteDeletionError(failures)
        logger.info("Deleted %d orphaned route(s)", len(deleted))
        return deleted
