"""Name-to-id resolution for organizations, spaces, applications, domains and routes.

Every lookup is a filtered listing consumed through the paginator.  The
resolver keeps no state besides the client, so one instance can serve
concurrent operations.
"""

from __future__ import annotations

import logging
from typing import Any

from cf_operations.client.base import PlatformClient
from cf_operations.errors import AmbiguousResourceError, NotFoundError, ResourceKind
from cf_operations.models import (
    Domain,
    ResourceRef,
    ResourceType,
    Route,
    normalize_path,
    normalize_segment,
)
from cf_operations.pagination import Paginator

logger = logging.getLogger(__name__)


def describe_route(domain: str, host: str | None = None, path: str | None = None) -> str:
    """Human-readable route name, e.g. ``test-host.test-domain/path``."""
    host = normalize_segment(host)
    base = f"{host}.{domain}" if host else domain
    return f"{base}{normalize_path(path)}"


def _single(kind: ResourceKind, name: str, matches: list[Any]) -> Any:
    if not matches:
        raise NotFoundError(kind, name)
    if len(matches) > 1:
        raise AmbiguousResourceError(kind, name, len(matches))
    return matches[0]


class ResourceResolver:
    def __init__(self, client: PlatformClient, paginator: Paginator | None = None) -> None:
        self.client = client
        self.paginator = paginator or Paginator(client)

    async def _named(
        self, kind: ResourceKind, name: str, resource: ResourceType, **filters: str
    ) -> Any:
        # The server's name filter is exact, but the result is re-checked so a
        # looser server never produces a wrong match.
        items = await self.paginator.list_all(resource, name=name, **filters)
        return _single(kind, name, [item for item in items if item.name == name])

    async def resolve_organization(self, name: str) -> ResourceRef:
        return await self._named(ResourceKind.ORGANIZATION, name, ResourceType.ORGANIZATIONS)

    async def resolve_space(self, organization_id: str, name: str) -> ResourceRef:
        return await self._named(
            ResourceKind.SPACE,
            name,
            ResourceType.ORGANIZATION_SPACES,
            organization_id=organization_id,
        )

    async def resolve_application(self, space_id: str, name: str) -> ResourceRef:
        return await self._named(
            ResourceKind.APPLICATION,
            name,
            ResourceType.SPACE_APPLICATIONS,
            space_id=space_id,
        )

    async def resolve_domain(self, organization_id: str, name: str) -> Domain:
        """Resolve a domain name, preferring the organization's private domain.

        Shared domains are only listed when no private domain matches.

        Raises:
            NotFoundError: Neither a private nor a shared domain has this name.
            AmbiguousResourceError: More than one domain matched in one scope.
        """
        private = await self.paginator.list_all(
            ResourceType.ORGANIZATION_PRIVATE_DOMAINS,
            organization_id=organization_id,
            name=name,
        )
        private = [domain for domain in private if domain.name == name]
        if private:
            domain = _single(ResourceKind.DOMAIN, name, private)
            logger.debug("Domain %s resolved to private domain %s", name, domain.id)
            return domain

        shared = await self.paginator.list_all(ResourceType.SHARED_DOMAINS, name=name)
        domain = _single(
            ResourceKind.DOMAIN, name, [d for d in shared if d.name == name]
        )
        logger.debug("Domain %s resolved to shared domain %s", name, domain.id)
        return domain

    async def find_route(
        self,
        domain: Domain,
        host: str | None = None,
        path: str | None = None,
    ) -> Route | None:
        """Return the route whose host and path equal the request exactly, or None.

        The server filter may match loosely (``host=api`` can also return
        ``api-v2``), so candidates are compared field by field instead of
        taking the first result.
        """
        filters = {"domain_id": domain.id}
        if normalize_segment(host):
            filters["host"] = normalize_segment(host)
        if normalize_path(path):
            filters["path"] = normalize_path(path)

        candidates = await self.paginator.list_all(ResourceType.ROUTES, **filters)
        matches = [route for route in candidates if route.matches(host, path)]
        if len(matches) > 1:
            raise AmbiguousResourceError(
                ResourceKind.ROUTE, describe_route(domain.name, host, path), len(matches)
            )
        return matches[0] if matches else None

    async def resolve_route(
        self,
        domain: Domain,
        host: str | None = None,
        path: str | None = None,
    ) -> Route:
        route = await self.find_route(domain, host, path)
        if route is None:
            raise NotFoundError(ResourceKind.ROUTE, describe_route(domain.name, host, path))
        return route

    async def resolve_or_create_route(
        self,
        domain: Domain,
        host: str | None,
        path: str | None,
        space_id: str,
    ) -> Route:
        """Return the existing route for (domain, host, path) or create it in the space."""
        route = await self.find_route(domain, host, path)
        if route is not None:
            logger.debug("Reusing route %s", route.id)
            return route

        route = await self.client.create_route(
            domain.id, space_id, normalize_segment(host), normalize_path(path)
        )
        logger.info(
            "Created route %s (%s)", route.id, describe_route(domain.name, host, path)
        )
        return route
