"""In-memory platform client for tests and dry runs.

Holds organizations, spaces, domains, applications and routes in plain
dicts, pages listings with a fixed page size, and drives asynchronous
deletes through scripted job status sequences.  Every call is recorded in
``calls`` so tests can assert on the exact requests an operation issued.
"""

from __future__ import annotations

import asyncio
import itertools
import math
from collections import deque
from collections.abc import Mapping
from typing import Any

from cf_operations.errors import PlatformAPIError
from cf_operations.models import (
    Domain,
    DomainKind,
    ErrorDetails,
    Job,
    JobStatus,
    Page,
    ResourceRef,
    ResourceType,
    Route,
    normalize_path,
    normalize_segment,
)


class InMemoryPlatformClient:
    def __init__(self, page_size: int = 50, substring_filters: bool = False) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        # Emulates servers whose host/path filters are "contains", not exact.
        self.substring_filters = substring_filters
        self.calls: list[tuple[str, dict[str, Any]]] = []

        self._ids = itertools.count(1)
        self._organizations: dict[str, ResourceRef] = {}
        self._spaces: dict[str, ResourceRef] = {}
        self._space_orgs: dict[str, str] = {}
        self._domains: dict[str, Domain] = {}
        self._applications: dict[str, ResourceRef] = {}
        self._application_spaces: dict[str, str] = {}
        self._routes: dict[str, Route] = {}
        self._associations: list[tuple[str, str]] = []
        self._jobs: dict[str, deque[Job]] = {}
        self._job_routes: dict[str, str] = {}
        self._delete_scripts: dict[str, list[Job]] = {}
        self._list_failures: list[tuple[ResourceType, dict[str, str], Exception]] = []

    # ── seeding ───────────────────────────────────────────────────

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def add_organization(self, name: str) -> ResourceRef:
        ref = ResourceRef(id=self._next_id("org"), name=name)
        self._organizations[ref.id] = ref
        return ref

    def add_space(self, organization_id: str, name: str) -> ResourceRef:
        ref = ResourceRef(id=self._next_id("space"), name=name)
        self._spaces[ref.id] = ref
        self._space_orgs[ref.id] = organization_id
        return ref

    def add_private_domain(self, organization_id: str, name: str) -> Domain:
        domain = Domain(
            id=self._next_id("private-domain"),
            name=name,
            kind=DomainKind.PRIVATE,
            owning_organization_id=organization_id,
        )
        self._domains[domain.id] = domain
        return domain

    def add_shared_domain(self, name: str) -> Domain:
        domain = Domain(id=self._next_id("shared-domain"), name=name, kind=DomainKind.SHARED)
        self._domains[domain.id] = domain
        return domain

    def add_application(self, space_id: str, name: str) -> ResourceRef:
        ref = ResourceRef(id=self._next_id("app"), name=name)
        self._applications[ref.id] = ref
        self._application_spaces[ref.id] = space_id
        return ref

    def add_route(
        self,
        domain_id: str,
        space_id: str,
        host: str | None = None,
        path: str | None = None,
        service_instance_id: str | None = None,
    ) -> Route:
        route = Route(
            id=self._next_id("route"),
            domain_id=domain_id,
            space_id=space_id,
            host=host,
            path=path,
            service_instance_id=service_instance_id,
        )
        self._routes[route.id] = route
        return route

    def script_job(
        self,
        job_id: str,
        *statuses: JobStatus,
        error: ErrorDetails | None = None,
    ) -> None:
        """Queue the statuses ``get_job`` returns, in order; the last one repeats."""
        self._jobs[job_id] = deque(self._build_jobs(job_id, statuses, error))

    def script_delete(
        self,
        route_id: str,
        *statuses: JobStatus,
        error: ErrorDetails | None = None,
    ) -> None:
        """Script the job produced by deleting ``route_id``."""
        self._delete_scripts[route_id] = self._build_jobs("", statuses, error)

    @staticmethod
    def _build_jobs(
        job_id: str, statuses: tuple[JobStatus, ...], error: ErrorDetails | None
    ) -> list[Job]:
        if not statuses:
            raise ValueError("at least one job status is required")
        return [
            Job(
                id=job_id or "pending",
                status=status,
                error_details=error if status is JobStatus.FAILED else None,
            )
            for status in statuses
        ]

    def fail_list(self, resource: ResourceType, error: Exception, **filters: str) -> None:
        """Make listings of ``resource`` whose filters include ``filters`` raise ``error``."""
        self._list_failures.append((resource, filters, error))

    # ── inspection ────────────────────────────────────────────────

    @property
    def routes(self) -> list[Route]:
        return list(self._routes.values())

    @property
    def associations(self) -> list[tuple[str, str]]:
        return list(self._associations)

    def call_count(self, method: str, resource: ResourceType | None = None) -> int:
        return sum(
            1
            for name, args in self.calls
            if name == method and (resource is None or args.get("resource") is resource)
        )

    # ── PlatformClient ────────────────────────────────────────────

    async def list_resources(
        self,
        resource: ResourceType,
        filters: Mapping[str, str],
        page: int,
    ) -> Page[Any]:
        self.calls.append(
            ("list_resources", {"resource": resource, "filters": dict(filters), "page": page})
        )
        await asyncio.sleep(0)
        for failing, wanted, error in self._list_failures:
            if failing is resource and all(filters.get(k) == v for k, v in wanted.items()):
                raise error
        items = self._select(resource, filters)
        total_pages = math.ceil(len(items) / self.page_size)
        start = (page - 1) * self.page_size
        return Page(
            items=items[start:start + self.page_size],
            page=page,
            total_pages=total_pages,
        )

    async def create_route(
        self,
        domain_id: str,
        space_id: str,
        host: str = "",
        path: str = "",
    ) -> Route:
        self.calls.append(
            ("create_route", {"domain_id": domain_id, "space_id": space_id, "host": host, "path": path})
        )
        await asyncio.sleep(0)
        if domain_id not in self._domains:
            raise PlatformAPIError(400, 130002, "The domain is invalid", "CF-DomainInvalid")
        for route in self._routes.values():
            if route.key == (domain_id, normalize_segment(host), normalize_path(path)):
                raise PlatformAPIError(400, 210003, "The host is taken", "CF-RouteHostTaken")
        return self.add_route(domain_id, space_id, host, path)

    async def delete_route(self, route_id: str) -> Job:
        self.calls.append(("delete_route", {"route_id": route_id}))
        await asyncio.sleep(0)
        if route_id not in self._routes:
            raise PlatformAPIError(404, 210002, "The route could not be found", "CF-RouteNotFound")
        job_id = self._next_id("job")
        script = self._delete_scripts.pop(route_id, None) or self._build_jobs(
            job_id, (JobStatus.FINISHED,), None
        )
        self._jobs[job_id] = deque(job.model_copy(update={"id": job_id}) for job in script)
        self._job_routes[job_id] = route_id
        return Job(id=job_id, status=JobStatus.QUEUED)

    async def get_job(self, job_id: str) -> Job:
        self.calls.append(("get_job", {"job_id": job_id}))
        await asyncio.sleep(0)
        queue = self._jobs.get(job_id)
        if not queue:
            raise PlatformAPIError(404, 10000, "Unknown request", "CF-NotFound")
        job = queue.popleft() if len(queue) > 1 else queue[0]
        if job.status is JobStatus.FINISHED:
            self._complete_delete(job_id)
        return job

    async def associate_route(self, application_id: str, route_id: str) -> None:
        self.calls.append(
            ("associate_route", {"application_id": application_id, "route_id": route_id})
        )
        await asyncio.sleep(0)
        pair = (application_id, route_id)
        if pair not in self._associations:
            self._associations.append(pair)

    async def remove_route(self, application_id: str, route_id: str) -> None:
        self.calls.append(
            ("remove_route", {"application_id": application_id, "route_id": route_id})
        )
        await asyncio.sleep(0)
        pair = (application_id, route_id)
        if pair in self._associations:
            self._associations.remove(pair)

    # ── internals ─────────────────────────────────────────────────

    def _complete_delete(self, job_id: str) -> None:
        route_id = self._job_routes.pop(job_id, None)
        if route_id is None:
            return
        self._routes.pop(route_id, None)
        self._associations = [pair for pair in self._associations if pair[1] != route_id]

    def _segment_matches(self, actual: str, wanted: str) -> bool:
        wanted = normalize_segment(wanted)
        if self.substring_filters:
            return wanted in actual
        return actual == wanted

    def _route_matches(self, route: Route, filters: Mapping[str, str]) -> bool:
        if "domain_id" in filters and route.domain_id != filters["domain_id"]:
            return False
        if "host" in filters and not self._segment_matches(route.host, filters["host"]):
            return False
        if "path" in filters and not self._segment_matches(route.path, filters["path"]):
            return False
        if "space_id" in filters and route.space_id != filters["space_id"]:
            return False
        if "organization_id" in filters:
            return self._space_orgs.get(route.space_id) == filters["organization_id"]
        return True

    def _select(self, resource: ResourceType, filters: Mapping[str, str]) -> list[Any]:
        name = filters.get("name")

        def named(refs: list[Any]) -> list[Any]:
            return [ref for ref in refs if name is None or ref.name == name]

        if resource is ResourceType.ORGANIZATIONS:
            return named(list(self._organizations.values()))
        if resource is ResourceType.ORGANIZATION_SPACES:
            org_id = filters["organization_id"]
            return named([s for sid, s in self._spaces.items() if self._space_orgs[sid] == org_id])
        if resource is ResourceType.ORGANIZATION_PRIVATE_DOMAINS:
            org_id = filters["organization_id"]
            return named([
                d for d in self._domains.values()
                if d.kind is DomainKind.PRIVATE and d.owning_organization_id == org_id
            ])
        if resource is ResourceType.SHARED_DOMAINS:
            return named([d for d in self._domains.values() if d.kind is DomainKind.SHARED])
        if resource in (ResourceType.ROUTES, ResourceType.SPACE_ROUTES):
            if resource is ResourceType.SPACE_ROUTES and "space_id" not in filters:
                raise KeyError("space_id")
            return [r for r in self._routes.values() if self._route_matches(r, filters)]
        if resource is ResourceType.SPACE_APPLICATIONS:
            space_id = filters["space_id"]
            return named([
                a for aid, a in self._applications.items()
                if self._application_spaces[aid] == space_id
            ])
        if resource is ResourceType.ROUTE_APPLICATIONS:
            route_id = filters["route_id"]
            return [self._applications[aid] for aid, rid in self._associations if rid == route_id]
        raise ValueError(f"Unsupported resource type: {resource}")
