"""HTTP platform client over the Cloud Foundry v2 REST API.

Wraps an ``httpx.AsyncClient`` behind the PlatformClient protocol and
collapses the ``metadata`` + ``entity`` envelope into flat records.
Authentication is a static bearer token; token refresh is left to the
caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from cf_operations.config import OperationsConfig
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
)

logger = logging.getLogger(__name__)

# Network-level failures (connect, read timeout, protocol) propagate as this.
TransportError = httpx.HTTPError

# Endpoint template and the filters that become ``q=<field>:<value>`` terms.
_LIST_ENDPOINTS: dict[ResourceType, tuple[str, dict[str, str]]] = {
    ResourceType.ORGANIZATIONS: ("/v2/organizations", {"name": "name"}),
    ResourceType.ORGANIZATION_SPACES: (
        "/v2/organizations/{organization_id}/spaces",
        {"name": "name"},
    ),
    ResourceType.ORGANIZATION_PRIVATE_DOMAINS: (
        "/v2/organizations/{organization_id}/private_domains",
        {"name": "name"},
    ),
    ResourceType.SHARED_DOMAINS: ("/v2/shared_domains", {"name": "name"}),
    ResourceType.ROUTES: (
        "/v2/routes",
        {
            "domain_id": "domain_guid",
            "host": "host",
            "path": "path",
            "organization_id": "organization_guid",
        },
    ),
    ResourceType.SPACE_ROUTES: (
        "/v2/spaces/{space_id}/routes",
        {"domain_id": "domain_guid", "host": "host", "path": "path"},
    ),
    ResourceType.SPACE_APPLICATIONS: ("/v2/spaces/{space_id}/apps", {"name": "name"}),
    ResourceType.ROUTE_APPLICATIONS: ("/v2/routes/{route_id}/apps", {}),
}

_JOB_STATUSES = {
    "queued": JobStatus.QUEUED,
    "running": JobStatus.RUNNING,
    "finished": JobStatus.FINISHED,
    "failed": JobStatus.FAILED,
}


def build_async_client(
    config: OperationsConfig,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the configured base URL and auth."""
    headers: dict[str, str] = {"Accept": "application/json"}
    if config.token:
        headers["Authorization"] = f"bearer {config.token}"
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=config.api_url,
        timeout=httpx.Timeout(config.request_timeout_seconds),
        headers=headers,
        verify=config.verify_ssl,
        transport=transport,
    )


class HttpPlatformClient:
    """PlatformClient backed by the v2 REST API."""

    def __init__(self, http: httpx.AsyncClient, page_size: int = 50) -> None:
        self.http = http
        self.page_size = page_size

    @classmethod
    def from_config(
        cls,
        config: OperationsConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HttpPlatformClient:
        return cls(build_async_client(config, transport=transport), page_size=config.page_size)

    async def __aenter__(self) -> HttpPlatformClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    # ── transport ─────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: list[tuple[str, str]] | dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        logger.debug("%s %s params=%s", method, url, params)
        response = await self.http.request(method, url, params=params, json=json)
        if response.is_error:
            raise _api_error(response)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # ── PlatformClient ────────────────────────────────────────────

    async def list_resources(
        self,
        resource: ResourceType,
        filters: Mapping[str, str],
        page: int,
    ) -> Page[Any]:
        template, query_fields = _LIST_ENDPOINTS[resource]
        url = template.format(**filters)
        params: list[tuple[str, str]] = [
            ("q", f"{query_fields[key]}:{value}")
            for key, value in filters.items()
            if key in query_fields
        ]
        params.append(("page", str(page)))
        params.append(("results-per-page", str(self.page_size)))

        payload = await self._request("GET", url, params=params)
        return Page(
            items=[_parse_resource(resource, item) for item in payload.get("resources", [])],
            page=page,
            total_pages=int(payload.get("total_pages") or 0),
        )

    async def create_route(
        self,
        domain_id: str,
        space_id: str,
        host: str = "",
        path: str = "",
    ) -> Route:
        body: dict[str, Any] = {"domain_guid": domain_id, "space_guid": space_id}
        if host:
            body["host"] = host
        if path:
            body["path"] = path
        payload = await self._request("POST", "/v2/routes", json=body)
        return _parse_route(payload)

    async def delete_route(self, route_id: str) -> Job:
        payload = await self._request(
            "DELETE", f"/v2/routes/{route_id}", params={"async": "true"}
        )
        return _parse_job(payload)

    async def get_job(self, job_id: str) -> Job:
        payload = await self._request("GET", f"/v2/jobs/{job_id}")
        return _parse_job(payload)

    async def associate_route(self, application_id: str, route_id: str) -> None:
        await self._request("PUT", f"/v2/apps/{application_id}/routes/{route_id}")

    async def remove_route(self, application_id: str, route_id: str) -> None:
        await self._request("DELETE", f"/v2/apps/{application_id}/routes/{route_id}")


# ── wire parsing ──────────────────────────────────────────────────


def _api_error(response: httpx.Response) -> PlatformAPIError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return PlatformAPIError(
        status_code=response.status_code,
        code=int(body.get("code") or 0),
        description=str(body.get("description") or response.reason_phrase),
        error_code=str(body.get("error_code") or ""),
    )


def _split(item: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    metadata = item.get("metadata") or {}
    entity = item.get("entity") or {}
    return str(metadata.get("guid") or entity.get("guid") or ""), entity


def _parse_ref(item: Mapping[str, Any]) -> ResourceRef:
    guid, entity = _split(item)
    return ResourceRef(id=guid, name=entity.get("name") or "")


def _parse_domain(item: Mapping[str, Any], kind: DomainKind) -> Domain:
    guid, entity = _split(item)
    return Domain(
        id=guid,
        name=entity.get("name") or "",
        kind=kind,
        owning_organization_id=entity.get("owning_organization_guid"),
    )


def _parse_route(item: Mapping[str, Any]) -> Route:
    guid, entity = _split(item)
    return Route(
        id=guid,
        domain_id=entity.get("domain_guid") or "",
        space_id=entity.get("space_guid") or "",
        host=entity.get("host"),
        path=entity.get("path"),
        service_instance_id=entity.get("service_instance_guid"),
    )


def _parse_job(item: Mapping[str, Any]) -> Job:
    guid, entity = _split(item)
    raw_status = str(entity.get("status") or "queued").lower()
    try:
        status = _JOB_STATUSES[raw_status]
    except KeyError:
        logger.warning("Unknown job status %r, treating as running", raw_status)
        status = JobStatus.RUNNING
    details = entity.get("error_details")
    return Job(
        id=guid,
        status=status,
        error_details=ErrorDetails(
            code=int(details.get("code") or 0),
            description=str(details.get("description") or ""),
            error_code=str(details.get("error_code") or ""),
        )
        if details
        else None,
    )


def _parse_resource(resource: ResourceType, item: Mapping[str, Any]) -> Any:
    if resource is ResourceType.ORGANIZATION_PRIVATE_DOMAINS:
        return _parse_domain(item, DomainKind.PRIVATE)
    if resource is ResourceType.SHARED_DOMAINS:
        return _parse_domain(item, DomainKind.SHARED)
    if resource in (ResourceType.ROUTES, ResourceType.SPACE_ROUTES):
        return _parse_route(item)
    return _parse_ref(item)
