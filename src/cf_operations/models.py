"""Flat, immutable records for the resources the orchestration layer reads.

The platform wraps every resource in a ``metadata`` + ``entity`` envelope;
clients collapse that into the records below so resolvers only ever see
ids, names, and the few fields they act on.
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class _Record(BaseModel):
    """Shared settings: unknown fields rejected, instances immutable."""

    model_config = ConfigDict(extra="forbid", frozen=True)


def normalize_segment(value: str | None) -> str:
    """Treat ``None`` and blank host/path values as the same empty segment."""
    if value is None:
        return ""
    return value.strip()


def normalize_path(value: str | None) -> str:
    """Normalize a route path; non-empty paths always start with ``/``."""
    path = normalize_segment(value)
    if path and not path.startswith("/"):
        path = f"/{path}"
    return path


class ResourceType(str, Enum):
    """List endpoints the orchestration layer pages through."""

    ORGANIZATIONS = "organizations"
    ORGANIZATION_SPACES = "organization_spaces"
    ORGANIZATION_PRIVATE_DOMAINS = "organization_private_domains"
    SHARED_DOMAINS = "shared_domains"
    ROUTES = "routes"
    SPACE_ROUTES = "space_routes"
    SPACE_APPLICATIONS = "space_applications"
    ROUTE_APPLICATIONS = "route_applications"


class Page(_Record, Generic[T]):
    """One page of a listing. Pages are numbered from 1."""

    items: list[T] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    total_pages: int = Field(default=1, ge=0)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class ResourceRef(_Record):
    id: str = Field(min_length=1)
    name: str = ""

    @field_validator("id", "name")
    @classmethod
    def normalize_text(cls, value: str) -> str:
        return value.strip()


class DomainKind(str, Enum):
    PRIVATE = "private"
    SHARED = "shared"


class Domain(_Record):
    id: str = Field(min_length=1)
    name: str
    kind: DomainKind
    owning_organization_id: str | None = None

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(id=self.id, name=self.name)


class Route(_Record):
    """A host + path under a domain, owned by a space.

    ``host`` and ``path`` are stored normalized, so a route created without
    a host compares equal on ``key`` to a lookup for ``host=None``.
    """

    id: str = Field(min_length=1)
    domain_id: str = Field(min_length=1)
    space_id: str = ""
    host: str = ""
    path: str = ""
    service_instance_id: str | None = None

    @field_validator("host", mode="before")
    @classmethod
    def normalize_host(cls, value: str | None) -> str:
        return normalize_segment(value)

    @field_validator("path", mode="before")
    @classmethod
    def normalize_route_path(cls, value: str | None) -> str:
        return normalize_path(value)

    @field_validator("service_instance_id", mode="before")
    @classmethod
    def normalize_service_instance(cls, value: str | None) -> str | None:
        return value or None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.domain_id, self.host, self.path)

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(id=self.id, name=self.host or self.id)

    def matches(self, host: str | None, path: str | None) -> bool:
        return self.host == normalize_segment(host) and self.path == normalize_path(path)


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


class ErrorDetails(_Record):
    code: int = 0
    description: str = ""
    error_code: str = ""


class Job(_Record):
    id: str = Field(min_length=1)
    status: JobStatus
    error_details: ErrorDetails | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.FINISHED, JobStatus.FAILED)


class RouteRecord(_Record):
    """A route joined with the names of its domain, space and applications."""

    id: str
    host: str = ""
    path: str = ""
    domain: str = ""
    space: str = ""
    applications: list[str] = Field(default_factory=list)
    service_instance_id: str | None = None

    @property
    def application(self) -> str | None:
        return self.applications[0] if self.applications else None
