"""Exception taxonomy for resolution, job polling, and the platform client."""

from __future__ import annotations

from enum import Enum


class ResourceKind(str, Enum):
    ORGANIZATION = "organization"
    SPACE = "space"
    DOMAIN = "domain"
    ROUTE = "route"
    APPLICATION = "application"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class OperationsError(Exception):
    """Base class for every failure raised by the orchestration layer."""


class ConfigurationError(OperationsError):
    """Missing or invalid configuration, or an operation lacks its context."""


class NotFoundError(OperationsError):
    """A named lookup found zero matches.

    The message is user-facing, e.g. ``Domain test-domain does not exist``.
    """

    def __init__(self, kind: ResourceKind, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.label} {name} does not exist")


class AmbiguousResourceError(OperationsError):
    """A named lookup found more than one exact match within one scope."""

    def __init__(self, kind: ResourceKind, name: str, count: int) -> None:
        self.kind = kind
        self.name = name
        self.count = count
        super().__init__(f"{kind.label} {name} is ambiguous ({count} matches)")


class JobFailedError(OperationsError):
    """A server-side asynchronous job finished in the ``failed`` state."""

    def __init__(self, code: int, description: str, error_code: str = "") -> None:
        self.code = code
        self.description = description
        self.error_code = error_code
        if error_code or code:
            super().__init__(f"{error_code}({code}): {description}")
        else:
            super().__init__(description)


class PollTimeoutError(OperationsError):
    """A job did not reach a terminal state before the deadline."""

    def __init__(self, job_id: str, timeout: float) -> None:
        self.job_id = job_id
        self.timeout = timeout
        super().__init__(
            f"Job {job_id} did not complete within {timeout:g} seconds"
        )


class PlatformAPIError(OperationsError):
    """Error response returned by the platform API."""

    def __init__(
        self,
        status_code: int,
        code: int = 0,
        description: str = "",
        error_code: str = "",
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.description = description
        self.error_code = error_code
        detail = description or "request failed"
        prefix = f"{error_code}({code}): " if error_code else ""
        super().__init__(f"{prefix}{detail} [HTTP {status_code}]")


class OrphanedRouteDeletionError(OperationsError):
    """One or more orphaned routes could not be deleted.

    ``failures`` maps route id to the exception raised while deleting it.
    Every other orphaned route has already been attempted.
    """

    def __init__(self, failures: dict[str, Exception]) -> None:
        self.failures = dict(failures)
        super().__init__("; ".join(str(exc) for exc in self.failures.values()))
