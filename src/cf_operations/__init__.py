"""cf-operations -- asynchronous route orchestration for Cloud Foundry v2 APIs.

Names go in, ids come out: the resolver turns organization, space, domain
and route names into resources through paginated lookups, the job poller
waits out asynchronous deletes, and the orchestrator chains both into the
route operations.

Public API::

    from cf_operations import RouteOrchestrator, load_config
    from cf_operations.client import create_client
"""

from cf_operations.config import OperationsConfig, load_config
from cf_operations.errors import (
    AmbiguousResourceError,
    ConfigurationError,
    JobFailedError,
    NotFoundError,
    OperationsError,
    OrphanedRouteDeletionError,
    PlatformAPIError,
    PollTimeoutError,
)
from cf_operations.jobs import JobPoller
from cf_operations.pagination import Paginator
from cf_operations.resolver import ResourceResolver
from cf_operations.routes import Level, RouteOrchestrator

__all__ = [
    "AmbiguousResourceError",
    "ConfigurationError",
    "JobFailedError",
    "JobPoller",
    "Level",
    "NotFoundError",
    "OperationsConfig",
    "OperationsError",
    "OrphanedRouteDeletionError",
    "Paginator",
    "PlatformAPIError",
    "PollTimeoutError",
    "ResourceResolver",
    "RouteOrchestrator",
    "load_config",
]
__version__ = "0.1.0"
