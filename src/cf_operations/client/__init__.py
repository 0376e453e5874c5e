"""Platform clients -- the collaborator the orchestration layer calls into."""

from cf_operations.client.base import PlatformClient, create_client

__all__ = [
    "PlatformClient",
    "create_client",
]
