"""Lazy, restartable iteration over page-based list endpoints."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

from cf_operations.client.base import PlatformClient
from cf_operations.models import Page, ResourceType

logger = logging.getLogger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[int], Awaitable[Page[Any]]]


async def paginate(fetch: PageFetcher) -> AsyncIterator[Any]:
    """Yield every item of every page, in server order.

    Pages are requested one at a time starting at 1; the next request is
    only issued once the consumer has drained the current page.  A failing
    request raises out of the iterator and ends it.
    """
    page_number = 1
    while True:
        page = await fetch(page_number)
        for item in page.items:
            yield item
        if not page.has_next:
            return
        page_number += 1


async def collect(iterator: AsyncIterator[T]) -> list[T]:
    return [item async for item in iterator]


async def first(iterator: AsyncIterator[T]) -> T | None:
    """Return the first item or None, without fetching any further page."""
    try:
        async for item in iterator:
            return item
        return None
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


class Paginator:
    """Turns ``PlatformClient.list_resources`` into async sequences.

    Each :meth:`list` call starts again from page 1; nothing is cached
    between calls.
    """

    def __init__(self, client: PlatformClient) -> None:
        self.client = client

    def fetcher(self, resource: ResourceType, **filters: str) -> PageFetcher:
        async def fetch(page: int) -> Page[Any]:
            logger.debug("Listing %s page %d filters=%s", resource.value, page, filters)
            return await self.client.list_resources(resource, filters, page)

        return fetch

    def list(self, resource: ResourceType, **filters: str) -> AsyncIterator[Any]:
        return paginate(self.fetcher(resource, **filters))

    async def list_all(self, resource: ResourceType, **filters: str) -> list[Any]:
        return await collect(self.list(resource, **filters))
