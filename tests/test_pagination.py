"""Tests for cf_operations.pagination."""

from __future__ import annotations

import pytest
from conftest import make_platform

from cf_operations.models import Page, ResourceRef, ResourceType
from cf_operations.pagination import Paginator, collect, first, paginate


def _ref(n: int) -> ResourceRef:
    return ResourceRef(id=f"id-{n}", name=f"name-{n}")


class _ScriptedFetcher:
    """Serves fixed pages and records which page numbers were requested."""

    def __init__(self, pages: list[list[ResourceRef]], fail_on: int | None = None) -> None:
        self.pages = pages
        self.fail_on = fail_on
        self.requested: list[int] = []

    async def __call__(self, page: int) -> Page[ResourceRef]:
        self.requested.append(page)
        if page == self.fail_on:
            raise ConnectionError(f"page {page} unavailable")
        return Page(items=self.pages[page - 1], page=page, total_pages=len(self.pages))


class TestPaginate:
    @pytest.mark.asyncio
    async def test_single_page_preserves_order(self):
        refs = [_ref(1), _ref(2), _ref(3)]
        fetch = _ScriptedFetcher([refs])
        assert await collect(paginate(fetch)) == refs
        assert fetch.requested == [1]

    @pytest.mark.asyncio
    async def test_items_across_pages_in_server_order(self):
        refs = [_ref(n) for n in range(7)]
        fetch = _ScriptedFetcher([refs[0:3], refs[3:6], refs[6:7]])
        assert await collect(paginate(fetch)) == refs
        assert fetch.requested == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_empty_listing(self):
        async def fetch(page: int) -> Page[ResourceRef]:
            return Page(items=[], page=page, total_pages=0)

        assert await collect(paginate(fetch)) == []

    @pytest.mark.asyncio
    async def test_next_page_fetched_lazily(self):
        fetch = _ScriptedFetcher([[_ref(1), _ref(2)], [_ref(3)]])
        iterator = paginate(fetch)
        assert await iterator.__anext__() == _ref(1)
        assert fetch.requested == [1]
        await iterator.aclose()

    @pytest.mark.asyncio
    async def test_failure_propagates_and_ends_sequence(self):
        fetch = _ScriptedFetcher([[_ref(1)], [_ref(2)], [_ref(3)]], fail_on=2)
        seen = []
        with pytest.raises(ConnectionError, match="page 2"):
            async for item in paginate(fetch):
                seen.append(item)
        assert seen == [_ref(1)]
        assert fetch.requested == [1, 2]

    @pytest.mark.asyncio
    async def test_first_stops_after_first_page(self):
        fetch = _ScriptedFetcher([[_ref(1)], [_ref(2)]])
        assert await first(paginate(fetch)) == _ref(1)
        assert fetch.requested == [1]

    @pytest.mark.asyncio
    async def test_first_on_empty(self):
        fetch = _ScriptedFetcher([[]])
        assert await first(paginate(fetch)) is None


class TestPaginator:
    @pytest.mark.asyncio
    async def test_lists_all_pages_from_client(self):
        platform = make_platform(page_size=2)
        names = [f"space-{n}" for n in range(5)]
        for name in names:
            platform.client.add_space(platform.organization.id, name)

        paginator = Paginator(platform.client)
        spaces = await paginator.list_all(
            ResourceType.ORGANIZATION_SPACES, organization_id=platform.organization.id
        )

        assert [s.name for s in spaces] == ["test-space", *names]
        pages = [
            args["page"]
            for name, args in platform.client.calls
            if name == "list_resources"
        ]
        assert pages == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_restart_reissues_first_page(self):
        platform = make_platform(page_size=1)
        platform.client.add_space(platform.organization.id, "other")
        paginator = Paginator(platform.client)

        listing = paginator.list(
            ResourceType.ORGANIZATION_SPACES, organization_id=platform.organization.id
        )
        assert (await first(listing)).name == "test-space"
        again = await paginator.list_all(
            ResourceType.ORGANIZATION_SPACES, organization_id=platform.organization.id
        )

        assert [s.name for s in again] == ["test-space", "other"]
        pages = [args["page"] for _, args in platform.client.calls]
        assert pages == [1, 1, 2]
