"""Lazy walk over page-indexed list endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Awaitable, Callable, TypeVar

import structlog

from cfchain.core.errors import AmbiguousResourceError, ResourceNotFoundError
from cfchain.domain.models import PageRequest, PageResponse, Resource

logger = structlog.get_logger()

T = TypeVar("T")

PageFetcher = Callable[[PageRequest], Awaitable[PageResponse]]


async def walk(fetch_page: PageFetcher, **filters: str) -> AsyncIterator[Resource]:
    """
    Yield every resource across all pages, in server order.

    Pages are requested one at a time and only when the consumer pulls past
    the current page, so stopping early never fetches the remaining pages.
    Filters are passed through untouched on every request.
    """
    request = PageRequest(page=1, filters=filters)
    while True:
        response = await fetch_page(request)
        logger.debug(
            "page_fetched",
            page=request.page,
            total_pages=response.total_pages,
            count=len(response.resources),
        )
        for resource in response.resources:
            yield resource
        if response.total_pages == 0 or request.page >= response.total_pages:
            return
        request = request.next()


async def first(items: AsyncIterator[T]) -> T:
    """Return the first item and close the iterator."""
    async with aclosing(items) as iterator:
        async for item in iterator:
            return item
    raise ResourceNotFoundError("expected at least one resource, found none")


async def single(items: AsyncIterator[T]) -> T:
    """Return the only item; fails when there are none or more than one."""
    async with aclosing(items) as iterator:
        found: list[T] = []
        async for item in iterator:
            found.append(item)
            if len(found) > 1:
                raise AmbiguousResourceError("expected exactly one resource, found several")
    if not found:
        raise ResourceNotFoundError("expected exactly one resource, found none")
    return found[0]


async def collect(items: AsyncIterator[T]) -> list[T]:
    return [item async for item in items]
