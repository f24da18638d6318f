"""
Multi-page fetching on top of a single-page fetch function.

Every driver here is strictly sequential: one page request is in flight at a
time and items are appended in cursor order. A failure on any page aborts the
whole operation and propagates unchanged; no partial result is returned.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.core.constants import FetchState
from deepsource_mcp.infrastructure import exceptions as ex
from deepsource_mcp.pagination.types import (
    NULL_LOGGER,
    LoggerProtocol,
    MultiPageResult,
    PageFetcher,
    PageInfo,
    PaginatedResponse,
    PaginatedResponseWithMetadata,
    ProgressCallback,
)


async def fetch_multiple_pages[T](
    fetch_page: PageFetcher[T],
    *,
    max_pages: int = cs.DEFAULT_MAX_PAGES,
    page_size: int = cs.DEFAULT_PAGE_SIZE,
    fetch_all: bool = False,
    on_progress: ProgressCallback | None = None,
    log: LoggerProtocol | None = None,
) -> MultiPageResult[T]:
    """Fetches pages until the source is exhausted or `max_pages` is reached.

    The loop moves through the states FETCHING, then DONE (source exhausted),
    LIMIT_REACHED (stopped by `max_pages` while more pages exist) or FAILED
    (the fetch raised; the exception propagates).

    A page that reports `has_next_page` without an `end_cursor` cannot be
    continued by cursor, so the loop stops there and reports `has_more=True`.

    Args:
        fetch_page: Fetches one page given `(cursor, page_size)`.
        max_pages: Page limit; ignored when `fetch_all` is set.
        page_size: Items requested per page.
        fetch_all: Fetch until exhaustion regardless of `max_pages`.
        on_progress: Called with `(pages_fetched, item_count)` after each page,
            before the next fetch starts.
        log: Injected logger. Defaults to a no-op.

    Returns:
        MultiPageResult[T]: All accumulated items and the final paging state.
    """
    log = log or NULL_LOGGER
    items: list[T] = []
    pages_fetched = 0
    cursor: str | None = None
    has_more = True
    total_count: int | None = None
    state = FetchState.FETCHING

    log.debug(
        ls.MULTI_PAGE_START.format(
            max_pages=max_pages, page_size=page_size, fetch_all=fetch_all
        )
    )

    while state == FetchState.FETCHING:
        if not fetch_all and pages_fetched >= max_pages:
            log.info(
                ls.MULTI_PAGE_LIMIT_REACHED.format(
                    max_pages=max_pages, pages=pages_fetched, items=len(items)
                )
            )
            state = FetchState.LIMIT_REACHED
            break

        try:
            response = await fetch_page(cursor, page_size)
        except Exception as e:
            state = FetchState.FAILED
            log.error(ls.MULTI_PAGE_FAILED.format(page=pages_fetched + 1, error=e))
            raise

        items.extend(response.items)
        pages_fetched += 1
        has_more = response.page_info.has_next_page
        cursor = response.page_info.end_cursor
        total_count = response.total_count

        if on_progress is not None:
            on_progress(pages_fetched, len(items))

        log.debug(
            ls.MULTI_PAGE_PAGE_FETCHED.format(
                page=pages_fetched,
                items=len(response.items),
                total=len(items),
                has_more=has_more,
            )
        )

        if not has_more:
            state = FetchState.DONE
        elif not cursor:
            log.warning(ls.MULTI_PAGE_MISSING_CURSOR.format(page=pages_fetched))
            state = FetchState.DONE

    log.info(
        ls.MULTI_PAGE_DONE.format(
            state=state, pages=pages_fetched, items=len(items), has_more=has_more
        )
    )

    return MultiPageResult(
        items=items,
        pages_fetched=pages_fetched,
        has_more=has_more,
        last_cursor=cursor or None,
        total_count=total_count or None,
    )


class PaginationIterator[T]:
    """Single-pass asynchronous iterator yielding one item batch per page.

    The cursor state lives on the instance, so iteration cannot be restarted;
    build a new iterator to scan again. After a fetch failure the error is
    raised from that `__anext__` call and every later call raises
    `RuntimeError`.
    """

    def __init__(
        self,
        fetch_page: PageFetcher[T],
        page_size: int = cs.DEFAULT_PAGE_SIZE,
        log: LoggerProtocol | None = None,
    ) -> None:
        self._fetch_page = fetch_page
        self._page_size = page_size
        self._log = log or NULL_LOGGER
        self._cursor: str | None = None
        self._has_more = True
        self._failed = False
        self.pages_fetched = 0

    def __aiter__(self) -> PaginationIterator[T]:
        return self

    async def __anext__(self) -> Sequence[T]:
        if self._failed:
            raise RuntimeError(ex.ITERATOR_UNUSABLE)
        if not self._has_more:
            raise StopAsyncIteration

        try:
            response = await self._fetch_page(self._cursor, self._page_size)
        except Exception as e:
            self._failed = True
            self._log.error(ls.ITERATOR_FAILED.format(error=e))
            raise

        self.pages_fetched += 1
        self._cursor = response.page_info.end_cursor
        self._has_more = response.page_info.has_next_page
        if self._has_more and not self._cursor:
            self._log.warning(
                ls.MULTI_PAGE_MISSING_CURSOR.format(page=self.pages_fetched)
            )
            self._has_more = False
        return response.items


def create_pagination_iterator[T](
    fetch_page: PageFetcher[T],
    page_size: int = cs.DEFAULT_PAGE_SIZE,
    log: LoggerProtocol | None = None,
) -> PaginationIterator[T]:
    return PaginationIterator(fetch_page, page_size=page_size, log=log)


def merge_responses[T](
    responses: Sequence[PaginatedResponse[T]],
) -> PaginatedResponse[T]:
    """Combines page responses into one, preserving item order.

    Paging flags and cursors are taken from the outermost pages: the previous
    side from the first response, the next side from the last. `total_count`
    comes from the last response, falling back to the merged item count when
    that value is zero.
    """
    if not responses:
        return PaginatedResponse(items=[], page_info=PageInfo(), total_count=0)

    items = [item for response in responses for item in response.items]
    first, last = responses[0], responses[-1]
    page_info = PageInfo(
        has_next_page=last.page_info.has_next_page,
        has_previous_page=first.page_info.has_previous_page,
        start_cursor=first.page_info.start_cursor or None,
        end_cursor=last.page_info.end_cursor or None,
    )
    return PaginatedResponse(
        items=items,
        page_info=page_info,
        total_count=last.total_count or len(items),
    )


def build_pagination_metadata(
    response: PaginatedResponse[Any],
    pages_fetched: int = 1,
    limit_reached: bool = False,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "has_more_pages": response.page_info.has_next_page,
        "page_size": len(response.items),
    }
    if response.page_info.end_cursor:
        metadata["next_cursor"] = response.page_info.end_cursor
    if response.page_info.start_cursor:
        metadata["previous_cursor"] = response.page_info.start_cursor
    if response.total_count > 0:
        metadata["total_count"] = response.total_count
    if pages_fetched > 1:
        metadata["pages_fetched"] = pages_fetched
    if limit_reached:
        metadata["limit_reached"] = True
    return metadata


def add_pagination_metadata[T](
    response: PaginatedResponse[T],
    pages_fetched: int = 1,
    limit_reached: bool = False,
) -> PaginatedResponseWithMetadata[T]:
    """Wraps `response` unchanged and attaches a `pagination` block.

    Optional fields are omitted, never set to null or false, when they carry
    no information: cursors when absent, `total_count` unless positive,
    `pages_fetched` unless above one and `limit_reached` unless true.
    """
    return PaginatedResponseWithMetadata(
        items=response.items,
        page_info=response.page_info,
        total_count=response.total_count,
        pagination=build_pagination_metadata(response, pages_fetched, limit_reached),
    )
