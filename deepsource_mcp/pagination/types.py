"""
Value types shared by every paginated operation.

All containers here are immutable: a page is constructed once per fetch and
merging produces a new instance. `to_dict` methods emit the camelCase keys the
MCP tool payloads use and omit absent cursors rather than emitting nulls.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypedDict


@dataclass(frozen=True)
class PageInfo:
    """Relay-style page descriptor.

    A well-behaved upstream sets `end_cursor` whenever `has_next_page` is true;
    callers must still tolerate its absence.
    """

    has_next_page: bool = False
    has_previous_page: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None

    @classmethod
    def from_graphql(cls, data: dict[str, Any] | None) -> PageInfo:
        if not data:
            return cls()
        return cls(
            has_next_page=bool(data.get("hasNextPage", False)),
            has_previous_page=bool(data.get("hasPreviousPage", False)),
            start_cursor=data.get("startCursor") or None,
            end_cursor=data.get("endCursor") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
        }
        if self.start_cursor is not None:
            result["startCursor"] = self.start_cursor
        if self.end_cursor is not None:
            result["endCursor"] = self.end_cursor
        return result


@dataclass(frozen=True)
class PaginatedResponse[T]:
    items: Sequence[T] = ()
    page_info: PageInfo = field(default_factory=PageInfo)
    total_count: int = 0

    @classmethod
    def empty(cls) -> PaginatedResponse[T]:
        return cls(items=(), page_info=PageInfo(), total_count=0)

    def to_dict(
        self,
        item_key: str = "items",
        serialize: Callable[[T], Any] | None = None,
    ) -> dict[str, Any]:
        items = [serialize(item) if serialize else item for item in self.items]
        return {
            item_key: items,
            "pageInfo": self.page_info.to_dict(),
            "totalCount": self.total_count,
        }


@dataclass(frozen=True)
class MultiPageResult[T]:
    items: Sequence[T]
    pages_fetched: int
    has_more: bool
    last_cursor: str | None = None
    total_count: int | None = None


@dataclass(frozen=True)
class PaginatedResponseWithMetadata[T](PaginatedResponse[T]):
    """A response decorated with caller-facing pagination hints.

    The `pagination` block only carries the fields that are meaningful for
    this response; consumers treat field presence as a signal.
    """

    pagination: dict[str, Any] = field(default_factory=dict)

    def to_dict(
        self,
        item_key: str = "items",
        serialize: Callable[[T], Any] | None = None,
    ) -> dict[str, Any]:
        result = super().to_dict(item_key=item_key, serialize=serialize)
        result["pagination"] = dict(self.pagination)
        return result


class PaginationParams(TypedDict, total=False):
    offset: int
    first: int
    after: str
    before: str
    last: int
    page_size: int
    max_pages: int


type PageFetcher[T] = Callable[
    [str | None, int | None], Awaitable[PaginatedResponse[T]]
]
"""Fetches one page: `(cursor, page_size) -> PaginatedResponse`."""

type ProgressCallback = Callable[[int, int], None]
"""Receives `(pages_fetched, accumulated_item_count)` after every page."""


class LoggerProtocol(Protocol):
    def debug(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None: ...


class NullLogger:
    """Logger that discards everything; the default for injected loggers."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass


NULL_LOGGER = NullLogger()
