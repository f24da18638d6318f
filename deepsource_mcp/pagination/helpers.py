"""
Normalization of caller-supplied pagination parameters.

Parameters follow the Relay convention (`first`/`after` forward,
`last`/`before` backward) with a legacy `offset` fallback. Normalization is a
total function: malformed counts and cursors are coerced to safe values and
only the non-standard "last without before" case produces a warning.

Directional precedence after clamping:

1.  `before` set: backward paging, `last = last or first or 10`, no `first`.
2.  `last` set without `before`: kept as is, `first` removed, warning logged.
3.  Otherwise: forward paging, `first = first or 10`, no `last`.

When both `first` and `last` are given without `before`, rule 2 wins.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.pagination.types import (
    NULL_LOGGER,
    LoggerProtocol,
    PageInfo,
    PaginatedResponse,
)


def _clamp_count(value: Any, minimum: int) -> int:
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return minimum
    if not isinstance(value, int | float) or not math.isfinite(value):
        return minimum
    return max(minimum, math.floor(value))


def _coerce_cursor(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, int | float):
        return str(value)
    return ""


def normalize_pagination_params(
    params: Mapping[str, Any], log: LoggerProtocol | None = None
) -> dict[str, Any]:
    """Returns a canonical copy of `params` obeying Relay directional rules.

    Never raises. Keys other than the recognised pagination keys pass through
    unchanged. A `None` count is treated as absent.

    Args:
        params: Raw parameters, possibly containing resource filters.
        log: Receives the "last without before" warning. Defaults to a no-op.

    Returns:
        dict[str, Any]: The normalized parameters; at most one of `first` and
            `last` is set.
    """
    log = log or NULL_LOGGER
    normalized = dict(params)

    for key in (cs.PAGINATION_KEY_OFFSET, cs.PAGINATION_KEY_FIRST, cs.PAGINATION_KEY_LAST):
        if key in normalized and normalized[key] is None:
            del normalized[key]

    if cs.PAGINATION_KEY_OFFSET in normalized:
        normalized[cs.PAGINATION_KEY_OFFSET] = _clamp_count(
            normalized[cs.PAGINATION_KEY_OFFSET], 0
        )
    for key in (cs.PAGINATION_KEY_FIRST, cs.PAGINATION_KEY_LAST):
        if key in normalized:
            normalized[key] = _clamp_count(normalized[key], 1)

    for key in (cs.PAGINATION_KEY_AFTER, cs.PAGINATION_KEY_BEFORE):
        if key in normalized and not isinstance(normalized[key], str):
            normalized[key] = _coerce_cursor(normalized[key])

    first = normalized.get(cs.PAGINATION_KEY_FIRST)
    last = normalized.get(cs.PAGINATION_KEY_LAST)

    if normalized.get(cs.PAGINATION_KEY_BEFORE):
        normalized[cs.PAGINATION_KEY_LAST] = (
            last if last is not None else first if first is not None else cs.DEFAULT_PAGE_COUNT
        )
        normalized.pop(cs.PAGINATION_KEY_FIRST, None)
    elif last:
        log.warning(ls.PAGINATION_LAST_WITHOUT_BEFORE.format(last=last))
        normalized.pop(cs.PAGINATION_KEY_FIRST, None)
    else:
        normalized[cs.PAGINATION_KEY_FIRST] = (
            first if first is not None else cs.DEFAULT_PAGE_COUNT
        )
        normalized.pop(cs.PAGINATION_KEY_LAST, None)

    return normalized


def _coerce_max_pages(value: Any) -> int | None:
    if value is None:
        return None
    return _clamp_count(value, 1)


def process_pagination_params(
    params: Mapping[str, Any], log: LoggerProtocol | None = None
) -> tuple[dict[str, Any], int | None]:
    """Splits tool-facing parameters into API parameters and a page limit.

    `page_size` is an alias for `first` and only applies when `first` is not
    already set. `max_pages` is removed and returned separately for the
    multi-page driver.

    Returns:
        tuple[dict[str, Any], int | None]: The normalized parameters and the
            requested `max_pages`, or `None` when it was not supplied.
    """
    rest = dict(params)
    page_size = rest.pop(cs.PAGINATION_KEY_PAGE_SIZE, None)
    max_pages = _coerce_max_pages(rest.pop(cs.PAGINATION_KEY_MAX_PAGES, None))

    if page_size is not None and rest.get(cs.PAGINATION_KEY_FIRST) is None:
        rest[cs.PAGINATION_KEY_FIRST] = page_size

    return normalize_pagination_params(rest, log=log), max_pages


def create_empty_paginated_response[T]() -> PaginatedResponse[T]:
    return PaginatedResponse.empty()


def is_valid_cursor(cursor: str | None) -> bool:
    if cursor is None:
        return True
    return isinstance(cursor, str) and bool(cursor.strip())


def create_pagination_help(page_info: PageInfo) -> dict[str, Any]:
    return {
        "description": "This API uses Relay-style cursor-based pagination",
        "forward_pagination": (
            "To get the next page, use 'first: 10, after: "
            f"\"{page_info.end_cursor or 'cursor_value'}\"'"
        ),
        "backward_pagination": (
            "To get the previous page, use 'last: 10, before: "
            f"\"{page_info.start_cursor or 'cursor_value'}\"'"
        ),
        "page_status": {
            "has_next_page": page_info.has_next_page,
            "has_previous_page": page_info.has_previous_page,
        },
    }


def create_enhanced_pagination_help(
    page_info: PageInfo, item_count: int
) -> dict[str, Any]:
    next_page = None
    if page_info.has_next_page:
        next_page = {
            "example": f'{{"first": 10, "after": "{page_info.end_cursor}"}}',
            "description": "Use these parameters to fetch the next page of results",
        }
    previous_page = None
    if page_info.has_previous_page:
        previous_page = {
            "example": f'{{"last": 10, "before": "{page_info.start_cursor}"}}',
            "description": "Use these parameters to fetch the previous page of results",
        }
    return {
        "description": (
            "This API uses Relay-style cursor-based pagination for efficient "
            "data retrieval"
        ),
        "current_page": {
            "size": item_count,
            "has_next_page": page_info.has_next_page,
            "has_previous_page": page_info.has_previous_page,
        },
        "next_page": next_page,
        "previous_page": previous_page,
        "pagination_types": {
            "forward": 'For forward pagination, use "first" with optional "after" cursor',
            "backward": 'For backward pagination, use "last" with optional "before" cursor',
            "legacy": (
                "Legacy offset-based pagination is also supported via the "
                '"offset" parameter'
            ),
        },
    }
