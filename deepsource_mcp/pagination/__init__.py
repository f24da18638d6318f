from .helpers import (
    create_empty_paginated_response,
    create_enhanced_pagination_help,
    create_pagination_help,
    is_valid_cursor,
    normalize_pagination_params,
    process_pagination_params,
)
from .manager import (
    PaginationIterator,
    add_pagination_metadata,
    create_pagination_iterator,
    fetch_multiple_pages,
    merge_responses,
)
from .types import (
    MultiPageResult,
    PageFetcher,
    PageInfo,
    PaginatedResponse,
    PaginatedResponseWithMetadata,
    PaginationParams,
)

__all__ = [
    "MultiPageResult",
    "PageFetcher",
    "PageInfo",
    "PaginatedResponse",
    "PaginatedResponseWithMetadata",
    "PaginationIterator",
    "PaginationParams",
    "add_pagination_metadata",
    "create_empty_paginated_response",
    "create_enhanced_pagination_help",
    "create_pagination_help",
    "create_pagination_iterator",
    "fetch_multiple_pages",
    "is_valid_cursor",
    "merge_responses",
    "normalize_pagination_params",
    "process_pagination_params",
]
