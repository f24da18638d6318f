from __future__ import annotations

import json
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx
from loguru import logger

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.core.config import settings
from deepsource_mcp.data_models.models import Project, RepositoryInfo
from deepsource_mcp.data_models.types_defs import GraphQLVariables
from deepsource_mcp.infrastructure import exceptions as ex
from deepsource_mcp.infrastructure.decorators import async_timing_decorator
from deepsource_mcp.infrastructure.error_handlers import (
    TransportError,
    describe_error,
    handle_api_error,
    is_error_with_message,
    transport_error_from_httpx,
)
from deepsource_mcp.infrastructure.exceptions import (
    ClassifiedError,
    create_format_error,
)
from deepsource_mcp.pagination.helpers import process_pagination_params
from deepsource_mcp.pagination.manager import (
    add_pagination_metadata,
    fetch_multiple_pages,
    merge_responses,
)
from deepsource_mcp.pagination.types import (
    PageInfo,
    PaginatedResponse,
    PaginatedResponseWithMetadata,
)
from deepsource_mcp.services import graphql_queries as gq

type ParamsFetcher[T] = Callable[[dict[str, Any]], Awaitable[PaginatedResponse[T]]]


def _query_preview(query: str, limit: int = 100) -> str:
    compact = " ".join(query.split())
    return compact if len(compact) <= limit else f"{compact[:limit]}..."


def get_connection(data: Mapping[str, Any] | None, *path: str) -> dict[str, Any]:
    """Walks `path` through nested GraphQL objects, tolerating nulls."""
    node: Any = data
    for key in path:
        if not isinstance(node, Mapping):
            return {}
        node = node.get(key)
    return node if isinstance(node, dict) else {}


def iter_edge_nodes(connection: Mapping[str, Any]) -> list[dict[str, Any]]:
    nodes = []
    for edge in connection.get("edges") or []:
        node = edge.get("node") if isinstance(edge, Mapping) else None
        if isinstance(node, dict):
            nodes.append(node)
    return nodes


CURSOR_VARIABLES = (
    cs.PAGINATION_KEY_FIRST,
    cs.PAGINATION_KEY_AFTER,
    cs.PAGINATION_KEY_LAST,
    cs.PAGINATION_KEY_BEFORE,
)


def select_variables(
    params: Mapping[str, Any], keys: tuple[str, ...]
) -> dict[str, Any]:
    """Picks the GraphQL variables in `keys`, dropping unset values and empty cursors."""
    return {
        key: params[key]
        for key in keys
        if key in params and params[key] is not None and params[key] != ""
    }


def parse_paginated_connection[T](
    connection: Mapping[str, Any], items: list[T]
) -> PaginatedResponse[T]:
    total = connection.get("totalCount")
    return PaginatedResponse(
        items=items,
        page_info=PageInfo.from_graphql(connection.get("pageInfo")),
        total_count=int(total) if isinstance(total, int | float) else len(items),
    )


def parse_viewer_projects(data: Mapping[str, Any] | None) -> list[Project]:
    projects: list[Project] = []
    accounts = get_connection(data, "viewer", "accounts")
    for account in iter_edge_nodes(accounts):
        login = str(account.get("login") or "")
        for repo in iter_edge_nodes(account.get("repositories") or {}):
            name = repo.get("name") or cs.UNNAMED_REPOSITORY
            dsn = repo.get("dsn")
            if not dsn:
                logger.debug(ls.PROJECTS_SKIP_NO_DSN.format(name=name, login=login))
                continue
            projects.append(
                Project(
                    key=str(dsn),
                    name=str(name),
                    repository=RepositoryInfo(
                        url=str(dsn),
                        provider=str(repo.get("vcsProvider") or "N/A"),
                        login=login,
                        name=str(name),
                        is_private=bool(repo.get("isPrivate", False)),
                        is_activated=bool(repo.get("isActivated", False)),
                    ),
                )
            )
    return projects


class BaseDeepSourceClient:
    """GraphQL transport shared by every resource client.

    Each request opens a short-lived `httpx.AsyncClient`. Every failure that
    leaves this class is a `ClassifiedError`.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError(ex.API_KEY_REQUIRED)
        self.api_key = api_key
        self.base_url = base_url or settings.DEEPSOURCE_API_BASE_URL
        self.timeout = (
            timeout if timeout is not None else settings.request_timeout_seconds
        )
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": cs.HTTP_HEADER_ACCEPT,
            "Content-Type": cs.HTTP_HEADER_CONTENT_TYPE,
            "Authorization": f"Bearer {self.api_key}",
        }

    def _classify(self, error: object, query: str) -> ClassifiedError:
        logger.error(ls.GRAPHQL_FAILED.format(error=error, query=_query_preview(query)))
        logger.debug(ls.GRAPHQL_ERROR_DETAILS.format(details=describe_error(error)))
        classified = handle_api_error(error)
        logger.debug(
            ls.GRAPHQL_CLASSIFIED.format(
                category=classified.category, message=classified.message
            )
        )
        return classified

    @async_timing_decorator
    async def execute_graphql(
        self, query: str, variables: GraphQLVariables | None = None
    ) -> dict[str, Any]:
        """Posts a query and returns the `data` object of the response.

        Args:
            query: The GraphQL query or mutation.
            variables: Query variables; `None` values are sent as JSON null.

        Returns:
            dict[str, Any]: The response `data` object.

        Raises:
            ClassifiedError: On any transport, HTTP, GraphQL or format failure.
        """
        logger.debug(
            ls.GRAPHQL_EXECUTING.format(length=len(query), variables=variables)
        )
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.base_url, json={"query": query, "variables": variables or {}}
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._classify(transport_error_from_httpx(e), query) from e

        logger.debug(
            ls.GRAPHQL_RESPONSE.format(
                status=response.status_code,
                duration=(time.perf_counter() - start) * 1000,
            )
        )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise create_format_error(ex.INVALID_JSON_RESPONSE, e) from e
        if not isinstance(payload, dict):
            raise create_format_error(ex.INVALID_JSON_RESPONSE, payload)

        errors = payload.get("errors")
        if errors:
            logger.error(
                ls.GRAPHQL_ERRORS.format(errors=errors, query=_query_preview(query))
            )
            raise self._classify(
                TransportError(
                    ex.GRAPHQL_ERRORS_IN_RESPONSE.format(errors=json.dumps(errors)),
                    http_status=response.status_code,
                    status_text=response.reason_phrase,
                    response_body=payload,
                ),
                query,
            )

        data = payload.get("data")
        if data is None:
            raise create_format_error(ex.NO_DATA_RECEIVED)
        return data

    async def find_project_by_key(self, project_key: str) -> Project | None:
        """Resolves a project key to its repository coordinates.

        Returns:
            Project | None: The project, or `None` when the key is not
                accessible with this API key.
        """
        try:
            data = await self.execute_graphql(gq.VIEWER_PROJECTS_QUERY)
        except ClassifiedError as e:
            if is_error_with_message(e, cs.NONETYPE_MARKER):
                return None
            raise
        for project in parse_viewer_projects(data):
            if project.key == project_key:
                return project
        logger.warning(ls.PROJECT_NOT_FOUND.format(key=project_key))
        return None

    @staticmethod
    def project_variables(project: Project) -> dict[str, Any]:
        return {
            "login": project.repository.login,
            "name": project.repository.name,
            "provider": project.repository.provider,
        }

    async def fetch_with_pagination[T](
        self, fetcher: ParamsFetcher[T], params: Mapping[str, Any]
    ) -> PaginatedResponseWithMetadata[T]:
        """Fetches one page, or several when `max_pages` is given.

        Multi-page fetching walks forward from the caller's `after` cursor and
        merges the pages into one response. Backward parameters always fetch a
        single page. The requested `max_pages` is capped by
        `DEEPSOURCE_MAX_PAGES`.

        Args:
            fetcher: Fetches one page for a set of normalized parameters.
            params: Tool-facing parameters including filters, `page_size` and
                `max_pages`.

        Returns:
            PaginatedResponseWithMetadata[T]: The items with a `pagination` block.
        """
        normalized, max_pages = process_pagination_params(params, log=logger)
        backward = cs.PAGINATION_KEY_LAST in normalized
        if max_pages is None or backward:
            return add_pagination_metadata(await fetcher(normalized))

        max_pages = min(max_pages, settings.DEEPSOURCE_MAX_PAGES)
        page_size = int(
            normalized.get(cs.PAGINATION_KEY_FIRST) or settings.DEEPSOURCE_DEFAULT_PAGE_SIZE
        )
        responses: list[PaginatedResponse[T]] = []

        async def fetch_page(
            cursor: str | None, size: int | None
        ) -> PaginatedResponse[T]:
            page_params = {**normalized, cs.PAGINATION_KEY_FIRST: size or page_size}
            if cursor:
                page_params[cs.PAGINATION_KEY_AFTER] = cursor
            response = await fetcher(page_params)
            responses.append(response)
            return response

        def on_progress(pages: int, items: int) -> None:
            logger.debug(ls.MULTI_PAGE_PROGRESS.format(pages=pages, items=items))

        result = await fetch_multiple_pages(
            fetch_page,
            max_pages=max_pages,
            page_size=page_size,
            on_progress=on_progress,
            log=logger,
        )
        merged = merge_responses(responses)
        limit_reached = result.has_more and result.pages_fetched >= max_pages
        return add_pagination_metadata(merged, result.pages_fetched, limit_reached)
