from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.data_models.models import Issue
from deepsource_mcp.infrastructure.error_handlers import is_error_with_message
from deepsource_mcp.infrastructure.exceptions import ClassifiedError
from deepsource_mcp.pagination.helpers import create_empty_paginated_response
from deepsource_mcp.pagination.manager import add_pagination_metadata
from deepsource_mcp.pagination.types import (
    PaginatedResponse,
    PaginatedResponseWithMetadata,
)
from deepsource_mcp.services import graphql_queries as gq
from deepsource_mcp.services.base_client import (
    CURSOR_VARIABLES,
    BaseDeepSourceClient,
    get_connection,
    iter_edge_nodes,
    parse_paginated_connection,
    select_variables,
)

ISSUE_FILTER_VARIABLES = (
    cs.MCPParamName.PATH,
    cs.MCPParamName.ANALYZER_IN,
    cs.MCPParamName.TAGS,
)


def parse_issue_nodes(data: Mapping[str, Any]) -> tuple[dict[str, Any], list[Issue]]:
    connection = get_connection(data, "repository", "issues")
    issues: list[Issue] = []
    for issue_node in iter_edge_nodes(connection):
        for occurrence in iter_edge_nodes(issue_node.get("occurrences") or {}):
            tags = occurrence.get("tags")
            issues.append(
                Issue(
                    id=str(occurrence.get("id") or cs.UNKNOWN.lower()),
                    title=str(issue_node.get("title") or "Unknown Issue"),
                    shortcode=str(issue_node.get("shortcode") or cs.UNKNOWN),
                    category=str(issue_node.get("category") or cs.UNKNOWN),
                    severity=str(issue_node.get("severity") or cs.UNKNOWN),
                    status=str(occurrence.get("status") or cs.UNKNOWN),
                    issue_text=str(occurrence.get("issueText") or ""),
                    file_path=str(occurrence.get("filePath") or ""),
                    line_number=int(occurrence.get("beginLine") or 0),
                    tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
                )
            )
    return connection, issues


class IssuesClient(BaseDeepSourceClient):
    async def get_issues(
        self, project_key: str, params: Mapping[str, Any] | None = None
    ) -> PaginatedResponseWithMetadata[Issue]:
        """Fetches issue occurrences of a project.

        Args:
            project_key: The project key.
            params: Pagination parameters plus the optional `path`,
                `analyzerIn` and `tags` filters.

        Returns:
            PaginatedResponseWithMetadata[Issue]: The issues; empty when the
                project is unknown or the upstream reports "NoneType".
        """
        params = dict(params or {})
        logger.info(ls.ISSUES_FETCHING.format(key=project_key, filters=sorted(params)))
        try:
            project = await self.find_project_by_key(project_key)
            if project is None:
                return add_pagination_metadata(create_empty_paginated_response())

            async def fetch_page(
                page_params: dict[str, Any],
            ) -> PaginatedResponse[Issue]:
                variables = {
                    **self.project_variables(project),
                    **select_variables(page_params, ISSUE_FILTER_VARIABLES),
                    **select_variables(page_params, CURSOR_VARIABLES),
                }
                data = await self.execute_graphql(gq.REPOSITORY_ISSUES_QUERY, variables)
                connection, issues = parse_issue_nodes(data)
                response = parse_paginated_connection(connection, issues)
                logger.info(
                    ls.ISSUES_FETCHED.format(
                        count=len(issues),
                        total=response.total_count,
                        has_next=response.page_info.has_next_page,
                    )
                )
                return response

            return await self.fetch_with_pagination(fetch_page, params)
        except ClassifiedError as e:
            if is_error_with_message(e, cs.NONETYPE_MARKER):
                logger.info(ls.ISSUES_EMPTY_NONETYPE.format(key=project_key))
                return add_pagination_metadata(create_empty_paginated_response())
            raise
