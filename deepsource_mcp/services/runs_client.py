from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.core.constants import ErrorCategory
from deepsource_mcp.data_models.models import Issue, Project, Run, RunSummary
from deepsource_mcp.infrastructure import exceptions as ex
from deepsource_mcp.infrastructure.error_handlers import is_error_with_message
from deepsource_mcp.infrastructure.exceptions import (
    ClassifiedError,
    create_not_found_error,
)
from deepsource_mcp.pagination.helpers import (
    create_empty_paginated_response,
    normalize_pagination_params,
)
from deepsource_mcp.pagination.manager import (
    add_pagination_metadata,
    fetch_multiple_pages,
)
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

_RUN_UID_RE = re.compile(cs.RUN_UID_PATTERN, re.IGNORECASE)


def _created_at(run: Run) -> datetime:
    try:
        created = datetime.fromisoformat(run.created_at)
    except ValueError:
        return datetime.min.replace(tzinfo=UTC)
    return created if created.tzinfo else created.replace(tzinfo=UTC)


def is_run_uid(identifier: str) -> bool:
    return bool(_RUN_UID_RE.match(identifier))


def parse_run_node(node: Mapping[str, Any]) -> Run:
    summary = node.get("summary") or {}
    repository = node.get("repository") or {}
    return Run(
        id=str(node.get("id") or ""),
        run_uid=str(node.get("runUid") or ""),
        commit_oid=str(node.get("commitOid") or ""),
        branch_name=str(node.get("branchName") or ""),
        base_oid=str(node.get("baseOid") or ""),
        status=str(node.get("status") or cs.UNKNOWN),
        created_at=str(node.get("createdAt") or ""),
        updated_at=str(node.get("updatedAt") or ""),
        finished_at=str(node.get("finishedAt") or ""),
        summary=RunSummary(
            occurrences_introduced=int(summary.get("occurrencesIntroduced") or 0),
            occurrences_resolved=int(summary.get("occurrencesResolved") or 0),
            occurrences_suppressed=int(summary.get("occurrencesSuppressed") or 0),
        ),
        repository_name=str(repository.get("name") or ""),
        repository_id=str(repository.get("id") or ""),
    )


def parse_run_occurrences(data: Mapping[str, Any]) -> list[Issue]:
    issues: list[Issue] = []
    checks = get_connection(data, "run", "checks")
    for check in iter_edge_nodes(checks):
        for occurrence in iter_edge_nodes(check.get("occurrences") or {}):
            issue = occurrence.get("issue")
            if not isinstance(issue, Mapping):
                continue
            issues.append(
                Issue(
                    id=str(occurrence.get("id") or cs.UNKNOWN.lower()),
                    title=str(issue.get("title") or "Unknown Issue"),
                    shortcode=str(issue.get("shortcode") or cs.UNKNOWN),
                    category=str(issue.get("category") or cs.UNKNOWN),
                    severity=str(issue.get("severity") or cs.UNKNOWN),
                    status="OPEN",
                    issue_text=str(occurrence.get("issueText") or ""),
                    file_path=str(occurrence.get("path") or ""),
                    line_number=int(occurrence.get("beginLine") or 0),
                )
            )
    return issues


class RunsClient(BaseDeepSourceClient):
    async def _fetch_runs_page(
        self, project: Project, page_params: Mapping[str, Any]
    ) -> PaginatedResponse[Run]:
        variables = {
            **self.project_variables(project),
            **select_variables(page_params, CURSOR_VARIABLES),
        }
        data = await self.execute_graphql(gq.REPOSITORY_RUNS_QUERY, variables)
        connection = get_connection(data, "repository", "runs")
        runs = [parse_run_node(node) for node in iter_edge_nodes(connection)]
        response = parse_paginated_connection(connection, runs)
        logger.info(
            ls.RUNS_FETCHED.format(
                count=len(runs), has_next=response.page_info.has_next_page
            )
        )
        return response

    async def list_runs(
        self, project_key: str, params: Mapping[str, Any] | None = None
    ) -> PaginatedResponseWithMetadata[Run]:
        params = dict(params or {})
        logger.info(ls.RUNS_FETCHING.format(key=project_key))
        try:
            project = await self.find_project_by_key(project_key)
            if project is None:
                return add_pagination_metadata(create_empty_paginated_response())

            async def fetch_page(page_params: dict[str, Any]) -> PaginatedResponse[Run]:
                return await self._fetch_runs_page(project, page_params)

            return await self.fetch_with_pagination(fetch_page, params)
        except ClassifiedError as e:
            if is_error_with_message(e, cs.NONETYPE_MARKER):
                return add_pagination_metadata(create_empty_paginated_response())
            raise

    async def get_run(self, run_identifier: str) -> Run | None:
        """Fetches a run by its UUID or by the commit it analysed.

        Returns:
            Run | None: The run, or `None` when it does not exist.
        """
        logger.info(ls.RUN_FETCHING.format(identifier=run_identifier))
        if is_run_uid(run_identifier):
            query, variables = gq.RUN_BY_UID_QUERY, {"runUid": run_identifier}
        else:
            query, variables = gq.RUN_BY_COMMIT_QUERY, {"commitOid": run_identifier}

        try:
            data = await self.execute_graphql(query, variables)
        except ClassifiedError as e:
            if e.category == ErrorCategory.NOT_FOUND or is_error_with_message(
                e, cs.NONETYPE_MARKER
            ):
                return None
            raise

        node = data.get("run") or data.get("runByCommit")
        if not isinstance(node, Mapping):
            return None
        run = parse_run_node(node)
        logger.info(ls.RUN_FETCHED.format(uid=run.run_uid, status=run.status))
        return run

    async def find_most_recent_run_for_branch(
        self, project_key: str, branch_name: str
    ) -> Run:
        """Scans every run page and returns the newest run on `branch_name`.

        Raises:
            ClassifiedError: NOT_FOUND when the branch has no runs.
        """
        logger.info(ls.RUN_BRANCH_SEARCH.format(branch=branch_name, key=project_key))
        runs: list[Run] = []
        try:
            project = await self.find_project_by_key(project_key)
            if project is not None:

                async def fetch_page(
                    cursor: str | None, page_size: int | None
                ) -> PaginatedResponse[Run]:
                    params: dict[str, Any] = {
                        cs.PAGINATION_KEY_FIRST: page_size or cs.BRANCH_RUNS_PAGE_SIZE
                    }
                    if cursor:
                        params[cs.PAGINATION_KEY_AFTER] = cursor
                    return await self._fetch_runs_page(project, params)

                result = await fetch_multiple_pages(
                    fetch_page,
                    page_size=cs.BRANCH_RUNS_PAGE_SIZE,
                    fetch_all=True,
                    log=logger,
                )
                runs = list(result.items)
        except ClassifiedError as e:
            if not is_error_with_message(e, cs.NONETYPE_MARKER):
                raise

        most_recent: Run | None = None
        for run in runs:
            if run.branch_name != branch_name:
                continue
            if most_recent is None or _created_at(run) > _created_at(most_recent):
                most_recent = run

        if most_recent is None:
            message = ex.NO_RUNS_FOR_BRANCH.format(branch=branch_name, key=project_key)
            logger.error(message)
            raise create_not_found_error(message)

        logger.info(
            ls.RUN_BRANCH_FOUND.format(
                branch=branch_name,
                uid=most_recent.run_uid,
                created=most_recent.created_at,
            )
        )
        return most_recent

    async def get_recent_run_issues(
        self,
        project_key: str,
        branch_name: str,
        params: Mapping[str, Any] | None = None,
    ) -> tuple[Run, PaginatedResponseWithMetadata[Issue]]:
        """Fetches the issue occurrences of the newest run on a branch.

        Returns:
            tuple[Run, PaginatedResponseWithMetadata[Issue]]: The run and its
                occurrences, up to `first` (default 100) of them.
        """
        run = await self.find_most_recent_run_for_branch(project_key, branch_name)
        requested = (params or {}).get(cs.PAGINATION_KEY_FIRST)
        first = normalize_pagination_params(
            {
                cs.PAGINATION_KEY_FIRST: cs.RUN_ISSUES_DEFAULT_FIRST
                if requested is None
                else requested
            },
            log=logger,
        )[cs.PAGINATION_KEY_FIRST]

        data = await self.execute_graphql(
            gq.RUN_OCCURRENCES_QUERY, {"runUid": run.run_uid, "first": first}
        )
        issues = parse_run_occurrences(data)
        logger.info(ls.RUN_ISSUES_FETCHED.format(count=len(issues), uid=run.run_uid))
        response: PaginatedResponse[Issue] = PaginatedResponse(
            items=issues, total_count=len(issues)
        )
        return run, add_pagination_metadata(response)
