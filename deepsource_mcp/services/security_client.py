from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from typing import Any

from loguru import logger

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.core.constants import ErrorCategory, ReportStatus, ReportType
from deepsource_mcp.data_models.models import (
    ComplianceCategory,
    ComplianceReport,
    PackageInfo,
    Project,
    VulnerabilityDetails,
    VulnerabilityOccurrence,
)
from deepsource_mcp.infrastructure import exceptions as ex
from deepsource_mcp.infrastructure.error_handlers import is_error_with_message
from deepsource_mcp.infrastructure.exceptions import (
    ClassifiedError,
    create_client_error,
)
from deepsource_mcp.pagination.helpers import create_empty_paginated_response
from deepsource_mcp.pagination.manager import (
    add_pagination_metadata,
    create_pagination_iterator,
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


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _string_list(value: Any) -> list[str]:
    return [str(item) for item in value] if isinstance(value, list) else []


def parse_vulnerability_node(node: Mapping[str, Any]) -> VulnerabilityOccurrence | None:
    package = node.get("package")
    version = node.get("packageVersion")
    vulnerability = node.get("vulnerability")
    if not (node.get("id") and package and version and vulnerability):
        logger.debug(ls.VULNERABILITY_NODE_SKIPPED.format(node_id=node.get("id")))
        return None
    return VulnerabilityOccurrence(
        id=str(node["id"]),
        package=PackageInfo(
            id=str(package.get("id") or ""),
            ecosystem=str(package.get("ecosystem") or ""),
            name=str(package.get("name") or ""),
            version=str(version.get("version") or ""),
        ),
        vulnerability=VulnerabilityDetails(
            id=str(vulnerability.get("id") or ""),
            identifier=str(vulnerability.get("identifier") or ""),
            summary=str(vulnerability.get("summary") or ""),
            details=str(vulnerability.get("details") or ""),
            severity=str(vulnerability.get("severity") or "NONE"),
            cvss_v3_base_score=_optional_float(vulnerability.get("cvssV3BaseScore")),
            cvss_v2_base_score=_optional_float(vulnerability.get("cvssV2BaseScore")),
            aliases=_string_list(vulnerability.get("aliases")),
            fixed_versions=_string_list(vulnerability.get("fixedVersions")),
            reference_urls=_string_list(vulnerability.get("referenceUrls")),
        ),
    )


def parse_compliance_report(
    data: Mapping[str, Any], report_type: ReportType
) -> ComplianceReport | None:
    report = get_connection(
        data, "repository", "reports", cs.REPORT_FIELD_NAMES[report_type]
    )
    if not report:
        return None

    categories: list[ComplianceCategory] = []
    critical = major = minor = total = 0
    for category in report.get("categories") or []:
        if not isinstance(category, Mapping):
            continue
        entry = ComplianceCategory(
            name=str(category.get("name") or ""),
            status=str(category.get("status") or ReportStatus.NOOP),
            issue_count=int(category.get("total") or 0),
            critical=int(category.get("criticalCount") or 0),
            major=int(category.get("majorCount") or 0),
            minor=int(category.get("minorCount") or 0),
        )
        critical += entry.critical
        major += entry.major
        minor += entry.minor
        total += entry.issue_count
        categories.append(entry)

    score = 100 if total == 0 else max(0, 100 - (critical * 10 + major * 5 + minor))
    return ComplianceReport(
        report_type=str(report_type),
        status=str(report.get("status") or ReportStatus.NOOP),
        title=cs.REPORT_TITLES[report_type],
        description=f"{str(report_type).replace('_', ' ')} compliance analysis",
        severity_distribution={
            "critical": critical,
            "major": major,
            "minor": minor,
            "total": total,
        },
        categories=categories,
        compliance_score=score,
    )


class SecurityClient(BaseDeepSourceClient):
    async def _fetch_vulnerability_page(
        self, project: Project, page_params: Mapping[str, Any]
    ) -> PaginatedResponse[VulnerabilityOccurrence]:
        variables = {
            **self.project_variables(project),
            **select_variables(page_params, CURSOR_VARIABLES),
        }
        data = await self.execute_graphql(gq.DEPENDENCY_VULNERABILITIES_QUERY, variables)
        connection = get_connection(data, "repository", "dependencyVulnerabilities")
        items = [
            occurrence
            for node in iter_edge_nodes(connection)
            if (occurrence := parse_vulnerability_node(node)) is not None
        ]
        logger.info(ls.VULNERABILITIES_FETCHED.format(count=len(items)))
        return parse_paginated_connection(connection, items)

    async def get_dependency_vulnerabilities(
        self, project_key: str, params: Mapping[str, Any] | None = None
    ) -> PaginatedResponseWithMetadata[VulnerabilityOccurrence]:
        logger.info(ls.VULNERABILITIES_FETCHING.format(key=project_key))
        try:
            project = await self.find_project_by_key(project_key)
            if project is None:
                return add_pagination_metadata(create_empty_paginated_response())

            async def fetch_page(
                page_params: dict[str, Any],
            ) -> PaginatedResponse[VulnerabilityOccurrence]:
                return await self._fetch_vulnerability_page(project, page_params)

            return await self.fetch_with_pagination(fetch_page, dict(params or {}))
        except ClassifiedError as e:
            if is_error_with_message(e, cs.NONETYPE_MARKER):
                return add_pagination_metadata(create_empty_paginated_response())
            raise

    async def iter_dependency_vulnerabilities(
        self, project_key: str, page_size: int = cs.DEFAULT_PAGE_SIZE
    ) -> AsyncIterator[VulnerabilityOccurrence]:
        """Streams vulnerabilities one at a time, fetching pages on demand.

        The first page is requested only when iteration starts. A failure on
        any page ends the stream with that error.
        """
        project = await self.find_project_by_key(project_key)
        if project is None:
            return

        async def fetch_page(
            cursor: str | None, size: int | None
        ) -> PaginatedResponse[VulnerabilityOccurrence]:
            page_params: dict[str, Any] = {cs.PAGINATION_KEY_FIRST: size or page_size}
            if cursor:
                page_params[cs.PAGINATION_KEY_AFTER] = cursor
            return await self._fetch_vulnerability_page(project, page_params)

        async for batch in create_pagination_iterator(fetch_page, page_size, log=logger):
            for occurrence in batch:
                yield occurrence

    async def get_compliance_report(
        self, project_key: str, report_type: str
    ) -> ComplianceReport | None:
        """Fetches one compliance report of a project.

        Raises:
            ClassifiedError: CLIENT when `report_type` is not supported.
        """
        try:
            report = ReportType(report_type)
        except ValueError as e:
            raise create_client_error(
                ex.UNSUPPORTED_REPORT_TYPE.format(report_type=report_type), e
            ) from e

        logger.info(ls.COMPLIANCE_FETCHING.format(report=report, key=project_key))
        try:
            project = await self.find_project_by_key(project_key)
            if project is None:
                return None
            data = await self.execute_graphql(
                gq.COMPLIANCE_REPORTS_QUERY, self.project_variables(project)
            )
        except ClassifiedError as e:
            if e.category == ErrorCategory.NOT_FOUND or is_error_with_message(
                e, cs.NONETYPE_MARKER
            ):
                return None
            raise

        result = parse_compliance_report(data, report)
        if result is not None:
            logger.info(ls.COMPLIANCE_FETCHED.format(report=report, status=result.status))
        return result
