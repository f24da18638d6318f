from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any

import httpx

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core.config import settings
from deepsource_mcp.data_models.models import (
    ComplianceReport,
    Issue,
    Metric,
    Project,
    Run,
    VulnerabilityOccurrence,
)
from deepsource_mcp.pagination.types import PaginatedResponseWithMetadata
from deepsource_mcp.services.issues_client import IssuesClient
from deepsource_mcp.services.metrics_client import MetricsClient
from deepsource_mcp.services.projects_client import ProjectsClient
from deepsource_mcp.services.runs_client import RunsClient
from deepsource_mcp.services.security_client import SecurityClient


class DeepSourceClient:
    """
    Single entry point to the DeepSource API.

    Composes one client per resource, all sharing the same credentials and
    transport, and forwards each operation to the client that owns it.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        options: dict[str, Any] = {
            "base_url": base_url,
            "timeout": timeout,
            "transport": transport,
        }
        self.projects = ProjectsClient(api_key, **options)
        self.issues = IssuesClient(api_key, **options)
        self.runs = RunsClient(api_key, **options)
        self.metrics = MetricsClient(api_key, **options)
        self.security = SecurityClient(api_key, **options)

    async def list_projects(self) -> list[Project]:
        return await self.projects.list_projects()

    async def project_exists(self, project_key: str) -> bool:
        return await self.projects.project_exists(project_key)

    async def get_issues(
        self, project_key: str, params: Mapping[str, Any] | None = None
    ) -> PaginatedResponseWithMetadata[Issue]:
        return await self.issues.get_issues(project_key, params)

    async def list_runs(
        self, project_key: str, params: Mapping[str, Any] | None = None
    ) -> PaginatedResponseWithMetadata[Run]:
        return await self.runs.list_runs(project_key, params)

    async def get_run(self, run_identifier: str) -> Run | None:
        return await self.runs.get_run(run_identifier)

    async def find_most_recent_run_for_branch(
        self, project_key: str, branch_name: str
    ) -> Run:
        return await self.runs.find_most_recent_run_for_branch(project_key, branch_name)

    async def get_recent_run_issues(
        self,
        project_key: str,
        branch_name: str,
        params: Mapping[str, Any] | None = None,
    ) -> tuple[Run, PaginatedResponseWithMetadata[Issue]]:
        return await self.runs.get_recent_run_issues(project_key, branch_name, params)

    async def get_quality_metrics(
        self, project_key: str, shortcode_in: Sequence[str] | None = None
    ) -> tuple[str | None, list[Metric]]:
        return await self.metrics.get_quality_metrics(project_key, shortcode_in)

    async def set_metric_threshold(
        self,
        repository_id: str,
        metric_shortcode: str,
        metric_key: str,
        threshold_value: float | None,
    ) -> bool:
        return await self.metrics.set_metric_threshold(
            repository_id, metric_shortcode, metric_key, threshold_value
        )

    async def update_metric_setting(
        self,
        repository_id: str,
        metric_shortcode: str,
        is_reported: bool,
        is_threshold_enforced: bool,
    ) -> bool:
        return await self.metrics.update_metric_setting(
            repository_id, metric_shortcode, is_reported, is_threshold_enforced
        )

    async def get_dependency_vulnerabilities(
        self, project_key: str, params: Mapping[str, Any] | None = None
    ) -> PaginatedResponseWithMetadata[VulnerabilityOccurrence]:
        return await self.security.get_dependency_vulnerabilities(project_key, params)

    def iter_dependency_vulnerabilities(
        self, project_key: str, page_size: int = cs.DEFAULT_PAGE_SIZE
    ) -> AsyncIterator[VulnerabilityOccurrence]:
        return self.security.iter_dependency_vulnerabilities(project_key, page_size)

    async def get_compliance_report(
        self, project_key: str, report_type: str
    ) -> ComplianceReport | None:
        return await self.security.get_compliance_report(project_key, report_type)


def create_deepsource_client(
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DeepSourceClient:
    """Builds a client from explicit arguments, falling back to the settings.

    Raises:
        ValueError: When no API key is given and none is configured.
    """
    return DeepSourceClient(
        api_key or settings.require_api_key(),
        base_url=base_url,
        timeout=timeout,
        transport=transport,
    )
