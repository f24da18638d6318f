from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.core.constants import ErrorCategory, MCPErrorCode
from deepsource_mcp.data_models.models import (
    ComplianceReport,
    Issue,
    Project,
    RepositoryInfo,
    Run,
)
from deepsource_mcp.infrastructure.exceptions import (
    create_auth_error,
    create_classified_error,
)
from deepsource_mcp.mcp.server import create_server, dispatch_tool
from deepsource_mcp.mcp.tools import MCPToolsRegistry, create_mcp_tools_registry
from deepsource_mcp.pagination.manager import add_pagination_metadata
from deepsource_mcp.pagination.types import PageInfo, PaginatedResponse

pytestmark = [pytest.mark.anyio]


@pytest.fixture(params=["asyncio"])
def anyio_backend(request: pytest.FixtureRequest) -> str:
    return str(request.param)


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def registry(client: MagicMock) -> MCPToolsRegistry:
    return create_mcp_tools_registry(lambda: client)


def _run(uid: str = "run-1") -> Run:
    return Run(
        id="id-1",
        run_uid=uid,
        commit_oid="abc",
        branch_name="main",
        base_oid="base",
        status="SUCCESS",
        created_at="2024-01-01T00:00:00Z",
    )


def _issue(issue_id: str) -> Issue:
    return Issue(
        id=issue_id,
        title="Unused import",
        shortcode="PY-W2000",
        category="ANTI_PATTERN",
        severity="MINOR",
        status="OPEN",
    )


class TestToolSchemas:
    def test_every_tool_is_registered(self, registry: MCPToolsRegistry) -> None:
        names = [schema.name for schema in registry.get_tool_schemas()]

        assert names == [str(name) for name in cs.MCPToolName]

    def test_schemas_are_objects_with_descriptions(
        self, registry: MCPToolsRegistry
    ) -> None:
        for schema in registry.get_tool_schemas():
            assert schema.description
            assert schema.inputSchema["type"] == cs.MCPSchemaType.OBJECT
            for name in schema.inputSchema["required"]:
                assert name in schema.inputSchema["properties"]

    def test_pagination_arguments_are_advertised(
        self, registry: MCPToolsRegistry
    ) -> None:
        schemas = {schema.name: schema for schema in registry.get_tool_schemas()}
        properties = schemas[cs.MCPToolName.PROJECT_ISSUES].inputSchema["properties"]

        for name in ("first", "after", "last", "before", "page_size", "max_pages"):
            assert name in properties
        assert properties["tags"]["items"] == {"type": "string"}

    def test_report_type_enum(self, registry: MCPToolsRegistry) -> None:
        schemas = {schema.name: schema for schema in registry.get_tool_schemas()}
        properties = schemas[cs.MCPToolName.COMPLIANCE_REPORT].inputSchema[
            "properties"
        ]

        assert properties["reportType"]["enum"] == [
            "OWASP_TOP_10",
            "SANS_TOP_25",
            "MISRA_C",
        ]

    def test_unknown_handler_is_none(self, registry: MCPToolsRegistry) -> None:
        assert registry.get_tool_handler("nope") is None

    def test_client_is_created_lazily_once(self) -> None:
        factory = MagicMock(return_value=MagicMock())
        registry = MCPToolsRegistry(factory)

        factory.assert_not_called()
        assert registry.client is registry.client
        factory.assert_called_once()


class TestToolHandlers:
    async def test_projects(self, registry: MCPToolsRegistry, client: MagicMock) -> None:
        repository = RepositoryInfo(url="", provider="GITHUB", login="acme", name="api")
        client.list_projects = AsyncMock(
            return_value=[Project(key="dsn", name="api", repository=repository)]
        )

        result = await registry.projects({})

        assert result == {"projects": [{"key": "dsn", "name": "api"}]}

    async def test_project_issues_forwards_filters_and_pagination(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        page = PaginatedResponse(
            items=[_issue("o1")],
            page_info=PageInfo(has_next_page=True, end_cursor="c1"),
            total_count=9,
        )
        client.get_issues = AsyncMock(return_value=add_pagination_metadata(page))

        result = await registry.project_issues(
            {"projectKey": "dsn", "path": "src/", "first": 5, "after": None}
        )

        client.get_issues.assert_awaited_once_with("dsn", {"path": "src/", "first": 5})
        assert [issue["id"] for issue in result["issues"]] == ["o1"]
        assert result["totalCount"] == 9
        assert result["pagination"]["next_cursor"] == "c1"

    async def test_missing_project_key_is_client_error(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.get_issues = AsyncMock()

        result = await registry.project_issues({})

        client.get_issues.assert_not_awaited()
        assert result["error"]["category"] == ErrorCategory.CLIENT
        assert result["error"]["code"] == MCPErrorCode.CLIENT_ERROR
        assert "projectKey" in result["error"]["message"]

    async def test_run_found(self, registry: MCPToolsRegistry, client: MagicMock) -> None:
        client.get_run = AsyncMock(return_value=_run())

        result = await registry.run({"runIdentifier": "run-1"})

        assert result["run"]["run_uid"] == "run-1"
        assert result["run"]["summary"]["occurrences_introduced"] == 0

    async def test_run_missing_is_not_found(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.get_run = AsyncMock(return_value=None)

        result = await registry.run({"runIdentifier": "abc"})

        assert result["error"]["category"] == ErrorCategory.NOT_FOUND
        assert result["error"]["code"] == MCPErrorCode.RESOURCE_NOT_FOUND
        assert "abc" in result["error"]["message"]

    async def test_recent_run_issues(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        issues = add_pagination_metadata(
            PaginatedResponse(items=[_issue("o1"), _issue("o2")], total_count=2)
        )
        client.get_recent_run_issues = AsyncMock(return_value=(_run(), issues))

        result = await registry.recent_run_issues(
            {"projectKey": "dsn", "branchName": "main"}
        )

        client.get_recent_run_issues.assert_awaited_once_with("dsn", "main", {})
        assert result["run"]["branch_name"] == "main"
        assert len(result["issues"]) == 2

    async def test_update_metric_threshold(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.set_metric_threshold = AsyncMock(return_value=True)

        result = await registry.update_metric_threshold(
            {
                "projectKey": "dsn",
                "repositoryId": "repo-1",
                "metricShortcode": "LCV",
                "metricKey": "AGGREGATE",
                "thresholdValue": 80,
            }
        )

        client.set_metric_threshold.assert_awaited_once_with(
            "repo-1", "LCV", "AGGREGATE", 80.0
        )
        assert result["ok"] is True
        assert result["thresholdValue"] == 80.0

    async def test_update_metric_threshold_rejects_non_numbers(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.set_metric_threshold = AsyncMock()

        result = await registry.update_metric_threshold(
            {
                "repositoryId": "repo-1",
                "metricShortcode": "LCV",
                "metricKey": "AGGREGATE",
                "thresholdValue": "high",
            }
        )

        client.set_metric_threshold.assert_not_awaited()
        assert result["error"]["category"] == ErrorCategory.CLIENT

    async def test_update_metric_setting_requires_booleans(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.update_metric_setting = AsyncMock(return_value=True)
        arguments = {
            "repositoryId": "repo-1",
            "metricShortcode": "LCV",
            "isReported": True,
            "isThresholdEnforced": False,
        }

        ok = await registry.update_metric_setting(arguments)
        bad = await registry.update_metric_setting({**arguments, "isReported": "yes"})

        assert ok["isThresholdEnforced"] is False
        assert bad["error"]["category"] == ErrorCategory.CLIENT
        client.update_metric_setting.assert_awaited_once_with(
            "repo-1", "LCV", True, False
        )

    async def test_compliance_report_missing_is_not_found(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.get_compliance_report = AsyncMock(return_value=None)

        result = await registry.compliance_report(
            {"projectKey": "dsn", "reportType": "MISRA_C"}
        )

        assert result["error"]["category"] == ErrorCategory.NOT_FOUND
        assert "MISRA_C" in result["error"]["message"]

    async def test_compliance_report(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        report = ComplianceReport(
            report_type="OWASP_TOP_10",
            status="PASSING",
            title="OWASP Top 10",
            description="OWASP TOP 10 compliance analysis",
            severity_distribution={"critical": 0, "major": 0, "minor": 0, "total": 0},
            categories=[],
            compliance_score=100,
        )
        client.get_compliance_report = AsyncMock(return_value=report)

        result = await registry.compliance_report(
            {"projectKey": "dsn", "reportType": "OWASP_TOP_10"}
        )

        assert result["report"]["compliance_score"] == 100

    async def test_api_errors_become_payloads(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.list_projects = AsyncMock(side_effect=create_auth_error("bad key"))

        result = await registry.projects({})

        assert result == {
            "error": {
                "code": MCPErrorCode.AUTHENTICATION_ERROR,
                "category": "AUTH",
                "message": "bad key",
                "retryable": False,
            }
        }

    async def test_unexpected_exceptions_become_payloads(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.list_runs = AsyncMock(side_effect=RuntimeError("server exploded"))

        result = await registry.runs({"projectKey": "dsn"})

        assert result["error"]["code"] == MCPErrorCode.INTERNAL_ERROR
        assert result["error"]["message"] == "DeepSource API error: server exploded"


class TestDispatch:
    async def test_unknown_tool(self, registry: MCPToolsRegistry) -> None:
        result = await dispatch_tool(registry, "does_not_exist", {})

        assert result["error"]["category"] == ErrorCategory.CLIENT
        assert "does_not_exist" in result["error"]["message"]

    async def test_dispatches_to_handler(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.get_quality_metrics = AsyncMock(return_value=("repo-1", []))

        result = await dispatch_tool(
            registry, "quality_metrics", {"projectKey": "dsn", "shortcodeIn": ["LCV"]}
        )

        assert result == {"repositoryId": "repo-1", "metrics": []}
        client.get_quality_metrics.assert_awaited_once_with("dsn", ["LCV"])

    async def test_none_arguments_are_empty(
        self, registry: MCPToolsRegistry, client: MagicMock
    ) -> None:
        client.list_projects = AsyncMock(
            side_effect=create_classified_error("timeout", ErrorCategory.TIMEOUT)
        )

        result = await dispatch_tool(registry, "projects", None)

        assert result["error"]["retryable"] is True

    async def test_error_payload_is_logged_as_failure(
        self,
        registry: MCPToolsRegistry,
        client: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        log = MagicMock()
        monkeypatch.setattr("deepsource_mcp.mcp.server.logger", log)
        client.list_projects = AsyncMock(side_effect=create_auth_error("bad key"))

        result = await dispatch_tool(registry, "projects", {})

        assert result["error"]["category"] == ErrorCategory.AUTH
        log.warning.assert_called_once_with(
            ls.MCP_SERVER_TOOL_FAILED.format(
                name="projects", category="AUTH", message="bad key"
            )
        )
        assert log.info.call_count == 1

    async def test_success_is_not_logged_as_failure(
        self,
        registry: MCPToolsRegistry,
        client: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        log = MagicMock()
        monkeypatch.setattr("deepsource_mcp.mcp.server.logger", log)
        client.get_quality_metrics = AsyncMock(return_value=("repo-1", []))

        await dispatch_tool(registry, "quality_metrics", {"projectKey": "dsn"})

        log.warning.assert_not_called()
        assert log.info.call_count == 2

    def test_create_server(self, registry: MCPToolsRegistry) -> None:
        server = create_server(registry)

        assert server.name == cs.MCP_SERVER_NAME
