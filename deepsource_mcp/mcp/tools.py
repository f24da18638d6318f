from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.data_models.models import ToolMetadata
from deepsource_mcp.data_models.types_defs import (
    MCPHandlerType,
    MCPInputSchema,
    MCPInputSchemaItems,
    MCPInputSchemaProperty,
    MCPResultType,
    MCPToolArguments,
    MCPToolSchema,
)
from deepsource_mcp.infrastructure import exceptions as ex
from deepsource_mcp.infrastructure import tool_errors as te
from deepsource_mcp.infrastructure.decorators import mcp_try_except
from deepsource_mcp.infrastructure.exceptions import (
    create_client_error,
    create_not_found_error,
)
from deepsource_mcp.infrastructure.tool_errors import to_tool_error
from deepsource_mcp.services.deepsource_client import (
    DeepSourceClient,
    create_deepsource_client,
)
from deepsource_mcp.tools import tool_descriptions as td

type ClientFactory = Callable[[], DeepSourceClient]

PAGINATION_ARGUMENTS = (
    cs.MCPParamName.FIRST,
    cs.MCPParamName.AFTER,
    cs.MCPParamName.LAST,
    cs.MCPParamName.BEFORE,
    cs.MCPParamName.PAGE_SIZE,
    cs.MCPParamName.MAX_PAGES,
)

ISSUE_FILTER_ARGUMENTS = (
    cs.MCPParamName.PATH,
    cs.MCPParamName.ANALYZER_IN,
    cs.MCPParamName.TAGS,
)


def _project_key_property() -> dict[str, MCPInputSchemaProperty]:
    return {
        cs.MCPParamName.PROJECT_KEY: MCPInputSchemaProperty(
            type=cs.MCPSchemaType.STRING,
            description=td.MCP_PARAM_PROJECT_KEY,
        )
    }


def _string_array(description: str) -> MCPInputSchemaProperty:
    return MCPInputSchemaProperty(
        type=cs.MCPSchemaType.ARRAY,
        description=description,
        items=MCPInputSchemaItems(type=cs.MCPSchemaType.STRING),
    )


def _pagination_properties(
    multi_page: bool = True,
) -> dict[str, MCPInputSchemaProperty]:
    properties = {
        cs.MCPParamName.FIRST: MCPInputSchemaProperty(
            type=cs.MCPSchemaType.INTEGER, description=td.MCP_PARAM_FIRST, minimum=1
        ),
        cs.MCPParamName.AFTER: MCPInputSchemaProperty(
            type=cs.MCPSchemaType.STRING, description=td.MCP_PARAM_AFTER
        ),
        cs.MCPParamName.LAST: MCPInputSchemaProperty(
            type=cs.MCPSchemaType.INTEGER, description=td.MCP_PARAM_LAST, minimum=1
        ),
        cs.MCPParamName.BEFORE: MCPInputSchemaProperty(
            type=cs.MCPSchemaType.STRING, description=td.MCP_PARAM_BEFORE
        ),
        cs.MCPParamName.PAGE_SIZE: MCPInputSchemaProperty(
            type=cs.MCPSchemaType.INTEGER,
            description=td.MCP_PARAM_PAGE_SIZE,
            minimum=1,
        ),
    }
    if multi_page:
        properties[cs.MCPParamName.MAX_PAGES] = MCPInputSchemaProperty(
            type=cs.MCPSchemaType.INTEGER,
            description=td.MCP_PARAM_MAX_PAGES,
            minimum=1,
        )
    return properties


def _pick(arguments: MCPToolArguments, names: tuple[str, ...]) -> dict[str, Any]:
    return {
        name: arguments[name] for name in names if arguments.get(name) is not None
    }


def _require(arguments: MCPToolArguments, name: str) -> Any:
    value = arguments.get(name)
    if value is None or value == "":
        raise create_client_error(ex.MISSING_PARAMETER.format(name=name))
    return value


def _require_bool(arguments: MCPToolArguments, name: str) -> bool:
    value = _require(arguments, name)
    if not isinstance(value, bool):
        raise create_client_error(te.MCP_INVALID_ARGUMENT.format(name=name, value=value))
    return value


def _optional_number(arguments: MCPToolArguments, name: str) -> float | None:
    value = arguments.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise create_client_error(te.MCP_INVALID_ARGUMENT.format(name=name, value=value))
    return float(value)


def _build_tool_metadata(registry: MCPToolsRegistry) -> dict[str, ToolMetadata]:
    return {
        cs.MCPToolName.PROJECTS: ToolMetadata(
            name=cs.MCPToolName.PROJECTS,
            description=td.MCP_TOOLS[cs.MCPToolName.PROJECTS],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={},
                required=[],
            ),
            handler=registry.projects,
        ),
        cs.MCPToolName.PROJECT_ISSUES: ToolMetadata(
            name=cs.MCPToolName.PROJECT_ISSUES,
            description=td.MCP_TOOLS[cs.MCPToolName.PROJECT_ISSUES],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={
                    **_project_key_property(),
                    cs.MCPParamName.PATH: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_PATH,
                    ),
                    cs.MCPParamName.ANALYZER_IN: _string_array(
                        td.MCP_PARAM_ANALYZER_IN
                    ),
                    cs.MCPParamName.TAGS: _string_array(td.MCP_PARAM_TAGS),
                    **_pagination_properties(),
                },
                required=[cs.MCPParamName.PROJECT_KEY],
            ),
            handler=registry.project_issues,
        ),
        cs.MCPToolName.RUNS: ToolMetadata(
            name=cs.MCPToolName.RUNS,
            description=td.MCP_TOOLS[cs.MCPToolName.RUNS],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={**_project_key_property(), **_pagination_properties()},
                required=[cs.MCPParamName.PROJECT_KEY],
            ),
            handler=registry.runs,
        ),
        cs.MCPToolName.RUN: ToolMetadata(
            name=cs.MCPToolName.RUN,
            description=td.MCP_TOOLS[cs.MCPToolName.RUN],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={
                    cs.MCPParamName.RUN_IDENTIFIER: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_RUN_IDENTIFIER,
                    )
                },
                required=[cs.MCPParamName.RUN_IDENTIFIER],
            ),
            handler=registry.run,
        ),
        cs.MCPToolName.RECENT_RUN_ISSUES: ToolMetadata(
            name=cs.MCPToolName.RECENT_RUN_ISSUES,
            description=td.MCP_TOOLS[cs.MCPToolName.RECENT_RUN_ISSUES],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={
                    **_project_key_property(),
                    cs.MCPParamName.BRANCH_NAME: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_BRANCH_NAME,
                    ),
                    cs.MCPParamName.FIRST: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.INTEGER,
                        description=td.MCP_PARAM_FIRST,
                        default=cs.RUN_ISSUES_DEFAULT_FIRST,
                        minimum=1,
                    ),
                },
                required=[cs.MCPParamName.PROJECT_KEY, cs.MCPParamName.BRANCH_NAME],
            ),
            handler=registry.recent_run_issues,
        ),
        cs.MCPToolName.QUALITY_METRICS: ToolMetadata(
            name=cs.MCPToolName.QUALITY_METRICS,
            description=td.MCP_TOOLS[cs.MCPToolName.QUALITY_METRICS],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={
                    **_project_key_property(),
                    cs.MCPParamName.SHORTCODE_IN: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.ARRAY,
                        description=td.MCP_PARAM_SHORTCODE_IN,
                        items=MCPInputSchemaItems(type=cs.MCPSchemaType.STRING),
                        enum=[str(code) for code in cs.MetricShortcode],
                    ),
                },
                required=[cs.MCPParamName.PROJECT_KEY],
            ),
            handler=registry.quality_metrics,
        ),
        cs.MCPToolName.UPDATE_METRIC_THRESHOLD: ToolMetadata(
            name=cs.MCPToolName.UPDATE_METRIC_THRESHOLD,
            description=td.MCP_TOOLS[cs.MCPToolName.UPDATE_METRIC_THRESHOLD],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={
                    **_project_key_property(),
                    cs.MCPParamName.REPOSITORY_ID: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_REPOSITORY_ID,
                    ),
                    cs.MCPParamName.METRIC_SHORTCODE: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_METRIC_SHORTCODE,
                        enum=[str(code) for code in cs.MetricShortcode],
                    ),
                    cs.MCPParamName.METRIC_KEY: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_METRIC_KEY,
                    ),
                    cs.MCPParamName.THRESHOLD_VALUE: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.NUMBER,
                        description=td.MCP_PARAM_THRESHOLD_VALUE,
                    ),
                },
                required=[
                    cs.MCPParamName.REPOSITORY_ID,
                    cs.MCPParamName.METRIC_SHORTCODE,
                    cs.MCPParamName.METRIC_KEY,
                ],
            ),
            handler=registry.update_metric_threshold,
        ),
        cs.MCPToolName.UPDATE_METRIC_SETTING: ToolMetadata(
            name=cs.MCPToolName.UPDATE_METRIC_SETTING,
            description=td.MCP_TOOLS[cs.MCPToolName.UPDATE_METRIC_SETTING],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={
                    **_project_key_property(),
                    cs.MCPParamName.REPOSITORY_ID: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_REPOSITORY_ID,
                    ),
                    cs.MCPParamName.METRIC_SHORTCODE: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_METRIC_SHORTCODE,
                        enum=[str(code) for code in cs.MetricShortcode],
                    ),
                    cs.MCPParamName.IS_REPORTED: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.BOOLEAN,
                        description=td.MCP_PARAM_IS_REPORTED,
                    ),
                    cs.MCPParamName.IS_THRESHOLD_ENFORCED: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.BOOLEAN,
                        description=td.MCP_PARAM_IS_THRESHOLD_ENFORCED,
                    ),
                },
                required=[
                    cs.MCPParamName.REPOSITORY_ID,
                    cs.MCPParamName.METRIC_SHORTCODE,
                    cs.MCPParamName.IS_REPORTED,
                    cs.MCPParamName.IS_THRESHOLD_ENFORCED,
                ],
            ),
            handler=registry.update_metric_setting,
        ),
        cs.MCPToolName.COMPLIANCE_REPORT: ToolMetadata(
            name=cs.MCPToolName.COMPLIANCE_REPORT,
            description=td.MCP_TOOLS[cs.MCPToolName.COMPLIANCE_REPORT],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={
                    **_project_key_property(),
                    cs.MCPParamName.REPORT_TYPE: MCPInputSchemaProperty(
                        type=cs.MCPSchemaType.STRING,
                        description=td.MCP_PARAM_REPORT_TYPE,
                        enum=[str(report) for report in cs.ReportType],
                    ),
                },
                required=[cs.MCPParamName.PROJECT_KEY, cs.MCPParamName.REPORT_TYPE],
            ),
            handler=registry.compliance_report,
        ),
        cs.MCPToolName.DEPENDENCY_VULNERABILITIES: ToolMetadata(
            name=cs.MCPToolName.DEPENDENCY_VULNERABILITIES,
            description=td.MCP_TOOLS[cs.MCPToolName.DEPENDENCY_VULNERABILITIES],
            input_schema=MCPInputSchema(
                type=cs.MCPSchemaType.OBJECT,
                properties={**_project_key_property(), **_pagination_properties()},
                required=[cs.MCPParamName.PROJECT_KEY],
            ),
            handler=registry.dependency_vulnerabilities,
        ),
    }


class MCPToolsRegistry:
    """
    Exposes the DeepSource API as MCP tools.

    Every handler takes the raw tool arguments and returns a JSON-ready dict.
    Failures never escape a handler: they come back as the error payload built
    by `to_tool_error`.
    """

    def __init__(self, client_factory: ClientFactory) -> None:
        self._client_factory = client_factory
        self._client: DeepSourceClient | None = None
        self._tools = _build_tool_metadata(self)

    @property
    def client(self) -> DeepSourceClient:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    @mcp_try_except(to_tool_error)
    async def projects(self, arguments: MCPToolArguments) -> MCPResultType:
        projects = await self.client.list_projects()
        return {
            "projects": [
                {"key": project.key, "name": project.name} for project in projects
            ]
        }

    @mcp_try_except(to_tool_error)
    async def project_issues(self, arguments: MCPToolArguments) -> MCPResultType:
        project_key = _require(arguments, cs.MCPParamName.PROJECT_KEY)
        params = {
            **_pick(arguments, ISSUE_FILTER_ARGUMENTS),
            **_pick(arguments, PAGINATION_ARGUMENTS),
        }
        response = await self.client.get_issues(project_key, params)
        return response.to_dict(item_key="issues", serialize=lambda i: i.to_dict())

    @mcp_try_except(to_tool_error)
    async def runs(self, arguments: MCPToolArguments) -> MCPResultType:
        project_key = _require(arguments, cs.MCPParamName.PROJECT_KEY)
        response = await self.client.list_runs(
            project_key, _pick(arguments, PAGINATION_ARGUMENTS)
        )
        return response.to_dict(item_key="runs", serialize=lambda r: r.to_dict())

    @mcp_try_except(to_tool_error)
    async def run(self, arguments: MCPToolArguments) -> MCPResultType:
        identifier = _require(arguments, cs.MCPParamName.RUN_IDENTIFIER)
        result = await self.client.get_run(identifier)
        if result is None:
            raise create_not_found_error(
                te.MCP_RUN_NOT_FOUND.format(identifier=identifier)
            )
        return {"run": result.to_dict()}

    @mcp_try_except(to_tool_error)
    async def recent_run_issues(self, arguments: MCPToolArguments) -> MCPResultType:
        project_key = _require(arguments, cs.MCPParamName.PROJECT_KEY)
        branch_name = _require(arguments, cs.MCPParamName.BRANCH_NAME)
        run, issues = await self.client.get_recent_run_issues(
            project_key, branch_name, _pick(arguments, PAGINATION_ARGUMENTS)
        )
        return {
            "run": run.to_dict(),
            **issues.to_dict(item_key="issues", serialize=lambda i: i.to_dict()),
        }

    @mcp_try_except(to_tool_error)
    async def quality_metrics(self, arguments: MCPToolArguments) -> MCPResultType:
        project_key = _require(arguments, cs.MCPParamName.PROJECT_KEY)
        repository_id, metrics = await self.client.get_quality_metrics(
            project_key, arguments.get(cs.MCPParamName.SHORTCODE_IN)
        )
        return {
            "repositoryId": repository_id,
            "metrics": [metric.to_dict() for metric in metrics],
        }

    @mcp_try_except(to_tool_error)
    async def update_metric_threshold(
        self, arguments: MCPToolArguments
    ) -> MCPResultType:
        repository_id = _require(arguments, cs.MCPParamName.REPOSITORY_ID)
        shortcode = _require(arguments, cs.MCPParamName.METRIC_SHORTCODE)
        metric_key = _require(arguments, cs.MCPParamName.METRIC_KEY)
        threshold = _optional_number(arguments, cs.MCPParamName.THRESHOLD_VALUE)
        ok = await self.client.set_metric_threshold(
            repository_id, shortcode, metric_key, threshold
        )
        return {
            "ok": ok,
            "projectKey": arguments.get(cs.MCPParamName.PROJECT_KEY),
            "metricShortcode": shortcode,
            "metricKey": metric_key,
            "thresholdValue": threshold,
        }

    @mcp_try_except(to_tool_error)
    async def update_metric_setting(self, arguments: MCPToolArguments) -> MCPResultType:
        repository_id = _require(arguments, cs.MCPParamName.REPOSITORY_ID)
        shortcode = _require(arguments, cs.MCPParamName.METRIC_SHORTCODE)
        is_reported = _require_bool(arguments, cs.MCPParamName.IS_REPORTED)
        enforced = _require_bool(arguments, cs.MCPParamName.IS_THRESHOLD_ENFORCED)
        ok = await self.client.update_metric_setting(
            repository_id, shortcode, is_reported, enforced
        )
        return {
            "ok": ok,
            "projectKey": arguments.get(cs.MCPParamName.PROJECT_KEY),
            "metricShortcode": shortcode,
            "isReported": is_reported,
            "isThresholdEnforced": enforced,
        }

    @mcp_try_except(to_tool_error)
    async def compliance_report(self, arguments: MCPToolArguments) -> MCPResultType:
        project_key = _require(arguments, cs.MCPParamName.PROJECT_KEY)
        report_type = _require(arguments, cs.MCPParamName.REPORT_TYPE)
        report = await self.client.get_compliance_report(project_key, report_type)
        if report is None:
            raise create_not_found_error(
                te.MCP_REPORT_NOT_FOUND.format(report_type=report_type, key=project_key)
            )
        return {"report": report.to_dict()}

    @mcp_try_except(to_tool_error)
    async def dependency_vulnerabilities(
        self, arguments: MCPToolArguments
    ) -> MCPResultType:
        project_key = _require(arguments, cs.MCPParamName.PROJECT_KEY)
        response = await self.client.get_dependency_vulnerabilities(
            project_key, _pick(arguments, PAGINATION_ARGUMENTS)
        )
        return response.to_dict(
            item_key="vulnerabilities", serialize=lambda v: v.to_dict()
        )

    def get_tool_schemas(self) -> list[MCPToolSchema]:
        return [
            MCPToolSchema(
                name=metadata.name,
                description=metadata.description,
                inputSchema=metadata.input_schema,
            )
            for metadata in self._tools.values()
        ]

    def get_tool_handler(self, name: str) -> MCPHandlerType | None:
        metadata = self._tools.get(name)
        if metadata is None:
            logger.warning(ls.MCP_SERVER_UNKNOWN_TOOL.format(name=name))
            return None
        return metadata.handler


def create_mcp_tools_registry(
    client_factory: ClientFactory | None = None,
) -> MCPToolsRegistry:
    return MCPToolsRegistry(client_factory=client_factory or create_deepsource_client)
