from __future__ import annotations

from deepsource_mcp.core.constants import MCPToolName

MCP_PROJECTS = (
    "List all available DeepSource projects. "
    'Returns a list of project objects with "key" and "name" properties.'
)

MCP_PROJECT_ISSUES = (
    "Get issues from a DeepSource project with filtering capabilities. "
    "Supports cursor pagination and automatic multi-page fetching via max_pages."
)

MCP_RUNS = (
    "List analysis runs for a DeepSource project. "
    "Supports cursor pagination and automatic multi-page fetching via max_pages."
)

MCP_RUN = "Get a specific analysis run by its runUid or commitOid."

MCP_RECENT_RUN_ISSUES = (
    "Get issues from the most recent analysis run on a specific branch. "
    "Returns the run together with its issue occurrences."
)

MCP_QUALITY_METRICS = (
    "Get quality metrics from a DeepSource project with optional filtering "
    "by metric shortcode (LCV, BCV, DCV, DDP, SCV, TCV, CMP)."
)

MCP_UPDATE_METRIC_THRESHOLD = (
    "Update the threshold for a specific quality metric. "
    "Omit thresholdValue to remove the threshold."
)

MCP_UPDATE_METRIC_SETTING = (
    "Update the settings for a quality metric: whether it is reported and "
    "whether its threshold is enforced."
)

MCP_COMPLIANCE_REPORT = (
    "Get a security compliance report (OWASP_TOP_10, SANS_TOP_25 or MISRA_C) "
    "from a DeepSource project, including a severity distribution and score."
)

MCP_DEPENDENCY_VULNERABILITIES = (
    "Get dependency vulnerabilities from a DeepSource project. "
    "Supports cursor pagination and automatic multi-page fetching via max_pages."
)

MCP_PARAM_PROJECT_KEY = "DeepSource project key (as returned by the projects tool)"
MCP_PARAM_PATH = "Filter issues by file path"
MCP_PARAM_ANALYZER_IN = "Filter issues by analyzer shortcodes"
MCP_PARAM_TAGS = "Filter issues by tags"
MCP_PARAM_FIRST = "Number of items to retrieve (forward pagination)"
MCP_PARAM_AFTER = "Cursor to start retrieving items after (forward pagination)"
MCP_PARAM_LAST = "Number of items to retrieve (backward pagination)"
MCP_PARAM_BEFORE = "Cursor to start retrieving items before (backward pagination)"
MCP_PARAM_PAGE_SIZE = "Number of items per page (alias for first, for convenience)"
MCP_PARAM_MAX_PAGES = (
    "Maximum number of pages to fetch (enables automatic multi-page fetching)"
)
MCP_PARAM_RUN_IDENTIFIER = "The runUid (UUID) or commitOid of the run"
MCP_PARAM_BRANCH_NAME = "Branch name to fetch the most recent run from"
MCP_PARAM_SHORTCODE_IN = "Filter metrics by shortcodes"
MCP_PARAM_REPOSITORY_ID = "Repository GraphQL ID, as returned by quality_metrics"
MCP_PARAM_METRIC_SHORTCODE = "Shortcode of the metric to update"
MCP_PARAM_METRIC_KEY = "Language or context key of the metric (e.g. 'AGGREGATE')"
MCP_PARAM_THRESHOLD_VALUE = "New threshold value, omit to remove the threshold"
MCP_PARAM_IS_REPORTED = "Whether the metric is reported"
MCP_PARAM_IS_THRESHOLD_ENFORCED = "Whether the metric threshold is enforced"
MCP_PARAM_REPORT_TYPE = "Type of compliance report to fetch"

MCP_TOOLS: dict[MCPToolName, str] = {
    MCPToolName.PROJECTS: MCP_PROJECTS,
    MCPToolName.PROJECT_ISSUES: MCP_PROJECT_ISSUES,
    MCPToolName.RUNS: MCP_RUNS,
    MCPToolName.RUN: MCP_RUN,
    MCPToolName.RECENT_RUN_ISSUES: MCP_RECENT_RUN_ISSUES,
    MCPToolName.QUALITY_METRICS: MCP_QUALITY_METRICS,
    MCPToolName.UPDATE_METRIC_THRESHOLD: MCP_UPDATE_METRIC_THRESHOLD,
    MCPToolName.UPDATE_METRIC_SETTING: MCP_UPDATE_METRIC_SETTING,
    MCPToolName.COMPLIANCE_REPORT: MCP_COMPLIANCE_REPORT,
    MCPToolName.DEPENDENCY_VULNERABILITIES: MCP_DEPENDENCY_VULNERABILITIES,
}
