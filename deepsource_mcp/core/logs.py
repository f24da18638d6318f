from __future__ import annotations

# Configuration
CONFIG_LOADED = "Loaded configuration: base_url={base_url}, timeout_ms={timeout}, log_level={level}"
LOGGING_CONFIGURED = "Logging configured at level {level}"

# Pagination
PAGINATION_LAST_WITHOUT_BEFORE = (
    'Non-standard pagination: Using "last={last}" without "before" cursor '
    "is not recommended"
)
MULTI_PAGE_START = (
    "Starting multi-page fetch (max_pages={max_pages}, page_size={page_size}, "
    "fetch_all={fetch_all})"
)
MULTI_PAGE_PAGE_FETCHED = (
    "Fetched page {page} ({items} items, {total} so far, has_more={has_more})"
)
MULTI_PAGE_LIMIT_REACHED = (
    "Reached max pages limit ({max_pages}) after {pages} pages and {items} items"
)
MULTI_PAGE_MISSING_CURSOR = (
    "Page {page} reports more results but no end cursor; stopping pagination"
)
MULTI_PAGE_FAILED = "Error fetching page {page}: {error}"
MULTI_PAGE_DONE = (
    "Multi-page fetch finished in state {state}: {pages} pages, {items} items, "
    "has_more={has_more}"
)
MULTI_PAGE_PROGRESS = "Pagination progress: {pages} pages, {items} items"
ITERATOR_FAILED = "Error in pagination iterator: {error}"

# GraphQL transport
GRAPHQL_EXECUTING = "Executing GraphQL query ({length} chars, variables={variables})"
GRAPHQL_RESPONSE = "GraphQL response received: status={status} in {duration:.1f}ms"
GRAPHQL_ERRORS = "GraphQL query returned errors: {errors} (query: {query})"
GRAPHQL_FAILED = "Error executing GraphQL query: {error} (query: {query})"
GRAPHQL_CLASSIFIED = "Classified API error as {category}: {message}"
GRAPHQL_ERROR_DETAILS = "Raw API error details: {details}"
FUNC_TIMING = "{func} took {time:.2f}ms"

# Resource clients
PROJECTS_FETCHED = "Retrieved {count} projects"
PROJECTS_SKIP_NO_DSN = "Skipping repository {name} of {login}: missing DSN"
PROJECTS_EMPTY_NONETYPE = "No projects found (NoneType error returned)"
PROJECT_NOT_FOUND = "Project {key} not found for this API key"
PROJECT_EXISTS_FAILED = "Error checking if project {key} exists: {error}"
ISSUES_FETCHING = "Fetching issues for {key} (filters={filters})"
ISSUES_FETCHED = "Fetched {count} issues (total={total}, has_next={has_next})"
ISSUES_EMPTY_NONETYPE = "No issues found for {key} (NoneType error returned)"
RUNS_FETCHING = "Fetching runs for {key}"
RUNS_FETCHED = "Fetched {count} runs (has_next={has_next})"
RUN_FETCHING = "Fetching run {identifier}"
RUN_FETCHED = "Fetched run {uid} with status {status}"
RUN_BRANCH_SEARCH = "Finding most recent run for branch {branch} in {key}"
RUN_BRANCH_FOUND = "Most recent run for {branch}: {uid} created at {created}"
RUN_ISSUES_FETCHED = "Fetched {count} issues for run {uid}"
METRICS_FETCHING = "Fetching quality metrics for {key} (shortcodes={shortcodes})"
METRICS_FETCHED = "Fetched {count} quality metrics"
METRIC_THRESHOLD_UPDATING = "Updating threshold of {shortcode}/{key} on {repository}"
METRIC_SETTING_UPDATING = "Updating setting of {shortcode} on {repository}"
VULNERABILITIES_FETCHING = "Fetching dependency vulnerabilities for {key}"
VULNERABILITIES_FETCHED = "Fetched {count} dependency vulnerabilities"
VULNERABILITY_NODE_SKIPPED = "Skipping incomplete vulnerability node {node_id}"
COMPLIANCE_FETCHING = "Fetching {report} compliance report for {key}"
COMPLIANCE_FETCHED = "Fetched {report} compliance report with status {status}"

# MCP
MCP_SERVER_STARTING = "Starting DeepSource MCP server with {count} tools"
MCP_SERVER_TOOL_CALL = "MCP tool {name} invoked with {args}"
MCP_SERVER_TOOL_DONE = "MCP tool {name} completed in {duration:.1f}ms"
MCP_SERVER_TOOL_FAILED = "MCP tool {name} returned a {category} error: {message}"
MCP_SERVER_TOOL_ERROR = "Error in MCP tool {name}: {error}"
MCP_SERVER_UNKNOWN_TOOL = "Unknown MCP tool requested: {name}"
