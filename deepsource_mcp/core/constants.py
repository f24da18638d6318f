from __future__ import annotations

from enum import StrEnum

ENCODING_UTF8 = "utf-8"

DEFAULT_API_BASE_URL = "https://api.deepsource.io/graphql/"
DEFAULT_REQUEST_TIMEOUT_MS = 30000
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)

# Pagination defaults
DEFAULT_PAGE_COUNT = 10
DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_PAGES = 10
RUN_ISSUES_DEFAULT_FIRST = 100
BRANCH_RUNS_PAGE_SIZE = 50

PAGINATION_KEY_OFFSET = "offset"
PAGINATION_KEY_FIRST = "first"
PAGINATION_KEY_AFTER = "after"
PAGINATION_KEY_BEFORE = "before"
PAGINATION_KEY_LAST = "last"
PAGINATION_KEY_PAGE_SIZE = "page_size"
PAGINATION_KEY_MAX_PAGES = "max_pages"


class ErrorCategory(StrEnum):
    AUTH = "AUTH"
    NETWORK = "NETWORK"
    SERVER = "SERVER"
    CLIENT = "CLIENT"
    TIMEOUT = "TIMEOUT"
    RATE_LIMIT = "RATE_LIMIT"
    SCHEMA = "SCHEMA"
    NOT_FOUND = "NOT_FOUND"
    FORMAT = "FORMAT"
    OTHER = "OTHER"


RETRYABLE_CATEGORIES = frozenset(
    {
        ErrorCategory.NETWORK,
        ErrorCategory.TIMEOUT,
        ErrorCategory.RATE_LIMIT,
        ErrorCategory.SERVER,
    }
)

# Checked in this order; the first group with a matching keyword wins.
ERROR_MESSAGE_PATTERNS: tuple[tuple[ErrorCategory, tuple[str, ...]], ...] = (
    (
        ErrorCategory.AUTH,
        (
            "authentication",
            "unauthorized",
            "access denied",
            "not authorized",
            "forbidden",
            "token",
            "api key",
        ),
    ),
    (ErrorCategory.RATE_LIMIT, ("rate limit", "too many requests", "throttled")),
    (ErrorCategory.NETWORK, ("network", "connection", "econnreset", "econnrefused")),
    (ErrorCategory.TIMEOUT, ("timeout", "timed out", "etimedout")),
    (
        ErrorCategory.SCHEMA,
        (
            "cannot query field",
            "unknown argument",
            "unknown type",
            "field not defined",
        ),
    ),
    (ErrorCategory.NOT_FOUND, ("not found", "nonetype", "does not exist")),
    (ErrorCategory.SERVER, ("server error", "internal error", "500")),
)


class TransportCode(StrEnum):
    CONNECTION_REFUSED = "ECONNREFUSED"
    TIMED_OUT = "ETIMEDOUT"
    CONNECTION_RESET = "ECONNRESET"


class FetchState(StrEnum):
    FETCHING = "FETCHING"
    DONE = "DONE"
    LIMIT_REACHED = "LIMIT_REACHED"
    FAILED = "FAILED"


class MCPErrorCode:
    INTERNAL_ERROR = -32603
    RESOURCE_NOT_FOUND = -32001
    AUTHENTICATION_ERROR = -32002
    RATE_LIMITED = -32004
    TIMEOUT_ERROR = -32005
    NETWORK_ERROR = -32009
    CLIENT_ERROR = -32010


MCP_ERROR_CODES: dict[ErrorCategory, int] = {
    ErrorCategory.AUTH: MCPErrorCode.AUTHENTICATION_ERROR,
    ErrorCategory.NETWORK: MCPErrorCode.NETWORK_ERROR,
    ErrorCategory.TIMEOUT: MCPErrorCode.TIMEOUT_ERROR,
    ErrorCategory.RATE_LIMIT: MCPErrorCode.RATE_LIMITED,
    ErrorCategory.NOT_FOUND: MCPErrorCode.RESOURCE_NOT_FOUND,
    ErrorCategory.CLIENT: MCPErrorCode.CLIENT_ERROR,
    ErrorCategory.SERVER: MCPErrorCode.INTERNAL_ERROR,
    ErrorCategory.SCHEMA: MCPErrorCode.INTERNAL_ERROR,
    ErrorCategory.FORMAT: MCPErrorCode.INTERNAL_ERROR,
    ErrorCategory.OTHER: MCPErrorCode.INTERNAL_ERROR,
}


class ReportType(StrEnum):
    OWASP_TOP_10 = "OWASP_TOP_10"
    SANS_TOP_25 = "SANS_TOP_25"
    MISRA_C = "MISRA_C"


REPORT_FIELD_NAMES: dict[ReportType, str] = {
    ReportType.OWASP_TOP_10: "owaspTop10",
    ReportType.SANS_TOP_25: "sansTop25",
    ReportType.MISRA_C: "misraC",
}

REPORT_TITLES: dict[ReportType, str] = {
    ReportType.OWASP_TOP_10: "OWASP Top 10",
    ReportType.SANS_TOP_25: "SANS Top 25",
    ReportType.MISRA_C: "MISRA C",
}


class MetricShortcode(StrEnum):
    LCV = "LCV"
    BCV = "BCV"
    DCV = "DCV"
    DDP = "DDP"
    SCV = "SCV"
    TCV = "TCV"
    CMP = "CMP"


class ReportStatus(StrEnum):
    PASSING = "PASSING"
    FAILING = "FAILING"
    NOOP = "NOOP"


UNKNOWN = "UNKNOWN"
UNNAMED_REPOSITORY = "Unnamed Repository"
NONETYPE_MARKER = "NoneType"

RUN_UID_PATTERN = (
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)

HTTP_HEADER_ACCEPT = "application/json"
HTTP_HEADER_CONTENT_TYPE = "application/json"


class MCPToolName(StrEnum):
    PROJECTS = "projects"
    PROJECT_ISSUES = "project_issues"
    RUNS = "runs"
    RUN = "run"
    RECENT_RUN_ISSUES = "recent_run_issues"
    QUALITY_METRICS = "quality_metrics"
    UPDATE_METRIC_THRESHOLD = "update_metric_threshold"
    UPDATE_METRIC_SETTING = "update_metric_setting"
    COMPLIANCE_REPORT = "compliance_report"
    DEPENDENCY_VULNERABILITIES = "dependency_vulnerabilities"


class MCPParamName(StrEnum):
    PROJECT_KEY = "projectKey"
    PATH = "path"
    ANALYZER_IN = "analyzerIn"
    TAGS = "tags"
    FIRST = "first"
    AFTER = "after"
    LAST = "last"
    BEFORE = "before"
    PAGE_SIZE = "page_size"
    MAX_PAGES = "max_pages"
    RUN_IDENTIFIER = "runIdentifier"
    BRANCH_NAME = "branchName"
    SHORTCODE_IN = "shortcodeIn"
    REPOSITORY_ID = "repositoryId"
    METRIC_SHORTCODE = "metricShortcode"
    METRIC_KEY = "metricKey"
    THRESHOLD_VALUE = "thresholdValue"
    IS_REPORTED = "isReported"
    IS_THRESHOLD_ENFORCED = "isThresholdEnforced"
    REPORT_TYPE = "reportType"


class MCPSchemaType(StrEnum):
    OBJECT = "object"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


MCP_SERVER_NAME = "deepsource-mcp-server"
MCP_CONTENT_TYPE_TEXT = "text"
MCP_JSON_INDENT = 2


class Color(StrEnum):
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    CYAN = "cyan"


class StyleModifier(StrEnum):
    BOLD = "bold"
    DIM = "dim"
    NONE = ""


CLI_MSG_APP_TERMINATED = "Application terminated by user."
CLI_ERR_CONFIG = "Configuration error: {error}"
CLI_ERR_MCP_SERVER = "MCP server error: {error}"
CLI_MSG_HINT_API_KEY = "Hint: set DEEPSOURCE_API_KEY in your environment or .env file."
API_KEY_MASK = "****"
API_KEY_VISIBLE_CHARS = 4
CLI_TITLE_CONFIG = "DeepSource MCP configuration"
CLI_MSG_NOT_SET = "<not set>"
CLI_MSG_VERSION = "deepsource-mcp {version}"
