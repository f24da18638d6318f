"""
Error messages and the classified error type shared by every API call.

A `ClassifiedError` wraps exactly one underlying cause and carries one
`ErrorCategory`. It is created once, at the boundary where a raw failure
leaves the transport layer, and is passed through unchanged afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from deepsource_mcp.core.constants import RETRYABLE_CATEGORIES, ErrorCategory

# Configuration
API_KEY_NOT_SET = "DEEPSOURCE_API_KEY environment variable is not set"
API_KEY_REQUIRED = "DeepSource API key is required"

# Transport and classification
CONNECTION_REFUSED = "Connection error: Unable to connect to DeepSource API"
REQUEST_TIMED_OUT = "Timeout error: DeepSource API request timed out"
HTTP_UNAUTHORIZED = "Authentication error: Invalid or expired API key"
HTTP_RATE_LIMITED = "Rate limit exceeded: Too many requests to DeepSource API"
HTTP_NOT_FOUND = "Not found (404): The requested resource was not found"
HTTP_BAD_GATEWAY = "Bad gateway (502): DeepSource API gateway received an invalid response"
HTTP_SERVICE_UNAVAILABLE = (
    "Service unavailable (503): DeepSource API is temporarily unavailable"
)
HTTP_GATEWAY_TIMEOUT = "Gateway timeout (504): DeepSource API did not respond in time"
HTTP_SERVER_ERROR = "Server error ({status}): DeepSource API server error"
HTTP_CLIENT_ERROR = "Client error ({status}): {status_text}"
HTTP_BAD_REQUEST = "Bad request"
GRAPHQL_ERROR = "GraphQL Error: {messages}"
GRAPHQL_ERRORS_IN_RESPONSE = "GraphQL Errors: {errors}"
GENERIC_API_ERROR = "DeepSource API error: {message}"
UNKNOWN_ERROR = "Unknown error occurred while communicating with DeepSource API"
NO_DATA_RECEIVED = "No data received from GraphQL API"
INVALID_JSON_RESPONSE = "Invalid JSON in DeepSource API response"

# Pagination
ITERATOR_UNUSABLE = "Pagination iterator cannot be reused after a failed fetch"

# Resource operations
UNSUPPORTED_REPORT_TYPE = "Unsupported report type: {report_type}"
NO_RUNS_FOR_BRANCH = "No runs found for branch '{branch}' in project '{key}'"
MISSING_PARAMETER = "Missing required parameter: {name}"

# Default messages per category
DEFAULT_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.AUTH: "Authentication failed",
    ErrorCategory.NETWORK: "Network error occurred",
    ErrorCategory.SERVER: "Server error occurred",
    ErrorCategory.CLIENT: "Client error occurred",
    ErrorCategory.TIMEOUT: "Request timed out",
    ErrorCategory.RATE_LIMIT: "Rate limit exceeded",
    ErrorCategory.SCHEMA: "GraphQL schema error",
    ErrorCategory.NOT_FOUND: "Resource not found",
    ErrorCategory.FORMAT: "Data format error",
    ErrorCategory.OTHER: "Unknown error occurred",
}


class ClassifiedError(Exception):
    """An API failure annotated with a category from the closed taxonomy.

    Attributes:
        message (str): Human-readable message suitable for direct display.
        category (ErrorCategory): The category assigned at classification time.
        original_error (object | None): The raw value that caused the failure.
        metadata (dict[str, Any] | None): Extra technical detail, e.g. the raw
            GraphQL error list.
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        original_error: object | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self._message = message
        self._category = ErrorCategory(category)
        self._original_error = original_error
        self._metadata = dict(metadata) if metadata is not None else None

    @property
    def message(self) -> str:
        return self._message

    @property
    def category(self) -> ErrorCategory:
        return self._category

    @property
    def original_error(self) -> object | None:
        return self._original_error

    @property
    def metadata(self) -> dict[str, Any] | None:
        return None if self._metadata is None else dict(self._metadata)

    @property
    def retryable(self) -> bool:
        return self._category in RETRYABLE_CATEGORIES

    def __repr__(self) -> str:
        return f"ClassifiedError(category={self._category.value!r}, message={self._message!r})"


def create_classified_error(
    message: str,
    category: ErrorCategory,
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return ClassifiedError(
        message or DEFAULT_MESSAGES[category], category, original_error, metadata
    )


def create_auth_error(
    message: str = "",
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return create_classified_error(message, ErrorCategory.AUTH, original_error, metadata)


def create_network_error(
    message: str = "",
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return create_classified_error(
        message, ErrorCategory.NETWORK, original_error, metadata
    )


def create_server_error(
    message: str = "",
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return create_classified_error(
        message, ErrorCategory.SERVER, original_error, metadata
    )


def create_client_error(
    message: str = "",
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return create_classified_error(
        message, ErrorCategory.CLIENT, original_error, metadata
    )


def create_timeout_error(
    message: str = "",
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return create_classified_error(
        message, ErrorCategory.TIMEOUT, original_error, metadata
    )


def create_rate_limit_error(
    message: str = "",
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return create_classified_error(
        message, ErrorCategory.RATE_LIMIT, original_error, metadata
    )


def create_not_found_error(
    message: str = "",
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return create_classified_error(
        message, ErrorCategory.NOT_FOUND, original_error, metadata
    )


def create_format_error(
    message: str = "",
    original_error: object | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ClassifiedError:
    return create_classified_error(
        message, ErrorCategory.FORMAT, original_error, metadata
    )
