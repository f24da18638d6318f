"""
Layered classification of API failures.

Raw failures are first adapted to a `TransportError` at the HTTP client
boundary, then passed through a fixed chain of handlers:

1.  GraphQL-shaped errors (a response body carrying an `errors` list).
2.  Low-level transport codes (connection refused, timed out).
3.  HTTP status codes.
4.  A generic fallback that classifies by message text.

The first handler producing a result wins. `handle_api_error` always returns
a `ClassifiedError` and returns an already classified error unchanged.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core.constants import ErrorCategory, TransportCode
from deepsource_mcp.infrastructure import exceptions as ex
from deepsource_mcp.infrastructure.exceptions import (
    ClassifiedError,
    create_auth_error,
    create_classified_error,
    create_client_error,
    create_network_error,
    create_not_found_error,
    create_rate_limit_error,
    create_server_error,
    create_timeout_error,
)

type ErrorFactory = Callable[
    [str, object | None, Mapping[str, Any] | None], ClassifiedError
]


class TransportError(Exception):
    """Stable internal shape of a failed HTTP exchange.

    Attributes:
        http_status (int | None): Response status, when a response arrived.
        status_text (str | None): Response reason phrase.
        transport_code (str | None): Low-level connection code such as
            `ECONNREFUSED`, when no usable response arrived.
        response_body (object | None): Parsed JSON body, or the raw text.
    """

    def __init__(
        self,
        message: str,
        *,
        http_status: int | None = None,
        status_text: str | None = None,
        transport_code: str | None = None,
        response_body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.status_text = status_text
        self.transport_code = transport_code
        self.response_body = response_body


def _parse_body(response: httpx.Response) -> object | None:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text or None


def transport_error_from_httpx(exc: httpx.HTTPError) -> TransportError:
    """Adapts an httpx exception to a `TransportError`."""
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        return TransportError(
            str(exc),
            http_status=response.status_code,
            status_text=response.reason_phrase,
            response_body=_parse_body(response),
        )
    if isinstance(exc, httpx.TimeoutException):
        code: str | None = TransportCode.TIMED_OUT
    elif isinstance(exc, httpx.ConnectError):
        code = TransportCode.CONNECTION_REFUSED
    elif isinstance(exc, httpx.ReadError | httpx.RemoteProtocolError):
        code = TransportCode.CONNECTION_RESET
    else:
        code = None
    message = f"{code}: {exc}" if code else str(exc)
    return TransportError(message, transport_code=code)


def _error_message(error: object) -> str:
    if isinstance(error, ClassifiedError | TransportError):
        return error.message
    return str(error)


def classify_by_message(error: object) -> ErrorCategory:
    """Maps an error to a category by matching keywords in its message.

    Keyword groups are checked in the fixed order of
    `cs.ERROR_MESSAGE_PATTERNS`; the first matching group wins.
    """
    message = _error_message(error).lower()
    for category, patterns in cs.ERROR_MESSAGE_PATTERNS:
        if any(pattern in message for pattern in patterns):
            return category
    return ErrorCategory.OTHER


def is_error_with_message(error: object, substring: str) -> bool:
    return isinstance(error, Exception) and substring in _error_message(error)


def extract_graphql_error_messages(errors: Sequence[object]) -> str:
    messages = []
    for item in errors:
        if isinstance(item, Mapping):
            messages.append(str(item.get("message", "")))
        else:
            messages.append(str(item))
    return ", ".join(messages)


def handle_graphql_error(error: object) -> ClassifiedError | None:
    if not isinstance(error, TransportError):
        return None
    body = error.response_body
    if not isinstance(body, Mapping):
        return None
    graphql_errors = body.get("errors")
    if not isinstance(graphql_errors, list):
        return None

    message = ex.GRAPHQL_ERROR.format(
        messages=extract_graphql_error_messages(graphql_errors)
    )
    category = classify_by_message(message)
    return create_classified_error(
        message, category, error, {"graphqlErrors": graphql_errors}
    )


def handle_network_error(error: object) -> ClassifiedError | None:
    if not isinstance(error, TransportError):
        return None
    if error.transport_code == TransportCode.CONNECTION_REFUSED:
        return create_network_error(ex.CONNECTION_REFUSED, error)
    if error.transport_code == TransportCode.TIMED_OUT:
        return create_timeout_error(ex.REQUEST_TIMED_OUT, error)
    return None


_EXACT_STATUS_ERRORS: dict[int, tuple[str, ErrorFactory]] = {
    401: (ex.HTTP_UNAUTHORIZED, create_auth_error),
    429: (ex.HTTP_RATE_LIMITED, create_rate_limit_error),
    404: (ex.HTTP_NOT_FOUND, create_not_found_error),
    502: (ex.HTTP_BAD_GATEWAY, create_server_error),
    503: (ex.HTTP_SERVICE_UNAVAILABLE, create_server_error),
    504: (ex.HTTP_GATEWAY_TIMEOUT, create_server_error),
}


def handle_http_status_error(error: object) -> ClassifiedError | None:
    if not isinstance(error, TransportError) or error.http_status is None:
        return None
    status = error.http_status

    exact = _EXACT_STATUS_ERRORS.get(status)
    if exact is not None:
        message, factory = exact
        return factory(message, error, {"status": status})
    if status >= 500:
        return create_server_error(
            ex.HTTP_SERVER_ERROR.format(status=status), error, {"status": status}
        )
    if 400 <= status < 500:
        return create_client_error(
            ex.HTTP_CLIENT_ERROR.format(
                status=status, status_text=error.status_text or ex.HTTP_BAD_REQUEST
            ),
            error,
            {"status": status},
        )
    return None


_HANDLER_CHAIN: tuple[Callable[[object], ClassifiedError | None], ...] = (
    handle_graphql_error,
    handle_network_error,
    handle_http_status_error,
)


def handle_api_error(error: object) -> ClassifiedError:
    """Classifies any raised value into a `ClassifiedError`.

    Args:
        error: The value raised by the transport or fetch layer.

    Returns:
        ClassifiedError: The input itself when already classified, otherwise a
            new classified error wrapping it.
    """
    if isinstance(error, ClassifiedError):
        return error

    for handler in _HANDLER_CHAIN:
        classified = handler(error)
        if classified is not None:
            return classified

    if isinstance(error, Exception):
        message = _error_message(error)
        return create_classified_error(
            ex.GENERIC_API_ERROR.format(message=message),
            classify_by_message(error),
            error,
        )

    return create_classified_error(ex.UNKNOWN_ERROR, ErrorCategory.OTHER, error)


def describe_error(error: object) -> dict[str, Any]:
    """Summarises a raw error for debug logging."""
    summary: dict[str, Any] = {
        "type": type(error).__name__,
        "message": _error_message(error),
    }
    if isinstance(error, TransportError):
        summary["status"] = error.http_status
        summary["code"] = error.transport_code
    return summary
