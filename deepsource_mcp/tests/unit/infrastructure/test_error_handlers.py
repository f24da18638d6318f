from __future__ import annotations

import httpx
import pytest

from deepsource_mcp.core.constants import ErrorCategory, TransportCode
from deepsource_mcp.infrastructure import exceptions as ex
from deepsource_mcp.infrastructure.error_handlers import (
    TransportError,
    classify_by_message,
    describe_error,
    extract_graphql_error_messages,
    handle_api_error,
    handle_graphql_error,
    handle_http_status_error,
    handle_network_error,
    is_error_with_message,
    transport_error_from_httpx,
)
from deepsource_mcp.infrastructure.exceptions import (
    ClassifiedError,
    create_auth_error,
    create_classified_error,
)

_REQUEST = httpx.Request("POST", "https://api.deepsource.io/graphql/")


class TestClassifyByMessage:
    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Unauthorized request", ErrorCategory.AUTH),
            ("Invalid API key", ErrorCategory.AUTH),
            ("Too many requests, slow down", ErrorCategory.RATE_LIMIT),
            ("ECONNRESET by peer", ErrorCategory.NETWORK),
            ("request timed out", ErrorCategory.TIMEOUT),
            ("Cannot query field 'foo' on type 'Repository'", ErrorCategory.SCHEMA),
            ("'NoneType' object has no attribute 'id'", ErrorCategory.NOT_FOUND),
            ("Internal error while processing", ErrorCategory.SERVER),
            ("something odd", ErrorCategory.OTHER),
        ],
    )
    def test_keyword_groups(self, message: str, expected: ErrorCategory) -> None:
        assert classify_by_message(Exception(message)) == expected

    def test_first_matching_group_wins(self) -> None:
        # "token" (AUTH) is checked before "timeout" (TIMEOUT).
        error = Exception("token refresh timeout")

        assert classify_by_message(error) == ErrorCategory.AUTH

    def test_matching_is_case_insensitive(self) -> None:
        assert classify_by_message("RATE LIMIT hit") == ErrorCategory.RATE_LIMIT


class TestTransportAdapter:
    def test_http_status_error_keeps_status_and_body(self) -> None:
        response = httpx.Response(
            404, json={"detail": "missing"}, request=_REQUEST
        )
        exc = httpx.HTTPStatusError("not found", request=_REQUEST, response=response)

        error = transport_error_from_httpx(exc)

        assert error.http_status == 404
        assert error.status_text == "Not Found"
        assert error.response_body == {"detail": "missing"}
        assert error.transport_code is None

    def test_connect_error_maps_to_connection_refused(self) -> None:
        error = transport_error_from_httpx(
            httpx.ConnectError("refused", request=_REQUEST)
        )

        assert error.transport_code == TransportCode.CONNECTION_REFUSED
        assert error.http_status is None
        assert error.message.startswith("ECONNREFUSED")

    def test_timeout_maps_to_timed_out(self) -> None:
        error = transport_error_from_httpx(
            httpx.ReadTimeout("slow", request=_REQUEST)
        )

        assert error.transport_code == TransportCode.TIMED_OUT

    def test_read_error_maps_to_connection_reset(self) -> None:
        error = transport_error_from_httpx(httpx.ReadError("reset", request=_REQUEST))

        assert error.transport_code == TransportCode.CONNECTION_RESET


class TestHandlerStages:
    def test_graphql_stage_ignores_errors_without_body(self) -> None:
        assert handle_graphql_error(TransportError("x", http_status=500)) is None
        assert handle_graphql_error(ValueError("x")) is None

    def test_graphql_stage_joins_messages(self) -> None:
        body = {"errors": [{"message": "first"}, {"message": "second"}]}

        result = handle_graphql_error(TransportError("x", response_body=body))

        assert result is not None
        assert result.message == "GraphQL Error: first, second"
        assert result.metadata == {"graphqlErrors": body["errors"]}

    def test_network_stage_only_handles_known_codes(self) -> None:
        reset = TransportError("x", transport_code=TransportCode.CONNECTION_RESET)

        assert handle_network_error(reset) is None

    def test_network_stage_timeout(self) -> None:
        result = handle_network_error(
            TransportError("x", transport_code=TransportCode.TIMED_OUT)
        )

        assert result is not None
        assert result.category == ErrorCategory.TIMEOUT
        assert result.message == ex.REQUEST_TIMED_OUT

    @pytest.mark.parametrize(
        ("status", "category"),
        [
            (401, ErrorCategory.AUTH),
            (429, ErrorCategory.RATE_LIMIT),
            (404, ErrorCategory.NOT_FOUND),
            (502, ErrorCategory.SERVER),
            (503, ErrorCategory.SERVER),
            (504, ErrorCategory.SERVER),
            (500, ErrorCategory.SERVER),
            (418, ErrorCategory.CLIENT),
        ],
    )
    def test_http_stage_status_mapping(
        self, status: int, category: ErrorCategory
    ) -> None:
        result = handle_http_status_error(TransportError("x", http_status=status))

        assert result is not None
        assert result.category == category
        assert result.metadata == {"status": status}

    def test_http_stage_client_error_message(self) -> None:
        result = handle_http_status_error(
            TransportError("x", http_status=422, status_text="Unprocessable Entity")
        )

        assert result is not None
        assert result.message == "Client error (422): Unprocessable Entity"

    def test_http_stage_ignores_success_status(self) -> None:
        assert handle_http_status_error(TransportError("x", http_status=302)) is None


class TestHandleApiError:
    def test_schema_error_in_body_is_classified_by_graphql_stage(self) -> None:
        error = TransportError(
            "Request failed with status code 400",
            http_status=400,
            response_body={"errors": [{"message": "Cannot query field"}]},
        )

        result = handle_api_error(error)

        assert result.category == ErrorCategory.SCHEMA
        assert result.message.startswith("GraphQL Error:")
        assert result.original_error is error

    def test_404_without_body(self) -> None:
        result = handle_api_error(TransportError("failed", http_status=404))

        assert result.category == ErrorCategory.NOT_FOUND
        assert "Not found (404)" in result.message

    def test_connection_refused_without_response(self) -> None:
        result = handle_api_error(
            TransportError(
                "ECONNREFUSED", transport_code=TransportCode.CONNECTION_REFUSED
            )
        )

        assert result.category == ErrorCategory.NETWORK
        assert result.retryable is True

    def test_classified_error_passes_through(self) -> None:
        original = create_auth_error("bad key")

        assert handle_api_error(original) is original

    @pytest.mark.parametrize(
        "error",
        [
            TransportError("x", http_status=503),
            TransportError("x", response_body={"errors": ["oops"]}),
            ValueError("connection dropped"),
            "plain string",
            None,
        ],
    )
    def test_idempotent(self, error: object) -> None:
        once = handle_api_error(error)

        assert handle_api_error(once) is once

    def test_generic_exception_uses_message_classification(self) -> None:
        result = handle_api_error(RuntimeError("rate limit exceeded"))

        assert result.category == ErrorCategory.RATE_LIMIT
        assert result.message == "DeepSource API error: rate limit exceeded"

    @pytest.mark.parametrize("error", ["plain string", 42, None])
    def test_non_exception_values_are_other(self, error: object) -> None:
        result = handle_api_error(error)

        assert isinstance(result, ClassifiedError)
        assert result.category == ErrorCategory.OTHER
        assert result.message == ex.UNKNOWN_ERROR
        assert result.original_error == error


class TestErrorHelpers:
    def test_is_error_with_message(self) -> None:
        error = create_classified_error(
            "GraphQL Error: 'NoneType' object", ErrorCategory.NOT_FOUND
        )

        assert is_error_with_message(error, "NoneType") is True
        assert is_error_with_message(error, "other") is False
        assert is_error_with_message("NoneType", "NoneType") is False

    def test_extract_graphql_error_messages(self) -> None:
        messages = extract_graphql_error_messages([{"message": "a"}, "b", {}])

        assert messages == "a, b, "

    def test_describe_error(self) -> None:
        summary = describe_error(TransportError("boom", http_status=500))

        assert summary == {
            "type": "TransportError",
            "message": "boom",
            "status": 500,
            "code": None,
        }
