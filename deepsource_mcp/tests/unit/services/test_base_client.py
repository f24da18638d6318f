from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from deepsource_mcp.core.config import settings
from deepsource_mcp.core.constants import ErrorCategory
from deepsource_mcp.infrastructure import exceptions as ex
from deepsource_mcp.infrastructure.exceptions import ClassifiedError
from deepsource_mcp.pagination.types import PageInfo, PaginatedResponse
from deepsource_mcp.services.base_client import (
    BaseDeepSourceClient,
    get_connection,
    parse_paginated_connection,
    parse_viewer_projects,
    select_variables,
)

pytestmark = [pytest.mark.anyio]

API_URL = "https://deepsource.test/graphql/"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(params=["asyncio"])
def anyio_backend(request: pytest.FixtureRequest) -> str:
    return str(request.param)


def _viewer_payload(*repositories: dict[str, Any]) -> dict[str, Any]:
    return {
        "data": {
            "viewer": {
                "accounts": {
                    "edges": [
                        {
                            "node": {
                                "login": "acme",
                                "repositories": {
                                    "edges": [{"node": repo} for repo in repositories]
                                },
                            }
                        }
                    ]
                }
            }
        }
    }


def _repo(name: str, dsn: str | None) -> dict[str, Any]:
    return {
        "name": name,
        "dsn": dsn,
        "vcsProvider": "GITHUB",
        "isPrivate": True,
        "isActivated": True,
    }


def _client(handler: Handler) -> BaseDeepSourceClient:
    return BaseDeepSourceClient(
        "secret-key", base_url=API_URL, transport=httpx.MockTransport(handler)
    )


class TestExecuteGraphql:
    async def test_posts_query_with_bearer_auth(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"ok": True}})

        data = await _client(handler).execute_graphql("query { ok }", {"a": 1})

        assert data == {"ok": True}
        assert seen[0].headers["Authorization"] == "Bearer secret-key"
        assert str(seen[0].url) == API_URL
        assert json.loads(seen[0].content) == {
            "query": "query { ok }",
            "variables": {"a": 1},
        }

    async def test_http_401_is_auth_error(self) -> None:
        client = _client(lambda request: httpx.Response(401, text="nope"))

        with pytest.raises(ClassifiedError) as exc_info:
            await client.execute_graphql("query { ok }")

        assert exc_info.value.category == ErrorCategory.AUTH
        assert exc_info.value.retryable is False

    async def test_failure_details_are_logged_before_classifying(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        log = MagicMock()
        monkeypatch.setattr("deepsource_mcp.services.base_client.logger", log)
        client = _client(lambda request: httpx.Response(503, text="down"))

        with pytest.raises(ClassifiedError) as exc_info:
            await client.execute_graphql("query { ok }")

        assert exc_info.value.category == ErrorCategory.SERVER
        assert exc_info.value.metadata == {"status": 503}
        details = [
            call.args[0]
            for call in log.debug.call_args_list
            if call.args[0].startswith("Raw API error details:")
        ]
        assert len(details) == 1
        assert "'type': 'TransportError'" in details[0]
        assert "'status': 503" in details[0]

    async def test_http_error_with_graphql_body_uses_graphql_stage(self) -> None:
        client = _client(
            lambda request: httpx.Response(
                400, json={"errors": [{"message": "Cannot query field 'x'"}]}
            )
        )

        with pytest.raises(ClassifiedError) as exc_info:
            await client.execute_graphql("query { x }")

        assert exc_info.value.category == ErrorCategory.SCHEMA

    async def test_errors_in_successful_response(self) -> None:
        errors = [{"message": "Unknown argument 'foo'"}]
        client = _client(lambda request: httpx.Response(200, json={"errors": errors}))

        with pytest.raises(ClassifiedError) as exc_info:
            await client.execute_graphql("query { x }")

        assert exc_info.value.category == ErrorCategory.SCHEMA
        assert exc_info.value.metadata == {"graphqlErrors": errors}

    async def test_connection_refused_is_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ClassifiedError) as exc_info:
            await _client(handler).execute_graphql("query { ok }")

        assert exc_info.value.category == ErrorCategory.NETWORK
        assert exc_info.value.message == ex.CONNECTION_REFUSED

    async def test_timeout_is_timeout_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(ClassifiedError) as exc_info:
            await _client(handler).execute_graphql("query { ok }")

        assert exc_info.value.category == ErrorCategory.TIMEOUT
        assert exc_info.value.retryable is True

    async def test_invalid_json_is_format_error(self) -> None:
        client = _client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ClassifiedError) as exc_info:
            await client.execute_graphql("query { ok }")

        assert exc_info.value.category == ErrorCategory.FORMAT
        assert exc_info.value.message == ex.INVALID_JSON_RESPONSE

    async def test_missing_data_is_format_error(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"data": None}))

        with pytest.raises(ClassifiedError) as exc_info:
            await client.execute_graphql("query { ok }")

        assert exc_info.value.category == ErrorCategory.FORMAT
        assert exc_info.value.message == ex.NO_DATA_RECEIVED

    def test_api_key_is_required(self) -> None:
        with pytest.raises(ValueError, match=ex.API_KEY_REQUIRED):
            BaseDeepSourceClient("")


class TestFindProjectByKey:
    async def test_returns_matching_project(self) -> None:
        payload = _viewer_payload(_repo("api", "dsn-api"), _repo("web", "dsn-web"))
        client = _client(lambda request: httpx.Response(200, json=payload))

        project = await client.find_project_by_key("dsn-web")

        assert project is not None
        assert project.name == "web"
        assert client.project_variables(project) == {
            "login": "acme",
            "name": "web",
            "provider": "GITHUB",
        }

    async def test_unknown_key_returns_none(self) -> None:
        payload = _viewer_payload(_repo("api", "dsn-api"))
        client = _client(lambda request: httpx.Response(200, json=payload))

        assert await client.find_project_by_key("missing") is None

    async def test_nonetype_error_returns_none(self) -> None:
        errors = [{"message": "'NoneType' object is not iterable"}]
        client = _client(lambda request: httpx.Response(200, json={"errors": errors}))

        assert await client.find_project_by_key("dsn-api") is None

    async def test_other_errors_propagate(self) -> None:
        client = _client(lambda request: httpx.Response(503))

        with pytest.raises(ClassifiedError) as exc_info:
            await client.find_project_by_key("dsn-api")

        assert exc_info.value.category == ErrorCategory.SERVER


class PageSource:
    """Serves a fixed sequence of pages to `fetch_with_pagination`."""

    def __init__(self, pages: list[PaginatedResponse[int]]) -> None:
        self._pages = pages
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, params: dict[str, Any]) -> PaginatedResponse[int]:
        self.calls.append(params)
        return self._pages[min(len(self.calls), len(self._pages)) - 1]


def _page(
    items: list[int], end_cursor: str | None, total: int = 0
) -> PaginatedResponse[int]:
    return PaginatedResponse(
        items=items,
        page_info=PageInfo(has_next_page=end_cursor is not None, end_cursor=end_cursor),
        total_count=total,
    )


class TestFetchWithPagination:
    @pytest.fixture
    def client(self) -> BaseDeepSourceClient:
        return BaseDeepSourceClient("secret-key", base_url=API_URL)

    async def test_single_page_without_max_pages(
        self, client: BaseDeepSourceClient
    ) -> None:
        source = PageSource([_page([1, 2], "c1", total=9)])

        result = await client.fetch_with_pagination(source, {"first": 2, "path": "x"})

        assert source.calls == [{"first": 2, "path": "x"}]
        assert result.pagination == {
            "has_more_pages": True,
            "next_cursor": "c1",
            "total_count": 9,
            "page_size": 2,
        }

    async def test_multi_page_walks_cursors_and_merges(
        self, client: BaseDeepSourceClient
    ) -> None:
        source = PageSource([_page([1], "c1"), _page([2], "c2"), _page([3], "c3")])

        result = await client.fetch_with_pagination(
            source, {"page_size": 1, "max_pages": 2}
        )

        assert source.calls == [{"first": 1}, {"first": 1, "after": "c1"}]
        assert list(result.items) == [1, 2]
        assert result.pagination["pages_fetched"] == 2
        assert result.pagination["limit_reached"] is True
        assert result.pagination["next_cursor"] == "c2"

    async def test_max_pages_is_capped_by_settings(
        self, client: BaseDeepSourceClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "DEEPSOURCE_MAX_PAGES", 2)
        source = PageSource([_page([1], "c1"), _page([2], "c2"), _page([3], "c3")])

        result = await client.fetch_with_pagination(
            source, {"first": 1, "max_pages": 5}
        )

        assert len(source.calls) == 2
        assert result.pagination["pages_fetched"] == 2
        assert result.pagination["limit_reached"] is True

    async def test_multi_page_stops_when_exhausted(
        self, client: BaseDeepSourceClient
    ) -> None:
        source = PageSource([_page([1], "c1"), _page([2], None, total=2)])

        result = await client.fetch_with_pagination(source, {"first": 1, "max_pages": 5})

        assert len(source.calls) == 2
        assert list(result.items) == [1, 2]
        assert result.total_count == 2
        assert "limit_reached" not in result.pagination

    async def test_backward_params_fetch_one_page(
        self, client: BaseDeepSourceClient
    ) -> None:
        source = PageSource([_page([1], "c1")])

        await client.fetch_with_pagination(
            source, {"last": 3, "before": "b", "max_pages": 4}
        )

        assert source.calls == [{"last": 3, "before": "b"}]


class TestParsingHelpers:
    def test_get_connection_tolerates_nulls(self) -> None:
        assert get_connection({"repository": None}, "repository", "issues") == {}
        assert get_connection(None, "repository") == {}

    def test_select_variables_drops_unset_values(self) -> None:
        params = {"first": 5, "after": "", "last": None, "path": "src"}

        assert select_variables(params, ("first", "after", "last")) == {"first": 5}

    def test_parse_paginated_connection_falls_back_to_item_count(self) -> None:
        response = parse_paginated_connection(
            {"pageInfo": {"hasNextPage": True, "endCursor": "e"}}, ["a", "b"]
        )

        assert response.total_count == 2
        assert response.page_info.end_cursor == "e"

    def test_viewer_projects_skip_repositories_without_dsn(self) -> None:
        payload = _viewer_payload(_repo("api", "dsn-api"), _repo("draft", None))

        projects = parse_viewer_projects(payload["data"])

        assert [project.key for project in projects] == ["dsn-api"]
        assert projects[0].repository.is_private is True
