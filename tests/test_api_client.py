"""Tests for the shared httpx transport."""

import json

import httpx
import pytest

from ai_services.api import GenerativeAIAPIClient
from ai_services.exceptions import GenerativeAIError

from conftest import sse_body


def _client(mock_http_client, handler, **kwargs):
    return GenerativeAIAPIClient(
        "https://api.example.com/v1",
        headers={"x-api-key": "secret"},
        http_client=mock_http_client(handler),
        **kwargs,
    )


class TestRequests:
    def test_post_request_has_headers_and_json(self, mock_http_client):
        api = _client(mock_http_client, lambda r: httpx.Response(200))
        request = api.create_post_request("models/x:run", {"a": 1}, {"headers": {"X-Trace": "1"}})
        assert str(request.url) == "https://api.example.com/v1/models/x:run"
        assert request.headers["x-api-key"] == "secret"
        assert request.headers["X-Trace"] == "1"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"a": 1}

    def test_get_request_query_params(self, mock_http_client):
        api = _client(mock_http_client, lambda r: httpx.Response(200))
        request = api.create_get_request("models", {"pageSize": 10})
        assert request.url.params["pageSize"] == "10"

    def test_absolute_url_kept(self, mock_http_client):
        api = _client(mock_http_client, lambda r: httpx.Response(200))
        request = api.create_get_request("https://other.example.com/x")
        assert request.url.host == "other.example.com"


class TestMakeRequest:
    @pytest.mark.asyncio
    async def test_success_returns_response(self, mock_http_client):
        api = _client(mock_http_client, lambda r: httpx.Response(200, json={"ok": True}))
        response = await api.make_request(api.create_get_request("ping"))
        data = await api.process_response_data(response, lambda d: d)
        assert data == {"ok": True}

    @pytest.mark.asyncio
    async def test_rate_limit_is_retryable(self, mock_http_client):
        api = _client(
            mock_http_client,
            lambda r: httpx.Response(429, json={"error": {"message": "Quota exceeded"}}),
        )
        with pytest.raises(GenerativeAIError) as exc_info:
            await api.make_request(api.create_get_request("ping"))
        assert exc_info.value.retryable
        assert exc_info.value.status_code == 429
        assert "Quota exceeded" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_bad_request_not_retryable(self, mock_http_client):
        api = _client(mock_http_client, lambda r: httpx.Response(400, text="nope"))
        with pytest.raises(GenerativeAIError) as exc_info:
            await api.make_request(api.create_get_request("ping"))
        assert not exc_info.value.retryable
        assert "HTTP 400: nope" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_is_retryable(self, mock_http_client):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        api = _client(mock_http_client, handler)
        with pytest.raises(GenerativeAIError) as exc_info:
            await api.make_request(api.create_get_request("ping"))
        assert exc_info.value.retryable
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    @pytest.mark.asyncio
    async def test_connection_error(self, mock_http_client):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        api = _client(mock_http_client, handler)
        with pytest.raises(GenerativeAIError) as exc_info:
            await api.make_request(api.create_get_request("ping"))
        assert not exc_info.value.retryable
        assert exc_info.value.provider == "api"


class TestResponseProcessing:
    @pytest.mark.asyncio
    async def test_invalid_json(self, mock_http_client):
        api = _client(mock_http_client, lambda r: httpx.Response(200, text="<html>"))
        response = await api.make_request(api.create_get_request("ping"))
        with pytest.raises(GenerativeAIError, match="not valid JSON"):
            await api.process_response_data(response, lambda d: d)

    @pytest.mark.asyncio
    async def test_stream_passes_previous_result(self, mock_http_client):
        body = sse_body({"n": 1}, {"n": 2}) + b"data: [DONE]\n\n"
        api = _client(mock_http_client, lambda r: httpx.Response(200, content=body))
        response = await api.make_request(api.create_get_request("stream"))

        seen = []

        def callback(data, previous):
            seen.append(previous)
            return data["n"]

        results = [item async for item in api.process_response_stream(response, callback)]
        assert results == [1, 2]
        assert seen == [None, 1]

    @pytest.mark.asyncio
    async def test_stream_invalid_json(self, mock_http_client):
        api = _client(mock_http_client, lambda r: httpx.Response(200, content=b"data: {oops\n\n"))
        response = await api.make_request(api.create_get_request("stream"))
        with pytest.raises(GenerativeAIError, match="invalid JSON"):
            async for _ in api.process_response_stream(response, lambda d, p: d):
                pass

    def test_missing_key_exception(self):
        api = GenerativeAIAPIClient("https://api.example.com")
        error = api.create_missing_response_key_exception("candidates")
        assert error.operation == "response"
        assert "'candidates'" in str(error)
