"""HTTP transport shared by REST-based provider adapters."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any, TypeVar

import httpx

from ai_services.exceptions import GenerativeAIError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class GenerativeAIAPIClient:
    """Builds, sends and decodes requests against one provider's REST API.

    Responses are always sent in streaming mode; ``process_response_data``
    reads the body in full, ``process_response_stream`` consumes it as
    server-sent events. Both close the response when done.
    """

    provider = "api"

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._timeout = timeout
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout,
            transport=httpx.AsyncHTTPTransport(retries=max_retries),
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    def _request_kwargs(self, request_options: dict[str, Any] | None) -> dict[str, Any]:
        options = request_options or {}
        return {
            "headers": {**self._headers, **options.get("headers", {})},
            "timeout": options.get("timeout", self._timeout),
        }

    def create_get_request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> httpx.Request:
        return self._http.build_request(
            "GET", self._url(path), params=params, **self._request_kwargs(request_options)
        )

    def create_post_request(
        self,
        path: str,
        data: dict[str, Any],
        request_options: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Request:
        return self._http.build_request(
            "POST",
            self._url(path),
            json=data,
            params=params,
            **self._request_kwargs(request_options),
        )

    async def make_request(self, request: httpx.Request) -> httpx.Response:
        """Send the request and raise GenerativeAIError for failed responses."""
        logger.debug("%s %s %s", self.provider, request.method, request.url.path)
        try:
            response = await self._http.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise GenerativeAIError(self.provider, "request", e, retryable=True) from e
        except httpx.RequestError as e:
            raise GenerativeAIError(self.provider, "request", e) from e

        if response.status_code >= 400:
            await response.aread()
            await response.aclose()
            raise GenerativeAIError(
                self.provider,
                "request",
                self._error_message(response),
                retryable=response.status_code in _RETRYABLE_STATUS,
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text[:500]}"
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return f"HTTP {response.status_code}: {error['message']}"
        return f"HTTP {response.status_code}: {response.text[:500]}"

    async def process_response_data(
        self, response: httpx.Response, callback: Callable[[Any], T]
    ) -> T:
        try:
            await response.aread()
            try:
                data = response.json()
            except ValueError as e:
                raise self.create_response_exception("The response is not valid JSON.") from e
        finally:
            await response.aclose()
        if not isinstance(data, (dict, list)):
            raise self.create_response_exception("The response is not a JSON object or array.")
        return callback(data)

    async def process_response_stream(
        self,
        response: httpx.Response,
        callback: Callable[[dict[str, Any], T | None], T],
    ) -> AsyncIterator[T]:
        """Yield the callback result for every server-sent event.

        The callback receives the event data and its own result for the
        previous event (None for the first one).
        """
        previous: T | None = None
        try:
            async for line in response.aiter_lines():
                line = line.strip()
                if not line.startswith("data:"):
                    continue
                payload = line[5:].strip()
                if not payload or payload == "[DONE]":
                    continue
                try:
                    data = json.loads(payload)
                except json.JSONDecodeError as e:
                    raise self.create_response_exception(
                        "The response stream contains invalid JSON."
                    ) from e
                previous = callback(data, previous)
                yield previous
        finally:
            await response.aclose()

    def create_missing_response_key_exception(self, key: str) -> GenerativeAIError:
        return self.create_response_exception(f"The response is missing the {key!r} key.")

    def create_response_exception(self, message: str) -> GenerativeAIError:
        return GenerativeAIError(self.provider, "response", message)

    async def aclose(self) -> None:
        await self._http.aclose()
