"""REST client for the Google AI (Gemini) API."""

from __future__ import annotations

from typing import Any

import httpx

from ai_services.api import GenerativeAIAPIClient

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_API_VERSION = "v1beta"


class GoogleAIAPIClient(GenerativeAIAPIClient):
    provider = "google"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 60.0,
        max_retries: int = 2,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            f"{(base_url or DEFAULT_BASE_URL).rstrip('/')}/{api_version}",
            headers={"x-goog-api-key": api_key},
            timeout=timeout,
            max_retries=max_retries,
            http_client=http_client,
        )

    def create_generate_content_request(
        self,
        model: str,
        params: dict[str, Any],
        request_options: dict[str, Any] | None = None,
    ) -> httpx.Request:
        return self.create_post_request(f"{model}:generateContent", params, request_options)

    def create_stream_generate_content_request(
        self,
        model: str,
        params: dict[str, Any],
        request_options: dict[str, Any] | None = None,
    ) -> httpx.Request:
        return self.create_post_request(
            f"{model}:streamGenerateContent",
            params,
            request_options,
            params={"alt": "sse"},
        )

    def create_list_models_request(
        self, request_options: dict[str, Any] | None = None
    ) -> httpx.Request:
        return self.create_get_request("models", {"pageSize": 1000}, request_options)
