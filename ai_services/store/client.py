"""HTTP client for the services REST routes."""

from __future__ import annotations

import httpx

from ai_services.api import GenerativeAIAPIClient

ROUTE_NAMESPACE = "ai-services/v1"


class AIServicesAPIClient(GenerativeAIAPIClient):
    """Talks to a server exposing the ``/ai-services/v1`` routes."""

    provider = "ai_services"

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            f"{base_url.rstrip('/')}/{ROUTE_NAMESPACE}",
            headers=headers,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )
