"""Client datastore: services and settings served by the REST routes."""

from __future__ import annotations

import httpx

from ai_services.config.models import StoreConfig
from ai_services.store.client import AIServicesAPIClient
from ai_services.store.remote import RemoteGenerativeAIModel, RemoteGenerativeAIService
from ai_services.store.services import ServicesStore
from ai_services.store.settings import SettingsStore


class AIStore:
    """The services and settings stores over one HTTP client."""

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api = AIServicesAPIClient(
            base_url, headers=headers, timeout=timeout, http_client=http_client
        )
        self.services = ServicesStore(self.api)
        self.settings = SettingsStore(self.api)

    @classmethod
    def from_config(cls, config: StoreConfig, **kwargs) -> AIStore:
        return cls(config.base_url, timeout=config.timeout, **kwargs)

    async def aclose(self) -> None:
        await self.api.aclose()


__all__ = [
    "AIServicesAPIClient",
    "AIStore",
    "RemoteGenerativeAIModel",
    "RemoteGenerativeAIService",
    "ServicesStore",
    "SettingsStore",
]
