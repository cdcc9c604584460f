"""Caching decorators for services.

``TTLCache`` is a short-lived in-memory cache; ``CachedAIService`` wraps a
service so its model list is only fetched once per TTL.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from ai_services.contracts import GenerativeAIModel, GenerativeAIService, WithAPIClient
from ai_services.types import AICapability, ModelMetadata, ModelParams

logger = logging.getLogger(__name__)

__all__ = [
    "CachedAIService",
    "CachedAIServiceWithAPIClient",
    "TTLCache",
    "cached_service",
]


class TTLCache:
    """Simple asyncio-safe TTL cache with a bounded number of entries."""

    def __init__(self, ttl_seconds: float = 3600, max_size: int = 128) -> None:
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._store: dict[str, tuple[float, Any]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._store)

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._store.get(key)
            if not entry:
                return None
            ts, val = entry
            if time.monotonic() - ts > self._ttl:
                # expired
                del self._store[key]
                return None
            return val

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            if key not in self._store and len(self._store) >= self._max_size:
                # Evict oldest
                oldest_key = min(self._store.items(), key=lambda kv: kv[1][0])[0]
                self._store.pop(oldest_key, None)
            self._store[key] = (time.monotonic(), value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()


class CachedAIService(GenerativeAIService):
    """Forwards the service contract, caching ``list_models`` per service slug.

    ``is_connected`` goes through the cached model list, so a service is
    only probed once per TTL as well.
    """

    def __init__(self, service: GenerativeAIService, cache: TTLCache | None = None) -> None:
        self._service = service
        self._cache = cache if cache is not None else TTLCache()

    @property
    def wrapped(self) -> GenerativeAIService:
        return self._service

    def _cache_key(self) -> str:
        return f"{self._service.get_service_slug()}:models"

    def get_service_slug(self) -> str:
        return self._service.get_service_slug()

    def get_capabilities(self) -> list[AICapability]:
        return self._service.get_capabilities()

    async def list_models(
        self, request_options: dict[str, Any] | None = None
    ) -> dict[str, ModelMetadata]:
        key = self._cache_key()
        models = await self._cache.get(key)
        if models is not None:
            return models
        models = await self._service.list_models(request_options)
        await self._cache.set(key, models)
        logger.debug("Cached %d models for %s", len(models), self.get_service_slug())
        return models

    def get_model(
        self,
        model_params: ModelParams | dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> GenerativeAIModel:
        return self._service.get_model(model_params, request_options)

    async def clear_cache(self) -> None:
        await self._cache.delete(self._cache_key())


class CachedAIServiceWithAPIClient(CachedAIService, WithAPIClient):
    """``CachedAIService`` for services that expose their API client."""

    def __init__(self, service: GenerativeAIService, cache: TTLCache | None = None) -> None:
        if not isinstance(service, WithAPIClient):
            raise TypeError("The service must expose an API client via get_api_client().")
        super().__init__(service, cache)

    def get_api_client(self) -> Any:
        return self._service.get_api_client()  # type: ignore[attr-defined]


def cached_service(service: GenerativeAIService, cache: TTLCache | None = None) -> CachedAIService:
    """Wrap ``service`` in the matching caching decorator."""
    if isinstance(service, WithAPIClient):
        return CachedAIServiceWithAPIClient(service, cache)
    return CachedAIService(service, cache)
