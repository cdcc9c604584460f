"""Server-side registry of AI services."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ai_services.cache import TTLCache, cached_service
from ai_services.config.models import AIServicesConfig, ServiceSettings
from ai_services.contracts import GenerativeAIService
from ai_services.exceptions import ServiceNotAvailableError
from ai_services.types import AICapability, ServiceMetadata
from ai_services.util.models import has_capabilities, normalize_capabilities

logger = logging.getLogger(__name__)

ServiceCreator = Callable[[str, ServiceSettings], GenerativeAIService]


@dataclass
class _Registration:
    slug: str
    name: str
    creator: ServiceCreator
    allow_override: bool


class ServicesRegistry:
    """Registers services by slug and hands out the available ones.

    A service counts as available once the environment variable named by its
    settings holds an API key and the service reports itself connected.
    Instances are created lazily and wrapped in the caching decorator when
    caching is enabled.
    """

    def __init__(self, config: AIServicesConfig | None = None) -> None:
        self._config = config or AIServicesConfig()
        self._cache = (
            TTLCache(self._config.cache.ttl_seconds, self._config.cache.max_size)
            if self._config.cache.enabled
            else None
        )
        self._registrations: dict[str, _Registration] = {}
        self._instances: dict[str, GenerativeAIService] = {}

    def register_service(
        self,
        slug: str,
        creator: ServiceCreator,
        name: str | None = None,
        allow_override: bool = True,
    ) -> None:
        existing = self._registrations.get(slug)
        if existing is not None and not existing.allow_override:
            raise ValueError(f"Service {slug!r} is already registered and cannot be overridden.")
        self._registrations[slug] = _Registration(slug, name or slug, creator, allow_override)
        self._instances.pop(slug, None)

    def is_service_registered(self, slug: str) -> bool:
        return slug in self._registrations

    def get_registered_service_slugs(self) -> list[str]:
        return list(self._registrations)

    def get_service_name(self, slug: str) -> str:
        if slug not in self._registrations:
            raise ServiceNotAvailableError(slug)
        return self._registrations[slug].name

    def get_settings(self, slug: str) -> ServiceSettings:
        settings = self._config.services.get(slug)
        if settings is None:
            settings = ServiceSettings(api_key_env=f"{slug.upper().replace('-', '_')}_API_KEY")
        return settings

    def get_api_key(self, slug: str) -> str | None:
        return os.environ.get(self.get_settings(slug).api_key_env) or None

    def _get_service(self, slug: str) -> GenerativeAIService | None:
        registration = self._registrations.get(slug)
        api_key = self.get_api_key(slug)
        if registration is None or api_key is None:
            return None
        if slug not in self._instances:
            service = registration.creator(api_key, self.get_settings(slug))
            if self._cache is not None:
                service = cached_service(service, self._cache)
            self._instances[slug] = service
        return self._instances[slug]

    async def is_service_available(self, slug: str) -> bool:
        service = self._get_service(slug)
        if service is None:
            return False
        return await self._is_connected(slug, service)

    async def _is_connected(self, slug: str, service: GenerativeAIService) -> bool:
        connected = await service.is_connected()
        if not connected:
            logger.warning("Service %s has an API key but is not connected", slug)
        return connected

    async def _first_available(
        self,
        slugs: Iterable[str] | None,
        capabilities: Iterable[AICapability | str] | None,
    ) -> GenerativeAIService | None:
        for slug in slugs if slugs is not None else self._registrations:
            if not self.is_service_registered(slug):
                continue
            service = self._get_service(slug)
            if service is None:
                continue
            if capabilities and not has_capabilities(service.get_capabilities(), capabilities):
                continue
            if await service.is_connected():
                return service
        return None

    async def has_available_services(
        self,
        slugs: Iterable[str] | None = None,
        capabilities: Iterable[AICapability | str] | None = None,
    ) -> bool:
        return await self._first_available(slugs, capabilities) is not None

    async def get_available_service(
        self,
        slug: str | None = None,
        *,
        slugs: Iterable[str] | None = None,
        capabilities: Iterable[AICapability | str] | None = None,
    ) -> GenerativeAIService:
        """Return a specific service by slug, or the first available one.

        Raises ``ServiceNotAvailableError`` when nothing matches.
        """
        if slug is not None:
            service = self._get_service(slug)
            if service is None or not await self._is_connected(slug, service):
                raise ServiceNotAvailableError(slug)
            return service

        service = await self._first_available(slugs, capabilities)
        if service is None:
            raise ServiceNotAvailableError(
                capabilities=sorted(c.value for c in normalize_capabilities(capabilities))
            )
        return service

    async def describe_services(self) -> list[ServiceMetadata]:
        """Describe every registered service, as served to the client datastore."""
        described: list[ServiceMetadata] = []
        for slug, registration in self._registrations.items():
            service = self._get_service(slug)
            if service is None:
                described.append(ServiceMetadata(slug=slug, name=registration.name))
                continue
            available = await service.is_connected()
            described.append(
                ServiceMetadata(
                    slug=slug,
                    name=registration.name,
                    is_available=available,
                    capabilities=service.get_capabilities(),
                    available_models=await service.list_models() if available else {},
                )
            )
        return described


def create_default_registry(config: AIServicesConfig | None = None) -> ServicesRegistry:
    """Registry with the google, openai and anthropic services."""
    from ai_services.providers import SERVICE_NAMES, create_service

    registry = ServicesRegistry(config)
    for slug, name in SERVICE_NAMES.items():
        registry.register_service(
            slug,
            lambda api_key, settings, slug=slug: create_service(slug, api_key, settings),
            name=name,
        )
    return registry
