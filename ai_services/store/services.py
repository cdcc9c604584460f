"""Client datastore of the services registered on the server."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ai_services.store.client import AIServicesAPIClient
from ai_services.store.remote import RemoteGenerativeAIService
from ai_services.types import AICapability, ServiceMetadata
from ai_services.util.models import has_capabilities

logger = logging.getLogger(__name__)


class ServicesStore:
    """Services keyed by slug, fetched once from the server.

    Every selector returns ``None`` while the services have not been loaded
    yet, so callers can tell "not loaded" apart from "not available".
    """

    def __init__(self, api: AIServicesAPIClient) -> None:
        self._api = api
        self._services: dict[str, ServiceMetadata] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._services is not None

    async def fetch_services(self, force: bool = False) -> dict[str, ServiceMetadata]:
        if self._services is not None and not force:
            return self._services
        request = self._api.create_get_request("services")
        response = await self._api.make_request(request)
        services = await self._api.process_response_data(response, self._parse_services)
        self.receive_services(services)
        logger.debug("Received %d services", len(services))
        return self._services  # type: ignore[return-value]

    def _parse_services(self, data: Any) -> list[ServiceMetadata]:
        if not isinstance(data, list):
            raise self._api.create_response_exception("The services response is not a list.")
        return [ServiceMetadata.model_validate(item) for item in data]

    def receive_services(self, services: Iterable[ServiceMetadata | dict[str, Any]]) -> None:
        received: dict[str, ServiceMetadata] = {}
        for service in services:
            metadata = (
                service if isinstance(service, ServiceMetadata) else ServiceMetadata.model_validate(service)
            )
            received[metadata.slug] = metadata
        self._services = received

    def get_services(self) -> dict[str, ServiceMetadata] | None:
        return self._services

    def is_service_registered(self, slug: str) -> bool | None:
        if self._services is None:
            return None
        return slug in self._services

    def is_service_available(self, slug: str) -> bool | None:
        if self._services is None:
            return None
        return slug in self._services and self._services[slug].is_available

    def _get_available_service_slug(
        self,
        slugs: Iterable[str] | None,
        capabilities: Iterable[AICapability | str] | None,
    ) -> str | None:
        assert self._services is not None
        for slug in slugs if slugs is not None else list(self._services):
            service = self._services.get(slug)
            if service is None or not service.is_available:
                continue
            if capabilities and not has_capabilities(service.capabilities, capabilities):
                continue
            return slug
        return None

    def has_available_services(
        self,
        slugs: Iterable[str] | None = None,
        capabilities: Iterable[AICapability | str] | None = None,
    ) -> bool | None:
        if self._services is None:
            return None
        return self._get_available_service_slug(slugs, capabilities) is not None

    def get_available_service(
        self,
        slug: str | None = None,
        *,
        slugs: Iterable[str] | None = None,
        capabilities: Iterable[AICapability | str] | None = None,
    ) -> RemoteGenerativeAIService | None:
        """Return the service for ``slug``, or the first one matching the criteria.

        ``None`` when the services are not loaded yet or nothing matches.
        """
        if self._services is None:
            return None
        if slug is None:
            slug = self._get_available_service_slug(slugs, capabilities)
        elif not self.is_service_available(slug):
            return None
        if slug is None:
            return None
        return RemoteGenerativeAIService(self._services[slug], self._api)
