"""Client datastore of plugin settings."""

from __future__ import annotations

import logging
from typing import Any

from ai_services.store.client import AIServicesAPIClient

logger = logging.getLogger(__name__)


class SettingsStore:
    """Settings fetched from the server, with local edits tracked until saved."""

    def __init__(self, api: AIServicesAPIClient) -> None:
        self._api = api
        self._saved: dict[str, Any] | None = None
        self._edits: dict[str, Any] = {}

    async def fetch_settings(self) -> dict[str, Any]:
        request = self._api.create_get_request("settings")
        response = await self._api.make_request(request)
        self._saved = await self._api.process_response_data(response, self._parse_settings)
        self._edits = {}
        return dict(self._saved)

    def _parse_settings(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise self._api.create_response_exception("The settings response is not an object.")
        return data

    def get_settings(self) -> dict[str, Any] | None:
        if self._saved is None:
            return None
        return {**self._saved, **self._edits}

    def get_setting(self, name: str) -> Any:
        if name in self._edits:
            return self._edits[name]
        if self._saved is None:
            return None
        return self._saved.get(name)

    def set_setting(self, name: str, value: Any) -> None:
        if self._saved is not None and name in self._saved and self._saved[name] == value:
            self._edits.pop(name, None)
            return
        self._edits[name] = value

    def has_modified_settings(self) -> bool:
        return bool(self._edits)

    async def save_settings(self) -> dict[str, Any] | None:
        """Send the modified settings only; a no-op when nothing changed."""
        if not self._edits:
            return self.get_settings()
        request = self._api.create_post_request("settings", dict(self._edits))
        response = await self._api.make_request(request)
        saved = await self._api.process_response_data(response, self._parse_settings)
        logger.debug("Saved %d settings", len(self._edits))
        self._saved = {**(self._saved or {}), **saved}
        self._edits = {}
        return dict(self._saved)
