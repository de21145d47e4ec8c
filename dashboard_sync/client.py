"""Async HTTP access to the learning platform API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from .config import Settings, get_settings
from .errors import NetworkError, SchemaError

logger = logging.getLogger(__name__)


class DashboardApiClient:
    """Thin wrapper around ``httpx.AsyncClient`` that speaks the API's error model.

    Non-2xx responses and transport failures raise ``NetworkError``; bodies that
    are not JSON raise ``SchemaError``. Envelope validation is left to callers.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.api_base_url.rstrip("/"),
            timeout=self._settings.request_timeout_seconds,
            headers={"User-Agent": self._settings.user_agent, "Accept": "application/json"},
            transport=transport,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    async def get_json(self, path: str, *, params: Optional[Mapping[str, str]] = None) -> Any:
        try:
            response = await self._client.get(path, params=dict(params or {}))
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", path, exc)
            raise NetworkError(None, f"Network error: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "Request to %s returned HTTP %s",
                path,
                response.status_code,
                extra={"status_code": response.status_code},
            )
            raise NetworkError(response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise SchemaError(f"Response body is not valid JSON: {exc}") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "DashboardApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def user_params(identity: str, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    params = {"user_id": identity}
    if extra:
        params.update(extra)
    return params


__all__ = ["DashboardApiClient", "user_params"]
