"""
Thin async client for the Cal.com scheduling API.

Both API generations are used: v1 authenticates with an ``apiKey`` query
parameter, v2 with a Bearer token plus a ``cal-api-version`` header. Every
call opens its own ``httpx.AsyncClient``; there is no shared pool.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from lounge_booking.config import AppConfig, settings
from lounge_booking.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class ProviderResponse:
    """Status, decoded body and reason phrase of one provider call."""

    status_code: int
    payload: Any
    reason: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        logger.warning(
            "Non-JSON body from provider (status %s): %.200s",
            response.status_code, response.text,
        )
        return {}


class CalClient:
    """Request-per-call client for the Cal.com v1 and v2 endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.cal.com",
        api_version: str = "2024-08-13",
        timezone: str = "Africa/Johannesburg",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("Server configuration error.")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timezone = timezone
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        config: Optional[AppConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "CalClient":
        """Build a client from application config.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        cal = (config or settings).cal
        if not cal.api_key:
            logger.error("Cal.com API key missing in environment variables")
            raise ConfigurationError("Server configuration error.")
        return cls(
            api_key=cal.api_key,
            base_url=cal.base_url,
            api_version=cal.api_version,
            timezone=cal.timezone,
            timeout=cal.request_timeout_sec,
            transport=transport,
        )

    def _v2_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "cal-api-version": self.api_version,
            "Authorization": f"Bearer {self._api_key}",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> ProviderResponse:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            try:
                response = await client.request(
                    method, path, params=params, headers=headers, json=json
                )
            except httpx.HTTPError as exc:
                logger.error("Cal.com %s %s failed: %s", method, path, exc)
                raise UpstreamError(
                    f"Could not reach the scheduling provider: {exc}",
                    status_code=502,
                    details=str(exc),
                ) from exc

        payload = _decode(response)
        logger.debug("Cal.com %s %s -> %s", method, path, response.status_code)
        return ProviderResponse(
            status_code=response.status_code,
            payload=payload,
            reason=response.reason_phrase,
        )

    async def get_event_type_v1(self, event_type_id: str) -> ProviderResponse:
        return await self._request(
            "GET",
            f"/v1/event-types/{event_type_id}",
            params={"apiKey": self._api_key},
            headers={"Content-Type": "application/json"},
        )

    async def get_event_type_v2(self, event_type_id: str) -> ProviderResponse:
        return await self._request(
            "GET", f"/v2/event-types/{event_type_id}", headers=self._v2_headers()
        )

    async def list_slots(
        self, event_type_id: str, start_time: str, end_time: str
    ) -> ProviderResponse:
        """List every slot in the window. The provider's seats filter is never sent."""
        return await self._request(
            "GET",
            "/v1/slots",
            params={
                "apiKey": self._api_key,
                "eventTypeId": event_type_id,
                "startTime": start_time,
                "endTime": end_time,
                "timezone": self.timezone,
            },
            headers={"Content-Type": "application/json"},
        )

    async def create_booking(self, payload: dict[str, Any]) -> ProviderResponse:
        return await self._request(
            "POST", "/v2/bookings", headers=self._v2_headers(), json=payload
        )
