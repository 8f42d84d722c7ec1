"""Discord channel webhook client over httpx."""

from __future__ import annotations

from typing import Any

import httpx

from hookpost.config import WebhookConfig
from hookpost.errors import RemoteFailure, RemoteNotFound
from hookpost.models import Payload, payload_from_wire
from hookpost.remote.base import ChannelClient
from hookpost.utils.logging import get_logger

log = get_logger(__name__)


def _message_url(url: str, message_id: str) -> str:
    return f"{url.rstrip('/')}/messages/{message_id}"


class DiscordWebhookClient(ChannelClient):
    def __init__(
        self,
        config: WebhookConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or WebhookConfig()
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=self._config.timeout,
            headers={"User-Agent": self._config.user_agent},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    async def fetch_message(self, url: str, message_id: str) -> Payload:
        resp = await self._request("GET", _message_url(url, message_id))
        try:
            return payload_from_wire(self._json(resp))
        except (AttributeError, TypeError, ValueError) as e:
            raise RemoteFailure(f"Webhook returned a malformed message: {e}") from e

    async def create_message(self, url: str, payload: Payload) -> str:
        resp = await self._request(
            "POST",
            url.rstrip("/"),
            params={"wait": "true"},
            json=payload.to_wire(),
        )
        data = self._json(resp)
        message_id = data.get("id")
        if not message_id:
            raise RemoteFailure("Webhook did not acknowledge the created message")
        return str(message_id)

    async def patch_message(self, url: str, message_id: str, payload: Payload) -> None:
        await self._request("PATCH", _message_url(url, message_id), json=payload.to_wire())

    async def delete_message(self, url: str, message_id: str) -> None:
        await self._request("DELETE", _message_url(url, message_id))

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._http_client.request(method, url, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise RemoteNotFound("Message not found", status_code=status) from e
            log.debug("webhook_http_error", method=method, url=url, status=status)
            raise RemoteFailure(f"Webhook returned HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            log.debug("webhook_transport_error", method=method, url=url, error=str(e))
            raise RemoteFailure(f"Webhook unreachable: {e.__class__.__name__}") from e

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteFailure("Webhook returned an unreadable body") from e
        if not isinstance(data, dict):
            raise RemoteFailure("Webhook returned an unexpected body")
        return data
