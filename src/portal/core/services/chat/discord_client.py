"""Discord REST implementation of the chat client."""

from typing import Any

import httpx
from loguru import logger

from src.portal.core.services.chat.client import ChatClient, ChatError
from src.portal.runtime.config.config_data import DiscordConfig


class DiscordChatClient(ChatClient):
    """Bot-token client for the Discord REST API (v10)."""

    def __init__(self, config: DiscordConfig, http_client: httpx.AsyncClient | None = None):
        if not config.bot_token:
            raise ValueError("Discord bot token not configured")
        self._config = config
        self._client = http_client or httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=config.timeout_seconds,
        )
        self._headers = {
            "Authorization": f"Bot {config.bot_token}",
            "User-Agent": "DiscordBot (whitelist-portal, 1.0)",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            raise ChatError(f"{method} {path} failed: {type(e).__name__}") from e
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ChatError(f"Malformed response body from HTTP {response.status_code}") from e

    async def publish_message(self, channel_id: str, payload: dict[str, Any]) -> str:
        response = await self._request("POST", f"/channels/{channel_id}/messages", json=payload)
        if response.is_error:
            logger.bind(channel_id=channel_id, status=response.status_code).warning(
                "Discord refused message"
            )
            raise ChatError(f"Publishing failed with HTTP {response.status_code}")
        body = self._json(response)
        if not isinstance(body, dict) or not body.get("id"):
            raise ChatError("Publishing returned no message id")
        return str(body["id"])

    async def fetch_message(self, channel_id: str, message_id: str) -> dict[str, Any] | None:
        response = await self._request("GET", f"/channels/{channel_id}/messages/{message_id}")
        if response.status_code == 404:
            return None
        if response.is_error:
            raise ChatError(f"Fetching message failed with HTTP {response.status_code}")
        body = self._json(response)
        if not isinstance(body, dict):
            raise ChatError("Fetched message is not an object")
        return body

    async def edit_message(
        self, channel_id: str, message_id: str, payload: dict[str, Any]
    ) -> None:
        response = await self._request(
            "PATCH", f"/channels/{channel_id}/messages/{message_id}", json=payload
        )
        if response.is_error:
            raise ChatError(f"Editing message failed with HTTP {response.status_code}")

    async def aclose(self) -> None:
        await self._client.aclose()
