"""Fire-and-forget audit notifications posted to a chat webhook."""

import asyncio
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import httpx
from loguru import logger

from src.portal.runtime.config.config_data import AuditConfig

_TITLES = {
    "login": "New portal login",
    "submission": "Whitelist application submitted",
    "resolution": "Whitelist application resolved",
}

_COLORS = {
    "login": 0x57F287,
    "submission": 0x5865F2,
    "resolution": 0xFEE75C,
}


def build_audit_embed(event_kind: str, payload: Mapping[str, Any], footer_text: str) -> dict:
    """Render an audit event as a single webhook embed."""
    fields = []
    thumbnail = None
    for name, value in payload.items():
        if name == "avatar_url":
            thumbnail = value
            continue
        if isinstance(value, bool):
            value = "Yes" if value else "No"
        fields.append({"name": name.replace("_", " ").capitalize(), "value": str(value)[:1024] or "-", "inline": True})

    embed: dict[str, Any] = {
        "title": _TITLES.get(event_kind, event_kind),
        "color": _COLORS.get(event_kind, 0x5865F2),
        "fields": fields,
        "footer": {"text": footer_text},
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if thumbnail:
        embed["thumbnail"] = {"url": thumbnail}
    return embed


class AuditNotifier:
    """Posts audit events to a webhook.

    Failures are logged and swallowed; callers are never blocked or broken by
    the audit channel. Without a webhook URL every call is a no-op.
    """

    def __init__(self, config: AuditConfig, http_client: httpx.AsyncClient | None = None):
        self._config = config
        self._http_client = http_client
        self._tasks: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self._config.webhook_url)

    async def notify(self, event_kind: str, payload: Mapping[str, Any]) -> None:
        if not self._config.webhook_url:
            return

        body = {"embeds": [build_audit_embed(event_kind, payload, self._config.footer_text)]}
        try:
            if self._http_client is not None:
                response = await self._http_client.post(self._config.webhook_url, json=body)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                    response = await client.post(self._config.webhook_url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.bind(event_kind=event_kind).warning("Audit notification failed: {}", type(e).__name__)

    def dispatch(self, event_kind: str, payload: Mapping[str, Any]) -> None:
        """Schedule ``notify`` in the background and return immediately."""
        if not self.enabled:
            return
        task = asyncio.get_running_loop().create_task(self.notify(event_kind, dict(payload)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def aclose(self) -> None:
        """Wait for in-flight notifications (used on shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
