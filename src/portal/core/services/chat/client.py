"""Chat platform client interface and the in-memory implementation."""

from __future__ import annotations

import copy
import itertools
from abc import ABC, abstractmethod
from typing import Any


class ChatError(Exception):
    """A chat platform call failed."""


class ChatClient(ABC):
    """Abstract interface for the chat platform's message API."""

    @abstractmethod
    async def publish_message(self, channel_id: str, payload: dict[str, Any]) -> str:
        """Post a message.

        Args:
            channel_id: Destination channel
            payload: Message body (content, embeds, components)

        Returns:
            The id of the created message

        Raises:
            ChatError: If the message could not be posted
        """
        pass

    @abstractmethod
    async def fetch_message(self, channel_id: str, message_id: str) -> dict[str, Any] | None:
        """Fetch a message, or None when it no longer exists.

        Raises:
            ChatError: For failures other than a missing message
        """
        pass

    @abstractmethod
    async def edit_message(
        self, channel_id: str, message_id: str, payload: dict[str, Any]
    ) -> None:
        """Replace the embeds and components of an existing message.

        Raises:
            ChatError: If the edit failed
        """
        pass

    async def aclose(self) -> None:
        return None


class InMemoryChatClient(ChatClient):
    """Keeps messages in a dict; used in development without a bot token and in tests."""

    def __init__(self):
        self._messages: dict[tuple[str, str], dict[str, Any]] = {}
        self._ids = itertools.count(1000)
        self.fail_publish = False
        self.fail_edit = False
        self.published: list[tuple[str, dict[str, Any]]] = []

    async def publish_message(self, channel_id: str, payload: dict[str, Any]) -> str:
        if self.fail_publish:
            raise ChatError("Publishing disabled")
        message_id = str(next(self._ids))
        stored = copy.deepcopy(payload)
        stored.update({"id": message_id, "channel_id": channel_id})
        self._messages[(channel_id, message_id)] = stored
        self.published.append((channel_id, stored))
        return message_id

    async def fetch_message(self, channel_id: str, message_id: str) -> dict[str, Any] | None:
        message = self._messages.get((channel_id, message_id))
        return copy.deepcopy(message) if message is not None else None

    async def edit_message(
        self, channel_id: str, message_id: str, payload: dict[str, Any]
    ) -> None:
        if self.fail_edit:
            raise ChatError("Editing disabled")
        key = (channel_id, message_id)
        if key not in self._messages:
            raise ChatError(f"Unknown message {message_id}")
        self._messages[key].update(copy.deepcopy(payload))

    def delete_message(self, channel_id: str, message_id: str) -> None:
        self._messages.pop((channel_id, message_id), None)

    def messages_in(self, channel_id: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(m) for (channel, _), m in self._messages.items() if channel == channel_id]
