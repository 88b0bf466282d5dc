from .client import ChatClient, ChatError, InMemoryChatClient
from .discord_client import DiscordChatClient

__all__ = ["ChatClient", "ChatError", "DiscordChatClient", "InMemoryChatClient"]
