"""
Enterprise chat assistant.

Shared library for the chat Lambdas and the chat client:
- Edge handling: ChatRequestHandler over pluggable upstream providers
- Client: AuthClient, ChatApiClient, ChatConversation
- Analytics: AnalyticsTracker, aggregate_analytics
"""

from .analytics import AnalyticsTracker, aggregate_analytics
from .api_client import ChatApiClient
from .auth_client import AuthClient
from .chat_handler import ChatRequestHandler
from .config import ChatConfig, load_config, validate_config
from .conversation import ChatConversation
from .storage import FileStorage, MemoryStorage, SessionIdStore, SessionStore


def build_client(config: ChatConfig = None, http=None) -> ChatConversation:
    """
    Wire up a conversation with persistent auth storage and tab-scoped session ids.

    Args:
        config: Configuration holder (defaults to load_config())
        http: Optional requests session shared by both clients

    Returns:
        ChatConversation ready to send messages
    """
    config = config or load_config()
    session_store = SessionStore(FileStorage(config.storage_dir), config.token_storage_key)
    session_ids = SessionIdStore(MemoryStorage(), config.session_storage_key)
    auth_client = AuthClient(config, session_store, http=http)
    api_client = ChatApiClient(config, auth_client, session_ids, http=auth_client.http)
    return ChatConversation(api_client)


__all__ = [
    "AnalyticsTracker",
    "AuthClient",
    "ChatApiClient",
    "ChatConfig",
    "ChatConversation",
    "ChatRequestHandler",
    "FileStorage",
    "MemoryStorage",
    "SessionIdStore",
    "SessionStore",
    "aggregate_analytics",
    "build_client",
    "load_config",
    "validate_config",
]
