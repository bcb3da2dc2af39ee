"""
Conversation driver for the chat client.

Keeps the ordered transcript for one conversation, sends each turn with the
full history, records analytics and feedback, and surfaces failures as an
error message instead of raising.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from .analytics import AnalyticsTracker
from .api_client import ChatApiClient
from .exceptions import ChatAssistError
from .schemas import ChatMessage, ChatRequest, FeedbackRating, MessagePayload

logger = logging.getLogger(__name__)


class ChatConversation:
    """Transcript, session id and analytics for one conversation."""

    def __init__(self, api_client: ChatApiClient, tracker: Optional[AnalyticsTracker] = None):
        self.api_client = api_client
        self.analytics = tracker or AnalyticsTracker()
        self.messages: List[ChatMessage] = []
        self.session_id: Optional[str] = None
        self.error: Optional[str] = None

    @staticmethod
    def _new_message(role: str, content: str, **kwargs) -> ChatMessage:
        return ChatMessage(
            id=uuid.uuid4().hex,
            role=role,
            content=content,
            timestamp=datetime.now(timezone.utc),
            **kwargs,
        )

    def send_message(self, content: str, department: str, locale: str = "en_US") -> Optional[ChatMessage]:
        """
        Send a user turn and append the assistant answer.

        Args:
            content: User message text
            department: Department the question is scoped to
            locale: Client locale

        Returns:
            The assistant message, or None when the turn failed (see self.error)
        """
        self.error = None

        history = [MessagePayload(role=message.role, content=message.content) for message in self.messages]
        history.append(MessagePayload(role="user", content=content))

        self.messages.append(self._new_message("user", content))

        try:
            response = self.api_client.send_chat_message(
                ChatRequest(
                    messages=history,
                    department=department,
                    session_id=self.session_id,
                    locale=locale,
                )
            )
        except (ChatAssistError, ValueError, OSError) as e:
            self.error = str(e) or "Failed to get response"
            logger.error(f"[conversation] Chat error: {self.error}")
            return None

        if response.analytics.session_id:
            self.session_id = response.analytics.session_id

        self.analytics.track_analytics(response.analytics)

        assistant_message = self._new_message(
            "assistant",
            response.content,
            sources=response.sources,
            analytics=response.analytics,
        )
        self.messages.append(assistant_message)
        self.api_client.save_analytics_in_background(response.analytics)
        return assistant_message

    def handle_feedback(self, message_id: str, rating: FeedbackRating) -> None:
        """
        Rate a message; a later rating for the same message replaces the earlier one.
        """
        for message in self.messages:
            if message.id == message_id:
                message.feedback = rating
        self.analytics.track_feedback(message_id, rating)

    def clear_messages(self) -> None:
        """Start a new conversation."""
        self.messages = []
        self.session_id = None
        self.error = None
        self.api_client.clear_session_id()
