"""
Pydantic schemas for the chat assistant.

Defines the chat wire contract, analytics records, auth session records and
the client-side transcript and feedback records.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


SourceType = Literal["policy", "document", "link"]
FeedbackRating = Literal["like", "dislike"]


# ============================================================================
# Chat Wire Contract
# ============================================================================


class MessagePayload(BaseModel):
    """A single message as sent over the wire."""

    role: str = Field(..., description="Message role (user, assistant, system)")
    content: str = Field(default="", description="Message text")


class Source(BaseModel):
    """
    A source cited alongside an answer.

    Attributes:
        title: Display title of the source
        type: Source kind (policy, document, link)
        reference: Optional document reference code
    """

    title: str
    type: SourceType
    reference: Optional[str] = None


class AnalyticsMetadata(BaseModel):
    """
    Per-turn analytics record produced by the edge handler.

    Attributes:
        session_id: Conversation correlation id
        execution_time_ms: Wall-clock time spent handling the request
        invocation_count: Upstream invocations made for this turn
        input_tokens: Prompt tokens (provider-reported or estimated)
        output_tokens: Completion tokens (provider-reported or estimated)
        total_tokens: input_tokens + output_tokens
        model: Upstream model id
        department: Department the question was scoped to
        timestamp: ISO 8601 time the record was produced
        locale: Client locale
        rag_mode: Optional retrieval mode passed through from the request
        error: True on records produced for failed requests
    """

    session_id: str
    execution_time_ms: int = 0
    invocation_count: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    model: str = ""
    department: str = "General"
    timestamp: str
    locale: str = "en_US"
    rag_mode: Optional[str] = None
    error: Optional[bool] = None

    class Config:
        """Pydantic configuration."""

        json_schema_extra = {
            "example": {
                "session_id": "session_1736935200000_k3j9x0a",
                "execution_time_ms": 1432,
                "invocation_count": 1,
                "input_tokens": 58,
                "output_tokens": 212,
                "total_tokens": 270,
                "model": "google/gemini-3-flash-preview",
                "department": "HR",
                "timestamp": "2025-01-15T10:30:00.000Z",
                "locale": "en_US",
                "rag_mode": None,
            }
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting the error flag on successful records."""
        data = self.model_dump()
        if data.get("error") is None:
            data.pop("error", None)
        return data


class ChatRequest(BaseModel):
    """
    Request schema for the chat endpoint.

    Extra fields (e.g. user_query added by the client) are ignored.
    """

    messages: List[MessagePayload] = Field(default_factory=list)
    department: Optional[str] = None
    session_id: Optional[str] = None
    locale: Optional[str] = None
    rag_mode: Optional[str] = None

    class Config:
        """Pydantic configuration."""

        extra = "ignore"
        json_schema_extra = {
            "example": {
                "messages": [{"role": "user", "content": "What is the leave policy?"}],
                "department": "HR",
                "session_id": None,
                "locale": "en_US",
                "rag_mode": None,
            }
        }

    @property
    def user_query(self) -> str:
        """Content of the last message, or an empty string."""
        return self.messages[-1].content if self.messages else ""


class ChatResponse(BaseModel):
    """Canonical chat result returned to the client."""

    content: str
    analytics: AnalyticsMetadata
    sources: List[Source] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "analytics": self.analytics.to_dict(),
            "sources": [source.model_dump(exclude_none=True) for source in self.sources],
        }


class ErrorResponse(BaseModel):
    """Error body returned by the chat endpoint."""

    error: str
    analytics: Optional[AnalyticsMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "analytics": self.analytics.to_dict() if self.analytics else None,
        }


# ============================================================================
# Authentication
# ============================================================================


class AuthUser(BaseModel):
    """Snapshot of the authenticated user as returned by the auth provider."""

    id: str
    email: str
    name: Optional[str] = None
    department: Optional[str] = None
    roles: Optional[List[str]] = None


class AuthSession(BaseModel):
    """
    Persisted authentication session.

    Stored as a single JSON record under the token storage key, using the
    camelCase field names of the auth endpoint.
    """

    token: str
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    expires_at: int = Field(..., alias="expiresAt", description="Expiry in epoch milliseconds")
    user: AuthUser

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class LoginCredentials(BaseModel):
    email: str
    password: str


class SignupCredentials(LoginCredentials):
    name: Optional[str] = None
    department: Optional[str] = None


# ============================================================================
# Client-side Transcript and Feedback
# ============================================================================


class ChatMessage(BaseModel):
    """A message in the client-side transcript."""

    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime
    feedback: Optional[FeedbackRating] = None
    sources: Optional[List[Source]] = None
    analytics: Optional[AnalyticsMetadata] = None


class FeedbackRecord(BaseModel):
    """At most one rating per message id; later ratings overwrite earlier ones."""

    message_id: str = Field(..., alias="messageId")
    rating: FeedbackRating

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class DailyUsage(BaseModel):
    date: str
    messages: int = 0
    tokens: int = 0


class AggregatedAnalytics(BaseModel):
    """Dashboard summary derived from analytics history and feedback."""

    total_messages: int = 0
    total_tokens: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    average_execution_time: int = 0
    execution_times: List[int] = Field(default_factory=list)
    sessions_count: int = 0
    feedback_positive: int = 0
    feedback_negative: int = 0
    department_breakdown: Dict[str, int] = Field(default_factory=dict)
    hourly_usage: Dict[str, int] = Field(default_factory=dict)
    daily_usage: List[DailyUsage] = Field(default_factory=list)
