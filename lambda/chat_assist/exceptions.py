"""
Exception hierarchy for the chat assistant.

Client-side failures (auth, chat send, response parsing) are raised to the
caller. Edge handlers convert upstream and configuration failures into
HTTP-shaped responses.
"""

from typing import Any, Optional


class ChatAssistError(Exception):
    """Base class for all chat assistant errors."""


class ConfigurationError(ChatAssistError):
    """Required configuration (endpoint, credentials) is missing."""


class AuthError(ChatAssistError):
    """Login, signup or token handling failed."""


class ChatApiError(ChatAssistError):
    """The chat endpoint returned an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ChatApiError):
    """The chat endpoint rejected the request with HTTP 429."""


class AuthenticationRequiredError(ChatApiError):
    """The chat endpoint rejected the request with HTTP 401 or 403."""


class ResponseParseError(ChatAssistError):
    """
    A response payload could not be decoded.

    The offending payload is kept on the exception for diagnosis.
    """

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class UpstreamError(ChatAssistError):
    """The upstream LLM provider returned a non-OK status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __repr__(self) -> str:
        return f"UpstreamError(status_code={self.status_code}, message={self.message[:100]!r})"
