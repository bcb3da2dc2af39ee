"""
Chat API client.

Sends chat turns to the API Gateway chat endpoint with authentication
headers and normalizes both Lambda response shapes into a ChatResponse.
"""

import logging
import re
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional, Union

import requests

from .auth_client import AuthClient
from .config import ChatConfig, is_placeholder
from .envelope import decode_envelope, envelope_status, error_message
from .exceptions import (
    AuthenticationRequiredError,
    ChatApiError,
    RateLimitError,
    ResponseParseError,
)
from .schemas import AnalyticsMetadata, ChatRequest, ChatResponse, Source
from .storage import SessionIdStore
from .utils import utc_timestamp

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
AUTH_REQUIRED_MESSAGE = "Authentication required. Please log in."

# Answer text field names, in priority order
CONTENT_FIELDS = ("content", "response", "message")


class ChatApiClient:
    """Client for the chat, analytics and health endpoints."""

    def __init__(
        self,
        config: ChatConfig,
        auth_client: AuthClient,
        session_ids: SessionIdStore,
        http: Optional[requests.Session] = None,
    ):
        """
        Initialize the chat API client.

        Args:
            config: Configuration holder
            auth_client: Auth client used to refresh and read the token
            session_ids: Store owning the conversation session id
            http: Optional requests session (injected in tests)
        """
        self.config = config
        self.auth_client = auth_client
        self.session_ids = session_ids
        self.http = http or requests.Session()
        self._analytics_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="analytics")

    # ========================================================================
    # Session Ids
    # ========================================================================

    def get_session_id(self) -> str:
        return self.session_ids.get_or_create()

    def clear_session_id(self) -> None:
        """Forget the session id so the next turn starts a new conversation."""
        self.session_ids.clear()

    # ========================================================================
    # Requests
    # ========================================================================

    def _get_headers(self) -> Dict[str, str]:
        """Build request headers, refreshing the auth session first."""
        self.auth_client.refresh_session()
        token = self.auth_client.get_auth_token()

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if self.config.api_key:
            headers["x-api-key"] = self.config.api_key
        return headers

    @staticmethod
    def _decode_json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            raise ResponseParseError(
                f"Failed to parse chat response: {response.text[:500]}",
                payload=response.text,
            )

    @staticmethod
    def _raise_for_status(status_code: int, payload: Dict[str, Any]) -> None:
        if status_code == 429:
            raise RateLimitError(RATE_LIMIT_MESSAGE, status_code=status_code)
        if status_code in (401, 403):
            raise AuthenticationRequiredError(AUTH_REQUIRED_MESSAGE, status_code=status_code)
        raise ChatApiError(
            str(error_message(payload, f"API error: {status_code}")),
            status_code=status_code,
        )

    def send_chat_message(self, request: Union[ChatRequest, Dict[str, Any]]) -> ChatResponse:
        """
        Send a chat turn to the chat endpoint.

        Args:
            request: Messages, department, optional session id, locale, rag mode

        Returns:
            ChatResponse: Normalized content, analytics and sources

        Raises:
            RateLimitError: On status 429
            AuthenticationRequiredError: On status 401 or 403
            ChatApiError: On any other error status or an error field
            ResponseParseError: If the response is not valid JSON
        """
        if isinstance(request, dict):
            request = ChatRequest(**request)

        headers = self._get_headers()
        session_id = request.session_id or self.get_session_id()

        body = request.model_dump()
        body["session_id"] = session_id
        body["user_query"] = request.user_query

        logger.info(f"[api-client] [{session_id}] Sending chat turn for department {request.department}")

        response = self.http.post(
            self.config.chat_endpoint,
            headers=headers,
            json=body,
            timeout=self.config.request_timeout,
        )

        # Rate limit and auth failures need no body
        if not response.ok and response.status_code in (401, 403, 429):
            logger.warning(f"[api-client] [{session_id}] Chat endpoint returned {response.status_code}")
            self._raise_for_status(response.status_code, {})

        try:
            data = self._decode_json(response)
        except ResponseParseError:
            if response.ok:
                raise
            self._raise_for_status(response.status_code, {})

        parsed = decode_envelope(data, strict=True)

        status_code = response.status_code
        if response.ok:
            status_code = envelope_status(data) or status_code

        if status_code >= 400:
            logger.warning(f"[api-client] [{session_id}] Chat endpoint returned {status_code}")
            self._raise_for_status(status_code, parsed)

        if parsed.get("error"):
            raise ChatApiError(str(parsed["error"]), status_code=status_code)

        content = next((parsed[field] for field in CONTENT_FIELDS if parsed.get(field)), "")

        analytics = parsed.get("analytics")
        if analytics:
            analytics = AnalyticsMetadata.model_validate(analytics)
        else:
            analytics = AnalyticsMetadata(
                session_id=session_id,
                execution_time_ms=0,
                invocation_count=1,
                input_tokens=0,
                output_tokens=0,
                total_tokens=0,
                model="bedrock",
                department=request.department or "General",
                timestamp=utc_timestamp(),
                locale=request.locale or "en_US",
                rag_mode=request.rag_mode,
            )

        sources = [Source.model_validate(source) for source in parsed.get("sources") or []]

        return ChatResponse(content=str(content), analytics=analytics, sources=sources)

    def save_analytics(self, analytics: AnalyticsMetadata) -> None:
        """
        Persist an analytics record via the analytics endpoint.

        Best effort: failures are logged and never raised.
        """
        if is_placeholder(self.config.analytics_endpoint):
            logger.info("[api-client] Analytics endpoint not configured, skipping save")
            return

        try:
            headers = self._get_headers()
            response = self.http.post(
                self.config.analytics_endpoint,
                headers=headers,
                json=analytics.to_dict(),
                timeout=self.config.request_timeout,
            )
            if not response.ok:
                logger.warning(f"[api-client] Analytics endpoint returned {response.status_code}")
        except Exception as e:
            logger.error(f"[api-client] Failed to save analytics: {e}", exc_info=True)

    def save_analytics_in_background(self, analytics: AnalyticsMetadata) -> Future:
        """
        Queue an analytics save on the background worker and return immediately.

        Returns:
            Future that completes when the save attempt has finished
        """
        return self._analytics_executor.submit(self.save_analytics, analytics)

    def close(self) -> None:
        """Wait for queued analytics saves, then stop the background worker."""
        self._analytics_executor.shutdown(wait=True)

    def health_check(self) -> bool:
        """
        Check that the API Gateway answers on its /health route.

        Returns:
            True if the health endpoint returned an OK status
        """
        url = re.sub(r"/chat/?$", "/health", self.config.chat_endpoint)
        headers = {"x-api-key": self.config.api_key} if self.config.api_key else {}

        try:
            response = self.http.get(url, headers=headers, timeout=self.config.request_timeout)
            return bool(response.ok)
        except requests.exceptions.RequestException as e:
            logger.warning(f"[api-client] Health check failed: {e}")
            return False
