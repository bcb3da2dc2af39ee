"""
Base classes for upstream LLM providers.

Every provider implements forward(request) -> UpstreamResult. HTTP-based
providers only differ in:
- Auth header construction (bearer token vs. x-api-key)
- Request body shape
- Unwrapping the upstream's response shape
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..exceptions import ConfigurationError, ResponseParseError, UpstreamError

logger = logging.getLogger(__name__)

MISSING_API_KEY_MESSAGE = "Upstream API key is not configured"


class UpstreamRequest:
    """
    A normalized chat request ready to forward upstream.

    The system prompt is kept apart from the conversation; providers decide
    how to send it.
    """

    def __init__(
        self,
        messages: List[Dict[str, str]],
        system_prompt: str,
        session_id: str,
        department: str,
        locale: str = "en_US",
        rag_mode: Optional[str] = None,
    ):
        """
        Initialize an upstream request.

        Args:
            messages: Conversation as [{"role": ..., "content": ...}]
            system_prompt: Department system prompt
            session_id: Conversation session id
            department: Department the question is scoped to
            locale: Client locale
            rag_mode: Optional retrieval mode, passed through
        """
        self.messages = messages
        self.system_prompt = system_prompt
        self.session_id = session_id
        self.department = department
        self.locale = locale
        self.rag_mode = rag_mode

    def messages_with_system_prompt(self) -> List[Dict[str, str]]:
        return [{"role": "system", "content": self.system_prompt}] + list(self.messages)

    def __repr__(self) -> str:
        return (
            f"UpstreamRequest(session_id={self.session_id}, department={self.department}, "
            f"messages={len(self.messages)})"
        )


class UpstreamResult:
    """
    Assistant answer extracted from an upstream response.

    Token counts are None unless the provider reported them.
    """

    def __init__(
        self,
        content: str,
        sources: Optional[List[Dict[str, Any]]] = None,
        input_tokens: Optional[int] = None,
        output_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ):
        self.content = content
        self.sources = sources
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.model = model

    def __repr__(self) -> str:
        return (
            f"UpstreamResult(chars={len(self.content)}, sources={len(self.sources or [])}, "
            f"input_tokens={self.input_tokens}, output_tokens={self.output_tokens})"
        )


def extract_usage(data: Dict[str, Any]) -> Tuple[Optional[int], Optional[int]]:
    """
    Read provider-reported token counts from a response payload.

    Understands OpenAI-style usage (prompt_tokens/completion_tokens),
    Bedrock-style usage (inputTokens/outputTokens), snake_case usage and an
    embedded analytics record.

    Returns:
        Tuple of (input_tokens, output_tokens), None where not reported
    """
    usage = data.get("usage")
    if not isinstance(usage, dict):
        usage = data.get("analytics") if isinstance(data.get("analytics"), dict) else {}

    input_tokens = next(
        (usage[key] for key in ("prompt_tokens", "inputTokens", "input_tokens") if usage.get(key) is not None),
        None,
    )
    output_tokens = next(
        (usage[key] for key in ("completion_tokens", "outputTokens", "output_tokens") if usage.get(key) is not None),
        None,
    )
    return (
        int(input_tokens) if input_tokens is not None else None,
        int(output_tokens) if output_tokens is not None else None,
    )


def extract_content(data: Dict[str, Any]) -> str:
    """
    Read the assistant text from a response payload.

    Checks choices[0].message.content first, then the flat response,
    content and message fields.
    """
    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        message = choices[0].get("message") or {}
        if message.get("content"):
            return message["content"]

    for field in ("response", "content", "message"):
        value = data.get(field)
        if isinstance(value, str) and value:
            return value

    return ""


class UpstreamProvider(ABC):
    """
    Abstract base class for upstream LLM providers.
    """

    default_model = "unknown"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize provider with configuration.

        Args:
            config: Provider settings (endpoint, api_key, model, region, timeout)
        """
        self.config = config
        self.model = config.get("model") or self.default_model

    @abstractmethod
    def forward(self, request: UpstreamRequest) -> UpstreamResult:
        """
        Send a request upstream and return the assistant answer.

        Args:
            request: Normalized upstream request

        Returns:
            UpstreamResult with content, optional sources and usage

        Raises:
            UpstreamError: When the upstream answers with a non-OK status
            ConfigurationError: When required credentials are missing
        """
        pass

    def get_provider_name(self) -> str:
        """Human-readable provider name."""
        return self.__class__.__name__

    def get_provider_type(self) -> str:
        """Provider type identifier."""
        return "unknown"

    def validate_config(self) -> Tuple[bool, Optional[str]]:
        """
        Validate provider configuration.

        Returns:
            Tuple of (is_valid, error_message)
        """
        return True, None


class HttpUpstreamProvider(UpstreamProvider):
    """
    Provider reached over HTTPS with requests.

    Subclasses implement build_headers() and unwrap_response(); they may
    override build_payload().
    """

    def __init__(self, config: Dict[str, Any], http: Optional[requests.Session] = None):
        super().__init__(config)
        self.endpoint = config.get("endpoint") or ""
        self.api_key = config.get("api_key")
        self.timeout = config.get("timeout", 30)
        self.http = http or requests.Session()

    def validate_config(self) -> Tuple[bool, Optional[str]]:
        if not self.endpoint:
            return False, "endpoint is required"
        return True, None

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(MISSING_API_KEY_MESSAGE)
        return self.api_key

    @abstractmethod
    def build_headers(self, api_key: str) -> Dict[str, str]:
        pass

    def build_payload(self, request: UpstreamRequest) -> Dict[str, Any]:
        return {
            "messages": request.messages_with_system_prompt(),
            "session_id": request.session_id,
            "department": request.department,
            "locale": request.locale,
            "rag_mode": request.rag_mode,
        }

    @abstractmethod
    def unwrap_response(self, data: Any) -> UpstreamResult:
        pass

    def forward(self, request: UpstreamRequest) -> UpstreamResult:
        api_key = self.require_api_key()
        tag = f"[provider:{self.get_provider_type()}] [{request.session_id}]"

        logger.info(f"{tag} Calling upstream at {self.endpoint}")

        response = self.http.post(
            self.endpoint,
            headers=self.build_headers(api_key),
            json=self.build_payload(request),
            timeout=self.timeout,
        )

        if not response.ok:
            logger.error(f"{tag} Upstream error: {response.status_code} {response.text[:500]}")
            raise UpstreamError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError:
            raise ResponseParseError(
                f"Upstream returned non-JSON response: {response.text[:500]}",
                payload=response.text,
            )

        result = self.unwrap_response(data)
        logger.info(f"{tag} {result!r}")
        return result
