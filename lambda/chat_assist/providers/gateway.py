"""
Managed AI gateway provider.

OpenAI-compatible chat completions endpoint authenticated with a bearer
token.
"""

from typing import Any, Dict

from ..exceptions import ResponseParseError
from .base import HttpUpstreamProvider, UpstreamRequest, UpstreamResult, extract_usage

DEFAULT_GATEWAY_ENDPOINT = "https://ai.gateway.lovable.dev/v1/chat/completions"


class GatewayProvider(HttpUpstreamProvider):
    """
    Managed AI gateway (OpenAI-style chat completions).

    Request: {"model": ..., "messages": [system, ...conversation]}
    Response: {"choices": [{"message": {"content": ...}}], "usage": {...}}
    """

    default_model = "google/gemini-3-flash-preview"

    def __init__(self, config: Dict[str, Any], http=None):
        super().__init__(config, http=http)
        self.endpoint = self.endpoint or DEFAULT_GATEWAY_ENDPOINT

    def get_provider_name(self) -> str:
        return "Managed AI Gateway"

    def get_provider_type(self) -> str:
        return "gateway"

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(self, request: UpstreamRequest) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": request.messages_with_system_prompt(),
        }

    def unwrap_response(self, data: Any) -> UpstreamResult:
        if not isinstance(data, dict):
            raise ResponseParseError(f"Unrecognized gateway response: {data}", payload=data)

        choices = data.get("choices") or []
        content = ""
        if choices and isinstance(choices[0], dict):
            content = (choices[0].get("message") or {}).get("content") or ""

        input_tokens, output_tokens = extract_usage(data)

        return UpstreamResult(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=data.get("model") or self.model,
        )
