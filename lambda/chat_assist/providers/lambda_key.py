"""
AWS Lambda provider behind API Gateway with API-key authentication.
"""

from typing import Any, Dict, Optional, Tuple

from ..exceptions import ResponseParseError, UpstreamError
from .base import HttpUpstreamProvider, UpstreamResult, extract_content, extract_usage


class LambdaKeyProvider(HttpUpstreamProvider):
    """
    AWS Lambda behind API Gateway, authenticated with x-api-key.

    The Lambda answers with a flat payload: response, content or message,
    optionally sources and usage (or an analytics record).
    """

    default_model = "bedrock"

    def get_provider_name(self) -> str:
        return "AWS Lambda (API key)"

    def get_provider_type(self) -> str:
        return "lambda"

    def validate_config(self) -> Tuple[bool, Optional[str]]:
        if not self.endpoint:
            return False, "endpoint is required for Lambda providers"
        return True, None

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "x-api-key": api_key,
            "Content-Type": "application/json",
        }

    def result_from_payload(self, payload: Dict[str, Any]) -> UpstreamResult:
        """Build a result from a flat Lambda payload."""
        if payload.get("error"):
            raise UpstreamError(500, str(payload["error"]))

        input_tokens, output_tokens = extract_usage(payload)
        analytics = payload.get("analytics") if isinstance(payload.get("analytics"), dict) else {}

        return UpstreamResult(
            content=extract_content(payload),
            sources=payload.get("sources") or None,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=payload.get("model") or analytics.get("model") or self.model,
        )

    def unwrap_response(self, data: Any) -> UpstreamResult:
        if not isinstance(data, dict):
            raise ResponseParseError(f"Unrecognized Lambda response: {data}", payload=data)
        return self.result_from_payload(data)
