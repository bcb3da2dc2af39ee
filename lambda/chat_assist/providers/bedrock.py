"""
Bedrock provider for Claude via the Converse API.

Used by the chat-bedrock Lambda, the deployment the Lambda-backed providers
call. Bedrock failures are mapped onto HTTP-style upstream errors.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import ClientError

from ..exceptions import UpstreamError
from .base import UpstreamProvider, UpstreamRequest, UpstreamResult

logger = logging.getLogger(__name__)

# Bedrock error codes mapped to HTTP statuses
ERROR_STATUS_CODES = {
    "ThrottlingException": 429,
    "TooManyRequestsException": 429,
    "ServiceQuotaExceededException": 429,
    "AccessDeniedException": 403,
    "UnrecognizedClientException": 403,
}


class BedrockProvider(UpstreamProvider):
    """
    AWS Bedrock runtime (Converse API).

    The system prompt and any system-role messages are sent as system
    blocks; user and assistant messages form the conversation.
    """

    default_model = "us.anthropic.claude-sonnet-4-5-20250929-v1:0"

    def __init__(self, config: Dict[str, Any], client=None):
        """
        Initialize Bedrock provider.

        Config options:
            - model: Bedrock model or inference profile id
            - region: AWS region for the bedrock-runtime client
            - temperature: Sampling temperature (default: 0.3)
            - max_tokens: Maximum tokens to generate (default: 4000)

        Args:
            config: Provider settings
            client: Optional boto3 bedrock-runtime client (injected in tests)
        """
        super().__init__(config)
        self.region = config.get("region")
        self.temperature = config.get("temperature", 0.3)
        self.max_tokens = config.get("max_tokens", 4000)
        self.client = client or boto3.client("bedrock-runtime", region_name=self.region)

    def get_provider_name(self) -> str:
        return "AWS Bedrock"

    def get_provider_type(self) -> str:
        return "bedrock"

    def validate_config(self) -> Tuple[bool, Optional[str]]:
        if not self.model:
            return False, "model is required for Bedrock"
        return True, None

    @staticmethod
    def build_messages(request: UpstreamRequest) -> Tuple[List[Dict[str, Any]], List[Dict[str, str]]]:
        """
        Split a request into Converse messages and system blocks.

        Returns:
            Tuple of (messages, system_blocks)
        """
        system_texts = [request.system_prompt] if request.system_prompt else []
        messages = []

        for message in request.messages:
            role = message.get("role")
            content = message.get("content") or ""
            if role == "system":
                if content and content not in system_texts:
                    system_texts.append(content)
            elif role in ("user", "assistant") and content:
                messages.append({"role": role, "content": [{"text": content}]})

        return messages, [{"text": text} for text in system_texts]

    def forward(self, request: UpstreamRequest) -> UpstreamResult:
        messages, system_blocks = self.build_messages(request)

        request_params = {
            "modelId": self.model,
            "messages": messages,
            "inferenceConfig": {
                "temperature": self.temperature,
                "maxTokens": self.max_tokens,
            },
        }
        if system_blocks:
            request_params["system"] = system_blocks

        logger.info(f"[bedrock] [{request.session_id}] Invoking {self.model} with {len(messages)} messages")

        try:
            response = self.client.converse(**request_params)
        except ClientError as e:
            error = e.response.get("Error", {})
            error_code = error.get("Code", "")
            status_code = ERROR_STATUS_CODES.get(error_code, 500)
            logger.error(f"[bedrock] [{request.session_id}] Bedrock API error {error_code}: {e}")
            raise UpstreamError(status_code, error.get("Message") or str(e))

        content_blocks = response.get("output", {}).get("message", {}).get("content", [])
        text = "".join(block.get("text", "") for block in content_blocks if isinstance(block, dict))

        usage = response.get("usage", {})

        logger.info(
            f"[bedrock] [{request.session_id}] Response: {len(text)} chars, "
            f"{usage.get('inputTokens')} input tokens, {usage.get('outputTokens')} output tokens, "
            f"stop_reason={response.get('stopReason', 'end_turn')}"
        )

        return UpstreamResult(
            content=text,
            input_tokens=usage.get("inputTokens"),
            output_tokens=usage.get("outputTokens"),
            model=self.model,
        )
