"""
Edge request handling for the chat endpoint.

This handler:
1. Validates the chat request
2. Resolves or generates the session id
3. Selects the department system prompt and estimates input tokens
4. Forwards the conversation to the configured upstream provider
5. Builds the analytics record and attaches department sources
6. Returns {content, analytics, sources}, or {error, analytics} on failure
"""

import base64
import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from .exceptions import UpstreamError
from .prompts import DEFAULT_DEPARTMENT, get_department_sources, get_system_prompt
from .providers import UpstreamProvider, UpstreamRequest
from .schemas import AnalyticsMetadata, ChatRequest, ChatResponse, ErrorResponse, Source
from .utils import estimate_tokens, generate_session_id, join_contents, utc_timestamp

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en_US"

RATE_LIMIT_MESSAGE = "Rate limits exceeded, please try again later."
PAYMENT_REQUIRED_MESSAGE = "Payment required, please add credits to your AI workspace."
ACCESS_DENIED_MESSAGE = "Access denied. Check upstream API key configuration."

# Upstream statuses answered with a fixed message and no analytics
FIXED_ERROR_RESPONSES = {
    429: RATE_LIMIT_MESSAGE,
    402: PAYMENT_REQUIRED_MESSAGE,
    403: ACCESS_DENIED_MESSAGE,
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, x-api-key, apikey, content-type",
}


def lambda_response(status_code: int, payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Build an API Gateway proxy response.

    Args:
        status_code: HTTP status
        payload: JSON body, or None for an empty body

    Returns:
        dict: {statusCode, headers, body}
    """
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(payload) if payload is not None else "",
    }


def parse_event_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract the chat request from a Lambda event.

    API Gateway events carry the request as a JSON string in "body";
    direct invocations pass the request as the event itself.

    Raises:
        ValueError: If the body is not a JSON object
    """
    if "body" not in event:
        return event

    body = event.get("body")
    if body is None or body == "":
        return {}
    if isinstance(body, dict):
        return body

    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")

    parsed = json.loads(body)
    if not isinstance(parsed, dict):
        raise ValueError("Request body must be a JSON object")
    return parsed


def _event_method(event: Dict[str, Any]) -> Optional[str]:
    method = event.get("httpMethod")
    if not method:
        method = event.get("requestContext", {}).get("http", {}).get("method")
    return method.upper() if method else None


class ChatRequestHandler:
    """
    Handles chat requests against one upstream provider.

    One instance per Lambda container; per-request state stays local to
    handle().
    """

    def __init__(self, provider: UpstreamProvider, model: Optional[str] = None):
        """
        Initialize the handler.

        Args:
            provider: Upstream provider adapter
            model: Model id reported in analytics (defaults to the provider's)
        """
        self.provider = provider
        self.model = model or provider.model

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int(round((time.perf_counter() - start) * 1000))

    def _error_response(
        self,
        message: str,
        start: float,
        session_id: Optional[str] = None,
        department: Optional[str] = None,
        locale: Optional[str] = None,
        rag_mode: Optional[str] = None,
    ) -> Tuple[int, Dict[str, Any]]:
        analytics = AnalyticsMetadata(
            session_id=session_id or generate_session_id(),
            execution_time_ms=self._elapsed_ms(start),
            invocation_count=0,
            input_tokens=0,
            output_tokens=0,
            total_tokens=0,
            model=self.model,
            department=department or "Unknown",
            timestamp=utc_timestamp(),
            locale=locale or DEFAULT_LOCALE,
            rag_mode=rag_mode,
            error=True,
        )
        return 500, ErrorResponse(error=message, analytics=analytics).to_dict()

    def handle(self, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """
        Handle one chat request.

        Args:
            body: Decoded request {messages, department, session_id?, locale?, rag_mode?}

        Returns:
            Tuple of (status_code, response_payload)
        """
        start = time.perf_counter()

        try:
            request = ChatRequest.model_validate(body)
        except ValidationError as e:
            logger.error(f"[chat] Validation error: {e}")
            return self._error_response(f"Invalid request: {e.error_count()} validation error(s)", start)

        session_id = request.session_id or generate_session_id()
        department = request.department or DEFAULT_DEPARTMENT
        locale = request.locale or DEFAULT_LOCALE

        try:
            system_prompt = get_system_prompt(department)
            contents = [message.content for message in request.messages]
            input_estimate = estimate_tokens(join_contents(contents) + system_prompt)

            logger.info(f"[chat] [{session_id}] Processing request for department: {department}")
            logger.info(f"[chat] [{session_id}] Input tokens estimate: {input_estimate}")

            result = self.provider.forward(
                UpstreamRequest(
                    messages=[message.model_dump() for message in request.messages],
                    system_prompt=system_prompt,
                    session_id=session_id,
                    department=department,
                    locale=locale,
                    rag_mode=request.rag_mode,
                )
            )

            output_estimate = estimate_tokens(result.content)
            input_tokens = result.input_tokens if result.input_tokens is not None else input_estimate
            output_tokens = result.output_tokens if result.output_tokens is not None else output_estimate

            if result.sources:
                sources = [Source.model_validate(source) for source in result.sources]
            else:
                sources = get_department_sources(department)

            analytics = AnalyticsMetadata(
                session_id=session_id,
                execution_time_ms=self._elapsed_ms(start),
                invocation_count=1,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
                model=result.model or self.model,
                department=department,
                timestamp=utc_timestamp(),
                locale=locale,
                rag_mode=request.rag_mode,
            )

            logger.info(f"[chat] [{session_id}] Response generated in {analytics.execution_time_ms}ms")
            logger.info(f"[chat] [{session_id}] Analytics: {json.dumps(analytics.to_dict())}")

            return 200, ChatResponse(content=result.content, analytics=analytics, sources=sources).to_dict()

        except UpstreamError as e:
            fixed_message = FIXED_ERROR_RESPONSES.get(e.status_code)
            if fixed_message:
                logger.warning(f"[chat] [{session_id}] Upstream returned {e.status_code}")
                return e.status_code, ErrorResponse(error=fixed_message, analytics=None).to_dict()

            logger.error(f"[chat] [{session_id}] Upstream error: {e.status_code} - {e.message}", exc_info=True)
            return self._error_response(
                f"Upstream error: {e.status_code} - {e.message}",
                start,
                session_id=session_id,
                department=department,
                locale=locale,
                rag_mode=request.rag_mode,
            )

        except Exception as e:
            logger.error(f"[chat] [{session_id}] Chat error: {str(e)}", exc_info=True)
            return self._error_response(
                str(e) or "Unknown error",
                start,
                session_id=session_id,
                department=department,
                locale=locale,
                rag_mode=request.rag_mode,
            )

    def handle_event(self, event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        """
        Lambda entry point.

        Args:
            event: API Gateway proxy event or a direct-invocation request
            context: Lambda context object

        Returns:
            API Gateway response object
        """
        if _event_method(event) == "OPTIONS":
            return lambda_response(200, None)

        try:
            body = parse_event_body(event)
        except (ValueError, TypeError) as e:
            logger.error(f"[chat] Invalid JSON in request body: {str(e)}")
            status_code, payload = self._error_response(
                f"Invalid JSON in request body: {str(e)}", time.perf_counter()
            )
            return lambda_response(status_code, payload)

        status_code, payload = self.handle(body)
        return lambda_response(status_code, payload)
