"""
Response envelope normalization.

Lambda-backed endpoints answer in one of two shapes:
- Direct: the payload itself, e.g. {"content": "...", "analytics": {...}}
- Proxy: an API Gateway proxy-integration wrapper
  {"statusCode": 200, "headers": {...}, "body": "<json string>"}

classify_response() resolves a decoded response into one of the two shapes
and decode_envelope() returns the inner payload. Callers never inspect the
raw shape themselves.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .exceptions import ResponseParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectResponse:
    """A response that is already the payload."""

    payload: Dict[str, Any]


@dataclass(frozen=True)
class ProxyEnvelope:
    """A proxy-integration wrapper whose body is a JSON string."""

    status_code: int
    body: Any
    headers: Dict[str, str] = field(default_factory=dict)


Envelope = Union[DirectResponse, ProxyEnvelope]


def is_proxy_envelope(data: Any) -> bool:
    """Check for the {statusCode, body} wrapper shape."""
    return isinstance(data, dict) and "statusCode" in data and "body" in data


def classify_response(data: Any) -> Envelope:
    """
    Resolve a decoded JSON response into its envelope shape.

    Args:
        data: Decoded JSON value

    Returns:
        ProxyEnvelope or DirectResponse

    Raises:
        ResponseParseError: If the value is not a JSON object
    """
    if is_proxy_envelope(data):
        try:
            status_code = int(data["statusCode"])
        except (TypeError, ValueError):
            raise ResponseParseError(
                f"Invalid statusCode in Lambda response: {data['statusCode']}", payload=data
            )
        return ProxyEnvelope(
            status_code=status_code,
            body=data["body"],
            headers=data.get("headers") or {},
        )

    if not isinstance(data, dict):
        raise ResponseParseError(f"Unrecognized response payload: {data}", payload=data)

    return DirectResponse(payload=data)


def decode_envelope(data: Any, strict: bool = True) -> Dict[str, Any]:
    """
    Return the inner payload of a response in either envelope shape.

    Args:
        data: Decoded JSON value
        strict: When True an unparsable proxy body raises ResponseParseError.
            When False it is returned as {"error": body}.

    Returns:
        dict: Inner payload

    Raises:
        ResponseParseError: On an unparsable body in strict mode
    """
    envelope = classify_response(data)

    if isinstance(envelope, DirectResponse):
        return envelope.payload

    body = envelope.body
    if isinstance(body, dict):
        return body

    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        if strict:
            raise ResponseParseError(f"Failed to parse Lambda response body: {body}", payload=body)
        logger.warning(f"[envelope] Unparsable Lambda body, treating as error: {str(body)[:200]}")
        return {"error": body}

    if not isinstance(parsed, dict):
        if strict:
            raise ResponseParseError(f"Failed to parse Lambda response body: {body}", payload=body)
        return {"error": body}

    return parsed


def envelope_status(data: Any) -> Optional[int]:
    """Return the wrapped statusCode for proxy responses, None for direct ones."""
    if is_proxy_envelope(data):
        envelope = classify_response(data)
        return envelope.status_code
    return None


def error_message(payload: Dict[str, Any], default: str) -> str:
    """First non-empty of error, message, or the default."""
    return payload.get("error") or payload.get("message") or default
