"""
AWS Lambda provider using the proxy-integration response format.
"""

import logging
from typing import Any

from ..envelope import decode_envelope, envelope_status, error_message
from ..exceptions import UpstreamError
from .base import UpstreamResult
from .lambda_key import LambdaKeyProvider

logger = logging.getLogger(__name__)


class LambdaProxyProvider(LambdaKeyProvider):
    """
    AWS Lambda returning {statusCode, headers, body} proxy envelopes.

    The envelope is unwrapped first; a wrapped status of 400 or above is an
    upstream error carrying that status.
    """

    def get_provider_name(self) -> str:
        return "AWS Lambda (proxy integration)"

    def get_provider_type(self) -> str:
        return "lambda-proxy"

    def unwrap_response(self, data: Any) -> UpstreamResult:
        payload = decode_envelope(data, strict=True)
        status_code = envelope_status(data)

        if status_code is not None and status_code >= 400:
            message = error_message(payload, f"Lambda error: {status_code}")
            logger.error(f"[provider:lambda-proxy] Wrapped status {status_code}: {message}")
            raise UpstreamError(status_code, str(message))

        return self.result_from_payload(payload)
