"""
Upstream provider abstraction for the chat edge handlers.

Pluggable providers behind one forward(request) -> UpstreamResult interface:
- gateway: managed AI gateway (bearer token, OpenAI-style responses)
- lambda: AWS Lambda behind API Gateway (x-api-key, flat responses)
- lambda-proxy: AWS Lambda returning proxy-integration envelopes
- bedrock: AWS Bedrock Converse API (used by the chat-bedrock Lambda)
"""

from .base import HttpUpstreamProvider, UpstreamProvider, UpstreamRequest, UpstreamResult
from .bedrock import BedrockProvider
from .factory import PROVIDERS, get_provider
from .gateway import GatewayProvider
from .lambda_key import LambdaKeyProvider
from .lambda_proxy import LambdaProxyProvider

__all__ = [
    "BedrockProvider",
    "GatewayProvider",
    "HttpUpstreamProvider",
    "LambdaKeyProvider",
    "LambdaProxyProvider",
    "PROVIDERS",
    "UpstreamProvider",
    "UpstreamRequest",
    "UpstreamResult",
    "get_provider",
]
