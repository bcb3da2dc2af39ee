"""
Provider lookup for the chat Lambdas.

Each Lambda names its upstream ("gateway", "lambda", "lambda-proxy",
"bedrock"); get_provider() builds it and checks its configuration before
the first request.
"""

import logging
from typing import Any, Dict, Type

from .base import UpstreamProvider
from .bedrock import BedrockProvider
from .gateway import GatewayProvider
from .lambda_key import LambdaKeyProvider
from .lambda_proxy import LambdaProxyProvider

logger = logging.getLogger(__name__)

PROVIDERS: Dict[str, Type[UpstreamProvider]] = {
    "gateway": GatewayProvider,
    "lambda": LambdaKeyProvider,
    "lambda-proxy": LambdaProxyProvider,
    "bedrock": BedrockProvider,
}


def get_provider(name: str, config: Dict[str, Any], **kwargs: Any) -> UpstreamProvider:
    """
    Build the named upstream provider.

    Args:
        name: Provider name, a key of PROVIDERS
        config: Provider settings (see ChatConfig.provider_settings)
        **kwargs: Injected clients (http session, boto3 client)

    Raises:
        ValueError: Unknown name, or settings the provider rejects
    """
    provider_class = PROVIDERS.get(name)
    if provider_class is None:
        raise ValueError(f"Unknown upstream provider '{name}'. Choose one of: {', '.join(PROVIDERS)}")

    provider = provider_class(config, **kwargs)

    is_valid, error_msg = provider.validate_config()
    if not is_valid:
        raise ValueError(f"Invalid {name} provider settings: {error_msg}")

    logger.info(f"[provider:{name}] Using {provider.get_provider_name()}, model {provider.model}")
    return provider
