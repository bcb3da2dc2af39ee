"""
Configuration for the chat assistant.

Values are read from environment variables once per process (once per
Lambda container) and are read-only afterwards. Upstream credentials may
also be loaded from SSM Parameter Store.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Endpoints still containing this marker were never configured
PLACEHOLDER_MARKER = "your-api-id"

DEFAULT_CHAT_ENDPOINT = "https://your-api-id.execute-api.region.amazonaws.com/prod/chat"
DEFAULT_AUTH_ENDPOINT = "https://your-api-id.execute-api.region.amazonaws.com/prod/auth"
DEFAULT_ANALYTICS_ENDPOINT = "https://your-api-id.execute-api.region.amazonaws.com/prod/analytics"


class ChatConfig(BaseModel):
    """
    Configuration holder.

    Attributes:
        chat_endpoint: Chat endpoint URL (API Gateway)
        auth_endpoint: Auth endpoint base URL (/login, /signup, /refresh, /logout)
        analytics_endpoint: Analytics persistence endpoint URL
        api_key: API Gateway key sent as x-api-key by the client
        region: AWS region tag
        token_storage_key: Storage key for the persisted auth session
        session_storage_key: Storage key for the conversation session id
        storage_dir: Directory for persisted local state
        request_timeout: Timeout in seconds for outbound HTTP calls
        env: Deployment environment (SSM parameter prefix)
        app_name: Application name (SSM parameter prefix)
        upstream_endpoint: Upstream provider URL
        upstream_api_key: Upstream provider credential
        upstream_model: Upstream model id
    """

    chat_endpoint: str = DEFAULT_CHAT_ENDPOINT
    auth_endpoint: str = DEFAULT_AUTH_ENDPOINT
    analytics_endpoint: str = DEFAULT_ANALYTICS_ENDPOINT
    api_key: str = ""
    region: str = "us-east-1"
    token_storage_key: str = "aws_auth_token"
    session_storage_key: str = "aws_session_id"
    storage_dir: Path = Field(default_factory=lambda: Path.home() / ".chat-assist")
    request_timeout: float = 30.0
    env: str = "dev"
    app_name: str = "enterprise-chat-assist"
    upstream_endpoint: str = ""
    upstream_api_key: Optional[str] = None
    upstream_model: Optional[str] = None

    @property
    def upstream_api_key_param(self) -> str:
        """SSM parameter holding the upstream API key."""
        return f"/{self.env}/{self.app_name}/upstream/api-key"

    @classmethod
    def from_env(cls) -> "ChatConfig":
        """Build configuration from environment variables."""
        values = {
            "chat_endpoint": os.environ.get("CHAT_ENDPOINT"),
            "auth_endpoint": os.environ.get("AUTH_ENDPOINT"),
            "analytics_endpoint": os.environ.get("ANALYTICS_ENDPOINT"),
            "api_key": os.environ.get("API_KEY"),
            "region": os.environ.get("AWS_REGION"),
            "storage_dir": os.environ.get("CHAT_STORAGE_DIR"),
            "request_timeout": os.environ.get("REQUEST_TIMEOUT_SECONDS"),
            "env": os.environ.get("ENV"),
            "app_name": os.environ.get("APP_NAME"),
            "upstream_endpoint": os.environ.get("UPSTREAM_ENDPOINT"),
            "upstream_api_key": os.environ.get("UPSTREAM_API_KEY"),
            "upstream_model": os.environ.get("UPSTREAM_MODEL"),
        }
        return cls(**{key: value for key, value in values.items() if value})

    def provider_settings(self) -> dict:
        """Settings dictionary passed to upstream provider adapters."""
        return {
            "endpoint": self.upstream_endpoint,
            "api_key": get_upstream_api_key(self),
            "model": self.upstream_model,
            "region": self.region,
            "timeout": self.request_timeout,
        }


@lru_cache
def load_config() -> ChatConfig:
    """Return the process-wide configuration."""
    config = ChatConfig.from_env()
    logger.info(
        f"[config] Loaded configuration: env={config.env}, region={config.region}"
    )
    return config


def is_placeholder(url: str) -> bool:
    return PLACEHOLDER_MARKER in url


def validate_config(config: ChatConfig) -> Tuple[bool, List[str]]:
    """
    Validate configuration.

    Call this on startup to ensure required endpoints are set.

    Returns:
        Tuple of (is_valid, error_messages)
    """
    errors = []

    if is_placeholder(config.chat_endpoint):
        errors.append("Chat endpoint not configured. Set CHAT_ENDPOINT environment variable.")

    if is_placeholder(config.auth_endpoint):
        errors.append("Auth endpoint not configured. Set AUTH_ENDPOINT environment variable.")

    return len(errors) == 0, errors


def get_upstream_api_key(config: ChatConfig) -> Optional[str]:
    """
    Resolve the upstream API key.

    Uses the environment value when set, otherwise SSM Parameter Store.

    Returns:
        str: API key, or None when it is configured nowhere
    """
    if config.upstream_api_key:
        return config.upstream_api_key

    param_name = config.upstream_api_key_param

    try:
        ssm_client = boto3.client("ssm", region_name=config.region)
        response = ssm_client.get_parameter(Name=param_name, WithDecryption=True)
        api_key = response.get("Parameter", {}).get("Value")
        if api_key:
            logger.info(f"[config] Retrieved upstream API key from SSM: {param_name}")
        return api_key or None

    except (ClientError, BotoCoreError) as e:
        logger.warning(f"[config] Upstream API key not available from SSM {param_name}: {e}")
        return None
