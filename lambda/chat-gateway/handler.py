"""
Lambda handler for the chat endpoint backed by the managed AI gateway.

This handler:
1. Answers CORS preflight requests
2. Validates the chat request and applies the department system prompt
3. Forwards the conversation to the AI gateway (bearer token auth)
4. Returns {content, analytics, sources}, or {error, analytics} on failure

The gateway API key comes from UPSTREAM_API_KEY or SSM Parameter Store.
A missing key fails the request with a 500, not the container start.
"""

import logging
from typing import Any, Dict

from chat_assist.chat_handler import ChatRequestHandler
from chat_assist.config import load_config
from chat_assist.providers import get_provider

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Initialize once per container (outside handler)
config = load_config()
provider = get_provider("gateway", config.provider_settings())
chat_handler = ChatRequestHandler(provider)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler entry point.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway response object
    """
    try:
        logger.info(f"[chat-gateway] Processing {event.get('httpMethod', 'direct')} request")
        return chat_handler.handle_event(event, context)

    except Exception as e:
        logger.error(f"[chat-gateway] Unexpected error: {str(e)}", exc_info=True)
        raise
