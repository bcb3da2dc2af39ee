"""
Lambda handler for the chat endpoint backed by a proxy-integration Lambda.

Same contract as chat-lambda, except the upstream wraps its answer in a
{statusCode, headers, body} envelope whose body is a JSON string. A
wrapped error status is treated exactly like the matching HTTP status.
"""

import logging
from typing import Any, Dict

from chat_assist.chat_handler import ChatRequestHandler
from chat_assist.config import load_config
from chat_assist.providers import get_provider

logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Initialize once per container (outside handler)
config = load_config()
provider = get_provider("lambda-proxy", config.provider_settings())
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
        logger.info(f"[chat-lambda-proxy] Processing {event.get('httpMethod', 'direct')} request")
        return chat_handler.handle_event(event, context)

    except Exception as e:
        logger.error(f"[chat-lambda-proxy] Unexpected error: {str(e)}", exc_info=True)
        raise
