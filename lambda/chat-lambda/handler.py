"""
Lambda handler for the chat endpoint backed by an AWS Lambda upstream.

The upstream sits behind API Gateway and authenticates with x-api-key.
Its flat JSON answer ({response|content|message, sources?, usage?}) is
normalized into the standard chat response.
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
provider = get_provider("lambda", config.provider_settings())
chat_handler = ChatRequestHandler(provider)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    try:
        logger.info(f"[chat-lambda] Processing {event.get('httpMethod', 'direct')} request")
        return chat_handler.handle_event(event, context)

    except Exception as e:
        logger.error(f"[chat-lambda] Unexpected error: {str(e)}", exc_info=True)
        raise
