"""
Lambda handler for the Bedrock-backed chat Lambda.

This is the upstream the chat-lambda and chat-lambda-proxy endpoints call.
It answers with Claude through the Bedrock Converse API and reports the
token usage Bedrock returns. Throttling maps to 429 and access denial to 403.
"""

import logging
from typing import Any, Dict

from chat_assist.chat_handler import ChatRequestHandler
from chat_assist.config import load_config
from chat_assist.providers import get_provider

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Initialize Bedrock client once per container (outside handler)
config = load_config()
provider = get_provider(
    "bedrock",
    {"model": config.upstream_model, "region": config.region},
)
chat_handler = ChatRequestHandler(provider)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler entry point.

    Args:
        event: API Gateway proxy event or direct invocation payload
        context: Lambda context object

    Returns:
        API Gateway response object
    """
    try:
        logger.info(f"[chat-bedrock] Processing {event.get('httpMethod', 'direct')} request")
        return chat_handler.handle_event(event, context)

    except Exception as e:
        logger.error(f"[chat-bedrock] Unexpected error: {str(e)}", exc_info=True)
        raise
