"""
Utility functions shared by the client library and the edge handlers.

Helper functions for token estimation, session ids and timestamps.
"""

import math
import random
import re
import string
import time
from datetime import datetime, timezone
from typing import Iterable


# ============================================================================
# Token Estimation
# ============================================================================

# Rough approximation: 1 token ~= 4 characters
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """
    Estimate token count for a piece of text.

    This is not a tokenizer. Provider-reported usage takes precedence
    wherever it is available.

    Args:
        text: Text to estimate

    Returns:
        int: ceil(len(text) / 4), 0 for an empty string
    """
    return math.ceil(len(text or "") / CHARS_PER_TOKEN)


def join_contents(contents: Iterable[str]) -> str:
    """
    Join message contents with single spaces.

    Args:
        contents: Message content strings

    Returns:
        str: Space-joined text
    """
    return " ".join(contents)


# ============================================================================
# Session Ids
# ============================================================================

_BASE36 = string.ascii_lowercase + string.digits


def generate_session_id() -> str:
    """
    Generate an opaque conversation session id.

    Format: session_{epoch_ms}_{7 base36 chars}
    Example: session_1736935200000_k3j9x0a

    Returns:
        str: New session id
    """
    suffix = "".join(random.choices(_BASE36, k=7))
    return f"session_{now_ms()}_{suffix}"


# ============================================================================
# Time
# ============================================================================


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def utc_timestamp() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Fractional seconds; fromisoformat before 3.11 only takes 3 or 6 digits
_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d{2}:?\d{2}$|$)")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp, accepting a trailing 'Z' and 1 to 9
    fractional-second digits.

    Naive timestamps are interpreted as local time by callers that convert
    them with astimezone().

    Args:
        value: ISO 8601 timestamp string

    Returns:
        datetime: Parsed timestamp

    Raises:
        ValueError: If the value is not ISO 8601
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(value)
