"""
Test fixtures and sample data for chat assistant tests.
"""

import json
from unittest.mock import MagicMock

import pytest

from chat_assist.schemas import AnalyticsMetadata


@pytest.fixture
def sample_chat_request():
    """Chat request for an HR question, as sent by the client."""
    return {
        "messages": [{"role": "user", "content": "How many vacation days do I get?"}],
        "department": "HR",
        "session_id": "session_1736935200000_abc1234",
        "locale": "en_US",
    }


@pytest.fixture
def sample_chat_response():
    """Successful direct-shape chat response from the chat endpoint."""
    return {
        "content": "Full-time employees receive 20 vacation days per year.",
        "analytics": {
            "session_id": "session_1736935200000_abc1234",
            "execution_time_ms": 812,
            "invocation_count": 1,
            "input_tokens": 120,
            "output_tokens": 14,
            "total_tokens": 134,
            "model": "google/gemini-3-flash-preview",
            "department": "HR",
            "timestamp": "2025-01-15T10:30:00.000Z",
            "locale": "en_US",
        },
        "sources": [
            {"title": "Employee Handbook v3.2", "type": "document", "reference": "HR-DOC-001"},
            {"title": "HR Policy Guidelines", "type": "policy", "reference": "HR-POL-002"},
        ],
    }


@pytest.fixture
def sample_auth_payload():
    """Successful login response from the auth endpoint."""
    return {
        "token": "access-token-123",
        "refreshToken": "refresh-token-456",
        "expiresIn": 3600,
        "user": {
            "id": "user-1",
            "email": "jane@example.com",
            "name": "Jane Doe",
            "department": "HR",
            "roles": ["employee"],
        },
    }


def make_analytics(**overrides):
    """Build an analytics record with sensible defaults."""
    values = {
        "session_id": "session_1",
        "execution_time_ms": 100,
        "invocation_count": 1,
        "input_tokens": 10,
        "output_tokens": 10,
        "total_tokens": 20,
        "model": "bedrock",
        "department": "HR",
        "timestamp": "2025-01-15T10:30:00.000Z",
        "locale": "en_US",
    }
    values.update(overrides)
    return AnalyticsMetadata(**values)


@pytest.fixture
def sample_analytics_records():
    """Three records on the same UTC day across two sessions and departments."""
    return [
        make_analytics(session_id="session_1", department="HR", execution_time_ms=100,
                       input_tokens=5, output_tokens=5, total_tokens=10,
                       timestamp="2025-01-15T09:00:00.000Z"),
        make_analytics(session_id="session_1", department="HR", execution_time_ms=200,
                       input_tokens=10, output_tokens=10, total_tokens=20,
                       timestamp="2025-01-15T10:00:00.000Z"),
        make_analytics(session_id="session_2", department="IT", execution_time_ms=301,
                       input_tokens=15, output_tokens=15, total_tokens=30,
                       timestamp="2025-01-15T11:00:00.000Z"),
    ]


def make_response(status_code=200, json_data=None, text=None):
    """Build a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    if json_data is None and text is not None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text
    else:
        response.json.return_value = json_data
        response.text = text if text is not None else json.dumps(json_data)
    return response
