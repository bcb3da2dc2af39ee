"""Integration tests for the client-to-edge chat flow."""

import json
from unittest.mock import MagicMock

import pytest

from chat_assist import build_client
from chat_assist.chat_handler import ChatRequestHandler
from chat_assist.config import ChatConfig
from chat_assist.providers import UpstreamProvider, UpstreamResult
from fixtures.sample_data import make_response

BASE_URL = "https://abc123.execute-api.us-east-1.amazonaws.com/prod"


class CannedProvider(UpstreamProvider):
    """Upstream answering every question with the same text."""

    default_model = "canned"

    def __init__(self, config=None, content="Full-time employees receive 20 vacation days."):
        super().__init__(config or {})
        self.content = content

    def forward(self, request):
        return UpstreamResult(content=self.content)

    def get_provider_name(self):
        return "Canned"

    def get_provider_type(self):
        return "canned"


def fake_api(edge_handler, auth_payload):
    """Route client requests to the auth payload or the edge handler."""

    def post(url, headers=None, json=None, timeout=None):
        if url == f"{BASE_URL}/auth/login":
            return make_response(200, auth_payload)
        if url == f"{BASE_URL}/chat":
            assert headers["Authorization"] == f"Bearer {auth_payload['token']}"
            # The edge handler answers with a proxy-integration envelope
            return make_response(200, edge_handler.handle_event(dict(json), None))
        raise AssertionError(f"Unexpected URL: {url}")

    http = MagicMock()
    http.post.side_effect = post
    return http


@pytest.mark.integration
class TestChatFlow:
    """End-to-end: login, chat turns through the edge handler, analytics."""

    def setup_method(self):
        self.edge_handler = ChatRequestHandler(CannedProvider())

    def build(self, tmp_path, sample_auth_payload):
        config = ChatConfig(
            chat_endpoint=f"{BASE_URL}/chat",
            auth_endpoint=f"{BASE_URL}/auth",
            storage_dir=tmp_path,
        )
        return build_client(config, http=fake_api(self.edge_handler, sample_auth_payload))

    def test_login_and_two_turns(self, tmp_path, sample_auth_payload):
        # Arrange
        conversation = self.build(tmp_path, sample_auth_payload)
        conversation.api_client.auth_client.login({"email": "jane@example.com", "password": "secret"})

        # Act
        first = conversation.send_message("How many vacation days do I get?", "HR")
        second = conversation.send_message("And sick days?", "HR")

        # Assert
        assert first.content == "Full-time employees receive 20 vacation days."
        assert [source.reference for source in first.sources] == ["HR-DOC-001", "HR-POL-002"]
        assert first.analytics.session_id == second.analytics.session_id
        assert len(conversation.messages) == 4

        summary = conversation.analytics.get_aggregated_analytics()
        assert summary.total_messages == 2
        assert summary.sessions_count == 1
        assert summary.department_breakdown == {"HR": 2}
        assert summary.total_tokens == first.analytics.total_tokens + second.analytics.total_tokens

    def test_session_persists_across_clients(self, tmp_path, sample_auth_payload):
        # Arrange
        first_client = self.build(tmp_path, sample_auth_payload)
        first_client.api_client.auth_client.login({"email": "jane@example.com", "password": "secret"})

        # Act
        second_client = self.build(tmp_path, sample_auth_payload)

        # Assert
        user = second_client.api_client.auth_client.get_current_user()
        assert user.email == "jane@example.com"
        assert json.loads((tmp_path / "aws_auth_token.json").read_text())["token"] == "access-token-123"

    def test_logout_removes_persisted_session(self, tmp_path, sample_auth_payload):
        conversation = self.build(tmp_path, sample_auth_payload)
        auth_client = conversation.api_client.auth_client
        auth_client.login({"email": "jane@example.com", "password": "secret"})
        auth_client.http.post.side_effect = None

        auth_client.logout()

        assert auth_client.get_auth_token() is None
        assert not (tmp_path / "aws_auth_token.json").exists()
