"""Unit tests for the Bedrock Converse provider."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from chat_assist.exceptions import UpstreamError
from chat_assist.providers import BedrockProvider, UpstreamRequest


def converse_response(text="Here is the policy.", input_tokens=120, output_tokens=8):
    return {
        "output": {"message": {"role": "assistant", "content": [{"text": text}]}},
        "usage": {"inputTokens": input_tokens, "outputTokens": output_tokens},
        "stopReason": "end_turn",
    }


def client_error(code, message="failure"):
    return ClientError({"Error": {"Code": code, "Message": message}}, "Converse")


@pytest.mark.unit
class TestBedrockProvider:
    """Test BedrockProvider."""

    def setup_method(self):
        self.client = MagicMock()
        self.provider = BedrockProvider({"region": "us-west-2"}, client=self.client)
        self.request = UpstreamRequest(
            messages=[
                {"role": "user", "content": "What is the leave policy?"},
                {"role": "assistant", "content": "Which kind of leave?"},
                {"role": "user", "content": "Parental leave."},
            ],
            system_prompt="You are an HR policy assistant.",
            session_id="session_1",
            department="HR",
        )

    def test_defaults(self):
        assert self.provider.model == "us.anthropic.claude-sonnet-4-5-20250929-v1:0"
        assert self.provider.get_provider_type() == "bedrock"
        assert self.provider.validate_config() == (True, None)

    def test_forward_calls_converse(self):
        # Arrange
        self.client.converse.return_value = converse_response()

        # Act
        result = self.provider.forward(self.request)

        # Assert
        kwargs = self.client.converse.call_args.kwargs
        assert kwargs["modelId"] == "us.anthropic.claude-sonnet-4-5-20250929-v1:0"
        assert kwargs["system"] == [{"text": "You are an HR policy assistant."}]
        assert [message["role"] for message in kwargs["messages"]] == ["user", "assistant", "user"]
        assert kwargs["messages"][2]["content"] == [{"text": "Parental leave."}]
        assert kwargs["inferenceConfig"] == {"temperature": 0.3, "maxTokens": 4000}

        assert result.content == "Here is the policy."
        assert result.input_tokens == 120
        assert result.output_tokens == 8

    def test_system_messages_become_system_blocks(self):
        # Arrange
        request = UpstreamRequest(
            messages=[
                {"role": "system", "content": "You are an HR policy assistant."},
                {"role": "system", "content": "Answer in one sentence."},
                {"role": "user", "content": "Hi"},
            ],
            system_prompt="You are an HR policy assistant.",
            session_id="session_1",
            department="HR",
        )

        # Act
        messages, system_blocks = BedrockProvider.build_messages(request)

        # Assert
        assert system_blocks == [
            {"text": "You are an HR policy assistant."},
            {"text": "Answer in one sentence."},
        ]
        assert messages == [{"role": "user", "content": [{"text": "Hi"}]}]

    def test_configured_model(self):
        provider = BedrockProvider({"model": "anthropic.claude-3-haiku"}, client=self.client)
        self.client.converse.return_value = converse_response()

        result = provider.forward(self.request)

        assert self.client.converse.call_args.kwargs["modelId"] == "anthropic.claude-3-haiku"
        assert result.model == "anthropic.claude-3-haiku"

    @pytest.mark.parametrize(
        "code,status_code",
        [
            ("ThrottlingException", 429),
            ("AccessDeniedException", 403),
            ("ValidationException", 500),
        ],
    )
    def test_client_errors_map_to_statuses(self, code, status_code):
        self.client.converse.side_effect = client_error(code, "nope")

        with pytest.raises(UpstreamError) as exc_info:
            self.provider.forward(self.request)

        assert exc_info.value.status_code == status_code
        assert exc_info.value.message == "nope"

    def test_throttling_is_not_retried(self):
        self.client.converse.side_effect = client_error("ThrottlingException")

        with pytest.raises(UpstreamError):
            self.provider.forward(self.request)

        assert self.client.converse.call_count == 1
