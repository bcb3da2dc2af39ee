"""Unit tests for response envelope normalization."""

import json

import pytest

from chat_assist.envelope import (
    DirectResponse,
    ProxyEnvelope,
    classify_response,
    decode_envelope,
    envelope_status,
    error_message,
)
from chat_assist.exceptions import ResponseParseError


@pytest.mark.unit
class TestClassifyResponse:
    """Test envelope shape detection."""

    def test_direct_payload(self):
        # Act
        envelope = classify_response({"content": "hi"})

        # Assert
        assert isinstance(envelope, DirectResponse)
        assert envelope.payload == {"content": "hi"}

    def test_proxy_envelope(self):
        # Arrange
        data = {"statusCode": 200, "headers": {"a": "b"}, "body": "{\"content\": \"hi\"}"}

        # Act
        envelope = classify_response(data)

        # Assert
        assert isinstance(envelope, ProxyEnvelope)
        assert envelope.status_code == 200
        assert envelope.headers == {"a": "b"}

    def test_status_code_without_body_is_direct(self):
        envelope = classify_response({"statusCode": 200, "content": "hi"})
        assert isinstance(envelope, DirectResponse)

    def test_string_status_code_is_coerced(self):
        envelope = classify_response({"statusCode": "403", "body": "{}"})
        assert envelope.status_code == 403

    def test_invalid_status_code_raises(self):
        with pytest.raises(ResponseParseError):
            classify_response({"statusCode": "abc", "body": "{}"})

    def test_non_object_raises(self):
        with pytest.raises(ResponseParseError):
            classify_response(["not", "an", "object"])


@pytest.mark.unit
class TestDecodeEnvelope:
    """Test inner payload extraction."""

    def test_direct_and_proxy_decode_to_same_payload(self):
        # Arrange
        payload = {"content": "answer", "sources": []}
        wrapped = {"statusCode": 200, "headers": {}, "body": json.dumps(payload)}

        # Act & Assert
        assert decode_envelope(payload) == decode_envelope(wrapped) == payload

    def test_dict_body_is_accepted(self):
        assert decode_envelope({"statusCode": 200, "body": {"content": "x"}}) == {"content": "x"}

    def test_strict_mode_raises_on_unparsable_body(self):
        with pytest.raises(ResponseParseError) as exc_info:
            decode_envelope({"statusCode": 500, "body": "Internal failure"}, strict=True)

        assert "Failed to parse Lambda response body" in str(exc_info.value)
        assert exc_info.value.payload == "Internal failure"

    def test_lenient_mode_returns_error_field(self):
        result = decode_envelope({"statusCode": 500, "body": "Internal failure"}, strict=False)
        assert result == {"error": "Internal failure"}

    def test_strict_mode_rejects_non_object_body(self):
        with pytest.raises(ResponseParseError):
            decode_envelope({"statusCode": 200, "body": "[1, 2]"}, strict=True)


@pytest.mark.unit
class TestEnvelopeHelpers:
    """Test status and error message helpers."""

    def test_envelope_status_for_proxy(self):
        assert envelope_status({"statusCode": 429, "body": "{}"}) == 429

    def test_envelope_status_for_direct(self):
        assert envelope_status({"content": "hi"}) is None

    def test_error_message_prefers_error(self):
        assert error_message({"error": "bad", "message": "worse"}, "default") == "bad"

    def test_error_message_falls_back_to_message_then_default(self):
        assert error_message({"message": "worse"}, "default") == "worse"
        assert error_message({}, "default") == "default"
