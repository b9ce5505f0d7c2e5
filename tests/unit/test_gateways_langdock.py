"""
Tests for LangdockGateway
=========================

Unit tests for the Langdock Assistant API gateway.
"""

import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from document_interpreter import (
    AnalysisTier,
    Attachment,
    GatewayAuthError,
    GatewayError,
    GatewayRateLimitError,
    LLMRequest,
    RequestAssembler,
    TextPayload,
)
from document_interpreter.gateways import LangdockGateway

IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


def _response(status_code=200, json_data=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data or {}
    return response


def _completion(text="TIP DOCUMENT: Amendă"):
    return _response(json_data={
        "result": [
            {"role": "assistant", "content": [{"type": "text", "text": text}]},
        ],
        "usage": {"input_tokens": 50, "output_tokens": 20},
    })


def _text_request() -> LLMRequest:
    return LLMRequest(
        system_instruction="Ești un asistent.",
        payload=TextPayload(text="Analizează: amendă"),
        max_output_tokens=600,
        tier=AnalysisTier.PREVIEW,
    )


@pytest.fixture
def gateway():
    return LangdockGateway(api_key="ld-key", timeout=30)


# =============================================================================
# TestLangdockGatewayInit
# =============================================================================


@pytest.mark.unit
class TestLangdockGatewayInit:

    def test_default_config(self):
        with patch.dict(os.environ, {}, clear=True):
            gateway = LangdockGateway(api_key="ld-key")
        assert gateway.model == LangdockGateway.DEFAULT_MODEL
        assert gateway.assistant_url == LangdockGateway.DEFAULT_ASSISTANT_URL
        assert gateway.name == "Langdock"

    def test_env_vars(self):
        with patch.dict(os.environ, {"LANGDOCK_API_KEY": "env-key", "LANGDOCK_MODEL": "gpt-4o"}):
            gateway = LangdockGateway()
        assert gateway.api_key == "env-key"
        assert gateway.model == "gpt-4o"

    def test_without_key(self):
        with patch.dict(os.environ, {}, clear=True):
            gateway = LangdockGateway()
        assert gateway.is_available() is False
        with pytest.raises(GatewayAuthError):
            gateway.generate(_text_request())


# =============================================================================
# TestLangdockGatewayGenerate
# =============================================================================


@pytest.mark.unit
class TestLangdockGatewayGenerate:

    @patch("document_interpreter.gateways.langdock.requests.post")
    def test_text_request(self, mock_post, gateway):
        mock_post.return_value = _completion()

        response = gateway.generate(_text_request())

        assert response.generated_text == "TIP DOCUMENT: Amendă"
        assert response.usage_metadata == {"input_tokens": 50, "output_tokens": 20}

        url = mock_post.call_args.args[0]
        kwargs = mock_post.call_args.kwargs
        assert url == gateway.assistant_url
        assert kwargs["timeout"] == 30
        assert kwargs["headers"]["Authorization"] == "Bearer ld-key"
        payload = kwargs["json"]
        assert payload["assistant"]["instructions"] == "Ești un asistent."
        assert payload["messages"] == [{"role": "user", "content": "Analizează: amendă"}]

    @patch("document_interpreter.gateways.langdock.requests.post")
    def test_attachment_uploaded_first(self, mock_post, gateway):
        mock_post.side_effect = [
            _response(json_data={"attachmentId": "att-1"}),
            _completion(),
        ]
        request = RequestAssembler().assemble_direct(
            AnalysisTier.PREVIEW, Attachment.from_bytes(IMAGE_BYTES, "image/jpeg")
        )

        gateway.generate(request)

        upload_call, chat_call = mock_post.call_args_list
        assert upload_call.args[0] == gateway.upload_url
        name, data, media_type = upload_call.kwargs["files"]["file"]
        assert (name, data, media_type) == ("document.jpg", IMAGE_BYTES, "image/jpeg")
        message = chat_call.kwargs["json"]["messages"][0]
        assert message["attachmentIds"] == ["att-1"]
        assert "imagine" in message["content"]

    @patch("document_interpreter.gateways.langdock.requests.post")
    def test_string_content(self, mock_post, gateway):
        mock_post.return_value = _response(json_data={
            "result": [{"role": "assistant", "content": "  Răspuns  "}],
        })
        assert gateway.generate(_text_request()).generated_text == "Răspuns"

    @pytest.mark.parametrize(
        "json_data",
        [{}, {"result": []}, {"result": [{"role": "assistant", "content": []}]}],
    )
    @patch("document_interpreter.gateways.langdock.requests.post")
    def test_malformed_response(self, mock_post, gateway, json_data):
        mock_post.return_value = _response(json_data=json_data)
        with pytest.raises(GatewayError):
            gateway.generate(_text_request())

    @patch("document_interpreter.gateways.langdock.requests.post")
    def test_upload_without_id(self, mock_post, gateway):
        mock_post.return_value = _response(json_data={"status": "ok"})
        request = RequestAssembler().assemble_direct(
            AnalysisTier.PREVIEW, Attachment.from_bytes(IMAGE_BYTES, "image/jpeg")
        )
        with pytest.raises(GatewayError, match="attachmentId"):
            gateway.generate(request)


# =============================================================================
# TestLangdockGatewayErrors
# =============================================================================


@pytest.mark.unit
class TestLangdockGatewayErrors:

    @pytest.mark.parametrize(
        "status, expected",
        [
            (401, GatewayAuthError),
            (403, GatewayAuthError),
            (429, GatewayRateLimitError),
            (500, GatewayError),
            (502, GatewayError),
        ],
    )
    @patch("document_interpreter.gateways.langdock.requests.post")
    def test_status_codes(self, mock_post, gateway, status, expected):
        mock_post.return_value = _response(status_code=status)
        with pytest.raises(expected):
            gateway.generate(_text_request())

    @pytest.mark.parametrize(
        "error",
        [requests.Timeout("slow"), requests.ConnectionError("refused")],
    )
    @patch("document_interpreter.gateways.langdock.requests.post")
    def test_transport_errors(self, mock_post, gateway, error):
        mock_post.side_effect = error
        with pytest.raises(GatewayError) as exc_info:
            gateway.generate(_text_request())
        assert type(exc_info.value) is GatewayError
