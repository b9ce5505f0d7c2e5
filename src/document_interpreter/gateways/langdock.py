"""
Langdock LLM Gateway
====================

Chat-completion gateway using the Langdock Assistant API (EU-hosted
Claude, GPT and Gemini models). Attachments are uploaded first and
referenced by attachment ID.
"""

import logging
import os
import time
from typing import Any, Dict, List, Optional

import requests

from document_interpreter.errors import (
    GatewayAuthError,
    GatewayError,
    GatewayRateLimitError,
)
from document_interpreter.models import LLMRequest, LLMResponse, MultimodalPayload

from .base import BaseLLMGateway

logger = logging.getLogger(__name__)

ATTACHMENT_EXTENSIONS = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class LangdockGateway(BaseLLMGateway):
    """
    LLM gateway using the Langdock Assistant API.

    The assistant API has no output token cap, so the tier budget is
    enforced through the instructions only.

    Environment variables:
        LANGDOCK_API_KEY: API key for Langdock
        LANGDOCK_UPLOAD_URL: Upload endpoint
        LANGDOCK_ASSISTANT_URL: Chat completions endpoint
        LANGDOCK_MODEL: Model to use (default: claude-sonnet-4-5@20250929)
    """

    DEFAULT_UPLOAD_URL = "https://api.langdock.com/attachment/v1/upload"
    DEFAULT_ASSISTANT_URL = "https://api.langdock.com/assistant/v1/chat/completions"
    DEFAULT_MODEL = "claude-sonnet-4-5@20250929"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        upload_url: Optional[str] = None,
        assistant_url: Optional[str] = None,
        temperature: float = 0.3,
        timeout: int = 120,
    ):
        super().__init__(name="Langdock")

        self.api_key = api_key or os.getenv("LANGDOCK_API_KEY")
        self.model = model or os.getenv("LANGDOCK_MODEL", self.DEFAULT_MODEL)
        self.upload_url = upload_url or os.getenv("LANGDOCK_UPLOAD_URL", self.DEFAULT_UPLOAD_URL)
        self.assistant_url = assistant_url or os.getenv("LANGDOCK_ASSISTANT_URL", self.DEFAULT_ASSISTANT_URL)
        self.temperature = temperature
        self.timeout = timeout

    def is_available(self) -> bool:
        """Check if Langdock API is configured."""
        return bool(self.api_key)

    def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a response through Langdock.

        Raises:
            GatewayAuthError: Missing or rejected API key
            GatewayRateLimitError: HTTP 429
            GatewayError: Any other API or transport failure
        """
        if not self.is_available():
            raise GatewayAuthError("Langdock API key not configured")

        start_time = time.time()
        messages = []
        for turn in request.messages:
            message: Dict[str, Any] = {"role": turn.role.value, "content": turn.text}
            if isinstance(turn.content, MultimodalPayload):
                message["attachmentIds"] = [self._upload_attachment(turn.content)]
            messages.append(message)

        payload = {
            "assistant": {
                "name": "Interpret-Documente",
                "model": self.model,
                "temperature": self.temperature,
                "instructions": request.system_instruction,
            },
            "messages": messages,
        }

        response = self._post(
            self.assistant_url,
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        try:
            data = response.json()
        except ValueError as e:
            raise GatewayError("Langdock returned a non-JSON response") from e
        text = self._extract_text_from_response(data)

        logger.info(
            "Langdock call completed: model=%s, tier=%s, multimodal=%s, time=%.0fms",
            self.model,
            request.tier.value,
            request.is_multimodal,
            (time.time() - start_time) * 1000,
        )

        return LLMResponse(
            generated_text=text,
            usage_metadata=data.get("usage"),
            model=self.model,
        )

    def _upload_attachment(self, payload: MultimodalPayload) -> str:
        """Upload an attachment and return its Langdock attachment ID."""
        extension = ATTACHMENT_EXTENSIONS.get(payload.attachment_media_type, "")
        files = {
            "file": (
                f"document{extension}",
                payload.attachment_bytes(),
                payload.attachment_media_type,
            )
        }
        response = self._post(self.upload_url, files=files)
        try:
            return response.json()["attachmentId"]
        except (KeyError, ValueError) as e:
            raise GatewayError("Langdock upload returned no attachmentId") from e

    def _post(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> requests.Response:
        all_headers = {"Authorization": f"Bearer {self.api_key}"}
        all_headers.update(headers or {})

        try:
            response = requests.post(url, headers=all_headers, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise GatewayError(f"Langdock request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise GatewayError(f"Langdock transport error: {type(e).__name__}") from e

        if response.status_code in (401, 403):
            logger.error("Langdock rejected credentials (status %s)", response.status_code)
            raise GatewayAuthError("LLM provider authentication failed")
        if response.status_code == 429:
            logger.warning("Langdock rate limited the request")
            raise GatewayRateLimitError("LLM provider rate limit reached")
        if response.status_code != 200:
            raise GatewayError(f"Langdock request failed: {response.status_code}")
        return response

    def _extract_text_from_response(self, response: Dict[str, Any]) -> str:
        """Extract text content from Langdock API response."""
        if "result" not in response:
            raise GatewayError("No 'result' in Langdock response")

        for message in reversed(response["result"]):
            if message.get("role") == "assistant":
                content = message.get("content", [])

                if isinstance(content, str):
                    return content.strip()
                elif isinstance(content, list):
                    texts: List[str] = []
                    for item in content:
                        if isinstance(item, dict) and item.get("type") == "text":
                            texts.append(item.get("text", ""))
                        elif isinstance(item, str):
                            texts.append(item)
                    if texts:
                        return "\n".join(texts).strip()

        raise GatewayError("No text content found in Langdock response")
