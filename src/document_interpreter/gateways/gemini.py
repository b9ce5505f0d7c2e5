"""
Gemini LLM Gateway
==================

Chat-completion gateway using the Google Gemini API (google-genai SDK).
Images and PDFs are sent inline as native multimodal parts.
"""

import logging
import os
import time
from typing import Any

import httpx

from document_interpreter.errors import (
    GatewayAuthError,
    GatewayError,
    GatewayRateLimitError,
)
from document_interpreter.models import LLMRequest, LLMResponse, Role

from .base import BaseLLMGateway

logger = logging.getLogger(__name__)

AUTH_ERROR_MARKERS = ("API_KEY_INVALID", "PERMISSION_DENIED", "UNAUTHENTICATED")
RATE_LIMIT_STATUS = "RESOURCE_EXHAUSTED"


class GeminiGateway(BaseLLMGateway):
    """
    LLM gateway using Google Gemini with vision-capable models.

    Environment variables:
        GEMINI_API_KEY: API key for Google Gemini
        GEMINI_MODEL: Model to use (default: gemini-2.5-flash)
    """

    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float = 0.3,
        timeout: int = 120,
    ):
        """
        Initialize Gemini gateway.

        Args:
            api_key: Gemini API key (or GEMINI_API_KEY env var)
            model: Model to use (or GEMINI_MODEL env var)
            temperature: Sampling temperature
            timeout: Request timeout in seconds
        """
        super().__init__(name="Gemini")

        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        self.model = model or os.getenv("GEMINI_MODEL", self.DEFAULT_MODEL)
        self.temperature = temperature
        self.timeout = timeout
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazy-initialize the genai client."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def is_available(self) -> bool:
        """Check if Gemini API is configured."""
        return bool(self.api_key)

    def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a response with Gemini.

        Raises:
            GatewayAuthError: Missing or rejected API key
            GatewayRateLimitError: 429 / RESOURCE_EXHAUSTED
            GatewayError: Any other API or transport failure
        """
        if not self.is_available():
            raise GatewayAuthError("Gemini API key not configured")

        from google.genai import errors as genai_errors
        from google.genai import types

        start_time = time.time()
        contents = self._build_contents(request, types)
        config = types.GenerateContentConfig(
            system_instruction=request.system_instruction,
            max_output_tokens=request.max_output_tokens,
            temperature=self.temperature,
            http_options=types.HttpOptions(timeout=self.timeout * 1000),
        )

        try:
            response = self._get_client().models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except genai_errors.ClientError as exc:
            raise self._map_client_error(exc) from exc
        except genai_errors.APIError as exc:
            raise GatewayError(f"Gemini API error: {exc.code}") from exc
        except httpx.TimeoutException as exc:
            raise GatewayError(f"Gemini request timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise GatewayError(f"Gemini transport error: {type(exc).__name__}") from exc

        text = response.text or ""
        if not text.strip():
            raise GatewayError("Gemini returned an empty response")

        usage = self._usage(response)
        logger.info(
            "Gemini call completed: model=%s, tier=%s, multimodal=%s, output_tokens=%s, time=%.0fms",
            self.model,
            request.tier.value,
            request.is_multimodal,
            usage.get("output_tokens") if usage else None,
            (time.time() - start_time) * 1000,
        )

        return LLMResponse(generated_text=text, usage_metadata=usage, model=self.model)

    def _build_contents(self, request: LLMRequest, types: Any) -> list[Any]:
        """Map conversation turns to Gemini contents (assistant -> model)."""
        contents = []
        for turn in request.messages:
            role = "model" if turn.role == Role.ASSISTANT else "user"
            if turn.is_multimodal:
                payload = turn.content
                parts = [
                    types.Part.from_bytes(
                        data=payload.attachment_bytes(),
                        mime_type=payload.attachment_media_type,
                    ),
                    types.Part.from_text(text=payload.instruction_text),
                ]
            else:
                parts = [types.Part.from_text(text=turn.content)]
            contents.append(types.Content(role=role, parts=parts))
        return contents

    def _map_client_error(self, exc: Any) -> GatewayError:
        message = str(exc)
        code = getattr(exc, "code", None)
        if code in (401, 403) or any(marker in message for marker in AUTH_ERROR_MARKERS):
            logger.error("Gemini rejected credentials (status %s)", code)
            return GatewayAuthError("LLM provider authentication failed")
        if code == 429 or getattr(exc, "status", None) == RATE_LIMIT_STATUS:
            logger.warning("Gemini rate limited the request")
            return GatewayRateLimitError("LLM provider rate limit reached")
        return GatewayError(f"Gemini client error: {code}")

    def _usage(self, response: Any) -> dict[str, Any] | None:
        metadata = getattr(response, "usage_metadata", None)
        if metadata is None:
            return None
        return {
            "input_tokens": getattr(metadata, "prompt_token_count", None),
            "output_tokens": getattr(metadata, "candidates_token_count", None),
            "total_tokens": getattr(metadata, "total_token_count", None),
        }
