"""
Base LLM Gateway
================

Abstract base class for LLM provider adapters. A gateway is stateless per
call: it receives an LLMRequest (system instruction, token budget, ordered
messages) and returns the generated text.

Gateways must raise:
- GatewayAuthError when the provider rejects the credentials
- GatewayRateLimitError when the provider rate-limits the call
- GatewayError for any other provider failure

No gateway retries on its own.
"""

from abc import ABC, abstractmethod

from document_interpreter.models import LLMRequest, LLMResponse


class BaseLLMGateway(ABC):
    """Abstract base class for LLM gateways."""

    def __init__(self, name: str = "BaseLLM"):
        self.name = name

    @abstractmethod
    def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Send a request to the provider.

        Args:
            request: Assembled LLMRequest

        Returns:
            LLMResponse with generated text and usage metadata
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the gateway is configured (API key present)."""

    def __repr__(self) -> str:
        available = "available" if self.is_available() else "unavailable"
        return f"{self.__class__.__name__}(name='{self.name}', {available})"
