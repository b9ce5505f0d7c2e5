"""
LLM Gateways
============

LLM provider adapters used by the interpretation pipeline.

Available Gateways:
- GeminiGateway: Google Gemini via the google-genai SDK (default)
- LangdockGateway: Langdock Assistant API (EU-hosted models)

Usage:
    from document_interpreter.gateways import create_gateway

    gateway = create_gateway("gemini", timeout=120)
    if gateway.is_available():
        response = gateway.generate(request)
"""

from .base import BaseLLMGateway
from .gemini import GeminiGateway
from .langdock import LangdockGateway

GATEWAYS = {
    "gemini": GeminiGateway,
    "langdock": LangdockGateway,
}


def create_gateway(provider: str = "gemini", timeout: int = 120) -> BaseLLMGateway:
    """Instantiate the gateway registered under ``provider``."""
    try:
        gateway_cls = GATEWAYS[provider]
    except KeyError:
        raise ValueError(
            f"Unknown LLM provider '{provider}'. "
            f"Available providers: {', '.join(sorted(GATEWAYS))}."
        ) from None
    return gateway_cls(timeout=timeout)


__all__ = [
    "BaseLLMGateway",
    "GeminiGateway",
    "LangdockGateway",
    "GATEWAYS",
    "create_gateway",
]
