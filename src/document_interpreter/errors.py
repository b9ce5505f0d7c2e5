"""Error taxonomy for the interpretation pipeline."""


class InterpreterError(Exception):
    """Base exception for all pipeline errors."""


class ValidationError(InterpreterError):
    """Raised when the submitted input is missing, empty, or not acceptable."""


class PayloadTooLargeError(ValidationError):
    """Raised when an upload exceeds the configured size limit."""


class PaymentRequiredError(InterpreterError):
    """Raised when the full tier is requested without verified payment."""


class ExtractionError(InterpreterError):
    """Raised on unrecoverable I/O or OCR engine failure during extraction."""


class GatewayError(InterpreterError):
    """Raised when the LLM provider call fails."""


class GatewayAuthError(GatewayError):
    """Raised when the LLM provider rejects the configured credentials."""


class GatewayRateLimitError(GatewayError):
    """Raised when the LLM provider rate-limits the request (429, RESOURCE_EXHAUSTED)."""
