"""
Document Interpreter
====================

Explains official documents (tax notices, fines, employment letters) in
plain Romanian using an LLM.

Features:
- Text extraction per media type (PDF text layer, Tesseract OCR, plain text)
- Quality gate with multimodal fallback: scans and sparse OCR are sent to
  the LLM as the original image or PDF
- Three service tiers (preview, full, chat follow-up) with fixed prompts
- Pluggable LLM gateways (Gemini, Langdock)

Basic Usage:
    from document_interpreter import (
        AnalysisTier,
        InterpreterConfig,
        InterpretationPipeline,
        SubmittedDocument,
    )

    pipeline = InterpretationPipeline.from_config(InterpreterConfig.from_env())
    document = SubmittedDocument.from_upload(pdf_bytes, "application/pdf", "notice.pdf")
    result = pipeline.interpret(document, AnalysisTier.PREVIEW)
    print(result.text)
"""

__version__ = "0.1.0"

from .config import InterpreterConfig
from .errors import (
    ExtractionError,
    GatewayAuthError,
    GatewayError,
    GatewayRateLimitError,
    InterpreterError,
    PayloadTooLargeError,
    PaymentRequiredError,
    ValidationError,
)
from .models import (
    AnalysisTier,
    Attachment,
    ChatPayload,
    ConversationTurn,
    ExtractionMethod,
    ExtractionResult,
    InterpretationResult,
    LLMRequest,
    LLMResponse,
    MultimodalPayload,
    PromptTemplate,
    QualityVerdict,
    Role,
    RoutingDecision,
    SubmittedDocument,
    TextPayload,
)
from .extractor import TextExtractor
from .quality_gate import QualityGate
from .prompts import PromptSelector
from .assembler import RequestAssembler
from .pipeline import ErrorOutcome, InterpretationPipeline, translate_error

__all__ = [
    # Version
    "__version__",
    # Configuration
    "InterpreterConfig",
    # Errors
    "InterpreterError",
    "ValidationError",
    "PayloadTooLargeError",
    "PaymentRequiredError",
    "ExtractionError",
    "GatewayError",
    "GatewayAuthError",
    "GatewayRateLimitError",
    # Models
    "AnalysisTier",
    "Attachment",
    "ChatPayload",
    "ConversationTurn",
    "ExtractionMethod",
    "ExtractionResult",
    "InterpretationResult",
    "LLMRequest",
    "LLMResponse",
    "MultimodalPayload",
    "PromptTemplate",
    "QualityVerdict",
    "Role",
    "RoutingDecision",
    "SubmittedDocument",
    "TextPayload",
    # Pipeline
    "TextExtractor",
    "QualityGate",
    "PromptSelector",
    "RequestAssembler",
    "InterpretationPipeline",
    "ErrorOutcome",
    "translate_error",
]
