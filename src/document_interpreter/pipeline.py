"""
Interpretation Pipeline
=======================

Sequences one request through the pipeline:

    Received -> Validating -> Extracting -> QualityCheck
             -> {TextRoute | MultimodalRoute} -> Assembling -> CallingLLM -> Responded

Stages run strictly in order; nothing is retried. Any stage failure ends
the request with a typed error, and translate_error() is the single
place where error kinds become HTTP status codes and user-facing
messages.

Usage:
    pipeline = InterpretationPipeline.from_config(InterpreterConfig.from_env())
    document = SubmittedDocument.from_text("Ați primit o amendă de 500 lei.")
    result = pipeline.interpret(document, AnalysisTier.PREVIEW)
    print(result.text)
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from document_interpreter.assembler import RequestAssembler
from document_interpreter.backends.base import BaseOCRBackend
from document_interpreter.backends.tesseract import TesseractBackend
from document_interpreter.config import InterpreterConfig
from document_interpreter.errors import (
    ExtractionError,
    GatewayAuthError,
    GatewayError,
    GatewayRateLimitError,
    PayloadTooLargeError,
    PaymentRequiredError,
    ValidationError,
)
from document_interpreter.extractor import (
    TextExtractor,
    is_multimodal_media_type,
    resolve_media_type,
)
from document_interpreter.gateways import BaseLLMGateway, create_gateway
from document_interpreter.models import (
    AnalysisTier,
    Attachment,
    InterpretationResult,
    LLMRequest,
    LLMResponse,
    SubmittedDocument,
)
from document_interpreter.payment import (
    AllowAllVerifier,
    PaymentVerifier,
    TokenListVerifier,
)
from document_interpreter.prompts import PromptSelector
from document_interpreter.quality_gate import QualityGate

logger = logging.getLogger(__name__)

DOCUMENT_TIERS = (AnalysisTier.PREVIEW, AnalysisTier.FULL)


# ============================================================================
# Error translation
# ============================================================================


@dataclass(frozen=True)
class ErrorOutcome:
    """HTTP status and user-facing message for a failed request."""

    status_code: int
    message: str


MSG_NO_CONTENT = "Vă rugăm să introduceți un text sau să încărcați un fișier."
MSG_PAYMENT_REQUIRED = "Analiza completă necesită plata."
MSG_EXTRACTION_FAILED = (
    "Nu am putut citi documentul. Vă rugăm să încercați din nou sau "
    "să încărcați o fotografie mai clară."
)
MSG_SERVICE_CONFIG = (
    "Serviciul de analiză nu este configurat corect. Vă rugăm să încercați mai târziu."
)
MSG_RATE_LIMITED = "Prea multe cereri. Vă rugăm să încercați din nou în câteva momente."
MSG_GATEWAY_FAILED = (
    "Serviciul de analiză nu este disponibil momentan. Vă rugăm să încercați din nou."
)
MSG_INTERNAL = "A apărut o eroare neașteptată. Vă rugăm să încercați din nou."


def translate_error(exc: BaseException) -> ErrorOutcome:
    """
    Map an error to its HTTP status and user-facing (Romanian) message.

    Validation messages are shown to the caller as raised; every other
    kind gets a fixed message so internal details and credentials never
    leak.
    """
    if isinstance(exc, PayloadTooLargeError):
        return ErrorOutcome(413, str(exc) or MSG_NO_CONTENT)
    if isinstance(exc, ValidationError):
        return ErrorOutcome(400, str(exc) or MSG_NO_CONTENT)
    if isinstance(exc, PaymentRequiredError):
        return ErrorOutcome(402, MSG_PAYMENT_REQUIRED)
    if isinstance(exc, ExtractionError):
        return ErrorOutcome(500, MSG_EXTRACTION_FAILED)
    if isinstance(exc, GatewayAuthError):
        return ErrorOutcome(500, MSG_SERVICE_CONFIG)
    if isinstance(exc, GatewayRateLimitError):
        return ErrorOutcome(429, MSG_RATE_LIMITED)
    if isinstance(exc, GatewayError):
        return ErrorOutcome(502, MSG_GATEWAY_FAILED)
    return ErrorOutcome(500, MSG_INTERNAL)


# ============================================================================
# Pipeline
# ============================================================================


class InterpretationPipeline:
    """Orchestrates extraction, quality gating, assembly and the LLM call."""

    def __init__(
        self,
        gateway: BaseLLMGateway,
        extractor: TextExtractor | None = None,
        quality_gate: QualityGate | None = None,
        assembler: RequestAssembler | None = None,
        payment_verifier: PaymentVerifier | None = None,
        config: InterpreterConfig | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            gateway: LLM gateway (e.g., GeminiGateway)
            extractor: Text extractor, built from config when omitted
            quality_gate: Quality gate, built from config when omitted
            assembler: Request assembler with the default prompt templates
            payment_verifier: Full-tier check, allows everything when omitted
            config: Interpreter configuration
        """
        self.config = config or InterpreterConfig()
        self.gateway = gateway
        self.extractor = extractor or TextExtractor(config=self.config)
        self.quality_gate = quality_gate or QualityGate(self.config)
        self.assembler = assembler or RequestAssembler(PromptSelector())
        self.payment_verifier = payment_verifier or AllowAllVerifier()

    @classmethod
    def from_config(
        cls,
        config: InterpreterConfig,
        ocr_backend: BaseOCRBackend | None = None,
        gateway: BaseLLMGateway | None = None,
    ) -> "InterpretationPipeline":
        """Build a pipeline with Tesseract OCR and the configured LLM provider."""
        if ocr_backend is None:
            ocr_backend = TesseractBackend(lang=config.ocr_lang)
        if gateway is None:
            gateway = create_gateway(config.llm_provider, timeout=config.llm_timeout_seconds)

        if config.full_tier_access_tokens:
            verifier: PaymentVerifier = TokenListVerifier(config.full_tier_access_tokens)
        else:
            verifier = AllowAllVerifier()

        return cls(
            gateway=gateway,
            extractor=TextExtractor(ocr_backend=ocr_backend, config=config),
            quality_gate=QualityGate(config),
            payment_verifier=verifier,
            config=config,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def interpret(
        self,
        document: SubmittedDocument,
        tier: AnalysisTier,
        payment_token: str | None = None,
    ) -> InterpretationResult:
        """
        Interpret an uploaded or pasted document at the PREVIEW or FULL tier.

        Raises:
            ValidationError, PaymentRequiredError, ExtractionError, GatewayError
        """
        if tier not in DOCUMENT_TIERS:
            raise ValueError(f"Tier {tier.value} is not a document analysis tier")

        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()
        logger.info(
            "[%s] Received %s request: file=%s, size=%d",
            request_id,
            tier.value,
            document.original_filename,
            document.size_bytes,
        )

        media_type = self.validate(document)
        self.payment_verifier.require(tier, payment_token)

        extraction = self.extractor.extract(document)
        verdict = self.quality_gate.decide(extraction, has_raw_binary=document.has_binary)
        logger.info("[%s] Route: %s (%s)", request_id, verdict.decision.value, verdict.reason)

        attachment = None
        if verdict.uses_multimodal:
            attachment = Attachment.from_bytes(document.raw_bytes or b"", media_type)

        request = self.assembler.assemble(tier, verdict, extraction, attachment)
        response = self._call(request_id, request)

        return InterpretationResult(
            tier=tier,
            text=response.generated_text,
            route=verdict.decision,
            extraction_method=extraction.method,
            usage=response.usage_metadata,
            model=response.model,
            processing_time_ms=(time.time() - start_time) * 1000,
        )

    def analyze_attachment(
        self,
        attachment: Attachment,
        tier: AnalysisTier,
        payment_token: str | None = None,
    ) -> InterpretationResult:
        """Send an image or PDF straight to the LLM, skipping extraction."""
        if tier not in DOCUMENT_TIERS:
            raise ValueError(f"Tier {tier.value} is not a document analysis tier")

        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()
        logger.info(
            "[%s] Received direct %s analysis: type=%s, size=%d",
            request_id,
            tier.value,
            attachment.media_type,
            attachment.size_bytes,
        )

        self.validate_attachment(attachment)
        self.payment_verifier.require(tier, payment_token)

        request = self.assembler.assemble_direct(tier, attachment)
        response = self._call(request_id, request)

        return InterpretationResult(
            tier=tier,
            text=response.generated_text,
            usage=response.usage_metadata,
            model=response.model,
            processing_time_ms=(time.time() - start_time) * 1000,
        )

    def chat(
        self,
        messages: Iterable[Mapping[str, Any]],
        system: str | None = None,
        image: Attachment | None = None,
        document_context: str | None = None,
    ) -> InterpretationResult:
        """Answer a follow-up question given the caller-supplied history."""
        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()

        if image is not None:
            self.validate_attachment(image)

        request = self.assembler.assemble_chat(
            messages,
            system=system,
            image=image,
            document_context=document_context,
        )
        logger.info(
            "[%s] Received chat request: turns=%d, image=%s, context=%s",
            request_id,
            len(request.messages),
            image is not None,
            bool(document_context),
        )
        response = self._call(request_id, request)

        return InterpretationResult(
            tier=AnalysisTier.CHAT_FOLLOWUP,
            text=response.generated_text,
            usage=response.usage_metadata,
            model=response.model,
            processing_time_ms=(time.time() - start_time) * 1000,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, document: SubmittedDocument) -> str:
        """
        Reject empty, oversized or unaccepted submissions before extraction.

        Returns:
            The effective media type of the document
        """
        if document.inline_text is not None:
            if not document.inline_text.strip():
                raise ValidationError(MSG_NO_CONTENT)
            self._check_size(document.size_bytes)
            return "text/plain"

        if document.size_bytes == 0:
            raise ValidationError("Fișierul încărcat este gol.")
        self._check_size(document.size_bytes)

        media_type = resolve_media_type(document)
        if not self.config.accepts(media_type):
            raise ValidationError(
                "Tip de fișier neacceptat. Încărcați un PDF, o imagine sau un fișier text."
            )
        return media_type

    def validate_attachment(self, attachment: Attachment) -> None:
        if not attachment.data_base64:
            raise ValidationError("Imaginea lipsește.")
        self._check_size(attachment.size_bytes)
        if not is_multimodal_media_type(attachment.media_type) or not self.config.accepts(
            attachment.media_type
        ):
            raise ValidationError(
                "Tip de fișier neacceptat. Trimiteți o imagine sau un PDF."
            )

    def _check_size(self, size_bytes: int) -> None:
        if size_bytes > self.config.max_upload_bytes:
            raise PayloadTooLargeError(
                f"Fișierul depășește limita de {self.config.max_upload_mb:.0f} MB."
            )

    def _call(self, request_id: str, request: LLMRequest) -> LLMResponse:
        logger.info(
            "[%s] Calling %s: tier=%s, multimodal=%s, max_tokens=%d",
            request_id,
            self.gateway.name,
            request.tier.value,
            request.is_multimodal,
            request.max_output_tokens,
        )
        response = self.gateway.generate(request)
        logger.info("[%s] Responded: %d chars", request_id, len(response.generated_text))
        return response
