"""
Quality Gate
============

Decides whether extracted text is trustworthy enough to send to the LLM,
or whether the original artifact must be sent instead (multimodal
fallback).

Decision Matrix:
    | Extraction method            | Usable when                      | Otherwise          |
    |------------------------------|----------------------------------|--------------------|
    | PDF_SCANNED / PDF_NATIVE_ERR | never                            | multimodal         |
    | PDF_NATIVE_TEXT              | chars > min_chars                | multimodal         |
    | IMAGE_OCR                    | chars > min_chars, words > min   | multimodal         |
    | DIRECT_TEXT, PLAIN_TEXT_READ | chars > min_text_chars           | ValidationError    |
    | UNKNOWN                      | chars > min_chars                | ValidationError    |

"Otherwise: multimodal" only applies when the caller uploaded a binary
the LLM can read (PDF or image); without one the request is rejected.
"""

import logging

from document_interpreter.config import InterpreterConfig
from document_interpreter.errors import ValidationError
from document_interpreter.extractor import is_multimodal_media_type
from document_interpreter.models import (
    ExtractionMethod,
    ExtractionResult,
    QualityVerdict,
    RoutingDecision,
)

logger = logging.getLogger(__name__)

INSUFFICIENT_CONTENT_MESSAGE = (
    "Documentul nu conține suficient text pentru a fi interpretat. "
    "Vă rugăm să trimiteți un text mai lung sau o fotografie mai clară."
)

TEXT_SOURCE_METHODS = (ExtractionMethod.DIRECT_TEXT, ExtractionMethod.PLAIN_TEXT_READ)


class QualityGate:
    """
    Heuristic check on extracted text.

    Attributes:
        min_chars: Minimum trimmed length for extracted (OCR/PDF) text
        min_text_chars: Minimum trimmed length for pasted or plain-text input
        min_words: Minimum word count for image OCR output
    """

    def __init__(self, config: InterpreterConfig | None = None) -> None:
        config = config or InterpreterConfig()
        self.min_chars = config.min_chars
        self.min_text_chars = config.min_text_chars
        self.min_words = config.min_words

    def decide(
        self,
        extraction: ExtractionResult,
        has_raw_binary: bool,
    ) -> QualityVerdict:
        """
        Route an extraction to text or multimodal submission.

        Args:
            extraction: Result from TextExtractor
            has_raw_binary: Whether the original upload bytes are available

        Returns:
            QualityVerdict with the routing decision and a reason

        Raises:
            ValidationError: If the text is unusable and there is no
                binary to fall back to
        """
        can_fall_back = has_raw_binary and is_multimodal_media_type(extraction.media_type)

        if extraction.method.is_scanned_pdf:
            if can_fall_back:
                return self._verdict(
                    RoutingDecision.USE_MULTIMODAL_FALLBACK,
                    f"pdf without usable text layer ({extraction.method.value})",
                )
            raise ValidationError(INSUFFICIENT_CONTENT_MESSAGE)

        usable, reason = self._is_usable(extraction)
        if usable:
            return self._verdict(RoutingDecision.USE_EXTRACTED_TEXT, reason)

        if can_fall_back:
            return self._verdict(RoutingDecision.USE_MULTIMODAL_FALLBACK, reason)

        logger.info("Quality gate rejected %s input: %s", extraction.method.value, reason)
        raise ValidationError(INSUFFICIENT_CONTENT_MESSAGE)

    def _is_usable(self, extraction: ExtractionResult) -> tuple[bool, str]:
        chars = extraction.char_count

        if extraction.method in TEXT_SOURCE_METHODS:
            if chars > self.min_text_chars:
                return True, f"{chars} chars"
            return False, f"only {chars} chars (min {self.min_text_chars + 1})"

        if chars <= self.min_chars:
            return False, f"only {chars} chars (min {self.min_chars + 1})"

        # Sparse OCR noise on images
        if extraction.method == ExtractionMethod.IMAGE_OCR:
            words = extraction.word_count
            if words <= self.min_words:
                return False, f"only {words} words (min {self.min_words + 1})"
            return True, f"{chars} chars, {words} words"

        return True, f"{chars} chars"

    def _verdict(self, decision: RoutingDecision, reason: str) -> QualityVerdict:
        logger.info("Quality gate: %s (%s)", decision.value, reason)
        return QualityVerdict(decision=decision, reason=reason)
