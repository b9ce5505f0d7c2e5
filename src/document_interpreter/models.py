"""
Data Models for Document Interpretation
=======================================

Shared data models for the interpretation pipeline. Every instance is
owned by the request that creates it; nothing here outlives one
request/response cycle.
"""

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from document_interpreter.errors import ValidationError


class ExtractionMethod(Enum):
    """Strategy that produced the extracted text."""

    DIRECT_TEXT = "direct_text"  # Text pasted by the caller
    PDF_NATIVE_TEXT = "pdf_native_text"  # PDF text layer
    PDF_SCANNED_FALLBACK = "pdf_scanned_fallback"  # Text layer empty or too short
    PDF_NATIVE_ERROR = "pdf_native_error"  # PDF parser raised
    IMAGE_OCR = "image_ocr"
    PLAIN_TEXT_READ = "plain_text_read"
    UNKNOWN = "unknown"  # Best-effort OCR on an unrecognised type

    @property
    def is_scanned_pdf(self) -> bool:
        return self in (
            ExtractionMethod.PDF_SCANNED_FALLBACK,
            ExtractionMethod.PDF_NATIVE_ERROR,
        )


class AnalysisTier(Enum):
    """Service tier, fixed for the lifetime of a request."""

    PREVIEW = "preview"
    FULL = "full"
    CHAT_FOLLOWUP = "chat_followup"

    @classmethod
    def parse(cls, value: str) -> "AnalysisTier":
        """Map a caller-supplied analysis type ("preview" or "full") to a tier."""
        normalized = (value or "").strip().lower()
        if normalized == "preview":
            return cls.PREVIEW
        if normalized == "full":
            return cls.FULL
        raise ValidationError(
            "Tipul analizei trebuie să fie 'preview' sau 'full'."
        )


class RoutingDecision(Enum):
    """How the document content reaches the LLM."""

    USE_EXTRACTED_TEXT = "use_extracted_text"
    USE_MULTIMODAL_FALLBACK = "use_multimodal_fallback"


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class SubmittedDocument:
    """A single document submitted by the caller: an upload or pasted text."""

    raw_bytes: bytes | None = None
    declared_media_type: str | None = None
    original_filename: str = ""
    size_bytes: int = 0
    inline_text: str | None = None

    def __post_init__(self) -> None:
        has_upload = self.raw_bytes is not None
        has_text = self.inline_text is not None
        if has_upload == has_text:
            raise ValueError(
                "SubmittedDocument needs exactly one of raw_bytes or inline_text"
            )

    @classmethod
    def from_upload(
        cls,
        raw_bytes: bytes,
        media_type: str | None,
        filename: str | None = None,
    ) -> "SubmittedDocument":
        return cls(
            raw_bytes=raw_bytes,
            declared_media_type=(media_type or "application/octet-stream").lower(),
            original_filename=filename or "upload",
            size_bytes=len(raw_bytes),
        )

    @classmethod
    def from_text(cls, text: str) -> "SubmittedDocument":
        return cls(
            inline_text=text,
            original_filename="text",
            size_bytes=len(text.encode("utf-8")),
        )

    @property
    def has_binary(self) -> bool:
        return self.raw_bytes is not None


@dataclass(frozen=True)
class ExtractionResult:
    """Result from TextExtractor.extract(). Immutable, consumed once."""

    text: str
    method: ExtractionMethod
    succeeded: bool
    media_type: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def char_count(self) -> int:
        """Length of the trimmed text."""
        return len(self.text.strip())

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(frozen=True)
class QualityVerdict:
    """Routing decision from QualityGate.decide()."""

    decision: RoutingDecision
    reason: str = ""

    @property
    def uses_multimodal(self) -> bool:
        return self.decision == RoutingDecision.USE_MULTIMODAL_FALLBACK


@dataclass(frozen=True)
class PromptTemplate:
    """Instruction template for one analysis tier."""

    system_instruction: str
    user_instruction_template: str
    multimodal_instruction: str
    max_output_tokens: int

    def render(self, text: str) -> str:
        return self.user_instruction_template.format(text=text)


@dataclass(frozen=True)
class Attachment:
    """Binary artifact (image or PDF) carried to the LLM as base64."""

    data_base64: str
    media_type: str

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str) -> "Attachment":
        return cls(
            data_base64=base64.b64encode(data).decode("ascii"),
            media_type=media_type,
        )

    @classmethod
    def from_base64(cls, data_base64: str, media_type: str) -> "Attachment":
        """
        Build an attachment from caller-supplied base64, tolerating data URLs.

        Raises:
            ValidationError: If the data is not valid base64
        """
        data = (data_base64 or "").strip()
        if data.startswith("data:") and "," in data:
            header, data = data.split(",", 1)
            if not media_type:
                media_type = header[5:].split(";", 1)[0]
        data = "".join(data.split())
        try:
            base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError("Imaginea trimisă nu este codificată corect.") from e
        return cls(data_base64=data, media_type=(media_type or "").lower())

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data_base64)

    @property
    def size_bytes(self) -> int:
        # Decoded length, computed from the base64 length
        padding = self.data_base64.count("=", -2)
        return len(self.data_base64) * 3 // 4 - padding


@dataclass(frozen=True)
class TextPayload:
    text: str


@dataclass(frozen=True)
class MultimodalPayload:
    attachment_base64: str
    attachment_media_type: str
    instruction_text: str

    @classmethod
    def from_attachment(
        cls, attachment: Attachment, instruction_text: str
    ) -> "MultimodalPayload":
        return cls(
            attachment_base64=attachment.data_base64,
            attachment_media_type=attachment.media_type,
            instruction_text=instruction_text,
        )

    def attachment_bytes(self) -> bytes:
        return base64.b64decode(self.attachment_base64)


@dataclass(frozen=True)
class ConversationTurn:
    """One chat message. Only the most recent user turn may be multimodal."""

    role: Role
    content: Union[str, MultimodalPayload]

    @property
    def text(self) -> str:
        if isinstance(self.content, MultimodalPayload):
            return self.content.instruction_text
        return self.content

    @property
    def is_multimodal(self) -> bool:
        return isinstance(self.content, MultimodalPayload)


@dataclass(frozen=True)
class ChatPayload:
    turns: tuple[ConversationTurn, ...]


Payload = Union[TextPayload, MultimodalPayload, ChatPayload]


@dataclass(frozen=True)
class LLMRequest:
    """Request handed to an LLM gateway. Built fresh per request."""

    system_instruction: str
    payload: Payload
    max_output_tokens: int
    tier: AnalysisTier = AnalysisTier.PREVIEW

    @property
    def messages(self) -> list[ConversationTurn]:
        """Ordered turns sent to the provider."""
        if isinstance(self.payload, ChatPayload):
            return list(self.payload.turns)
        if isinstance(self.payload, TextPayload):
            return [ConversationTurn(role=Role.USER, content=self.payload.text)]
        return [ConversationTurn(role=Role.USER, content=self.payload)]

    @property
    def is_multimodal(self) -> bool:
        return any(turn.is_multimodal for turn in self.messages)


@dataclass
class LLMResponse:
    """Generated text returned by an LLM gateway."""

    generated_text: str
    usage_metadata: dict[str, Any] | None = None
    model: str | None = None


@dataclass
class InterpretationResult:
    """Outward result of one pipeline run."""

    tier: AnalysisTier
    text: str
    route: RoutingDecision | None = None
    extraction_method: ExtractionMethod | None = None
    usage: dict[str, Any] | None = None
    model: str | None = None
    processing_time_ms: float = 0.0
