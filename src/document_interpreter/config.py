"""
Interpreter Configuration
=========================

Process-wide configuration for the interpretation pipeline.

Built once at startup (usually from environment variables) and passed
by reference into the pipeline. Instances are frozen and never mutated
per request.
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

MEGABYTE = 1024 * 1024

DEFAULT_ACCEPTED_MEDIA_TYPES = (
    "application/pdf",
    "image/*",
    "text/plain",
    "application/octet-stream",
)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class InterpreterConfig:
    """Configuration for InterpretationPipeline and its components."""

    # Upload limits
    max_upload_bytes: int = 20 * MEGABYTE
    accepted_media_types: tuple[str, ...] = DEFAULT_ACCEPTED_MEDIA_TYPES
    upload_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    # Extraction
    pdf_min_native_chars: int = 100
    ocr_lang: str = "ron+eng"
    ocr_timeout_seconds: int = 60

    # Quality gate
    min_chars: int = 50
    min_text_chars: int = 20
    min_words: int = 10

    # LLM gateway
    llm_provider: str = "gemini"
    llm_timeout_seconds: int = 120

    # Full tier access
    full_tier_access_tokens: tuple[str, ...] = ()

    @property
    def max_upload_mb(self) -> float:
        return self.max_upload_bytes / MEGABYTE

    @classmethod
    def from_env(cls) -> "InterpreterConfig":
        """
        Build configuration from environment variables.

        Environment variables:
            MAX_UPLOAD_MB: Maximum upload size in megabytes (default: 20)
            ACCEPTED_MEDIA_TYPES: Comma-separated accepted media types
            UPLOAD_DIR: Directory for temporary uploads (default: system temp)
            PDF_MIN_NATIVE_CHARS: Native PDF text threshold (default: 100)
            TESSERACT_LANG: OCR languages (default: ron+eng)
            OCR_TIMEOUT_SECONDS: OCR timeout per document (default: 60)
            QUALITY_MIN_CHARS / QUALITY_MIN_TEXT_CHARS / QUALITY_MIN_WORDS
            LLM_PROVIDER: gemini or langdock (default: gemini)
            LLM_TIMEOUT_SECONDS: LLM request timeout (default: 120)
            FULL_TIER_ACCESS_TOKENS: Comma-separated tokens unlocking the full tier
        """
        upload_dir = os.getenv("UPLOAD_DIR")
        return cls(
            max_upload_bytes=_env_int("MAX_UPLOAD_MB", 20) * MEGABYTE,
            accepted_media_types=_env_list(
                "ACCEPTED_MEDIA_TYPES", DEFAULT_ACCEPTED_MEDIA_TYPES
            ),
            upload_dir=Path(upload_dir) if upload_dir else Path(tempfile.gettempdir()),
            pdf_min_native_chars=_env_int("PDF_MIN_NATIVE_CHARS", 100),
            ocr_lang=os.getenv("TESSERACT_LANG", "ron+eng"),
            ocr_timeout_seconds=_env_int("OCR_TIMEOUT_SECONDS", 60),
            min_chars=_env_int("QUALITY_MIN_CHARS", 50),
            min_text_chars=_env_int("QUALITY_MIN_TEXT_CHARS", 20),
            min_words=_env_int("QUALITY_MIN_WORDS", 10),
            llm_provider=os.getenv("LLM_PROVIDER", "gemini").strip().lower(),
            llm_timeout_seconds=_env_int("LLM_TIMEOUT_SECONDS", 120),
            full_tier_access_tokens=_env_list("FULL_TIER_ACCESS_TOKENS", ()),
        )

    def accepts(self, media_type: str) -> bool:
        """Check a media type against the accepted set (supports type/* wildcards)."""
        media_type = (media_type or "").lower()
        for accepted in self.accepted_media_types:
            if accepted.endswith("/*"):
                if media_type.startswith(accepted[:-1]):
                    return True
            elif media_type == accepted:
                return True
        return False
