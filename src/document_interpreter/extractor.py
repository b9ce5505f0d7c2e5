"""
Text Extractor
==============

Produces plain text from a submitted document using the best available
method, and tags the result with the method that produced it.

Strategy by media type:
    | Media type   | Method                       | On failure                  |
    |--------------|------------------------------|-----------------------------|
    | (pasted)     | DIRECT_TEXT                  | -                           |
    | PDF          | PDF text layer (PyMuPDF)     | empty, PDF_NATIVE_ERROR     |
    | PDF, <=100ch | -                            | empty, PDF_SCANNED_FALLBACK |
    | image/*      | OCR (Tesseract)              | ExtractionError             |
    | text/plain   | read verbatim                | ExtractionError             |
    | other        | OCR, best effort (UNKNOWN)   | empty                       |

PDFs are never OCR'd: a PDF without a usable text layer is signalled to
the caller so the original file can be sent to the LLM instead.

Uploaded bytes are spooled to a uniquely named temporary file that the
extractor deletes on every exit path.
"""

import logging
import mimetypes
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF

from document_interpreter.backends.base import BaseOCRBackend
from document_interpreter.config import InterpreterConfig
from document_interpreter.errors import ExtractionError
from document_interpreter.models import (
    ExtractionMethod,
    ExtractionResult,
    SubmittedDocument,
)

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
TEXT_MEDIA_TYPE = "text/plain"
GENERIC_MEDIA_TYPES = ("", "application/octet-stream", "binary/octet-stream")


def resolve_media_type(document: SubmittedDocument) -> str:
    """
    Return the effective media type of an upload.

    Generic declared types (missing or application/octet-stream) are
    replaced by a guess from the filename extension when one exists.
    """
    declared = (document.declared_media_type or "").split(";", 1)[0].strip().lower()
    if declared not in GENERIC_MEDIA_TYPES:
        return declared

    guessed, _ = mimetypes.guess_type(document.original_filename or "")
    return (guessed or declared or "application/octet-stream").lower()


def is_multimodal_media_type(media_type: str) -> bool:
    """True for artifacts an LLM can receive directly (PDF and images)."""
    return media_type == PDF_MEDIA_TYPE or media_type.startswith("image/")


class TextExtractor:
    """Extracts text from uploads and pasted text."""

    def __init__(
        self,
        ocr_backend: BaseOCRBackend | None = None,
        config: InterpreterConfig | None = None,
    ):
        """
        Initialize the TextExtractor.

        Args:
            ocr_backend: OCR engine used for images (e.g., TesseractBackend)
            config: Interpreter configuration (thresholds, upload dir, timeouts)
        """
        self.ocr_backend = ocr_backend
        self.config = config or InterpreterConfig()

    def extract(self, document: SubmittedDocument) -> ExtractionResult:
        """
        Extract text from a submitted document.

        Args:
            document: Upload or pasted text

        Returns:
            ExtractionResult tagged with the extraction method. An empty
            text is a valid result, not an error.

        Raises:
            ExtractionError: On OCR engine failure for images, or on
                file-system failure while spooling, reading or cleaning up
        """
        if document.inline_text is not None:
            return ExtractionResult(
                text=document.inline_text,
                method=ExtractionMethod.DIRECT_TEXT,
                succeeded=bool(document.inline_text.strip()),
                media_type=TEXT_MEDIA_TYPE,
            )

        media_type = resolve_media_type(document)
        start_time = time.time()

        with self._spooled(document, media_type) as file_path:
            if media_type == PDF_MEDIA_TYPE:
                result = self._extract_pdf(file_path)
            elif media_type.startswith("image/"):
                result = self._extract_image(file_path, media_type)
            elif media_type == TEXT_MEDIA_TYPE:
                result = self._read_plain_text(file_path)
            else:
                result = self._extract_unknown(file_path, media_type)

        logger.info(
            "Extraction finished: file=%s, type=%s, method=%s, chars=%d, words=%d, time=%.0fms",
            document.original_filename,
            media_type,
            result.method.value,
            result.char_count,
            result.word_count,
            (time.time() - start_time) * 1000,
        )
        return result

    @contextmanager
    def _spooled(
        self, document: SubmittedDocument, media_type: str
    ) -> Iterator[Path]:
        """Write the upload to a unique temporary file and always delete it."""
        suffix = Path(document.original_filename or "").suffix
        if not suffix:
            suffix = mimetypes.guess_extension(media_type) or ""

        try:
            fd, name = tempfile.mkstemp(
                prefix="upload_", suffix=suffix, dir=self.config.upload_dir
            )
        except OSError as e:
            raise ExtractionError(f"Could not create temporary upload: {e}") from e

        tmp_path = Path(name)
        try:
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(document.raw_bytes or b"")
            except OSError as e:
                raise ExtractionError(f"Could not write temporary upload: {e}") from e
            yield tmp_path
        except BaseException:
            # The error already in flight takes precedence over a failed cleanup
            self._remove(tmp_path)
            raise
        if not self._remove(tmp_path):
            raise ExtractionError(f"Could not delete temporary upload {tmp_path.name}")

    @staticmethod
    def _remove(tmp_path: Path) -> bool:
        """Delete a spooled upload. Returns False (and logs) if it could not be removed."""
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to delete temporary upload %s: %s", tmp_path, e)
            return False
        return True

    def _extract_pdf(self, file_path: Path) -> ExtractionResult:
        """Read the PDF text layer; flag scanned or unreadable PDFs."""
        try:
            doc = fitz.open(file_path)
            try:
                page_count = len(doc)
                text = "\n\n".join(page.get_text() for page in doc)
            finally:
                doc.close()
        except Exception as e:
            logger.warning("Native PDF extraction failed for %s: %s", file_path.name, e)
            return ExtractionResult(
                text="",
                method=ExtractionMethod.PDF_NATIVE_ERROR,
                succeeded=False,
                media_type=PDF_MEDIA_TYPE,
                metadata={"error": str(e)},
            )

        text = text.strip()
        if len(text) > self.config.pdf_min_native_chars:
            return ExtractionResult(
                text=text,
                method=ExtractionMethod.PDF_NATIVE_TEXT,
                succeeded=True,
                media_type=PDF_MEDIA_TYPE,
                metadata={"total_pages": page_count},
            )

        # Text layer empty or too short: most likely a scan
        return ExtractionResult(
            text="",
            method=ExtractionMethod.PDF_SCANNED_FALLBACK,
            succeeded=False,
            media_type=PDF_MEDIA_TYPE,
            metadata={"total_pages": page_count, "native_chars": len(text)},
        )

    def _extract_image(self, file_path: Path, media_type: str) -> ExtractionResult:
        """OCR an image. Engine failures propagate as ExtractionError."""
        if self.ocr_backend is None or not self.ocr_backend.is_available():
            logger.warning("No OCR backend available, image %s left unread", file_path.name)
            return ExtractionResult(
                text="",
                method=ExtractionMethod.IMAGE_OCR,
                succeeded=False,
                media_type=media_type,
                metadata={"error": "ocr backend unavailable"},
            )

        try:
            ocr = self.ocr_backend.extract_text(
                file_path, timeout=self.config.ocr_timeout_seconds
            )
        except Exception as e:
            logger.error(
                "OCR (%s) failed for %s: %s", self.ocr_backend.name, file_path.name, e
            )
            raise ExtractionError(f"OCR failed: {e}") from e

        return ExtractionResult(
            text=ocr.text,
            method=ExtractionMethod.IMAGE_OCR,
            succeeded=bool(ocr.text.strip()),
            media_type=media_type,
            metadata={"backend": self.ocr_backend.name, **ocr.metadata},
        )

    def _read_plain_text(self, file_path: Path) -> ExtractionResult:
        try:
            data = file_path.read_bytes()
        except OSError as e:
            raise ExtractionError(f"Could not read text upload: {e}") from e

        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = data.decode("latin-1")

        return ExtractionResult(
            text=text,
            method=ExtractionMethod.PLAIN_TEXT_READ,
            succeeded=bool(text.strip()),
            media_type=TEXT_MEDIA_TYPE,
        )

    def _extract_unknown(self, file_path: Path, media_type: str) -> ExtractionResult:
        """Best-effort OCR for unrecognised types. Never raises."""
        text = ""
        metadata: dict[str, str] = {}
        if self.ocr_backend is not None and self.ocr_backend.is_available():
            try:
                text = self.ocr_backend.extract_text(
                    file_path, timeout=self.config.ocr_timeout_seconds
                ).text
            except Exception as e:
                logger.warning(
                    "Best-effort OCR failed for %s (%s): %s", file_path.name, media_type, e
                )
                metadata["error"] = str(e)

        return ExtractionResult(
            text=text,
            method=ExtractionMethod.UNKNOWN,
            succeeded=bool(text.strip()),
            media_type=media_type,
            metadata=metadata,
        )
