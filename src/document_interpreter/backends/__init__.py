"""
OCR Backends
============

OCR engine adapters used by the TextExtractor for image uploads.

Usage:
    from document_interpreter.backends import TesseractBackend

    tesseract = TesseractBackend(lang="ron+eng")
    if tesseract.is_available():
        result = tesseract.extract_text(Path("notice.jpg"), timeout=60)
"""

from .base import BaseOCRBackend, OCRResult
from .tesseract import TesseractBackend

__all__ = [
    "BaseOCRBackend",
    "OCRResult",
    "TesseractBackend",
]
