"""
Tesseract OCR Backend
=====================

Local OCR using Tesseract. Free, offline, bilingual (Romanian + English)
by default.
"""

import os
import time
from pathlib import Path
from typing import Optional

import pytesseract
from PIL import Image, ImageOps

from .base import BaseOCRBackend, OCRResult


class TesseractBackend(BaseOCRBackend):
    """
    OCR backend using local Tesseract installation.

    Environment variables:
        TESSERACT_PATH: Path to tesseract binary (default: tesseract on PATH)
        TESSERACT_LANG: Languages to use (default: ron+eng)
    """

    def __init__(
        self,
        tesseract_path: Optional[str] = None,
        lang: Optional[str] = None,
        timeout: int = 0,
    ):
        """
        Initialize Tesseract backend.

        Args:
            tesseract_path: Path to tesseract binary
            lang: OCR languages (e.g., "ron+eng")
            timeout: Default timeout in seconds, 0 disables it
        """
        super().__init__(name="Tesseract")

        self.tesseract_path = tesseract_path or os.getenv(
            "TESSERACT_PATH", "tesseract"
        )
        self.lang = lang or os.getenv("TESSERACT_LANG", "ron+eng")
        self.timeout = timeout

        pytesseract.pytesseract.tesseract_cmd = self.tesseract_path

    def is_available(self) -> bool:
        """Check if Tesseract is installed and accessible."""
        try:
            pytesseract.get_tesseract_version()
            return True
        except Exception:
            return False

    def extract_text(
        self,
        file_path: Path,
        timeout: Optional[int] = None,
        **kwargs
    ) -> OCRResult:
        """
        Extract text from an image using Tesseract.

        Args:
            file_path: Path to image file
            timeout: Seconds before tesseract is killed (RuntimeError)
            **kwargs: Additional options (lang, config)

        Returns:
            OCRResult with extracted text
        """
        start_time = time.time()
        lang = kwargs.get("lang", self.lang)
        config = kwargs.get("config", "")
        timeout = self.timeout if timeout is None else timeout

        with Image.open(file_path) as image:
            # Respect EXIF rotation from phone photos
            image = ImageOps.exif_transpose(image)
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")

            text = pytesseract.image_to_string(
                image,
                lang=lang,
                config=config,
                timeout=timeout,
            )

        processing_time = (time.time() - start_time) * 1000

        return OCRResult(
            text=text.strip(),
            engine="tesseract",
            metadata={
                "lang": lang,
                "processing_time_ms": processing_time,
            }
        )
