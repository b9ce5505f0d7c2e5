"""
Tests for TesseractBackend
==========================

Unit tests for the local Tesseract OCR backend (pytesseract is mocked).
"""

import os
from unittest.mock import patch

import pytest

from document_interpreter.backends import OCRResult, TesseractBackend


@pytest.fixture
def png_file(temp_dir, png_bytes):
    path = temp_dir / "photo.png"
    path.write_bytes(png_bytes)
    return path


@pytest.mark.unit
class TestTesseractBackendInit:

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            backend = TesseractBackend()
        assert backend.lang == "ron+eng"
        assert backend.tesseract_path == "tesseract"
        assert backend.name == "Tesseract"

    def test_env_lang(self):
        with patch.dict(os.environ, {"TESSERACT_LANG": "deu"}):
            backend = TesseractBackend()
        assert backend.lang == "deu"

    @patch("document_interpreter.backends.tesseract.pytesseract.get_tesseract_version")
    def test_unavailable_when_binary_missing(self, mock_version):
        mock_version.side_effect = OSError("tesseract not found")
        assert TesseractBackend().is_available() is False


@pytest.mark.unit
class TestTesseractBackendExtraction:

    @patch("document_interpreter.backends.tesseract.pytesseract.image_to_string")
    def test_extract_text(self, mock_ocr, png_file):
        mock_ocr.return_value = "  Proces-verbal de contravenție \n"

        result = TesseractBackend(lang="ron").extract_text(png_file, timeout=15)

        assert isinstance(result, OCRResult)
        assert result.text == "Proces-verbal de contravenție"
        assert result.engine == "tesseract"
        assert result.metadata["lang"] == "ron"
        assert mock_ocr.call_args.kwargs["timeout"] == 15
        assert mock_ocr.call_args.kwargs["lang"] == "ron"

    @patch("document_interpreter.backends.tesseract.pytesseract.image_to_string")
    def test_default_timeout(self, mock_ocr, png_file):
        mock_ocr.return_value = ""
        TesseractBackend(timeout=30).extract_text(png_file)
        assert mock_ocr.call_args.kwargs["timeout"] == 30

    @patch("document_interpreter.backends.tesseract.pytesseract.image_to_string")
    def test_engine_timeout_propagates(self, mock_ocr, png_file):
        mock_ocr.side_effect = RuntimeError("Tesseract process timeout")
        with pytest.raises(RuntimeError):
            TesseractBackend().extract_text(png_file, timeout=1)

    def test_unreadable_image_raises(self, temp_dir):
        path = temp_dir / "broken.png"
        path.write_bytes(b"not an image")
        with pytest.raises(Exception):
            TesseractBackend().extract_text(path)
