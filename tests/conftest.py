"""
Test Configuration and Fixtures for document-interpreter

This module provides shared fixtures, markers, and configuration for all tests.
"""

import io
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

import pytest

from document_interpreter import InterpreterConfig, InterpretationPipeline, LLMResponse
from document_interpreter.backends.base import BaseOCRBackend, OCRResult
from document_interpreter.gateways.base import BaseLLMGateway


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external deps)")
    config.addinivalue_line("markers", "integration: Integration tests (may need APIs)")
    config.addinivalue_line("markers", "slow: Slow tests (skip with -m 'not slow')")
    config.addinivalue_line("markers", "api: API/service tests")


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="document_interpreter_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def upload_dir(temp_dir: Path) -> Path:
    """Directory the extractor spools uploads into (checked for leftovers)."""
    path = temp_dir / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def config(upload_dir: Path) -> InterpreterConfig:
    """Default configuration with an isolated upload directory."""
    return InterpreterConfig(upload_dir=upload_dir)


# =============================================================================
# Test Doubles
# =============================================================================

class MockOCRBackend(BaseOCRBackend):
    """Mock OCR backend for testing."""

    def __init__(
        self,
        name: str = "MockOCR",
        available: bool = True,
        return_text: str = "Mock OCR Text",
        should_fail: bool = False,
    ):
        super().__init__(name)
        self._available = available
        self._return_text = return_text
        self._should_fail = should_fail
        self.extract_calls: List[Path] = []
        self.seen_files_existed: List[bool] = []

    def is_available(self) -> bool:
        return self._available

    def extract_text(self, file_path: Path, timeout: Optional[int] = None, **kwargs) -> OCRResult:
        self.extract_calls.append(file_path)
        self.seen_files_existed.append(file_path.exists())

        if self._should_fail:
            raise RuntimeError("Mock OCR failure")

        return OCRResult(text=self._return_text, engine="mock")


class RecordingGateway(BaseLLMGateway):
    """LLM gateway double that records requests and returns canned text."""

    def __init__(
        self,
        reply: str = "TIP DOCUMENT: Amendă",
        error: Optional[Exception] = None,
        available: bool = True,
    ):
        super().__init__(name="Recording")
        self.reply = reply
        self.error = error
        self._available = available
        self.requests = []

    def is_available(self) -> bool:
        return self._available

    def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return LLMResponse(
            generated_text=self.reply,
            usage_metadata={"input_tokens": 10, "output_tokens": 5},
            model="recording-model",
        )


@pytest.fixture
def mock_ocr_factory():
    """Factory fixture for MockOCRBackend instances."""
    return MockOCRBackend


@pytest.fixture
def mock_ocr() -> MockOCRBackend:
    return MockOCRBackend()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def gateway_factory():
    """Factory fixture for RecordingGateway instances."""
    return RecordingGateway


@pytest.fixture
def make_pipeline(config: InterpreterConfig, gateway: RecordingGateway):
    """Factory fixture building a pipeline around test doubles."""
    def _create(
        ocr_backend: Optional[BaseOCRBackend] = None,
        llm_gateway: Optional[BaseLLMGateway] = None,
        pipeline_config: Optional[InterpreterConfig] = None,
    ) -> InterpretationPipeline:
        return InterpretationPipeline.from_config(
            pipeline_config or config,
            ocr_backend=ocr_backend or MockOCRBackend(),
            gateway=llm_gateway or gateway,
        )
    return _create


# =============================================================================
# Sample Document Fixtures
# =============================================================================

NOTICE_LINES = [
    "AGENTIA NATIONALA DE ADMINISTRARE FISCALA",
    "Decizie de impunere nr. 12345 din 01.03.2026",
    "Contribuabil: Ion Popescu, CNP 1800101123456",
    "Suma de plata: 1.250 lei, impozit pe venit 2025",
    "Termen de plata: 30 de zile de la comunicare",
    "Contestatia se depune in 45 de zile la organul fiscal emitent",
]


@pytest.fixture
def notice_lines() -> List[str]:
    return list(NOTICE_LINES)


@pytest.fixture
def text_pdf_bytes() -> bytes:
    """PDF with a native text layer well above 100 characters."""
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    y_pos = 72
    for line in NOTICE_LINES:
        page.insert_text((72, y_pos), line, fontsize=11)
        y_pos += 20
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def short_text_pdf_bytes() -> bytes:
    """PDF whose text layer is below the native-text threshold."""
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Pagina 1", fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def png_bytes() -> bytes:
    """Small PNG image (content is irrelevant, OCR is mocked)."""
    from PIL import Image

    img = Image.new("RGB", (200, 100), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def scanned_pdf_bytes(png_bytes: bytes) -> bytes:
    """PDF with only an image (simulates a scan)."""
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    page.insert_image(fitz.Rect(72, 72, 300, 200), stream=png_bytes)
    data = doc.tobytes()
    doc.close()
    return data


# =============================================================================
# Environment Fixtures
# =============================================================================

@pytest.fixture
def tesseract_available() -> bool:
    """Check if Tesseract is available."""
    try:
        import pytesseract
        pytesseract.get_tesseract_version()
        return True
    except Exception:
        return False


@pytest.fixture
def skip_if_no_tesseract(tesseract_available):
    """Skip test if Tesseract is not available."""
    if not tesseract_available:
        pytest.skip("Tesseract not installed or not accessible")


