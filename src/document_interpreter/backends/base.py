"""
Base OCR Backend
================

Interface for OCR engines. The extractor hands an engine one spooled
image file and gets plain text back; how the engine reads it is its own
business.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class OCRResult:
    """Text read from one image."""
    text: str
    engine: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


class BaseOCRBackend(ABC):
    """
    Abstract base class for OCR engines.

    Subclasses implement:
    - extract_text(): Read the text of an image file
    - is_available(): Report whether the engine can run in this process
    """

    def __init__(self, name: str = "BaseOCR"):
        self.name = name

    @abstractmethod
    def extract_text(
        self,
        file_path: Path,
        timeout: Optional[int] = None,
        **kwargs
    ) -> OCRResult:
        """
        Read the text of an image.

        Args:
            file_path: Spooled image file, owned by the caller
            timeout: Seconds before the engine is aborted, None for the
                backend default

        Returns:
            OCRResult (empty text is a valid result)

        Raises:
            Exception: Any engine failure; the extractor turns it into
                an ExtractionError
        """

    @abstractmethod
    def is_available(self) -> bool:
        """True if the engine is installed and configured."""

    def __repr__(self) -> str:
        available = "available" if self.is_available() else "unavailable"
        return f"{self.__class__.__name__}(name='{self.name}', {available})"
