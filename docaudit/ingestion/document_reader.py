"""Document-to-text conversion.

Binary office/PDF documents go through Docling (with OCR for scanned pages);
``.txt`` files are decoded directly. The analysis engines only ever see the
resulting string.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Protocol

from loguru import logger

from docaudit.ingestion.text_decoder import decode_text
from docaudit.utils.config import TextExtractionConfig


class DocumentReadError(RuntimeError):
    """Base error for failures before any text reaches the engines."""


class TextExtractionError(DocumentReadError):
    """The text extraction service could not produce text for a document."""


class UnsupportedDocumentError(DocumentReadError, ValueError):
    """The document extension is not one of the supported formats."""


class TextExtractionService(Protocol):
    def extract_text(self, content: bytes, filename: str) -> str: ...


class DoclingTextExtractor:
    """Extract plain text from PDF/DOCX/XLSX content using Docling.

    Docling is imported lazily (on first extraction) to keep imports cheap for
    callers that only analyze text.
    """

    def __init__(self, config: Optional[TextExtractionConfig] = None) -> None:
        self.config = config or TextExtractionConfig()
        self.converter: Any = None  # initialized lazily

        logger.info(
            f"Initialized DoclingTextExtractor (lazy Docling). "
            f"OCR={'enabled' if self.config.ocr_enabled else 'disabled'}, lang={self.config.language}"
        )

    def extract_text(self, content: bytes, filename: str) -> str:
        """Convert ``content`` to text.

        Raises:
            TextExtractionError: If Docling fails on the document
        """
        try:
            self._ensure_converter()

            from docling.datamodel.base_models import DocumentStream

            source = DocumentStream(name=filename, stream=BytesIO(content))
            result = self.converter.convert(source)
            text = result.document.export_to_text()
        except Exception as e:
            logger.error(f"Error extracting text from {filename}: {e}")
            raise TextExtractionError(f"Text extraction failed for {filename}: {e}") from e

        logger.success(f"Extracted {len(text)} characters from {filename}")
        return text

    def _ensure_converter(self) -> None:
        """Initialize Docling converter lazily."""
        if self.converter is not None:
            return

        from docling.datamodel.base_models import InputFormat
        from docling.datamodel.pipeline_options import EasyOcrOptions, PdfPipelineOptions
        from docling.document_converter import DocumentConverter, PdfFormatOption

        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_ocr = self.config.ocr_enabled
        pipeline_options.ocr_options = EasyOcrOptions(lang=[self.config.language])

        self.converter = DocumentConverter(
            allowed_formats=[InputFormat.PDF, InputFormat.DOCX, InputFormat.XLSX],
            format_options={InputFormat.PDF: PdfFormatOption(pipeline_options=pipeline_options)},
        )


class DocumentReader:
    """Route a document to the decoder or the extraction service by extension."""

    def __init__(
        self,
        config: Optional[TextExtractionConfig] = None,
        extractor: Optional[TextExtractionService] = None,
    ) -> None:
        self.config = config or TextExtractionConfig()
        self.extractor = extractor or DoclingTextExtractor(self.config)

    def file_type(self, filename: str) -> str:
        """Return the lowercase extension of ``filename`` (e.g. ``.pdf``)."""
        return Path(filename).suffix.lower()

    def is_supported(self, filename: str) -> bool:
        return self.file_type(filename) in self.config.supported_formats

    def read_text(self, content: bytes, filename: str) -> str:
        """Return the text of a document.

        Raises:
            UnsupportedDocumentError: If the extension is not supported
            TextExtractionError: If the extraction service fails
        """
        file_type = self.file_type(filename)
        if file_type not in self.config.supported_formats:
            supported = ", ".join(self.config.supported_formats)
            raise UnsupportedDocumentError(
                f"Unsupported format '{file_type or filename}'. Use one of: {supported}"
            )

        if file_type == ".txt":
            return decode_text(content, self.config.fallback_encoding)

        return self.extractor.extract_text(content, filename)

    def read_file(self, path: Path | str) -> str:
        """Read a document from disk and return its text.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Document not found: {path}")
        return self.read_text(path.read_bytes(), path.name)
