"""Document-to-text conversion and text canonicalization."""

from docaudit.ingestion.document_reader import (
    DoclingTextExtractor,
    DocumentReader,
    DocumentReadError,
    TextExtractionError,
    TextExtractionService,
    UnsupportedDocumentError,
)
from docaudit.ingestion.text_decoder import decode_text
from docaudit.ingestion.text_normalizer import TextNormalizer

__all__ = [
    "DocumentReader",
    "DoclingTextExtractor",
    "TextExtractionService",
    "DocumentReadError",
    "TextExtractionError",
    "UnsupportedDocumentError",
    "TextNormalizer",
    "decode_text",
]
