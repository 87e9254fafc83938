from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pytest

from docaudit.ingestion.document_reader import (
    DoclingTextExtractor,
    DocumentReader,
    DocumentReadError,
    TextExtractionError,
    UnsupportedDocumentError,
)
from docaudit.utils.config import TextExtractionConfig


class _FakeExtractor:
    def __init__(self, text: str = "texto extraído") -> None:
        self.text = text
        self.calls: List[Tuple[bytes, str]] = []

    def extract_text(self, content: bytes, filename: str) -> str:
        self.calls.append((content, filename))
        return self.text


class _FailingConverter:
    def convert(self, _source: object) -> None:
        raise RuntimeError("corrupt PDF")


@pytest.fixture
def fake_extractor() -> _FakeExtractor:
    return _FakeExtractor()


@pytest.fixture
def reader(fake_extractor: _FakeExtractor) -> DocumentReader:
    return DocumentReader(TextExtractionConfig(), extractor=fake_extractor)


@pytest.mark.parametrize("filename", ["licencia.pdf", "LICENCIA.PDF", "anexo.docx", "datos.xlsx"])
def test_binary_formats_go_through_extractor(
    reader: DocumentReader, fake_extractor: _FakeExtractor, filename: str
) -> None:
    assert reader.read_text(b"%PDF-1.7", filename) == "texto extraído"
    assert fake_extractor.calls == [(b"%PDF-1.7", filename)]


def test_txt_bypasses_extractor(reader: DocumentReader, fake_extractor: _FakeExtractor) -> None:
    text = reader.read_text("Titular: Ana Núñez".encode("latin-1"), "nota.txt")

    assert text == "Titular: Ana Núñez"
    assert fake_extractor.calls == []


@pytest.mark.parametrize("filename", ["virus.exe", "sin_extension", "foto.png"])
def test_unsupported_extension_raises(reader: DocumentReader, filename: str) -> None:
    with pytest.raises(UnsupportedDocumentError, match="Unsupported format"):
        reader.read_text(b"data", filename)


def test_unsupported_error_is_value_error() -> None:
    assert issubclass(UnsupportedDocumentError, ValueError)
    assert issubclass(UnsupportedDocumentError, DocumentReadError)
    assert issubclass(TextExtractionError, DocumentReadError)


def test_supported_formats_come_from_config(fake_extractor: _FakeExtractor) -> None:
    reader = DocumentReader(TextExtractionConfig(supported_formats=["txt"]), extractor=fake_extractor)

    assert reader.is_supported("a.TXT")
    assert not reader.is_supported("a.pdf")
    with pytest.raises(UnsupportedDocumentError):
        reader.read_text(b"data", "a.pdf")


def test_read_file(tmp_path: Path, reader: DocumentReader) -> None:
    path = tmp_path / "licencia.txt"
    path.write_text("Expediente: AB-1234/2024\n", encoding="utf-8")

    assert reader.read_file(path) == "Expediente: AB-1234/2024\n"


def test_read_file_missing(tmp_path: Path, reader: DocumentReader) -> None:
    with pytest.raises(FileNotFoundError):
        reader.read_file(tmp_path / "nope.pdf")


def test_file_type(reader: DocumentReader) -> None:
    assert reader.file_type("Licencia.Final.PDF") == ".pdf"
    assert reader.file_type("sin_extension") == ""


def test_docling_failure_is_wrapped() -> None:
    pytest.importorskip("docling")

    extractor = DoclingTextExtractor(TextExtractionConfig(ocr_enabled=False))
    extractor.converter = _FailingConverter()

    with pytest.raises(TextExtractionError, match="corrupt PDF"):
        extractor.extract_text(b"%PDF-1.7", "licencia.pdf")
