"""Request handling around the analysis engines.

This module wires the collaborator layer to the two engines:
1. Request decoding (base64 content, file name, hints)
2. Document-to-text conversion (Docling, or plain-text decoding for ``.txt``)
3. License metadata extraction / personal-data classification
"""

from __future__ import annotations

import base64
import binascii
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from docaudit.detection.personal_data import PersonalDataDetector
from docaudit.extraction.license_extractor import LicenseMetadataExtractor
from docaudit.extraction.models import LicenseMetadataRecord, PersonalDataRecord
from docaudit.ingestion.document_reader import (
    DocumentReader,
    TextExtractionError,
    UnsupportedDocumentError,
)
from docaudit.utils.config import Config

# License requests may omit the file name; their content is treated as a PDF.
DEFAULT_LICENSE_FILENAME = "document.pdf"


class InvalidRequestError(ValueError):
    """A request could not be decoded (missing fields, bad base64, bad JSON)."""


class _RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


class LicenseExtractionRequest(_RequestModel):
    """Body of a license metadata extraction request."""

    content_base64: str = Field(min_length=1)
    file_name: Optional[str] = None
    authority_hint: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("authorityHint", "authority_hint", "ayuntamientoHint"),
    )
    municipality_hint: Optional[str] = None


class PersonalDataRequest(_RequestModel):
    """Body of a personal-data detection request."""

    content_base64: str = Field(min_length=1)
    file_name: str = Field(min_length=1)


class DocumentAnalysis(BaseModel):
    """Both records computed for a single document.

    When text extraction fails ``license`` is None and ``license_error`` holds
    the failure; ``personal_data`` is then the unanalyzable result.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str
    license: Optional[LicenseMetadataRecord] = None
    license_error: Optional[str] = None
    personal_data: PersonalDataRecord

    def to_wire(self) -> dict[str, Any]:
        return {
            "fileName": self.file_name,
            "license": self.license.to_wire() if self.license is not None else None,
            "licenseError": self.license_error,
            "personalData": self.personal_data.to_wire(),
        }


def decode_content(content_base64: str) -> bytes:
    """Decode base64 request content.

    Raises:
        InvalidRequestError: If the content is not valid base64
    """
    try:
        return base64.b64decode("".join(content_base64.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidRequestError("contentBase64 is not valid base64") from e


def _parse_request(model: type[_RequestModel], request: Any) -> Any:
    if isinstance(request, model):
        return request
    if isinstance(request, (str, bytes)):
        try:
            return model.model_validate_json(request)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid request: {e}") from e
    if isinstance(request, Mapping):
        try:
            return model.model_validate(dict(request))
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid request: {e}") from e
    raise InvalidRequestError(f"Unsupported request type: {type(request).__name__}")


class DocumentPipeline:
    """Turn uploaded documents into license metadata and personal-data records."""

    def __init__(
        self,
        config: Optional[Config] = None,
        reader: Optional[DocumentReader] = None,
        extractor: Optional[LicenseMetadataExtractor] = None,
        detector: Optional[PersonalDataDetector] = None,
    ) -> None:
        self.config = config or Config()
        self.reader = reader or DocumentReader(self.config.text_extraction)
        self.extractor = extractor or LicenseMetadataExtractor(self.config.license)
        self.detector = detector or PersonalDataDetector(self.config.personal_data)

    def extract_license_metadata_from_bytes(
        self,
        content: bytes,
        filename: Optional[str] = None,
        authority_hint: Optional[str] = None,
        municipality_hint: Optional[str] = None,
    ) -> LicenseMetadataRecord:
        """Extract license metadata from document bytes.

        Raises:
            UnsupportedDocumentError: If ``filename`` has an unsupported extension
            TextExtractionError: If text extraction fails
        """
        if filename:
            text = self.reader.read_text(content, filename)
        else:
            text = self.reader.extractor.extract_text(content, DEFAULT_LICENSE_FILENAME)

        return self.extractor.extract(
            text, authority_hint=authority_hint, municipality_hint=municipality_hint
        )

    def detect_personal_data_from_bytes(self, content: bytes, filename: str) -> PersonalDataRecord:
        """Classify document bytes for personal data.

        Extraction failures are logged and reported as an unanalyzable document.

        Raises:
            UnsupportedDocumentError: If ``filename`` has an unsupported extension
        """
        file_type = self.reader.file_type(filename)
        try:
            text = self.reader.read_text(content, filename)
        except TextExtractionError as e:
            logger.warning(f"Text extraction failed for {filename}; reporting as unanalyzable: {e}")
            text = ""

        return self.detector.analyze(text, file_type)

    def handle_license_request(
        self, request: LicenseExtractionRequest | Mapping[str, Any] | str | bytes
    ) -> LicenseMetadataRecord:
        """Decode and process a license extraction request.

        Raises:
            InvalidRequestError: If the request or its base64 content is invalid
        """
        parsed: LicenseExtractionRequest = _parse_request(LicenseExtractionRequest, request)
        content = decode_content(parsed.content_base64)
        logger.info(f"Processing license request ({parsed.file_name or 'unnamed'}, {len(content)} bytes)")
        return self.extract_license_metadata_from_bytes(
            content,
            filename=parsed.file_name,
            authority_hint=parsed.authority_hint,
            municipality_hint=parsed.municipality_hint,
        )

    def handle_personal_data_request(
        self, request: PersonalDataRequest | Mapping[str, Any] | str | bytes
    ) -> PersonalDataRecord:
        """Decode and process a personal-data detection request.

        Raises:
            InvalidRequestError: If the request or its base64 content is invalid
            UnsupportedDocumentError: If the file extension is not supported
        """
        parsed: PersonalDataRequest = _parse_request(PersonalDataRequest, request)
        if not self.reader.is_supported(parsed.file_name):
            supported = ", ".join(self.reader.config.supported_formats)
            raise UnsupportedDocumentError(
                f"Unsupported format for {parsed.file_name}. Use one of: {supported}"
            )

        content = decode_content(parsed.content_base64)
        logger.info(f"Processing personal-data request ({parsed.file_name}, {len(content)} bytes)")
        return self.detect_personal_data_from_bytes(content, parsed.file_name)

    def process_file(
        self,
        path: Path | str,
        authority_hint: Optional[str] = None,
        municipality_hint: Optional[str] = None,
    ) -> DocumentAnalysis:
        """Read a document once and run both engines over its text.

        A text extraction failure does not raise: the license half carries the
        error and the personal-data half is the unanalyzable result.

        Raises:
            FileNotFoundError: If the file doesn't exist
            UnsupportedDocumentError: If the extension is not supported
        """
        path = Path(path)
        file_type = self.reader.file_type(path.name)
        try:
            text = self.reader.read_file(path)
        except TextExtractionError as e:
            logger.warning(f"Text extraction failed for {path.name}; reporting as unanalyzable: {e}")
            return DocumentAnalysis(
                file_name=path.name,
                license_error=str(e),
                personal_data=self.detector.analyze("", file_type),
            )

        return DocumentAnalysis(
            file_name=path.name,
            license=self.extractor.extract(
                text, authority_hint=authority_hint, municipality_hint=municipality_hint
            ),
            personal_data=self.detector.analyze(text, file_type),
        )


@lru_cache(maxsize=1)
def _default_extractor() -> LicenseMetadataExtractor:
    return LicenseMetadataExtractor()


@lru_cache(maxsize=1)
def _default_detector() -> PersonalDataDetector:
    return PersonalDataDetector()


def extract_license_metadata(
    text: str | None,
    authority_hint: str | None = None,
    municipality_hint: str | None = None,
) -> LicenseMetadataRecord:
    """Extract license metadata from already-extracted text with the default anchors."""
    return _default_extractor().extract(
        text, authority_hint=authority_hint, municipality_hint=municipality_hint
    )


def classify_personal_data(text: str | None, file_type: str | None) -> PersonalDataRecord:
    """Classify already-extracted text with the default detection rules."""
    return _default_detector().analyze(text, file_type)
