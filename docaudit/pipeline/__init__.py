"""Request handling pipeline and module-level entry points."""

from docaudit.pipeline.document_pipeline import (
    DocumentAnalysis,
    DocumentPipeline,
    InvalidRequestError,
    LicenseExtractionRequest,
    PersonalDataRequest,
    classify_personal_data,
    extract_license_metadata,
)

__all__ = [
    "DocumentPipeline",
    "DocumentAnalysis",
    "InvalidRequestError",
    "LicenseExtractionRequest",
    "PersonalDataRequest",
    "extract_license_metadata",
    "classify_personal_data",
]
