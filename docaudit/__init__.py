"""License metadata extraction and personal-data screening for Spanish documents.

Public entry points are exposed lazily so that importing a submodule (for
example the configuration layer) does not compile every engine pattern.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

__version__ = "0.1.0"

__all__ = [
    "extract_license_metadata",
    "classify_personal_data",
    "DocumentPipeline",
    "LicenseMetadataRecord",
    "PersonalDataRecord",
]


_LAZY_EXPORTS = {
    "extract_license_metadata": ("docaudit.pipeline.document_pipeline", "extract_license_metadata"),
    "classify_personal_data": ("docaudit.pipeline.document_pipeline", "classify_personal_data"),
    "DocumentPipeline": ("docaudit.pipeline.document_pipeline", "DocumentPipeline"),
    "LicenseMetadataRecord": ("docaudit.extraction.models", "LicenseMetadataRecord"),
    "PersonalDataRecord": ("docaudit.extraction.models", "PersonalDataRecord"),
}


def __getattr__(name: str) -> Any:
    if name not in _LAZY_EXPORTS:
        raise AttributeError(name)
    module_name, attr_name = _LAZY_EXPORTS[name]
    module = importlib.import_module(module_name)
    return getattr(module, attr_name)


if TYPE_CHECKING:
    from docaudit.extraction.models import LicenseMetadataRecord, PersonalDataRecord
    from docaudit.pipeline.document_pipeline import (
        DocumentPipeline,
        classify_personal_data,
        extract_license_metadata,
    )
