"""Extraction package exports."""

from docaudit.extraction.anchors import AnchorSet
from docaudit.extraction.confidence import ConfidenceScorer, ExtractedFields, ScoringWeights
from docaudit.extraction.dates import AnchorMatch, DateAnchorResolver, DateParser
from docaudit.extraction.license_extractor import LicenseMetadataExtractor
from docaudit.extraction.models import LicenseMetadataRecord, PersonalDataRecord

__all__ = [
    "AnchorSet",
    "AnchorMatch",
    "DateParser",
    "DateAnchorResolver",
    "ConfidenceScorer",
    "ExtractedFields",
    "ScoringWeights",
    "LicenseMetadataExtractor",
    "LicenseMetadataRecord",
    "PersonalDataRecord",
]
