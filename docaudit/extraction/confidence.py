"""Deterministic confidence scoring and review-reason composition for license metadata."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

MIN_RELIABLE_CASE_REFERENCE_LENGTH = 7

EXPIRY_NOT_AFTER_CONCESSION = "La caducidad es anterior o igual a la concesión"
UNRELIABLE_CASE_REFERENCE = "Expediente no detectado o poco fiable"
MISSING_TAX_ID = "NIF/CIF no detectado"


@dataclass(frozen=True)
class ScoringWeights:
    """Additive contributions and penalties of the license confidence score."""

    case_reference: float = 0.30
    concession_date: float = 0.25
    expiry_date: float = 0.30
    tax_id: float = 0.10
    authority_from_document: float = 0.05
    expiry_not_after_concession_penalty: float = 0.20
    unreliable_case_reference_penalty: float = 0.10


@dataclass(frozen=True)
class ExtractedFields:
    """The subset of extracted values the scorer looks at."""

    case_reference: Optional[str] = None
    holder: Optional[str] = None
    tax_id: Optional[str] = None
    concession_date: Optional[date] = None
    expiry_date: Optional[date] = None
    authority_from_document: bool = False

    @property
    def has_reliable_case_reference(self) -> bool:
        return bool(self.case_reference) and len(self.case_reference) >= MIN_RELIABLE_CASE_REFERENCE_LENGTH

    @property
    def expiry_not_after_concession(self) -> bool:
        return (
            self.concession_date is not None
            and self.expiry_date is not None
            and self.expiry_date <= self.concession_date
        )


class ConfidenceScorer:
    """Weighted-additive confidence with consistency penalties.

    Example:
        >>> scorer = ConfidenceScorer()
        >>> scorer.score(ExtractedFields(case_reference="AB-1234/2024", tax_id="12345678A"))
        0.4
    """

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()

    def score(self, fields: ExtractedFields) -> float:
        w = self.weights
        score = 0.0

        if fields.has_reliable_case_reference:
            score += w.case_reference
        else:
            score -= w.unreliable_case_reference_penalty
        if fields.concession_date is not None:
            score += w.concession_date
        if fields.expiry_date is not None:
            score += w.expiry_date
        if fields.tax_id:
            score += w.tax_id
        if fields.authority_from_document:
            score += w.authority_from_document
        if fields.expiry_not_after_concession:
            score -= w.expiry_not_after_concession_penalty

        return round(min(max(score, 0.0), 1.0), 2)

    def review_reasons(self, fields: ExtractedFields) -> List[str]:
        reasons: List[str] = []
        if fields.expiry_not_after_concession:
            reasons.append(EXPIRY_NOT_AFTER_CONCESSION)
        if not fields.has_reliable_case_reference:
            reasons.append(UNRELIABLE_CASE_REFERENCE)
        if not fields.tax_id:
            reasons.append(MISSING_TAX_ID)
        return reasons

    def review_reason(self, fields: ExtractedFields) -> Optional[str]:
        """Join every triggered reason with ``"; "``; None when nothing triggered."""
        reasons = self.review_reasons(fields)
        return "; ".join(reasons) if reasons else None

    def summary(self, fields: ExtractedFields) -> Optional[str]:
        parts: List[str] = []
        if fields.case_reference:
            parts.append(f"Expediente: {fields.case_reference}")
        if fields.concession_date is not None:
            parts.append(f"Concesión: {fields.concession_date.isoformat()}")
        if fields.expiry_date is not None:
            parts.append(f"Caducidad: {fields.expiry_date.isoformat()}")
        if fields.holder:
            parts.append(f"Titular: {fields.holder}")
        if fields.tax_id:
            parts.append(f"NIF/CIF: {fields.tax_id}")
        return " | ".join(parts) if parts else None
