"""Result records produced by the analysis engines."""

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Frozen record with a camelCase JSON representation."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        """Return a JSON-compatible dict (camelCase keys, ISO-8601 dates)."""
        return self.model_dump(mode="json", by_alias=True)


class LicenseMetadataRecord(_WireModel):
    """Metadata extracted from an administrative activity license."""

    case_reference: Optional[str] = None
    authority: Optional[str] = None
    authority_source: Optional[Literal["document", "hint"]] = None
    municipality: Optional[str] = None
    holder: Optional[str] = None
    tax_id: Optional[str] = None
    premises_address: Optional[str] = None
    activity: Optional[str] = None
    concession_date: Optional[date] = None
    expiry_date: Optional[date] = None
    renewal_date: Optional[date] = None
    confidence: float = Field(ge=0.0, le=1.0)
    review_reason: Optional[str] = None
    keyword_hints: List[str] = Field(default_factory=list)
    summary: Optional[str] = None


class PersonalDataRecord(_WireModel):
    """Personal-data compliance classification of a document's text."""

    file_type: Optional[str] = None
    contains_personal_data: bool = False
    contains_special_category: bool = False
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    text_length: int = 0
    categories_detected: List[str] = Field(default_factory=list)
    indicators: List[str] = Field(default_factory=list)
    review_reason: Optional[str] = None
    summary: Optional[str] = None
