"""Anchor-driven field extraction for administrative activity licenses.

Every field is resolved with an ordered list of patterns and the first
acceptable candidate wins. The order matters for ambiguous documents, so the
scans below short-circuit instead of ranking candidates.
"""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from docaudit.extraction.anchors import AnchorSet
from docaudit.extraction.confidence import ConfidenceScorer, ExtractedFields
from docaudit.extraction.dates import DateAnchorResolver, DateParser
from docaudit.extraction.models import LicenseMetadataRecord
from docaudit.ingestion.text_normalizer import TextNormalizer
from docaudit.utils.config import LicenseExtractionConfig

# Labels may sit anywhere in a line ("Datos del titular: ...").
LABEL_START = r"(?<!\w)"
LABEL_SEPARATOR = r"\s*[:\-]?\s*"
NUMBER_QUALIFIER = r"(?:n[uú]mero|n[uú]m\.?|n\.?\s?[º°o]\.?|no\.)(?![a-z])"
CODE_SEPARATORS = "./-"

TAX_ID_SHAPE = r"[A-Z0-9][0-9]{7}[A-Z0-9]"
TAX_ID_LABEL = r"(?:N\.?\s?I\.?\s?F|C\.?\s?I\.?\s?F|N\.?\s?I\.?\s?E)\.?"

HOLDER_LENGTH = (3, 119)
ADDRESS_LENGTH = (7, 199)
ACTIVITY_LENGTH = (4, 199)
MUNICIPALITY_LENGTH = (2, 99)


def _alternation(items: Sequence[str]) -> str:
    return "|".join(items)


class LicenseMetadataExtractor:
    """Extract license metadata from OCR'd text.

    The extractor holds only compiled patterns and read-only configuration, so a
    single instance can serve concurrent calls.

    Example:
        >>> extractor = LicenseMetadataExtractor()
        >>> record = extractor.extract("Expediente: AB-1234/2024\\nNIF: 12345678A")
        >>> record.case_reference, record.tax_id
        ('AB-1234/2024', '12345678A')
    """

    def __init__(
        self,
        config: Optional[LicenseExtractionConfig] = None,
        anchors: Optional[AnchorSet] = None,
        anchors_path: Optional[str | Path] = None,
        normalizer: Optional[TextNormalizer] = None,
        scorer: Optional[ConfidenceScorer] = None,
    ) -> None:
        self.config = config or LicenseExtractionConfig()

        anchors_file = anchors_path or self.config.anchors_file
        self.anchors = anchors or AnchorSet.from_yaml(anchors_file)
        self.normalizer = normalizer or TextNormalizer()
        self.scorer = scorer or ConfidenceScorer()
        self.resolver = DateAnchorResolver(
            DateParser(self.config.two_digit_year_pivot), window=self.config.date_window
        )

        self._compile_patterns()

        logger.info(
            f"Initialized LicenseMetadataExtractor (anchors={anchors_file or 'defaults'}, "
            f"date_window={self.config.date_window})"
        )

    def _compile_patterns(self) -> None:
        """Compile regex patterns once; they are never mutated afterwards."""
        a = self.anchors
        flags = re.IGNORECASE

        self._case_reference_re = re.compile(
            r"(?<!\w)(?:expediente|exp(?!\w)\.?)"
            rf"(?:\s*{NUMBER_QUALIFIER})?"
            rf"{LABEL_SEPARATOR}"
            r"(?P<code>[A-Za-z0-9][A-Za-z0-9./\-]{3,80})(?![A-Za-z0-9./\-])",
            flags,
        )
        self._numbering_prefix_re = re.compile(
            rf"^\s*(?:de\s+)?(?:{NUMBER_QUALIFIER})?{LABEL_SEPARATOR}", flags
        )

        self._tax_id_labeled_re = re.compile(
            rf"(?<!\w){TAX_ID_LABEL}(?:\s*/\s*{TAX_ID_LABEL})*{LABEL_SEPARATOR}"
            rf"(?P<id>{TAX_ID_SHAPE})(?!\w)",
            flags,
        )
        self._tax_id_generic_re = re.compile(rf"(?<!\w){TAX_ID_SHAPE}(?!\w)", flags)

        self._authority_re = re.compile(
            rf"(?<!\w)(?:{_alternation(a.authority_keywords)})\s+de\s+"
            r"(?P<value>[^\W\d_][\w'\-\s]*)",
            flags,
        )
        self._municipality_re = self._label_pattern(a.municipality_labels)
        self._holder_re = self._label_pattern(a.holder_labels)
        self._address_re = self._label_pattern(a.address_labels)
        self._street_re = re.compile(
            LABEL_START
            + rf"(?P<value>(?:{_alternation(a.street_types)})(?:(?<=[/.])|(?!\w)).+)$",
            flags,
        )
        self._activity_re = self._label_pattern(a.activity_labels)

        self._boundary_re = re.compile(
            rf"(?<!\w)(?:{_alternation(a.boundary_labels)})(?!\w)", flags
        )
        self._activity_stop_re = re.compile(
            rf"(?<!\w)(?:{_alternation(a.activity_stop_tokens)})(?!\w)", flags
        )

    def _label_pattern(self, labels: Sequence[str]) -> re.Pattern[str]:
        return re.compile(
            LABEL_START + rf"(?:{_alternation(labels)})(?!\w){LABEL_SEPARATOR}(?P<value>.+)$",
            re.IGNORECASE,
        )

    def extract(
        self,
        text: str | None,
        authority_hint: str | None = None,
        municipality_hint: str | None = None,
    ) -> LicenseMetadataRecord:
        """Extract a ``LicenseMetadataRecord`` from ``text``.

        Args:
            text: Raw document text (line breaks preserved)
            authority_hint: Issuing authority to use when the document names none
            municipality_hint: Municipality that overrides anything found in the text

        Returns:
            The extracted record; missing fields are None and lower the confidence.
        """
        text = text or ""
        normalized = self.normalizer.normalize(text)
        lines = self.normalizer.split_lines(text)

        document_authority = self._find_authority(lines)
        hinted_authority = self._clean_hint(authority_hint)
        authority = document_authority or hinted_authority
        authority_source = None
        if document_authority:
            authority_source = "document"
        elif hinted_authority:
            authority_source = "hint"

        municipality = (
            self._clean_hint(municipality_hint)
            or self._scan_lines(lines, self._municipality_re, MUNICIPALITY_LENGTH, self._cut_at_boundary)
            or document_authority
        )

        case_reference = self._find_case_reference(normalized, lines)
        tax_id = self._find_tax_id(normalized)
        holder = self._scan_lines(lines, self._holder_re, HOLDER_LENGTH, self._cut_at_boundary)
        premises_address = self._find_address(lines)
        activity = self._scan_lines(lines, self._activity_re, ACTIVITY_LENGTH, self._cut_activity)

        expiry = self.resolver.find_date_near_anchor(lines, self.anchors.expiry)
        concession = self.resolver.find_date_near_anchor(lines, self.anchors.concession)
        renewal = self.resolver.find_date_near_anchor(lines, self.anchors.renewal)

        expiry_date = expiry.value
        hints: List[str] = [*expiry.hints, *concession.hints, *renewal.hints]

        if expiry_date is None:
            single = self._single_document_date(lines)
            if single is not None:
                expiry_date, line = single
                hints.append(line)
                logger.debug(f"Using the only date in the document as expiry: {expiry_date}")

        fields = ExtractedFields(
            case_reference=case_reference,
            holder=holder,
            tax_id=tax_id,
            concession_date=concession.value,
            expiry_date=expiry_date,
            authority_from_document=authority_source == "document",
        )

        record = LicenseMetadataRecord(
            case_reference=case_reference,
            authority=authority,
            authority_source=authority_source,
            municipality=municipality,
            holder=holder,
            tax_id=tax_id,
            premises_address=premises_address,
            activity=activity,
            concession_date=concession.value,
            expiry_date=expiry_date,
            renewal_date=renewal.value,
            confidence=self.scorer.score(fields),
            review_reason=self.scorer.review_reason(fields),
            keyword_hints=list(dict.fromkeys(hints)),
            summary=self.scorer.summary(fields),
        )

        logger.debug(
            f"Extracted license metadata: case_reference={record.case_reference!r}, "
            f"confidence={record.confidence}, review={'yes' if record.review_reason else 'no'}"
        )
        return record

    def _clean_hint(self, hint: str | None) -> Optional[str]:
        if not isinstance(hint, str):
            return None
        return self.normalizer.clean_value(hint) or None

    def _find_authority(self, lines: Sequence[str]) -> Optional[str]:
        for line in lines:
            match = self._authority_re.search(line)
            if not match:
                continue
            value = self.normalizer.clean_value(self._cut_at_boundary(match.group("value")))
            if value:
                return value
        return None

    def _find_case_reference(self, normalized: str, lines: Sequence[str]) -> Optional[str]:
        match = self._case_reference_re.search(normalized)
        if match:
            value = self.normalizer.clean_value(match.group("code"))
            if value:
                return value

        # Fallback: anchor line (after the anchor) and the line below it.
        for i, line in enumerate(lines):
            lowered = line.lower()
            positions = [
                (pos, anchor)
                for anchor in self.anchors.case_reference
                if (pos := lowered.find(anchor)) >= 0
            ]
            if not positions:
                continue
            pos, anchor = min(positions)
            remainder = self._numbering_prefix_re.sub("", line[pos + len(anchor):], count=1)

            candidates = remainder.split()
            if i + 1 < len(lines):
                candidates += lines[i + 1].split()

            for token in candidates:
                value = self.normalizer.clean_value(token)
                if self._looks_like_case_code(value):
                    return value
        return None

    @staticmethod
    def _looks_like_case_code(value: str) -> bool:
        return (
            len(value) >= 5
            and any(ch.isdigit() for ch in value)
            and any(sep in value for sep in CODE_SEPARATORS)
        )

    def _find_tax_id(self, normalized: str) -> Optional[str]:
        match = self._tax_id_labeled_re.search(normalized)
        if match:
            return match.group("id").upper()
        match = self._tax_id_generic_re.search(normalized)
        if match:
            return match.group(0).upper()
        return None

    def _find_address(self, lines: Sequence[str]) -> Optional[str]:
        low, high = ADDRESS_LENGTH
        for line in lines:
            for pattern in (self._address_re, self._street_re):
                match = pattern.search(line)
                if not match:
                    continue
                value = self.normalizer.clean_value(self._cut_at_boundary(match.group("value")))
                if low <= len(value) <= high:
                    return value
        return None

    def _scan_lines(
        self,
        lines: Sequence[str],
        pattern: re.Pattern[str],
        length: Tuple[int, int],
        trim: Callable[[str], str],
    ) -> Optional[str]:
        """Return the first labeled value whose trimmed length fits ``length``."""
        low, high = length
        for line in lines:
            match = pattern.search(line)
            if not match:
                continue
            value = self.normalizer.clean_value(trim(match.group("value")))
            if low <= len(value) <= high:
                return value
        return None

    def _cut_at_boundary(self, value: str) -> str:
        match = self._boundary_re.search(value)
        return value[: match.start()] if match else value

    def _cut_activity(self, value: str) -> str:
        value = self._cut_at_boundary(value)
        match = self._activity_stop_re.search(value)
        return value[: match.start()] if match else value

    def _single_document_date(self, lines: Sequence[str]) -> Optional[Tuple[date, str]]:
        """Heuristic: a lone date with no expiry anchor is taken as the expiry date.

        Nothing checks that the date is plausible as an expiry. The date may
        also be the concession or renewal date; the consistency check then
        flags the record for review.
        """
        dates = self.resolver.find_all_dates(lines)
        if len(dates) != 1:
            return None
        return dates[0]
