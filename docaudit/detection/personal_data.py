"""Rule-based personal-data classification (RGPD / LOPDGDD screening)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from loguru import logger

from docaudit.detection.rules import DetectionRule, DetectionRuleSet
from docaudit.extraction.models import PersonalDataRecord
from docaudit.utils.config import PersonalDataConfig

FINANCIAL_CATEGORY = "Financiero"

NO_TEXT_REVIEW_REASON = "No se pudo extraer texto para analizar."
NO_TEXT_SUMMARY = "Sin texto analizable."
NO_FINDINGS_SUMMARY = "No se detectaron patrones de datos personales."
SPECIAL_CATEGORY_REVIEW_REASON = (
    "Se detectaron posibles categorías especiales de datos personales (RGPD/LOPDGDD)."
)
SPECIAL_CATEGORY_SUMMARY_CLAUSE = (
    " Revisión legal recomendada por posibles datos especialmente protegidos."
)

CARD_CANDIDATE_RE = re.compile(r"\b(?:\d[ \-]?){13,19}\b")
WHITESPACE_RE = re.compile(r"\s+")


def passes_luhn(digits: str) -> bool:
    """Return True if ``digits`` passes the Luhn (mod 10) checksum.

    Example:
        >>> passes_luhn("4111111111111111")
        True
        >>> passes_luhn("4111111111111112")
        False
    """
    if not digits or not digits.isdigit():
        return False

    total = 0
    for position, char in enumerate(reversed(digits)):
        n = int(char)
        if position % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


@dataclass(frozen=True)
class _CompiledRule:
    rule: DetectionRule
    pattern: re.Pattern[str]


class PersonalDataDetector:
    """Score a document's text against weighted personal-data rules.

    Every rule is evaluated independently over the full text. A matching rule
    adds its category and weight; special rules flag the whole record. A
    Luhn-validated card number adds the financial category once, and two or
    more categories earn a co-occurrence bonus.

    Instances hold compiled patterns only and can be shared across threads.
    """

    def __init__(
        self,
        config: Optional[PersonalDataConfig] = None,
        rules: Optional[DetectionRuleSet] = None,
        rules_path: Optional[str | Path] = None,
    ) -> None:
        self.config = config or PersonalDataConfig()

        rules_file = rules_path or self.config.rules_file
        self.rule_set = rules or DetectionRuleSet.from_yaml(rules_file)
        self._rules: Tuple[_CompiledRule, ...] = tuple(
            _CompiledRule(rule=rule, pattern=rule.compile()) for rule in self.rule_set.rules
        )

        logger.info(
            f"Initialized PersonalDataDetector with {len(self._rules)} rules "
            f"(rules={rules_file or 'defaults'})"
        )

    def analyze(self, text: str | None, file_type: str | None) -> PersonalDataRecord:
        """Classify ``text``.

        Args:
            text: Extracted document text
            file_type: Tag copied to the record (usually the file extension)

        Returns:
            PersonalDataRecord; empty or whitespace-only text yields the
            "unanalyzable" result rather than an error.
        """
        if not text or not text.strip():
            logger.debug(f"No analyzable text (file_type={file_type})")
            return PersonalDataRecord(
                file_type=file_type,
                text_length=0,
                review_reason=NO_TEXT_REVIEW_REASON,
                summary=NO_TEXT_SUMMARY,
            )

        categories: set[str] = set()
        # lowercased indicator -> first spelling seen, in insertion order
        indicators: Dict[str, str] = {}
        score = 0.0
        special = False

        for compiled in self._rules:
            matches = [m.group(0) for m in compiled.pattern.finditer(text)]
            if not matches:
                continue

            categories.add(compiled.rule.category)
            score += compiled.rule.weight
            special = special or compiled.rule.special

            for value in matches[: self.config.matches_per_rule]:
                self._add_indicator(indicators, value)

        card = self._find_card_number(text)
        if card is not None:
            categories.add(FINANCIAL_CATEGORY)
            self._add_indicator(indicators, card)
            score += self.config.card_weight

        if len(categories) >= 2:
            score += self.config.multi_category_bonus

        score = round(min(max(score, 0.0), 1.0), 2)
        sorted_categories = sorted(categories)

        record = PersonalDataRecord(
            file_type=file_type,
            contains_personal_data=bool(sorted_categories),
            contains_special_category=special,
            score=score,
            text_length=len(text),
            categories_detected=sorted_categories,
            indicators=list(indicators.values())[: self.config.max_indicators],
            review_reason=SPECIAL_CATEGORY_REVIEW_REASON if special else None,
            summary=self._build_summary(sorted_categories, score, special),
        )

        logger.debug(
            f"Personal-data analysis ({file_type}): categories={sorted_categories}, "
            f"score={score}, special={special}"
        )
        return record

    def _add_indicator(self, indicators: Dict[str, str], value: str) -> None:
        indicator = WHITESPACE_RE.sub(" ", value).strip()[: self.config.max_indicator_length]
        if indicator:
            indicators.setdefault(indicator.lower(), indicator)

    @staticmethod
    def _find_card_number(text: str) -> Optional[str]:
        """Return the first 13-19 digit sequence that passes the Luhn check."""
        for candidate in CARD_CANDIDATE_RE.finditer(text):
            digits = "".join(ch for ch in candidate.group(0) if ch.isdigit())
            if not 13 <= len(digits) <= 19:
                continue
            if passes_luhn(digits):
                return candidate.group(0)
        return None

    @staticmethod
    def _build_summary(categories: List[str], score: float, special: bool) -> str:
        if not categories:
            return NO_FINDINGS_SUMMARY

        summary = f"Detectados datos personales. Categorías: {', '.join(categories)}. Score: {score:.2f}."
        if special:
            summary += SPECIAL_CATEGORY_SUMMARY_CLAUSE
        return summary
