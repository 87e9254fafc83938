"""Weighted detection rules for personal-data classification."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

SPECIAL_CATEGORY = "Especial"


class DetectionRule(BaseModel):
    """A single category pattern and its additive score contribution."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    pattern: str
    weight: float = Field(ge=0.0, le=1.0)
    special: bool = False
    description: str = ""

    @field_validator("pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid regex pattern {value!r}: {e}") from e
        return value

    def compile(self) -> re.Pattern[str]:
        return re.compile(self.pattern, re.IGNORECASE)


def default_rules() -> List[DetectionRule]:
    """Built-in rule table for Spanish documents (RGPD / LOPDGDD categories)."""
    return [
        DetectionRule(
            category="Identificativo",
            pattern=r"\b(?:\d{8}[A-HJ-NP-TV-Z]|[XYZ]\d{7}[A-Z]|[A-HJNP-SUVW]\d{7}[0-9A-J])\b",
            weight=0.35,
            description="DNI, NIE or CIF",
        ),
        DetectionRule(
            category="Contacto",
            pattern=r"\b[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}\b",
            weight=0.20,
            description="Email address",
        ),
        DetectionRule(
            category="Contacto",
            pattern=r"\b(?:\+34[\s\-]?)?(?:6\d{2}|7[1-9]\d|8\d{2}|9\d{2})[\s\-]?\d{3}[\s\-]?\d{3}\b",
            weight=0.20,
            description="Spanish phone number",
        ),
        DetectionRule(
            category="Direcciones",
            pattern=r"(?:\b(?:domicilio|direcci[oó]n|calle|avenida|plaza)\b|\bavda\.?|\bc/).{0,90}",
            weight=0.15,
            description="Postal address",
        ),
        DetectionRule(
            category="Financiero",
            pattern=r"\bES\d{2}[A-Z0-9]{20}\b",
            weight=0.30,
            description="Spanish IBAN",
        ),
        DetectionRule(
            category=SPECIAL_CATEGORY,
            pattern=(
                r"\b(?:salud|historia cl[ií]nica|diagn[oó]stico|tratamiento m[eé]dico"
                r"|baja m[eé]dica|discapacidad|minusval[ií]a)\b"
            ),
            weight=0.40,
            special=True,
            description="Health data",
        ),
        DetectionRule(
            category=SPECIAL_CATEGORY,
            pattern=r"\b(?:biom[eé]tric[oa]s?|huella dactilar|reconocimiento facial|adn)\b",
            weight=0.45,
            special=True,
            description="Biometric or genetic data",
        ),
        DetectionRule(
            category=SPECIAL_CATEGORY,
            pattern=(
                r"\b(?:ideolog[ií]a|opini[oó]n pol[ií]tica|afiliaci[oó]n sindical|religi[oó]n"
                r"|creencias|orientaci[oó]n sexual|vida sexual|origen racial|etnia)\b"
            ),
            weight=0.45,
            special=True,
            description="Beliefs, sex life or ethnic origin",
        ),
        DetectionRule(
            category=SPECIAL_CATEGORY,
            pattern=r"\b(?:condena penal|antecedentes penales|infracci[oó]n penal)\b",
            weight=0.45,
            special=True,
            description="Criminal convictions",
        ),
    ]


class DetectionRuleSet(BaseModel):
    """Ordered, read-only collection of detection rules."""

    model_config = ConfigDict(frozen=True)

    rules: List[DetectionRule] = Field(default_factory=default_rules)

    @classmethod
    def from_yaml(cls, rules_file: Path | str | None) -> DetectionRuleSet:
        """Load rules from YAML.

        The file holds a ``rules`` list that replaces the built-in table; with
        ``extend: true`` the listed rules are appended to it instead.
        """
        if rules_file is None:
            return cls()

        rules_file = Path(rules_file)
        if not rules_file.exists():
            raise FileNotFoundError(f"Detection rules file not found: {rules_file}")

        loaded = yaml.safe_load(rules_file.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ValueError("Detection rules must be a mapping/dict.")

        rules = [DetectionRule(**item) for item in loaded.get("rules", [])]
        if loaded.get("extend", False):
            rules = default_rules() + rules
        if not rules:
            raise ValueError(f"No detection rules defined in {rules_file}")

        logger.debug(f"Loaded {len(rules)} detection rules from {rules_file}")
        return cls(rules=rules)
