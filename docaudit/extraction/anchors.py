"""Anchor keywords and field labels for license metadata extraction."""

from __future__ import annotations

from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnchorSet(BaseModel):
    """Read-only keyword configuration, loadable from YAML.

    Date anchors and case anchors are lowercase stems matched as substrings.
    Label fields are regex alternations (no capturing groups) matched
    case-insensitively.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    expiry: List[str] = Field(
        default_factory=lambda: ["caduc", "vencim", "validez", "vigencia", "hasta"]
    )
    concession: List[str] = Field(
        default_factory=lambda: ["conces", "resoluci", "emisi", "otorga"]
    )
    renewal: List[str] = Field(default_factory=lambda: ["renovac"])
    case_reference: List[str] = Field(
        default_factory=lambda: ["expediente", "exp.", "n.º exp", "nº exp"]
    )
    authority_keywords: List[str] = Field(default_factory=lambda: ["Ayuntamiento"])
    holder_labels: List[str] = Field(
        default_factory=lambda: [
            r"titular(?:\s+de\s+la\s+licencia)?",
            r"solicitante",
            r"interesad[oa]",
            r"raz[oó]n\s+social",
            r"nombre\s+y\s+apellidos",
        ]
    )
    address_labels: List[str] = Field(
        default_factory=lambda: [
            r"direcci[oó]n(?:\s+del\s+(?:local|establecimiento))?",
            r"domicilio(?:\s+del\s+(?:local|establecimiento))?",
            r"emplazamiento",
            r"ubicaci[oó]n",
        ]
    )
    street_types: List[str] = Field(
        default_factory=lambda: [
            r"C/",
            r"Calle",
            r"Avda\.?",
            r"Avenida",
            r"Plaza",
            r"Pza\.?",
            r"Paseo",
            r"Ctra\.?",
            r"Carretera",
        ]
    )
    activity_labels: List[str] = Field(
        default_factory=lambda: [
            r"actividad(?:\s+(?:principal|autorizada|a\s+desarrollar))?",
            r"uso",
        ]
    )
    municipality_labels: List[str] = Field(
        default_factory=lambda: [r"municipio", r"localidad", r"t[eé]rmino\s+municipal"]
    )
    boundary_labels: List[str] = Field(
        default_factory=lambda: [
            r"expediente",
            r"exp\.",
            r"N\.?\s?I\.?\s?F",
            r"C\.?\s?I\.?\s?F",
            r"N\.?\s?I\.?\s?E",
            r"titular",
            r"solicitante",
            r"direcci[oó]n",
            r"domicilio",
            r"emplazamiento",
            r"actividad",
            r"fecha",
            r"municipio",
            r"provincia",
            r"tel[eé]fono",
        ]
    )
    activity_stop_tokens: List[str] = Field(
        default_factory=lambda: [r"IAE", r"I\.A\.E\.", r"CNAE", r"NIF", r"CIF", r"ep[ií]grafe"]
    )

    @field_validator("expiry", "concession", "renewal", "case_reference")
    @classmethod
    def _lowercase_stems(cls, value: List[str]) -> List[str]:
        stems = [stem.strip().lower() for stem in value if stem and stem.strip()]
        if not stems:
            raise ValueError("Anchor lists must contain at least one keyword.")
        return stems

    @classmethod
    def from_yaml(cls, anchors_file: Path | str | None) -> AnchorSet:
        """Load anchors from YAML, merging with defaults (list values replace defaults)."""
        base = cls()

        if anchors_file is None:
            return base

        anchors_file = Path(anchors_file)
        if not anchors_file.exists():
            raise FileNotFoundError(f"Anchor file not found: {anchors_file}")

        loaded = yaml.safe_load(anchors_file.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ValueError("Anchor configuration must be a mapping/dict.")

        merged = base.model_dump()
        for key, value in loaded.items():
            if key in merged:
                merged[key] = value

        return cls(**merged)
