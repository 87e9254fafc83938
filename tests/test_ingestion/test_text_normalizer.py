from __future__ import annotations

import pytest

from docaudit.ingestion.text_normalizer import TextNormalizer


@pytest.fixture
def normalizer() -> TextNormalizer:
    return TextNormalizer()


def test_normalize_replaces_dashes_and_collapses_whitespace(normalizer: TextNormalizer) -> None:
    text = "  Expediente –  2024/15 \n\t Licencia—B  "
    assert normalizer.normalize(text) == "Expediente - 2024/15 Licencia-B"


def test_normalize_handles_minus_sign_and_non_breaking_hyphen(normalizer: TextNormalizer) -> None:
    assert normalizer.normalize("AB−1234‑2024") == "AB-1234-2024"


@pytest.mark.parametrize("text", [None, "", "   ", "\n\t\r\n"])
def test_normalize_empty_input(normalizer: TextNormalizer, text: str | None) -> None:
    assert normalizer.normalize(text) == ""


def test_split_lines_keeps_line_structure(normalizer: TextNormalizer) -> None:
    text = "Titular:  Ana\r\n\r\n  Fecha de caducidad:\t01/01/2030 \rNIF: 12345678A\n"
    assert normalizer.split_lines(text) == [
        "Titular: Ana",
        "Fecha de caducidad: 01/01/2030",
        "NIF: 12345678A",
    ]


def test_split_lines_empty(normalizer: TextNormalizer) -> None:
    assert normalizer.split_lines(None) == []
    assert normalizer.split_lines("\n\n") == []


def test_clean_value_strips_stray_punctuation(normalizer: TextNormalizer) -> None:
    assert normalizer.clean_value('  «Bar  Pepe».; ') == "Bar Pepe"
    assert normalizer.clean_value(": - Getafe,") == "Getafe"
    assert normalizer.clean_value(None) == ""


def test_custom_dash_replacements() -> None:
    normalizer = TextNormalizer(dash_replacements={"_": "-"})
    assert normalizer.normalize("A_B–C") == "A-B–C"
