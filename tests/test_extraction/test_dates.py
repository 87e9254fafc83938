from __future__ import annotations

from datetime import date

import pytest

from docaudit.extraction.dates import DateAnchorResolver, DateParser

EXPIRY = ["caduc", "vencim", "validez", "vigencia", "hasta"]


@pytest.fixture
def parser() -> DateParser:
    return DateParser()


@pytest.fixture
def resolver() -> DateAnchorResolver:
    return DateAnchorResolver(DateParser(), window=3)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("15/01/2026", date(2026, 1, 15)),
        ("1-2-24", date(2024, 2, 1)),
        ("3.4.1975", date(1975, 4, 3)),
        ("05/06.2023", date(2023, 6, 5)),
        ("01/01/49", date(2049, 1, 1)),
        ("01/01/50", date(1950, 1, 1)),
        ("31/12/99", date(1999, 12, 31)),
    ],
)
def test_parse_valid_dates(parser: DateParser, raw: str, expected: date) -> None:
    assert parser.parse(raw) == expected


@pytest.mark.parametrize("raw", ["31/02/2024", "29/02/2023", "13/13/2024", "2024-01-15", "15/01", "abc"])
def test_parse_rejects_invalid_dates(parser: DateParser, raw: str) -> None:
    assert parser.parse(raw) is None


def test_custom_two_digit_year_pivot() -> None:
    parser = DateParser(two_digit_year_pivot=30)

    assert parser.parse("01/01/30") == date(2030, 1, 1)
    assert parser.parse("01/01/31") == date(1931, 1, 1)


def test_find_first_skips_impossible_dates(parser: DateParser) -> None:
    assert parser.find_first("del 31/02/2024 al 28/02/2024") == date(2024, 2, 28)


def test_find_first_ignores_digits_glued_to_other_numbers(parser: DateParser) -> None:
    assert parser.find_first("Expediente AB-1234/2024") is None


def test_same_line_date(resolver: DateAnchorResolver) -> None:
    match = resolver.find_date_near_anchor(["Fecha de caducidad: 15/01/2026"], EXPIRY)

    assert match.value == date(2026, 1, 15)
    assert match.hints == ["Fecha de caducidad: 15/01/2026"]


def test_same_line_prefers_date_after_anchor(resolver: DateAnchorResolver) -> None:
    line = "Concedida el 01/02/2020 con validez hasta el 01/02/2030"

    assert resolver.find_date_near_anchor([line], EXPIRY).value == date(2030, 2, 1)


def test_same_line_falls_back_to_date_before_anchor(resolver: DateAnchorResolver) -> None:
    line = "01/02/2030 fecha de caducidad"

    assert resolver.find_date_near_anchor([line], EXPIRY).value == date(2030, 2, 1)


def test_anchor_match_is_case_insensitive(resolver: DateAnchorResolver) -> None:
    assert resolver.find_date_near_anchor(["CADUCIDAD 01/01/2030"], EXPIRY).value == date(2030, 1, 1)


def test_window_scans_lines_in_ascending_order(resolver: DateAnchorResolver) -> None:
    lines = ["Emitido 01/01/2020", "Fecha de caducidad", "Sello 01/01/2030"]

    match = resolver.find_date_near_anchor(lines, EXPIRY)

    assert match.value == date(2020, 1, 1)
    assert match.hints == ["Emitido 01/01/2020"]


def test_window_finds_date_below_anchor(resolver: DateAnchorResolver) -> None:
    lines = ["Fecha de caducidad", "(ver anexo)", "31/12/2027"]

    match = resolver.find_date_near_anchor(lines, EXPIRY)

    assert match.value == date(2027, 12, 31)
    assert match.hints == ["31/12/2027"]


def test_date_outside_window_is_ignored(resolver: DateAnchorResolver) -> None:
    lines = ["Fecha de caducidad", "a", "b", "c", "31/12/2027"]

    match = resolver.find_date_near_anchor(lines, EXPIRY)

    assert match.value is None
    assert match.hints == []


def test_window_override(resolver: DateAnchorResolver) -> None:
    lines = ["Fecha de caducidad", "a", "b", "c", "31/12/2027"]

    assert resolver.find_date_near_anchor(lines, EXPIRY, window=4).value == date(2027, 12, 31)


def test_later_anchor_used_when_first_yields_nothing(resolver: DateAnchorResolver) -> None:
    lines = ["Caducidad: pendiente", "a", "b", "c", "d", "Vencimiento 02/02/2031"]

    match = resolver.find_date_near_anchor(lines, EXPIRY)

    assert match.value == date(2031, 2, 2)
    assert match.hints == ["Vencimiento 02/02/2031"]


def test_no_anchor(resolver: DateAnchorResolver) -> None:
    match = resolver.find_date_near_anchor(["Firmado 01/01/2020"], EXPIRY)

    assert match.value is None
    assert match.hints == []


def test_find_all_dates_is_distinct_and_ordered(resolver: DateAnchorResolver) -> None:
    lines = ["01/01/2020 y 01/01/2020", "31/02/2021 no existe", "02/02/2021"]

    assert resolver.find_all_dates(lines) == [
        (date(2020, 1, 1), "01/01/2020 y 01/01/2020"),
        (date(2021, 2, 2), "02/02/2021"),
    ]
