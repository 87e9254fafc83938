"""CLI tests for the license / personal-data commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
import yaml
from loguru import logger
from typer.testing import CliRunner

from docaudit import cli
from docaudit.detection.personal_data import NO_TEXT_REVIEW_REASON
from docaudit.ingestion.document_reader import DoclingTextExtractor, TextExtractionError
from docaudit.utils.config import reset_config

runner = CliRunner()

LICENSE_TEXT = (
    "Ayuntamiento de Getafe\n"
    "Expediente: AB-1234/2024\n"
    "Titular: Juan Pérez García\n"
    "NIF: 12345678A\n"
    "Fecha de concesión: 15/01/2024\n"
    "Fecha de caducidad: 15/01/2026\n"
)


@pytest.fixture(autouse=True)
def _restore_logging() -> None:
    reset_config()
    yield
    reset_config()
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "license": {"anchors_file": None},
                "personal_data": {"rules_file": None},
                "logging": {"level": "ERROR"},
            }
        ),
        encoding="utf-8",
    )
    return path


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_license_json_output(tmp_path: Path, config_path: Path) -> None:
    doc = _write(tmp_path / "licencia.txt", LICENSE_TEXT)

    result = runner.invoke(
        cli.app,
        ["license", str(doc), "--json", "--config", str(config_path), "--municipality-hint", "Getafe"],
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["caseReference"] == "AB-1234/2024"
    assert payload["expiryDate"] == "2026-01-15"
    assert payload["concessionDate"] == "2024-01-15"
    assert payload["municipality"] == "Getafe"
    assert payload["confidence"] == 1.0
    assert payload["reviewReason"] is None


def test_license_table_output(tmp_path: Path, config_path: Path) -> None:
    doc = _write(tmp_path / "licencia.txt", "Expediente: 12/3\n")

    result = runner.invoke(cli.app, ["license", str(doc), "--config", str(config_path)])

    assert result.exit_code == 0
    assert "12/3" in result.stdout
    assert "Expediente no detectado" in result.stdout


def test_personal_data_json_output(tmp_path: Path, config_path: Path) -> None:
    doc = _write(tmp_path / "datos.txt", "Correo ana@example.com. Diagnóstico de la enfermedad.\n")

    result = runner.invoke(cli.app, ["personal-data", str(doc), "--json", "--config", str(config_path)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["fileType"] == ".txt"
    assert payload["categoriesDetected"] == ["Contacto", "Especial"]
    assert payload["containsSpecialCategory"] is True
    assert payload["reviewReason"].startswith("Se detectaron posibles categorías especiales")


def test_personal_data_table_output(tmp_path: Path, config_path: Path) -> None:
    doc = _write(tmp_path / "vacio.txt", "   \n")

    result = runner.invoke(cli.app, ["personal-data", str(doc), "--config", str(config_path)])

    assert result.exit_code == 0
    assert "Sin texto analizable." in result.stdout


def test_unsupported_document_exits_with_2(tmp_path: Path, config_path: Path) -> None:
    doc = _write(tmp_path / "programa.exe", "MZ")

    result = runner.invoke(cli.app, ["license", str(doc), "--config", str(config_path)])

    assert result.exit_code == 2


def test_missing_document_exits_with_1(tmp_path: Path, config_path: Path) -> None:
    result = runner.invoke(
        cli.app, ["personal-data", str(tmp_path / "nope.txt"), "--config", str(config_path)]
    )

    assert result.exit_code == 1


def test_missing_config_exits_with_2(tmp_path: Path) -> None:
    doc = _write(tmp_path / "licencia.txt", LICENSE_TEXT)

    result = runner.invoke(cli.app, ["license", str(doc), "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 2


def test_batch_writes_json_lines(tmp_path: Path, config_path: Path) -> None:
    docs = tmp_path / "docs"
    _write(docs / "a_licencia.txt", LICENSE_TEXT)
    _write(docs / "sub" / "b_datos.txt", "DNI 12345678Z\n")
    _write(docs / "ignorado.png", "not a document")
    output = tmp_path / "out" / "results.jsonl"

    result = runner.invoke(
        cli.app, ["batch", str(docs), "--output", str(output), "--config", str(config_path)]
    )

    assert result.exit_code == 0
    lines = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    assert [line["fileName"] for line in lines] == ["a_licencia.txt", "b_datos.txt"]
    assert lines[0]["license"]["caseReference"] == "AB-1234/2024"
    assert lines[1]["personalData"]["categoriesDetected"] == ["Identificativo"]


def test_batch_to_stdout(tmp_path: Path, config_path: Path) -> None:
    docs = tmp_path / "docs"
    _write(docs / "licencia.txt", LICENSE_TEXT)

    result = runner.invoke(cli.app, ["batch", str(docs), "--config", str(config_path)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout.strip())
    assert payload["license"]["taxId"] == "12345678A"


def test_find_documents_filters_by_extension(tmp_path: Path) -> None:
    _write(tmp_path / "b.TXT", "x")
    _write(tmp_path / "a.txt", "x")
    _write(tmp_path / "c.md", "x")

    found = cli.find_documents(tmp_path, [".txt", ".pdf"])

    assert [p.name for p in found] == ["a.txt", "b.TXT"]


def test_batch_keeps_personal_data_when_extraction_fails(
    tmp_path: Path, config_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail(self: DoclingTextExtractor, content: bytes, filename: str) -> str:
        raise TextExtractionError(f"OCR service unavailable for {filename}")

    monkeypatch.setattr(DoclingTextExtractor, "extract_text", _fail)
    docs = tmp_path / "docs"
    _write(docs / "a_licencia.txt", LICENSE_TEXT)
    _write(docs / "b_escaneo.pdf", "%PDF-1.7")
    output = tmp_path / "results.jsonl"

    result = runner.invoke(
        cli.app, ["batch", str(docs), "--output", str(output), "--config", str(config_path)]
    )

    assert result.exit_code == 1
    lines = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    assert [line["fileName"] for line in lines] == ["a_licencia.txt", "b_escaneo.pdf"]
    assert lines[0]["licenseError"] is None
    scanned = lines[1]
    assert scanned["license"] is None
    assert "OCR service unavailable" in scanned["licenseError"]
    assert scanned["personalData"]["fileType"] == ".pdf"
    assert scanned["personalData"]["containsPersonalData"] is False
    assert scanned["personalData"]["reviewReason"] == NO_TEXT_REVIEW_REASON
