"""Command-line interface for license metadata extraction and personal-data screening.

Usage:
    docaudit license licencia.pdf --municipality-hint Getafe
    docaudit personal-data expediente.docx --json
    docaudit batch data/documents --output results.jsonl
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from docaudit.extraction.models import LicenseMetadataRecord, PersonalDataRecord
from docaudit.ingestion.document_reader import TextExtractionError, UnsupportedDocumentError
from docaudit.pipeline.document_pipeline import DocumentPipeline
from docaudit.utils.config import Config, load_config
from docaudit.utils.logging_setup import setup_logging

DEFAULT_CONFIG_PATH = Path("config/config.yaml")

app = typer.Typer(help="Extract license metadata and screen documents for personal data.")
console = Console()


def _load(config_path: Path, verbose: bool) -> Config:
    try:
        cfg = load_config(config_path)
    except FileNotFoundError:
        if config_path != DEFAULT_CONFIG_PATH:
            console.print(f"[red]Configuration file not found: {config_path}[/red]")
            raise typer.Exit(code=2)
        cfg = Config()
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(code=2)

    setup_logging(cfg.logging, verbose=verbose)
    return cfg


def _echo_json(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _render_license(record: LicenseMetadataRecord, *, title: str) -> None:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    rows = [
        ("Expediente", record.case_reference),
        ("Ayuntamiento", record.authority),
        ("Municipio", record.municipality),
        ("Titular", record.holder),
        ("NIF/CIF", record.tax_id),
        ("Dirección", record.premises_address),
        ("Actividad", record.activity),
        ("Concesión", record.concession_date),
        ("Caducidad", record.expiry_date),
        ("Renovación", record.renewal_date),
    ]
    for label, value in rows:
        table.add_row(label, str(value) if value is not None else "-")
    table.add_row("Confianza", f"{record.confidence:.2f}")

    console.print(table)
    if record.review_reason:
        console.print(f"[yellow]Revisión:[/yellow] {record.review_reason}")


def _render_personal_data(record: PersonalDataRecord, *, title: str) -> None:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Tipo", record.file_type or "-")
    table.add_row("Datos personales", "sí" if record.contains_personal_data else "no")
    table.add_row("Categoría especial", "sí" if record.contains_special_category else "no")
    table.add_row("Score", f"{record.score:.2f}")
    table.add_row("Categorías", ", ".join(record.categories_detected) or "-")
    table.add_row("Caracteres", str(record.text_length))
    console.print(table)

    for indicator in record.indicators:
        console.print(f"  [dim]-[/dim] {indicator}")
    if record.review_reason:
        console.print(f"[yellow]Revisión:[/yellow] {record.review_reason}")
    if record.summary:
        console.print(record.summary)


@app.command("license")
def license_command(
    path: Path = typer.Argument(..., help="Document to analyze (.pdf, .docx, .xlsx, .txt)."),
    authority_hint: Optional[str] = typer.Option(
        None, help="Issuing authority to use when the document names none."
    ),
    municipality_hint: Optional[str] = typer.Option(
        None, help="Municipality that overrides anything found in the document."
    ),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config file."),
    as_json: bool = typer.Option(False, "--json", help="Print the camelCase JSON record."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Extract license metadata (expediente, titular, fechas...) from a document."""
    cfg = _load(config, verbose)
    if not path.exists():
        console.print(f"[red]Document not found: {path}[/red]")
        raise typer.Exit(code=1)

    pipeline = DocumentPipeline(cfg)
    try:
        record = pipeline.extract_license_metadata_from_bytes(
            path.read_bytes(),
            filename=path.name,
            authority_hint=authority_hint,
            municipality_hint=municipality_hint,
        )
    except UnsupportedDocumentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)
    except TextExtractionError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    if as_json:
        _echo_json(record.to_wire())
    else:
        _render_license(record, title=f"Licencia: {path.name}")


@app.command("personal-data")
def personal_data_command(
    path: Path = typer.Argument(..., help="Document to screen (.pdf, .docx, .xlsx, .txt)."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config file."),
    as_json: bool = typer.Option(False, "--json", help="Print the camelCase JSON record."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Screen a document for personal and special-category data."""
    cfg = _load(config, verbose)
    if not path.exists():
        console.print(f"[red]Document not found: {path}[/red]")
        raise typer.Exit(code=1)

    pipeline = DocumentPipeline(cfg)
    try:
        record = pipeline.detect_personal_data_from_bytes(path.read_bytes(), path.name)
    except UnsupportedDocumentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    if as_json:
        _echo_json(record.to_wire())
    else:
        _render_personal_data(record, title=f"Datos personales: {path.name}")


def find_documents(directory: Path, supported_formats: List[str]) -> List[Path]:
    """Return supported documents under ``directory`` (recursive, sorted, de-duplicated)."""
    allowed = {ext.lower() for ext in supported_formats}
    return sorted(
        {p.resolve() for p in directory.rglob("*") if p.is_file() and p.suffix.lower() in allowed}
    )


@app.command("batch")
def batch_command(
    directory: Path = typer.Argument(..., help="Directory to scan recursively."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write JSON lines here instead of stdout."
    ),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Run both analyses over every supported document and emit JSON lines."""
    cfg = _load(config, verbose)
    if not directory.is_dir():
        console.print(f"[red]Not a directory: {directory}[/red]")
        raise typer.Exit(code=1)

    documents = find_documents(directory, cfg.text_extraction.supported_formats)
    if not documents:
        console.print("[yellow]No supported documents found.[/yellow]")
        return

    pipeline = DocumentPipeline(cfg)
    lines: List[str] = []
    failed = 0
    for document in documents:
        try:
            analysis = pipeline.process_file(document)
        except UnsupportedDocumentError as e:
            logger.warning(f"Skipping {document.name}: {e}")
            failed += 1
            continue
        if analysis.license_error:
            logger.warning(f"License extraction failed for {document.name}: {analysis.license_error}")
            failed += 1
        lines.append(json.dumps(analysis.to_wire(), ensure_ascii=False))

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        console.print(
            f"[bold green]Processed {len(lines)}/{len(documents)} documents[/bold green] -> {output}"
        )
    else:
        for line in lines:
            typer.echo(line)

    if failed:
        console.print(f"[yellow]{failed} document(s) failed license extraction or were skipped.[/yellow]")
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
