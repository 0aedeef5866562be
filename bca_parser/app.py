#!/usr/bin/env python3
"""
CLI interface for BCA account statement parser.
"""
import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .core.runner import parse_statement
from .core.detectors import DEFAULT_TEMPLATE, detect_template
from .models.schema import ParsedStatement
from .tools.debug_dump import create_debug_dump

app = typer.Typer(help="BCA Account Statement Parser")
console = Console()


def _summary_table(statement: ParsedStatement, currency: str) -> Table:
    table = Table(title=f"Statement {statement.period or '(no period)'}")
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("Period", f"{statement.start_date} .. {statement.end_date}")
    table.add_row("Opening balance", f"{currency} {statement.opening_balance:,.2f}")
    table.add_row("Closing balance", f"{currency} {statement.closing_balance:,.2f}")
    table.add_row("Total debits", f"{currency} {statement.total_debits:,.2f}")
    table.add_row("Total credits", f"{currency} {statement.total_credits:,.2f}")
    table.add_row("Transactions", str(len(statement.transactions)))
    return table


@app.command()
def parse(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    currency: str = typer.Option("IDR", "--currency", "-c", help="Account currency"),
    template: str = typer.Option(DEFAULT_TEMPLATE, "--template", "-t", help="Template ID to use"),
    fallback_pdfplumber: bool = typer.Option(False, "--fallback-pdfplumber", help="Enable pdfplumber fallback"),
    debug_dump: Optional[Path] = typer.Option(None, "--debug-dump", help="Write intermediate text and chunks here"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Parse a BCA account statement PDF into structured JSON."""

    if not pdf_path.exists():
        console.print(f"[red]Error: PDF file not found: {pdf_path}[/red]")
        raise typer.Exit(1)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Parsing PDF...", total=None)

            result = parse_statement(
                pdf_path,
                currency=currency,
                template_id=template,
                fallback_pdfplumber=fallback_pdfplumber,
                verbose=verbose
            )

            if debug_dump:
                progress.update(task, description="Writing debug dump...")
                create_debug_dump(result, debug_dump)

        statement = result.statement
        if output:
            output.write_text(statement.model_dump_json(indent=2))
            console.print(f"[green]✓ Parsed successfully! Output written to: {output}[/green]")
        else:
            console.print(statement.model_dump_json(indent=2))

        console.print(_summary_table(statement, currency))

        if debug_dump:
            console.print(f"[blue]Debug dump written to: {debug_dump}[/blue]")

        if not statement.transactions:
            console.print(
                f"[yellow]No transactions parsed. Text length: {len(result.text)}.[/yellow]"
            )
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error parsing PDF: {e}[/red]")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(1)


@app.command()
def detect(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    fallback_pdfplumber: bool = typer.Option(False, "--fallback-pdfplumber", help="Enable pdfplumber fallback")
):
    """Detect which template matches a PDF file."""
    try:
        template = detect_template(pdf_path, fallback_pdfplumber)
    except Exception as e:
        console.print(f"[red]Error detecting template: {e}[/red]")
        raise typer.Exit(1)

    if template:
        console.print(f"[green]Detected template: {template}[/green]")
    else:
        console.print("[red]No matching template found[/red]")
        raise typer.Exit(1)


@app.command()
def validate(
    json_path: Path = typer.Argument(..., help="Path to JSON file to validate")
):
    """Validate a JSON file against the schema."""
    try:
        data = ParsedStatement.model_validate_json(json_path.read_text())
    except Exception as e:
        console.print(f"[red]Validation failed: {e}[/red]")
        raise typer.Exit(1)

    console.print("[green]✓ JSON is valid[/green]")
    console.print(f"Period: {data.period or '(none)'}")
    console.print(f"Dates: {data.start_date} .. {data.end_date}")
    console.print(f"Transactions: {len(data.transactions)}")


if __name__ == "__main__":
    app()
