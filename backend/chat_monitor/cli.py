#!/usr/bin/env python3
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional
import anyio
import typer

from .config import settings
from .core.aggregator import summarize, unique_company_codes
from .core.auth import create_access_token
from .core.company_code_service import CompanyCodeService
from .core.database import check_connection, engine, Base
from .core.logging_setup import configure_logging
from .core.utils import unique_phone_numbers


app = typer.Typer(help="Chat Monitor backend CLI")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level")) -> None:
    """Utilities for company code lookups and database diagnostics.

    Settings are read from the environment or `.env`, see `chat_monitor/config.py`.
    """
    configure_logging("DEBUG" if verbose else settings.LOG_LEVEL, settings.LOG_FILE, settings.LOG_JSON)


def build_service(use_directory: bool) -> CompanyCodeService:
    return CompanyCodeService(use_directory=use_directory)


def _read_phone_numbers(phone_numbers: Optional[List[str]], file: Optional[Path]) -> List[str]:
    values = list(phone_numbers or [])
    if file is not None:
        values.extend(line.strip() for line in file.read_text(encoding="utf-8").splitlines())
    return unique_phone_numbers(values)


@app.command("resolve")
def resolve(
    phone_numbers: Optional[List[str]] = typer.Argument(None, help="Phone numbers to resolve"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", exists=True, dir_okay=False, help="File with one phone number per line"),
    concurrency: int = typer.Option(settings.COMPANY_LOOKUP_CONCURRENCY, "--concurrency", "-c", min=1),
    deadline: Optional[float] = typer.Option(None, "--deadline", help="Seconds the whole batch may take"),
    directory: bool = typer.Option(settings.COMPANY_LOOKUP_USE_DIRECTORY, "--directory/--no-directory", help="Check the employee table before SAP"),
    as_json: bool = typer.Option(False, "--json", help="Print every result as JSON"),
) -> None:
    """Resolve company codes for phone numbers."""
    numbers = _read_phone_numbers(phone_numbers, file)
    if not numbers:
        typer.secho("No phone numbers given", fg=typer.colors.YELLOW)
        raise typer.Exit(code=2)
    if deadline is not None and deadline <= 0:
        raise typer.BadParameter("deadline must be positive", param_hint="--deadline")

    service = build_service(directory)
    batch = anyio.run(lambda: service.resolve(numbers, concurrency=concurrency, deadline=deadline))

    if as_json:
        typer.echo(batch.model_dump_json(by_alias=True, indent=2))
        return

    stats = summarize(batch)
    for result in sorted(batch.results, key=lambda r: r.phone_number):
        line = f"{result.phone_number}\t{result.company_code}\t{result.company_name}"
        if result.error:
            line += f"\t({result.error})"
        typer.echo(line)
    typer.echo(json.dumps(stats.model_dump()))
    typer.echo(f"companies: {', '.join(unique_company_codes(batch)) or '-'}")
    if batch.deadline_exceeded:
        typer.secho(f"Deadline exceeded, {batch.abandoned} lookups abandoned", fg=typer.colors.YELLOW)


@app.command("token")
def token(
    subject: str = typer.Argument(..., help="User name to put in the token"),
    role: str = typer.Option("admin", "--role"),
    minutes: int = typer.Option(60, "--minutes", min=1),
) -> None:
    """Print a signed bearer token for local testing."""
    typer.echo(create_access_token(subject, role=role, expires_minutes=minutes))


@app.command("db-url")
def db_url() -> None:
    """Print the active DATABASE_URL."""
    typer.echo(settings.DATABASE_URL)


@app.command("ping")
def ping() -> None:
    """Test DB connectivity (SELECT 1)."""
    try:
        check_connection()
        typer.secho("DB connection OK", fg=typer.colors.GREEN)
    except Exception as exc:
        typer.secho(f"DB connection failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@app.command("create")
def create() -> None:
    """Create the chat history and employee tables if missing."""
    from .core import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    typer.secho("Tables created", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
