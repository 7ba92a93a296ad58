"""CLI for poster enrichment.

Commands:
    init-db                   - Create the knowledge-base tables
    lookup <name> --kind      - Preview what a name resolves to (no writes)
    normalize-country <text>  - Canonicalize a country name
    link <poster_id> ...      - Auto-link a poster's attributions
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from poster_enrichment.clients.wikipedia import WikipediaClient
from poster_enrichment.db import async_session_factory, init_db
from poster_enrichment.enrichment.llm_research import LLMResearcher
from poster_enrichment.enrichment.schemas import EnrichmentFields
from poster_enrichment.enrichment.search import SEARCHABLE_KINDS, EntitySearcher
from poster_enrichment.models.enums import Confidence, EntityKind
from poster_enrichment.resolution.countries import CountryNormalizer
from poster_enrichment.services.auto_link import AutoLinker, PosterAnalysis

app = typer.Typer(
    name="poster-enrichment",
    help="Poster enrichment: resolve artists, printers, publishers and books",
    no_args_is_help=True,
)
console = Console()


def run_async(coro):
    """Run an async coroutine in sync context."""
    return asyncio.run(coro)


@app.callback()
def main_options(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _fields_table(title: str, fields: EnrichmentFields) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in fields.as_dict().items():
        if value not in (None, ""):
            table.add_row(name, str(value))
    return table


@app.command("init-db")
def init_db_command():
    """Initialize the database schema (creates tables if they don't exist)."""
    async def _init():
        await init_db()
        console.print("[green]Database initialized.[/green]")

    run_async(_init())


@app.command()
def lookup(
    name: Annotated[str, typer.Argument(help="Name to resolve")],
    kind: Annotated[
        EntityKind, typer.Option("--kind", "-k", help="artist, printer or publisher")
    ] = EntityKind.ARTIST,
    llm: Annotated[
        bool, typer.Option("--llm", help="Fall back to LLM research when needed")
    ] = False,
):
    """Show what a name would resolve to. Nothing is written."""
    if kind not in SEARCHABLE_KINDS:
        console.print(f"[red]Error:[/red] {kind.value} names are not looked up externally")
        raise typer.Exit(1)

    async def _lookup():
        async with WikipediaClient() as client:
            candidate = await EntitySearcher(client).search_entity(name, kind)

        fields = candidate.fields if candidate else EnrichmentFields()
        if candidate is None:
            console.print(f"[yellow]No Wikipedia match for {name!r}.[/yellow]")
        else:
            console.print(f"[bold]{candidate.title}[/bold] (score {candidate.score})")
            console.print(f"  URL: {candidate.wikipedia_url}")
            if candidate.image_url:
                console.print(f"  Image: {candidate.image_url}")

        if llm and (candidate is None or not fields.has_structured_fields(kind)):
            researched = await LLMResearcher.from_settings().research(name, kind)
            if researched is None:
                console.print("[yellow]LLM research returned nothing.[/yellow]")
            else:
                fields = fields.coalesce(researched)

        if not fields.is_empty():
            console.print(_fields_table(f"{kind.value.title()}: {name}", fields))

    run_async(_lookup())


@app.command("normalize-country")
def normalize_country(
    text: Annotated[str, typer.Argument(help="Free-text country name")],
):
    """Return the canonical country name, creating the row if needed."""
    async def _normalize():
        async with async_session_factory() as session:
            canonical = await CountryNormalizer(session).normalize(text)
            await session.commit()
        console.print(canonical)

    run_async(_normalize())


@app.command()
def link(
    poster_id: Annotated[int, typer.Argument(help="Poster ID")],
    artist: Annotated[str | None, typer.Option(help="Artist name")] = None,
    artist_confidence: Annotated[
        Confidence | None, typer.Option(help="Artist attribution confidence")
    ] = None,
    printer: Annotated[str | None, typer.Option(help="Printer name")] = None,
    printer_confidence: Annotated[
        Confidence | None, typer.Option(help="Printer attribution confidence")
    ] = None,
    publication: Annotated[str | None, typer.Option(help="Publication name")] = None,
    book: Annotated[str | None, typer.Option(help="Book title")] = None,
    book_author: Annotated[str | None, typer.Option(help="Book author")] = None,
    book_year: Annotated[int | None, typer.Option(help="Book publication year")] = None,
):
    """Resolve a poster's attributions and write the links."""
    analysis = PosterAnalysis(
        artist=artist,
        artist_confidence=artist_confidence,
        printer=printer,
        printer_confidence=printer_confidence,
        publication=publication,
        book=book,
        book_author=book_author,
        book_year=book_year,
    )

    async def _link():
        async with WikipediaClient() as client:
            linker = AutoLinker(
                async_session_factory,
                EntitySearcher(client),
                LLMResearcher.from_settings(),
            )
            linked = await linker.auto_link(poster_id, analysis)

        if not linked:
            console.print(f"[yellow]Nothing linked for poster {poster_id}.[/yellow]")
            return

        table = Table(title=f"Poster {poster_id}", show_header=True)
        table.add_column("Field", style="cyan")
        table.add_column("ID", justify="right")
        table.add_column("New")
        for key, resolved in linked.items():
            table.add_row(
                key.removesuffix("_linked"),
                str(resolved.id),
                "[green]yes[/green]" if resolved.is_new else "no",
            )
        console.print(table)

    run_async(_link())


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
