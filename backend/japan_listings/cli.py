"""
Command-line interface for the listing pipeline.

Usage:
    japan-listings run suumo
    japan-listings cache-stats
    japan-listings clear-cache
    japan-listings init-db
"""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from japan_listings.config import ConfigurationError, TranslationSettings, settings
from japan_listings.log_config import configure_logging
from japan_listings.scrapers.registry import list_scrapers

app = typer.Typer(
    name="japan-listings",
    help="Scrape Japanese property portals, translate listings and store them.",
    add_completion=False,
)
console = Console()


def _translation_settings() -> TranslationSettings:
    try:
        return TranslationSettings()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
):
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


@app.command()
def run(
    sites: list[str] = typer.Argument(None, help="Sites to process (default: all registered)"),
):
    """Scrape, translate and store listings for one or more sites."""
    from japan_listings.database import create_all_tables
    from japan_listings.services.pipeline.factory import build_pipeline

    known = list_scrapers()
    unknown = [s for s in sites or [] if s not in known]
    if unknown:
        console.print(f"[red]Unknown site(s): {', '.join(unknown)}. Available: {', '.join(known)}[/red]")
        raise typer.Exit(1)

    components = build_pipeline(settings, _translation_settings())

    async def _run():
        await create_all_tables(components.engine)
        await components.start()
        try:
            return await components.pipeline.process_sites(sites or None)
        finally:
            await components.stop()

    summaries = asyncio.run(_run())

    table = Table(title="Pipeline runs")
    table.add_column("Site", style="cyan")
    table.add_column("Processed", justify="right")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Translated", justify="right")
    table.add_column("Errors", justify="right")
    for site, summary in summaries.items():
        table.add_row(
            site,
            str(summary.processed_count),
            str(summary.created_count),
            str(summary.updated_count),
            str(summary.translated_count),
            str(len(summary.errors)),
        )
    console.print(table)

    for summary in summaries.values():
        for error in summary.errors:
            console.print(f"[yellow]{summary.site}:[/yellow] {error}")

    if not all(s.success for s in summaries.values()):
        raise typer.Exit(1)


@app.command("cache-stats")
def cache_stats():
    """Show translation cache size and hit counters."""
    from japan_listings.services.translation.service import TranslationService

    service = TranslationService(_translation_settings())

    async def _stats():
        await service.initialize()
        try:
            return await service.get_cache_stats()
        finally:
            await service.cleanup()

    stats = asyncio.run(_stats())

    table = Table(title="Translation cache")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Entries", str(stats.size))
    table.add_row("Hits (this process)", str(stats.hits))
    table.add_row("Misses (this process)", str(stats.misses))
    console.print(table)


@app.command("clear-cache")
def clear_cache(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete every cached translation."""
    from japan_listings.services.translation.service import TranslationService

    if not yes:
        typer.confirm("Delete all cached translations?", abort=True)

    service = TranslationService(_translation_settings())

    async def _clear():
        await service.initialize()
        try:
            await service.clear_cache()
        finally:
            await service.cleanup()

    asyncio.run(_clear())
    console.print("[green]✓ Translation cache cleared[/green]")


@app.command("init-db")
def init_db():
    """Create the listing tables if they do not exist."""
    from japan_listings.database import create_all_tables, create_engine

    engine = create_engine(settings)

    async def _init():
        try:
            await create_all_tables(engine)
        finally:
            await engine.dispose()

    asyncio.run(_init())
    db_type = "sqlite" if settings.is_sqlite else "postgresql"
    console.print(f"[green]✓ Tables ready ({db_type})[/green]")


if __name__ == "__main__":
    app()
