"""
CLI Main - Typer-based command-line interface.

Usage:
    hybridindex init
    hybridindex sync catalog.json --embed
    hybridindex search "inactive users" --method SPARSE
    hybridindex embed --force
    hybridindex serve
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from hybridindex.adapters import SQLiteRepository
from hybridindex.config import get_settings
from hybridindex.domains.indexing import EmbeddingProvider, ItemType, SearchMethod
from hybridindex.domains.sync import BatchEmbedResult, SyncReport

app = typer.Typer(
    name="hybridindex",
    help="HybridIndex - Hybrid search over schema metadata and documents",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for every command."""
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@asynccontextmanager
async def _open_repository(db_path: Path | None) -> AsyncIterator[SQLiteRepository]:
    """Open (and create if needed) the SQLite store."""
    repo = SQLiteRepository(db_path or get_settings().db_path)
    await repo.initialize()
    try:
        yield repo
    finally:
        await repo.close()


async def _close_embedder(embedder: EmbeddingProvider) -> None:
    close = getattr(embedder, "close", None)
    if close is not None:
        await close()


@app.command()
def init(
    db_path: Path | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Initialize the HybridIndex database."""
    asyncio.run(_init_async(db_path))


async def _init_async(db_path: Path | None) -> None:
    """Async initialization."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Initializing SQLite database...", total=None)
        async with _open_repository(db_path) as repo:
            path = repo.db_path

    console.print("\n[green]Initialization complete![/green]")
    console.print(f"[dim]Database: {path}[/dim]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(10, "--limit", "-n", min=1, max=100, help="Number of results"),
    method: SearchMethod | None = typer.Option(
        None, "--method", "-m", case_sensitive=False, help="DENSE, SPARSE or HYBRID"
    ),
    data_source: str | None = typer.Option(None, "--data-source", "-s", help="Scope"),
    config_name: str | None = typer.Option(None, "--config", "-c", help="Named config"),
    db_path: Path | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Search indexed items."""
    asyncio.run(_search_async(query, limit, method, data_source, config_name, db_path))


async def _search_async(
    query: str,
    limit: int,
    method: SearchMethod | None,
    data_source: str | None,
    config_name: str | None,
    db_path: Path | None,
) -> None:
    """Async search implementation."""
    from hybridindex.adapters import create_embedder
    from hybridindex.domains.indexing import ConfigStore
    from hybridindex.domains.search import HybridSearchEngine, SearchQuery

    settings = get_settings()
    embedder = create_embedder(settings)

    try:
        async with _open_repository(db_path) as repo:
            engine = HybridSearchEngine.from_settings(
                repo, embedder, settings, configs=ConfigStore(repo), search_log=repo
            )
            response = await engine.search(
                SearchQuery(
                    query=query,
                    data_source_id=data_source,
                    config_name=config_name,
                    search_method=method,
                    top_k=limit,
                )
            )
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    finally:
        await _close_embedder(embedder)

    if not response.results:
        console.print(f"[yellow]No results for:[/yellow] {query}")
        return

    table = Table(title=f"{response.search_method.value} results for: {query}")
    table.add_column("#", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Score", style="green")
    table.add_column("Content")

    for rank, result in enumerate(response.results, 1):
        score = next(
            s
            for s in (result.hybrid_score, result.sparse_score, result.dense_score, 0.0)
            if s is not None
        )
        content = result.content.splitlines()[0] if result.content else ""
        table.add_row(str(rank), result.type.value, f"{score:.4f}", content[:80])

    console.print(table)
    console.print(f"[dim]{response.timing.total_time_ms:.1f} ms[/dim]")


@app.command()
def sync(
    catalog_path: Path = typer.Argument(..., help="JSON export of source objects"),
    data_source: str | None = typer.Option(None, "--data-source", "-s", help="Only this scope"),
    embed: bool = typer.Option(False, "--embed", "-e", help="Embed stale items afterwards"),
    db_path: Path | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Sync tables, columns, sample queries and documents into the index."""
    if not catalog_path.exists():
        console.print(f"[red]Error:[/red] File not found: {catalog_path}")
        raise typer.Exit(1)

    asyncio.run(_sync_async(catalog_path, data_source, embed, db_path))


async def _sync_async(
    catalog_path: Path,
    data_source: str | None,
    embed: bool,
    db_path: Path | None,
) -> None:
    """Async sync implementation."""
    from hybridindex.adapters import create_embedder
    from hybridindex.domains.sync import BatchEmbedRequest, InMemoryCatalog, SyncPipeline

    settings = get_settings()
    embedder = create_embedder(settings)

    try:
        catalog = InMemoryCatalog.from_json(catalog_path)
        async with _open_repository(db_path) as repo:
            pipeline = SyncPipeline.from_settings(repo, catalog, embedder, settings)

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task("Syncing sources...", total=None)
                if data_source:
                    report = await pipeline.sync_all_for_scope(data_source)
                else:
                    report = await pipeline.sync_all()

                embed_result = None
                if embed:
                    progress.update(task, description="Embedding stale items...")
                    embed_result = await pipeline.batch_embed(
                        BatchEmbedRequest(data_source_id=data_source)
                    )
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    finally:
        await _close_embedder(embedder)

    _print_sync_report(report)
    if embed_result is not None:
        _print_embed_result(embed_result)


@app.command()
def embed(
    data_source: str | None = typer.Option(None, "--data-source", "-s", help="Scope"),
    item_type: ItemType | None = typer.Option(
        None, "--type", "-t", case_sensitive=False, help="Item type"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Re-embed fresh items too"),
    db_path: Path | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Generate embeddings for items that need them."""
    asyncio.run(_embed_async(data_source, item_type, force, db_path))


async def _embed_async(
    data_source: str | None,
    item_type: ItemType | None,
    force: bool,
    db_path: Path | None,
) -> None:
    """Async batch embedding implementation."""
    from hybridindex.adapters import create_embedder
    from hybridindex.domains.sync import BatchEmbedRequest, InMemoryCatalog, SyncPipeline

    settings = get_settings()
    embedder = create_embedder(settings)

    try:
        async with _open_repository(db_path) as repo:
            pipeline = SyncPipeline.from_settings(repo, InMemoryCatalog(), embedder, settings)
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                progress.add_task("Embedding items...", total=None)
                result = await pipeline.batch_embed(
                    BatchEmbedRequest(
                        data_source_id=data_source,
                        type=item_type,
                        force_regenerate=force,
                    )
                )
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    finally:
        await _close_embedder(embedder)

    _print_embed_result(result)


def _print_sync_report(report: SyncReport) -> None:
    style = "green" if report.errors == 0 else "yellow"
    console.print(
        Panel(
            f"[bold]Synced:[/bold] {report.synced}\n[bold]Errors:[/bold] {report.errors}",
            title="Sync Complete",
            style=style,
        )
    )


def _print_embed_result(result: BatchEmbedResult) -> None:
    table = Table(title="Embedding Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Success", str(result.success))
    table.add_row("Failed", str(result.failed))
    table.add_row("Skipped", str(result.skipped))

    console.print(table)

    for error in result.errors[:10]:
        console.print(f"  [red]![/red] {error.id}: {error.error}")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting HybridIndex API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "hybridindex.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from hybridindex import __version__

    console.print(f"HybridIndex v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
