"""docrag CLI application.

This module provides the command-line interface for docrag,
built with Typer.
"""

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from docrag._version import __version__
from docrag.core.config import load_settings, write_default_config
from docrag.core.exceptions import ConfigurationError, DocRagError
from docrag.core.logging import setup_logging

app = typer.Typer(
    name="docrag",
    help="Document ingestion and semantic search with an in-memory fallback",
    no_args_is_help=True,
)
console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", help="JSON config file"),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"docrag v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """docrag - chunk, embed and search local documents."""
    pass


def _coordinator(config: Optional[Path]):
    from docrag.ingest.pipeline import IndexingCoordinator

    settings = load_settings(config)
    setup_logging(settings.log_level, settings.log_format)
    return settings, IndexingCoordinator.from_settings(settings)


@app.command()
def ingest(
    path: Annotated[Optional[Path], typer.Argument(help="Directory or file to ingest")] = None,
    config: ConfigOption = None,
) -> None:
    """Ingest documents into the index."""
    settings, coordinator = _coordinator(config)

    async def run() -> None:
        try:
            console.print("[blue]Initializing RAG service...[/blue]")
            mode = await coordinator.initialize()
            console.print(f"  Chunk store mode: {mode.value}")

            console.print("[blue]Checking Ollama connection...[/blue]")
            if await coordinator.check_embedding_connection():
                console.print("[blue]Ensuring embedding model is available...[/blue]")
                await coordinator.ensure_embedding_ready()
            else:
                console.print(f"[yellow]Ollama not connected at {settings.ollama_url}[/yellow]")
                console.print("[yellow]Using simple text-based search (no embeddings)[/yellow]")

            result = await coordinator.ingest(path)
            summary = await coordinator.get_collection_summary()
        finally:
            await coordinator.close()

        console.print("\n[green]Ingestion completed successfully![/green]")
        console.print(f"  Processed {result.processed} documents")
        console.print(f"  Created {result.chunks} chunks")

        table = Table(title="Collection Summary")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Total chunks", str(summary["total_chunks"]))
        table.add_row("Total sources", str(summary["total_sources"]))
        for ext, count in sorted(summary["stats"]["file_types"].items()):
            table.add_row(f"Files ({ext})", str(count))
        console.print(table)

    try:
        asyncio.run(run())
    except DocRagError as e:
        console.print(f"[red]Ingestion failed: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Search query")],
    k: Annotated[int, typer.Option("-k", help="Number of results")] = 5,
    path: Annotated[
        Optional[Path],
        typer.Option(help="Ingest this path first (needed when the store is in-memory)"),
    ] = None,
    config: ConfigOption = None,
) -> None:
    """Search the index."""
    _, coordinator = _coordinator(config)

    async def run():
        try:
            await coordinator.initialize()
            if path is not None:
                await coordinator.ingest(path)
            return await coordinator.search(query, k)
        finally:
            await coordinator.close()

    try:
        chunks = asyncio.run(run())
    except DocRagError as e:
        console.print(f"[red]Search failed: {e}[/red]")
        raise typer.Exit(1)

    if not chunks:
        console.print("[yellow]No results[/yellow]")
        return

    table = Table(title=f"Results for {query!r}")
    table.add_column("#", style="cyan")
    table.add_column("Chunk", style="green")
    table.add_column("Distance")
    table.add_column("Preview")
    for rank, chunk in enumerate(chunks, start=1):
        preview = chunk.content[:80].replace("\n", " ")
        distance = chunk.metadata.distance
        table.add_row(
            str(rank),
            chunk.id,
            f"{distance:.4f}" if distance is not None else "-",
            preview,
        )
    console.print(table)


@app.command()
def summary(config: ConfigOption = None) -> None:
    """Show collection statistics."""
    import json

    _, coordinator = _coordinator(config)

    async def run():
        try:
            await coordinator.initialize()
            return await coordinator.get_collection_summary()
        finally:
            await coordinator.close()

    try:
        collection = asyncio.run(run())
    except DocRagError as e:
        console.print(f"[red]Summary failed: {e}[/red]")
        raise typer.Exit(1)

    console.print_json(json.dumps(collection))


@app.command("init-config")
def init_config(
    path: Annotated[Path, typer.Argument(help="Where to write the config")] = Path("config.json"),
) -> None:
    """Write a config file with the default settings."""
    written = write_default_config(path)
    console.print(f"[green]Default config created at {written}[/green]")


@app.command()
def serve(
    transport: Annotated[
        Optional[str], typer.Option(help="Transport: stdio or http (defaults to settings)")
    ] = None,
    port: Annotated[Optional[int], typer.Option(help="HTTP port (if transport=http)")] = None,
    config: ConfigOption = None,
) -> None:
    """Start the docrag MCP server."""
    settings = load_settings(config)
    setup_logging(settings.log_level, settings.log_format)

    from docrag.mcp.server import run_server

    try:
        run_server(transport, port)
    except ConfigurationError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
