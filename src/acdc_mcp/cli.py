"""Command-line interface for ACDC MCP Server.

Provides CLI commands for serving content over MCP, validating a content
directory, and running one-off searches against it.
"""

import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import TRANSPORTS, SearchSettings, Settings, configure_logging, log_settings
from .errors import ConfigurationError, SearchError
from .server import AcdcMCPServer

app = typer.Typer(
    name="acdc-mcp",
    help="ACDC MCP Server - A Model Context Protocol Server for development resources and prompts"
)
console = Console(stderr=True)


def _build_settings(
    content_dir: Path | None = None,
    transport: str | None = None,
    host: str | None = None,
    port: int | None = None,
    uri_scheme: str | None = None,
    max_results: int | None = None,
    log_level: str | None = None,
) -> Settings:
    """Environment settings with CLI flags layered on top."""
    overrides = {
        "content_dir": content_dir,
        "transport": transport,
        "host": host,
        "port": port,
        "uri_scheme": uri_scheme,
        "log_level": log_level,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if max_results is not None:
        overrides["search"] = SearchSettings(max_results=max_results)

    try:
        return Settings(**overrides)
    except ValidationError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(code=2) from e


def _load_server(settings: Settings) -> AcdcMCPServer:
    try:
        return AcdcMCPServer(settings)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def serve(
    content_dir: Path | None = typer.Option(None, "--content-dir", "-c", help="Content directory"),
    transport: str | None = typer.Option(None, "--transport", "-t", help=f"Transport protocol ({', '.join(TRANSPORTS)})"),
    host: str | None = typer.Option(None, "--host", "-h", help="Server host"),
    port: int | None = typer.Option(None, "--port", "-p", help="Server port"),
    uri_scheme: str | None = typer.Option(None, "--scheme", help="URI scheme for resources"),
    max_results: int | None = typer.Option(None, "--search-max-results", help="Default search result limit"),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """Start the ACDC MCP server."""
    settings = _build_settings(content_dir, transport, host, port, uri_scheme, max_results, log_level)
    configure_logging(settings)
    log_settings(settings)

    console.print("[bold green]Starting ACDC MCP Server[/bold green]")
    console.print(f"Transport: {settings.transport}")
    if settings.transport == "stdio":
        console.print("STDIO Transport: Ready for MCP client connection")
    else:
        console.print(f"HTTP Server: http://{settings.host}:{settings.port}")

    server = _load_server(settings)
    try:
        count = asyncio.run(server.build())
        console.print(f"Indexed {count} resources")
        server.run()
    finally:
        server.close()


@app.command()
def validate(
    content_dir: Path | None = typer.Option(None, "--content-dir", "-c", help="Content directory"),
) -> None:
    """Validate a content directory and show what would be served."""
    settings = _build_settings(content_dir=content_dir, log_level="WARNING")
    configure_logging(settings)
    console.print(f"[bold blue]Validating {settings.content_dir}[/bold blue]")

    server = _load_server(settings)
    try:
        table = Table(title="Content Locations")
        table.add_column("Location", style="cyan")
        table.add_column("Path", style="green")
        table.add_column("Resources", justify="right", style="magenta")
        table.add_column("Prompts", justify="right", style="magenta")

        resources = server.resources.list_resources()
        prompts = server.prompts.list_prompts()
        for location in server.content.locations:
            table.add_row(
                location.name,
                str(location.base_path),
                str(sum(1 for r in resources if r.source == location.name)),
                str(sum(1 for p in prompts if p.source == location.name)),
            )
        console.print(table)
        console.print(
            f"[bold green]✓ {server.metadata.server.name} {server.metadata.server.version}: "
            f"{len(resources)} resources, {len(prompts)} prompts[/bold green]"
        )
    finally:
        server.close()


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query; '*' matches everything"),
    content_dir: Path | None = typer.Option(None, "--content-dir", "-c", help="Content directory"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Maximum number of results"),
) -> None:
    """Index the content directory and run a single search."""
    settings = _build_settings(content_dir=content_dir, log_level="WARNING")
    configure_logging(settings)

    server = _load_server(settings)
    try:
        asyncio.run(server.build())
        try:
            results = server.search_engine.search(query, limit=limit)
        except SearchError as e:
            console.print(f"[bold red]Search failed:[/bold red] {e}")
            raise typer.Exit(code=1) from e
    finally:
        server.close()

    if not results:
        console.print(f"[yellow]No results found for '{query}'[/yellow]")
        return

    table = Table(title=f"Search results for '{query}'")
    table.add_column("Name", style="cyan")
    table.add_column("URI", style="green")
    table.add_column("Relevance", style="dim")
    for result in results:
        table.add_row(result.name, result.uri, result.snippet)
    console.print(table)


@app.command()
def config(
    content_dir: Path | None = typer.Option(None, "--content-dir", "-c", help="Content directory"),
) -> None:
    """Show current configuration."""
    settings = _build_settings(content_dir=content_dir)
    console.print("[bold blue]ACDC MCP Server Configuration[/bold blue]")

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan", min_width=25)
    table.add_column("Value", style="green")

    table.add_row("Content Directory", str(settings.content_dir))
    table.add_row("Metadata File", str(settings.metadata_path))
    table.add_row("URI Scheme", settings.uri_scheme)
    table.add_row("Transport", settings.transport)
    table.add_row("Host", settings.host)
    table.add_row("Port", str(settings.port))
    table.add_row("Log Level", settings.log_level)

    table.add_row("Search Max Results", str(settings.search.max_results))
    table.add_row("Search In Memory", "✓" if settings.search.in_memory else "✗")
    table.add_row("Keywords Boost", str(settings.search.keywords_boost))
    table.add_row("Name Boost", str(settings.search.name_boost))
    table.add_row("Content Boost", str(settings.search.content_boost))
    table.add_row("Index Batch Size", str(settings.search.batch_size))

    console.print(table)


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
