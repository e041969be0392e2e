import asyncio
import mimetypes
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from vidfed.config import Config
from vidfed.logging import UVICORN_LOG_CONFIG, configure_logging

console = Console()


@click.group(invoke_without_command=True)
@click.pass_context
def main(ctx):
    """vidfed - federated video search"""
    try:
        ctx.ensure_object(dict)
        ctx.obj["config"] = Config()
    except ValueError as e:
        # Only fail if we're running a command that needs config
        ctx.obj["config_error"] = str(e)

    if ctx.invoked_subcommand is None:
        console.print("[bold]vidfed[/bold] - federated video search\n")
        console.print("Run [cyan]vidfed serve[/cyan] to start the server.")
        console.print("\nUse [cyan]vidfed --help[/cyan] for all commands.")


def _require_config(ctx) -> Config:
    if "config_error" in ctx.obj:
        console.print(f"[red]Error:[/red] {ctx.obj['config_error']}")
        console.print()
        console.print("[bold]Required environment variables:[/bold]")
        console.print("  VIDFED_BRAND_PARTITION_ID, VIDFED_CREATOR_PARTITION_ID - backend index ids")
        console.print()
        console.print("[bold]Optional environment variables:[/bold]")
        console.print("  VIDFED_API_URL, VIDEO_SEARCH_API_KEY - search service endpoint and key")
        raise SystemExit(1)
    return ctx.obj["config"]


@main.command()
@click.pass_context
def status(ctx):
    """Show current configuration."""
    config = _require_config(ctx)

    console.print("[bold]vidfed status[/bold]")
    console.print()
    console.print(f"Search service: [cyan]{config.api_url}[/cyan]")
    for p in config.partitions:
        console.print(f"Partition {p.name}: {p.id}")
    console.print(f"Page limit: {config.page_limit}")
    console.print(f"Request timeout: {config.request_timeout}s")


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx, host: str, port: int, reload: bool):
    """Start the vidfed API server."""
    _require_config(ctx)

    import uvicorn

    console.print(f"[bold]vidfed server[/bold] starting on http://{host}:{port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]")
    console.print()

    uvicorn.run(
        "vidfed.server.app:app",
        host=host,
        port=port,
        reload=reload,
        log_config=UVICORN_LOG_CONFIG,
    )


@main.command()
@click.argument("text", required=False)
@click.option("--image", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Search by image file")
@click.option("--partition", default="all", help="all, brand or creator")
@click.option("--format", "formats", multiple=True, type=click.Choice(["vertical", "horizontal"]))
@click.option("--pages", default=1, help="Number of result pages to load")
@click.pass_context
def search(ctx, text: str | None, image: Path | None, partition: str, formats: tuple[str, ...], pages: int):
    """Search every partition by TEXT or by --image (headless)."""
    from vidfed.models import SearchQuery

    config = _require_config(ctx)
    if (text is None) == (image is None):
        raise click.UsageError("Give either TEXT or --image")
    try:
        if image is not None:
            query = SearchQuery(
                image_bytes=image.read_bytes(),
                filename=image.name,
                content_type=mimetypes.guess_type(image.name)[0],
            )
            title = f"Results for image {image.name}"
        else:
            query = SearchQuery(text=text)
            title = f"Results for '{query.text}'"
    except ValueError as e:
        raise click.UsageError(str(e))
    configure_logging(config.log_level)
    asyncio.run(_run_search(config, query, title, partition, list(formats), pages))


async def _run_search(config: Config, query, title: str, partition: str, formats: list[str], pages: int):
    from vidfed.search.details import format_time
    from vidfed.server.runtime import Runtime

    runtime = Runtime(config=config)
    try:
        session = runtime.session
        await session.search(query)
        for _ in range(pages - 1):
            if not session.has_more():
                break
            await session.load_more()
        hits = session.set_filters(partition=partition, formats=formats)

        table = Table(title=title)
        table.add_column("Partition")
        table.add_column("Confidence")
        table.add_column("Score", justify="right")
        table.add_column("Range")
        table.add_column("Format")
        table.add_column("Title")
        for hit in hits:
            table.add_row(
                runtime.partition_name(hit.partition_id),
                hit.confidence.value,
                f"{hit.score:.3f}" if hit.score is not None else "-",
                f"{format_time(hit.temporal_range.start)} - {format_time(hit.temporal_range.end)}",
                hit.format.value if hit.format else "-",
                hit.details.display_title if hit.details else f"Video {hit.entity_id}",
            )
        console.print(table)
        console.print(
            " | ".join(s.label for s in session.facet_counts())
            + ("  [dim](more available)[/dim]" if session.has_more() else "")
        )
        for pid, message in session.errors.items():
            console.print(f"[yellow]{runtime.partition_name(pid)}:[/yellow] {message}")
    finally:
        await runtime.close()


@main.command()
@click.argument("video_id")
@click.option("--source", default="brand", type=click.Choice(["brand", "creator"]), help="Partition of VIDEO_ID")
@click.pass_context
def match(ctx, video_id: str, source: str):
    """Find the most similar videos in the other partition."""
    config = _require_config(ctx)
    configure_logging(config.log_level)
    asyncio.run(_run_match(config, video_id, source))


async def _run_match(config: Config, video_id: str, source_name: str):
    from vidfed.server.runtime import Runtime

    runtime = Runtime(config=config)
    try:
        source = config.partition_named(source_name)
        target = config.other_partition(source)

        def progress(processed: int, total: int) -> None:
            console.print(f"[dim]Embeddings ready: {processed}/{total}[/dim]")

        result = await runtime.session.find_matches(video_id, source.id, target.id, progress=progress)
        if not result.readiness.success:
            console.print("[red]Embeddings are not ready; no matches.[/red]")
            return

        table = Table(title=f"{target.name.title()} matches for {video_id}")
        table.add_column("Video")
        table.add_column("Tier")
        table.add_column("Origin")
        table.add_column("Score", justify="right")
        for m in result.matches:
            table.add_row(m.entity_id, m.tier.value, m.origin.value, f"{m.combined_score:.3f}")
        console.print(table)
    finally:
        await runtime.close()


if __name__ == "__main__":
    main()
