"""spoilerdown CLI - typer application entry point."""

from __future__ import annotations

import asyncio
import atexit
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from rich.text import Text

from spoilerdown.client import EntityApiClient
from spoilerdown.config import RenderConfig, load_config
from spoilerdown.document import LiveDocument
from spoilerdown.embeds import EMBED_EXAMPLES, ENTITY_TYPES, extract_embeds, url_for
from spoilerdown.errors import ConfigError
from spoilerdown.observability import close_file_logging, configure_logging, get_logger

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="spoilerdown",
    help="spoilerdown: render markdown with entity embeds and chapter-gated spoilers.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

SPOILER_EXAMPLES = (
    ("> [!SPOILER Chapter 150] text", "Blockquote spoiler gated at chapter 150"),
    ("> [!SPOILER] text", "Blockquote spoiler without a chapter"),
    ('<div class="spoiler">Chapter 150 ...</div>', "HTML container spoiler"),
    ("::: spoiler Chapter 150\ntext\n:::", "Fenced container spoiler"),
)


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_dir: Annotated[
        Path | None,
        typer.Option(
            "--log-dir",
            help="Also write every log event to <dir>/debug.jsonl.",
            envvar="SPOILERDOWN_LOG_DIR",
        ),
    ] = None,
) -> None:
    """spoilerdown: render markdown with entity embeds and chapter-gated spoilers."""
    configure_logging(verbosity=verbose, log_dir=log_dir)
    if log_dir is not None:
        atexit.register(close_file_logging)


def _load_render_config(config_path: Path | None) -> RenderConfig:
    """Load the config file (if any) and apply environment overrides.

    Raises:
        typer.Exit: If the config cannot be loaded.
    """
    try:
        config = load_config(config_path) if config_path is not None else RenderConfig()
        return config.with_env_overrides()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _read_content(file: Path) -> str:
    try:
        return file.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Error:[/red] Cannot read {file}: {e}")
        raise typer.Exit(1) from e


async def _render_document(content: str, config: RenderConfig, *, offline: bool) -> str:
    if offline:
        return LiveDocument.from_config(content, config).to_html()

    api = config.api
    async with EntityApiClient(api.base_url, timeout=api.timeout, token=api.token) as client:
        document = LiveDocument.from_config(content, config, fetcher=client)
        states = await document.resolve_all()
        log.info("document_resolved", previews=len(states), base_url=api.base_url)
        return document.to_html()


@app.command()
def render(
    file: Annotated[Path, typer.Argument(help="Markdown file to render.")],
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="YAML render config."),
    ] = None,
    no_embeds: Annotated[
        bool,
        typer.Option("--no-embeds", help="Leave {{type:id}} syntax as plain text."),
    ] = False,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Render embeds as compact chips."),
    ] = False,
    progress: Annotated[
        int | None,
        typer.Option("--progress", "-p", min=0, help="Last chapter the reader has read."),
    ] = None,
    show_all: Annotated[
        bool,
        typer.Option("--show-all", help="Reveal every spoiler."),
    ] = False,
    api_url: Annotated[
        str | None,
        typer.Option("--api-url", help="Entity API base URL."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write HTML here instead of stdout."),
    ] = None,
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Do not fetch entities; embeds render as loading."),
    ] = False,
) -> None:
    """Render a markdown file to HTML."""
    config = _load_render_config(config_path)

    if api_url:
        config = replace(config, api=replace(config.api, base_url=api_url))
    if progress is not None:
        config = replace(config, spoilers=replace(config.spoilers, user_progress=progress))
    if show_all:
        config = replace(config, spoilers=replace(config.spoilers, show_all_spoilers=True))
    if compact:
        config = replace(config, preview=replace(config.preview, compact=True))
    if no_embeds:
        config = replace(config, enable_embeds=False)

    content = _read_content(file)
    html = asyncio.run(_render_document(content, config, offline=offline))

    if output is None:
        typer.echo(html, nl=False)
        return
    output.write_text(html, encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote {output}")


@app.command()
def extract(
    file: Annotated[Path, typer.Argument(help="Markdown file to scan.")],
) -> None:
    """List the entity embeds found in a file."""
    parsed = extract_embeds(_read_content(file))
    if not parsed.embeds:
        console.print("[dim]No embeds found.[/dim]")
        return

    table = Table(title=f"Embeds in {file.name}")
    table.add_column("#", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("ID", justify="right")
    table.add_column("Label")
    table.add_column("Link", style="dim")

    for index, embed in enumerate(parsed.embeds):
        table.add_row(
            str(index),
            ENTITY_TYPES[embed.type].label,
            str(embed.entity_id),
            Text(embed.display_text or "-"),
            url_for(embed.type, embed.entity_id),
        )

    console.print(table)
    console.print(f"{len(parsed.embeds)} embed(s)")


@app.command()
def syntax() -> None:
    """Show embed and spoiler syntax examples."""
    table = Table(title="Entity embeds")
    table.add_column("Syntax", style="cyan")
    table.add_column("Description")
    for examples in EMBED_EXAMPLES.values():
        for example in examples:
            table.add_row(Text(example.code), example.description)
    console.print(table)

    spoilers = Table(title="Spoilers")
    spoilers.add_column("Syntax", style="cyan")
    spoilers.add_column("Description")
    for code, description in SPOILER_EXAMPLES:
        spoilers.add_row(Text(code), description)
    console.print(spoilers)


@app.command()
def version() -> None:
    """Show version information."""
    from spoilerdown import __version__

    console.print(f"spoilerdown v{__version__}")


if __name__ == "__main__":
    app()
