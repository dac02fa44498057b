"""Command-line interface for sitebook."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from . import __version__
from .core.generator import Generator
from .errors import FetchError, NoPagesDiscoveredError
from .host.local import LocalHostBridge
from .logging_config import setup_logging
from .models.config import SitebookConfig
from .models.events import EventType, ProgressEvent


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="sitebook",
        description="Turn a multi-page documentation site into one Markdown bundle or print-ready document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Markdown bundle (zip with images) from a docs site
  sitebook https://docs.example.com/intro

  # Print-ready HTML document with a custom title
  sitebook https://docs.example.com/intro --format composite --title "Example Docs"

  # Show the discovered page list without fetching
  sitebook https://docs.example.com/intro --preview

  # Settings from a YAML file, overridden on the command line
  sitebook --config sitebook.yaml --page-delay 1.0
        """,
    )

    parser.add_argument(
        "url",
        nargs="?",
        help="Seed page URL (a page whose navigation lists the site's pages)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        metavar="FILE",
        help="YAML configuration file",
    )

    # Output
    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--format",
        "-f",
        choices=["markdown", "composite", "both"],
        default=None,
        help="Artifact to produce (default: markdown)",
    )
    output_group.add_argument(
        "--output-dir",
        "-o",
        type=Path,
        default=None,
        help="Output directory (default: ./sitebook-output)",
    )
    output_group.add_argument(
        "--title",
        type=str,
        default=None,
        help="Document title (default: seed page title)",
    )
    output_group.add_argument(
        "--preview",
        action="store_true",
        help="List the pages that would be included and exit",
    )

    # Crawl settings
    crawl_group = parser.add_argument_group("crawl settings")
    crawl_group.add_argument(
        "--page-delay",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Seconds to wait after each page (default: 0.3)",
    )
    crawl_group.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Maximum pages to include",
    )

    # Image settings
    image_group = parser.add_argument_group("image settings")
    image_group.add_argument(
        "--image-batch-size",
        type=int,
        default=None,
        metavar="N",
        help="Images downloaded concurrently per batch (default: 5)",
    )
    image_group.add_argument(
        "--no-images",
        action="store_true",
        help="Keep remote image URLs instead of downloading images",
    )

    # Output control
    verbosity_group = parser.add_argument_group("output control")
    verbosity_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    verbosity_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress output",
    )

    return parser


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values into a config dict."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_config(args: argparse.Namespace) -> SitebookConfig:
    """
    Build the run configuration from an optional YAML file and CLI flags.

    Raises:
        ValidationError: If the resulting configuration is invalid
        OSError: If the config file cannot be read
    """
    base: dict[str, Any] = {}
    if args.config:
        base = SitebookConfig.from_yaml_file(args.config).model_dump(exclude_unset=True)

    overrides: dict[str, Any] = {}
    if args.url:
        overrides["url"] = args.url

    output_kwargs: dict[str, Any] = {}
    if args.format:
        output_kwargs["format"] = args.format
    if args.output_dir:
        output_kwargs["directory"] = args.output_dir
    if args.title:
        output_kwargs["title"] = args.title
    if output_kwargs:
        overrides["output"] = output_kwargs

    crawl_kwargs: dict[str, Any] = {}
    if args.page_delay is not None:
        crawl_kwargs["page_delay"] = args.page_delay
    if args.max_pages is not None:
        crawl_kwargs["max_pages"] = args.max_pages
    if crawl_kwargs:
        overrides["crawl"] = crawl_kwargs

    image_kwargs: dict[str, Any] = {}
    if args.image_batch_size is not None:
        image_kwargs["batch_size"] = args.image_batch_size
    if args.no_images:
        image_kwargs["enabled"] = False
    if image_kwargs:
        overrides["images"] = image_kwargs

    if args.verbose:
        overrides["log_level"] = "DEBUG"
    elif args.quiet:
        overrides["log_level"] = "ERROR"

    return SitebookConfig.model_validate(_merge(base, overrides))


def run_generator(args: argparse.Namespace) -> int:
    """Run the generator with given arguments."""
    console = Console()

    try:
        config = build_config(args)
    except (ValidationError, OSError, ValueError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 1

    if not config.url:
        console.print("[red]Error:[/red] Please provide a seed page URL")
        return 1

    setup_logging(level=config.log_level, log_file=config.log_file)

    async def run() -> int:
        if not args.quiet:
            console.print(f"[bold blue]sitebook[/bold blue] v{__version__}")
            console.print(f"Seed page: {config.url}")
            console.print()

        progress: Optional[Progress] = None
        if not args.quiet and not args.preview:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console,
                transient=True,
            )
        task = progress.add_task("Starting...", total=None) if progress else None

        def on_progress(label: str, current: int, total: int) -> None:
            if progress is not None and task is not None:
                progress.update(task, description=f"[cyan]{label}", completed=current, total=total)

        def on_event(event: ProgressEvent) -> None:
            if progress is None:
                return
            if event.type == EventType.DISCOVERY_COMPLETE:
                console.print(f"[green]Found {event.total} pages")
            elif event.type == EventType.FETCH_FAILED:
                console.print(f"[yellow]Placeholder:[/yellow] {event.url} - {escape(event.error or '')}")
            elif event.type == EventType.ARTIFACT_DELIVERED:
                console.print(f"[green]Delivered:[/green] {event.message}")

        try:
            async with LocalHostBridge(config, on_progress=on_progress) as host:
                seed = await host.load_seed(config.url)
                generator = Generator(host, config, on_event=on_event)

                if args.preview:
                    preview = generator.preview(seed)
                    table = Table(title=f"{preview.title} ({preview.page_count} pages)")
                    table.add_column("#", justify="right")
                    table.add_column("Level", justify="right")
                    table.add_column("Title")
                    table.add_column("URL")
                    for number, page in enumerate(preview.pages, start=1):
                        table.add_row(str(number), str(page.level), page.title, page.url)
                    console.print(table)
                    return 0 if preview.pages else 1

                if progress is not None:
                    with progress:
                        artifacts = await generator.generate(seed)
                else:
                    artifacts = await generator.generate(seed)

            stats = artifacts[0].stats
            if not args.quiet:
                console.print()
                console.print("[bold]Results:[/bold]")
                console.print(f"  Pages discovered: {stats.pages_discovered}")
                console.print(f"  Pages fetched: {stats.pages_fetched}")
                console.print(f"  Pages failed: {stats.pages_failed}")
                console.print(f"  Images downloaded: {stats.images_downloaded}")
                console.print(f"  Images failed: {stats.images_failed}")
                console.print(f"  Duration: {stats.duration_seconds:.1f}s")
                for path in host.delivered:
                    console.print(f"  Wrote: {path}")
            return 0

        except NoPagesDiscoveredError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            return 1
        except FetchError as e:
            console.print(f"[red]Could not load seed page:[/red] {escape(str(e))}")
            return 1

    return asyncio.run(run())


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_generator(args)


if __name__ == "__main__":
    sys.exit(main())
