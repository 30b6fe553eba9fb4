"""Command-line interface for markdowndown."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from . import __version__
from .concurrency import BatchCoordinator, read_url_file, write_markdown
from .core import MarkdownDown
from .detection import detect_url_type
from .errors import (
    AuthError,
    ConfigError,
    ConfigErrorKind,
    ErrorContext,
    MarkdownError,
    NetworkError,
    ValidationError,
)
from .logging_config import level_from_flags, setup_logging
from .models.config import MarkdownDownConfig, load_config
from .models.types import Markdown, UrlType

logger = logging.getLogger(__name__)

COMMANDS = ("convert", "batch", "detect", "list-types")

EXIT_SUCCESS = 0
EXIT_VALIDATION = 1
EXIT_NETWORK = 2
EXIT_AUTH = 3
EXIT_UNKNOWN = 99


def exit_code_for(error: BaseException) -> int:
    """Process exit code for an error, chosen by its class."""
    if isinstance(error, (ValidationError, ConfigError)):
        return EXIT_VALIDATION
    if isinstance(error, NetworkError):
        return EXIT_NETWORK
    if isinstance(error, AuthError):
        return EXIT_AUTH
    return EXIT_UNKNOWN


def _add_global_options(parser: argparse.ArgumentParser) -> None:
    # SUPPRESS keeps subcommand defaults from overwriting values given before the subcommand
    parser.add_argument("--config", type=Path, default=argparse.SUPPRESS, help="Config file (YAML)")
    parser.add_argument(
        "--github-token",
        default=argparse.SUPPRESS,
        help="GitHub personal access token (default: $GITHUB_TOKEN)",
    )
    parser.add_argument("--timeout", type=float, default=argparse.SUPPRESS, help="HTTP timeout in seconds")
    parser.add_argument("--user-agent", default=argparse.SUPPRESS, help="Custom User-Agent header")
    parser.add_argument(
        "--max-retries",
        type=int,
        default=argparse.SUPPRESS,
        help="Maximum retry attempts for failed requests",
    )
    parser.add_argument("--verbose", "-v", action="store_true", default=argparse.SUPPRESS, help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", default=argparse.SUPPRESS, help="Only print errors")
    parser.add_argument("--debug", action="store_true", default=argparse.SUPPRESS, help="Debug logging")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="markdowndown",
        description="Convert web pages, Google Docs, Office 365 and GitHub issues to Markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert a page to stdout
  markdowndown https://example.com/article

  # Save a GitHub issue to a file
  markdowndown https://github.com/owner/repo/issues/1 -o issue.md

  # Convert a list of URLs, 8 at a time
  markdowndown batch urls.txt -c 8 --output-dir out/

  # Show how a URL would be handled
  markdowndown detect https://docs.google.com/document/d/abc/edit
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_global_options(parser)

    subparsers = parser.add_subparsers(dest="command")

    convert = subparsers.add_parser("convert", help="Convert a single URL (default command)")
    _add_global_options(convert)
    convert.add_argument("url", help="URL to convert")
    convert.add_argument("--output", "-o", type=Path, default=None, help="Write to FILE instead of stdout")
    convert.add_argument(
        "--format",
        "-f",
        choices=["markdown", "json", "yaml"],
        default=None,
        help="Output format (default: markdown)",
    )
    convert.add_argument("--no-frontmatter", action="store_true", help="Omit YAML frontmatter")
    convert.add_argument("--frontmatter-only", action="store_true", help="Print only the frontmatter")

    batch = subparsers.add_parser("batch", help="Convert URLs listed in a file")
    _add_global_options(batch)
    batch.add_argument("file", type=Path, help="File with one URL per line ('#' starts a comment)")
    batch.add_argument("--concurrency", "-c", type=int, default=None, help="Conversions in flight (default: 5)")
    batch.add_argument("--output-dir", type=Path, default=None, help="Write NNN.md files here instead of stdout")
    batch.add_argument("--stats", action="store_true", help="Print statistics when done")
    batch.add_argument("--task-timeout", type=float, default=None, help="Per-URL timeout in seconds (default: 60)")

    detect = subparsers.add_parser("detect", help="Print the detected type of a URL")
    _add_global_options(detect)
    detect.add_argument("url", help="URL to classify")

    list_types = subparsers.add_parser("list-types", help="List supported URL types")
    _add_global_options(list_types)

    return parser


def _with_default_command(argv: list[str]) -> list[str]:
    """Treat `markdowndown URL ...` as `markdowndown convert URL ...`."""
    if not argv:
        return argv
    if any(arg in COMMANDS for arg in argv):
        return argv
    if {"-h", "--help", "--version"} & set(argv):
        return argv
    return ["convert", *argv]


def build_config(args: argparse.Namespace) -> MarkdownDownConfig:
    """
    Merge config file, environment and command-line options.

    Raises:
        ConfigError: If the config file or an option value is invalid
    """
    config = load_config(getattr(args, "config", None))
    data = config.model_dump()

    if getattr(args, "github_token", None):
        data["auth"]["github_token"] = args.github_token
    if getattr(args, "timeout", None) is not None:
        data["http"]["timeout"] = args.timeout
    if getattr(args, "user_agent", None):
        data["http"]["user_agent"] = args.user_agent
    if getattr(args, "max_retries", None) is not None:
        data["http"]["max_retries"] = args.max_retries

    if getattr(args, "no_frontmatter", False):
        data["output"]["include_frontmatter"] = False
    if getattr(args, "format", None):
        data["output"]["format"] = args.format
    if getattr(args, "concurrency", None) is not None:
        data["batch"]["concurrency"] = args.concurrency
    if getattr(args, "task_timeout", None) is not None:
        data["batch"]["task_timeout"] = args.task_timeout

    try:
        return MarkdownDownConfig.model_validate(data)
    except PydanticValidationError as e:
        context = ErrorContext("", "Command-line options", "CLI").with_info(str(e))
        raise ConfigError(ConfigErrorKind.INVALID_VALUE, context) from e


def format_output(markdown: Markdown, url: str, output_format: str, frontmatter_only: bool = False) -> str:
    """Render converted Markdown in the requested output format."""
    if frontmatter_only:
        return markdown.frontmatter() or "No frontmatter found in the document\n"
    if output_format == "json":
        return json.dumps({"url": url, "content": str(markdown), "format": "markdown"}, indent=2) + "\n"
    if output_format == "yaml":
        return yaml.safe_dump({"url": url, "content": str(markdown)}, allow_unicode=True, sort_keys=False)
    return str(markdown)


def print_error(console: Console, error: BaseException) -> None:
    """Print an error and any suggestions to stderr."""
    console.print(f"[red]Error:[/red] {error}", highlight=False)
    if isinstance(error, MarkdownError):
        for suggestion in error.suggestions():
            console.print(f"  [yellow]Hint:[/yellow] {suggestion}", highlight=False)


async def _convert(args: argparse.Namespace, config: MarkdownDownConfig, console: Console) -> int:
    async with MarkdownDown(config) as md:
        markdown = await md.convert_url(args.url)

    content = format_output(markdown, args.url, config.output.format, args.frontmatter_only)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(content, encoding="utf-8")
        if not getattr(args, "quiet", False):
            console.print(f"[green]Saved:[/green] {args.output}")
    else:
        sys.stdout.write(content)
    return EXIT_SUCCESS


async def _batch(args: argparse.Namespace, config: MarkdownDownConfig, console: Console) -> int:
    urls = read_url_file(args.file)
    if not urls:
        console.print(f"[yellow]No URLs found in {args.file}[/yellow]")
        return EXIT_SUCCESS

    quiet = getattr(args, "quiet", False)
    show_progress = config.batch.show_progress and not quiet and args.output_dir is not None

    async with MarkdownDown(config) as md:
        coordinator = BatchCoordinator(md, config.batch.concurrency, config.batch.task_timeout)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
            disable=not show_progress,
        ) as progress:
            task = progress.add_task("Converting...", total=len(urls))

            async for result in coordinator.run(urls):
                progress.advance(task)
                if not result.ok:
                    console.print(f"[red]Failed:[/red] {result.url}: {result.error}", highlight=False)
                    continue
                if args.output_dir is not None:
                    path = await write_markdown(args.output_dir, result.index, result.markdown)
                    if not quiet:
                        progress.console.print(f"[green]Saved:[/green] {result.url} -> {path}", highlight=False)
                else:
                    sys.stdout.write(f"=== {result.url} ===\n{result.markdown}\n\n")

    stats = coordinator.stats
    if args.stats or getattr(args, "verbose", False):
        console.print()
        console.print("[bold]Conversion Statistics:[/bold]")
        console.print(f"  Successful: {stats.succeeded}")
        console.print(f"  Failed: {stats.failed}")
        console.print(f"  Total: {stats.total}")
        console.print(f"  Success rate: {stats.success_rate:.1f}%")
        console.print(f"  Duration: {stats.duration_seconds:.1f}s")

    if stats.failed and not config.batch.skip_failures:
        return EXIT_UNKNOWN
    return EXIT_SUCCESS


def _detect(args: argparse.Namespace) -> int:
    print(detect_url_type(args.url))
    return EXIT_SUCCESS


async def _list_types(config: MarkdownDownConfig) -> int:
    async with MarkdownDown(config) as md:
        supported = md.supported_types()
    print("Supported URL types:")
    for url_type in UrlType:
        if url_type in supported:
            print(f"  {url_type}")
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    """Run the selected command; returns the process exit code."""
    console = Console(stderr=True)

    flag_level = level_from_flags(
        debug=getattr(args, "debug", False),
        verbose=getattr(args, "verbose", False),
        quiet=getattr(args, "quiet", False),
        default=None,
    )
    setup_logging(flag_level or "WARNING", force=True)

    try:
        if args.command == "detect":
            return _detect(args)

        config = build_config(args)
        setup_logging(
            flag_level or config.logging.level,
            log_file=str(config.logging.file) if config.logging.file else None,
            force=True,
        )

        if args.command == "batch":
            return asyncio.run(_batch(args, config, console))
        if args.command == "list-types":
            return asyncio.run(_list_types(config))
        return asyncio.run(_convert(args, config, console))

    except MarkdownError as e:
        logger.debug(f"{type(e).__name__}: {e}", exc_info=True)
        print_error(console, e)
        return exit_code_for(e)
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        return 130
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print_error(console, e)
        return EXIT_UNKNOWN


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    if argv is None:
        argv = sys.argv[1:]
    parser = create_parser()
    args = parser.parse_args(_with_default_command(list(argv)))

    if args.command is None:
        parser.print_help()
        return EXIT_VALIDATION

    return run_command(args)


if __name__ == "__main__":
    sys.exit(main())
