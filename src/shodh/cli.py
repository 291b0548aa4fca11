"""Command line interface for shodh.

Usage:
    shodh [OPTIONS] QUERY [ROOT]

Examples:
    shodh kilo src --files-only -n 20
    shodh resume ~/Documents --dirs-only
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from . import __version__
from .config import Config, KindFilter
from .entities import EntryKind
from .errors import ShodhError
from .search.engine import FuzzySearchEngine, FuzzySearchResult

_KIND_STYLES = {
    EntryKind.DIR: ("DIR ", "bold blue"),
    EntryKind.FILE: ("FILE", "bold yellow"),
}


def _setup_logging(verbosity: int, console: Console) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbosity >= 2, markup=False)],
        force=True,
    )


def render_results(result: FuzzySearchResult, console: Console, show_stats: bool = False) -> None:
    """Print the ranking as ``[score] KIND path`` lines."""
    console.print(Text("\nResults:", style="bold green"))

    for match in result.results:
        label, style = _KIND_STYLES[match.kind]
        line = Text()
        line.append(f"[{match.score:5}] {label}", style=style)
        line.append(f"  {match.path}")
        console.print(line, soft_wrap=True, highlight=False)

    if result.is_empty:
        console.print(Text("No results found.", style="bold red"))

    if show_stats:
        stats = result.stats
        console.print(
            Text(
                f"\n{stats.entries_scanned} scanned, {stats.candidates_matched} matched, "
                f"{stats.entries_skipped} skipped, {stats.workers} worker(s), {stats.time_ms:.1f}ms",
                style="dim",
            ),
            highlight=False,
        )


def _build_config(
    settings_path: Optional[Path],
    limit: Optional[int],
    files_only: bool,
    dirs_only: bool,
    ignore_case: bool,
    case_sensitive: bool,
    no_parallel: bool,
    jobs: Optional[int],
    hidden: Optional[bool],
    exclude: Tuple[str, ...],
    max_depth: Optional[int],
) -> Config:
    if ignore_case and case_sensitive:
        raise click.UsageError("--ignore-case and --case-sensitive are mutually exclusive")

    case_rule: Optional[bool] = None
    if case_sensitive:
        case_rule = True
    elif ignore_case:
        case_rule = False

    config = Config.load(
        settings_path,
        limit=limit,
        kind_filter=KindFilter.from_flags(files_only, dirs_only),
        case_sensitive=case_rule,
        parallel=False if no_parallel else None,
        max_workers=jobs,
        include_hidden=hidden,
        max_depth=max_depth,
    )
    if exclude:
        config = config.replace(exclude=config.exclude + tuple(exclude))
    return config


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("query")
@click.argument(
    "root",
    required=False,
    default=".",
    type=click.Path(exists=True, file_okay=True, dir_okay=True, path_type=Path),
)
@click.option("-n", "--num", "limit", type=int, default=None, help="Limit number of results (default: 10).")
@click.option("--files-only", is_flag=True, help="Only show files.")
@click.option("--dirs-only", is_flag=True, help="Only show directories.")
@click.option("-i", "--ignore-case", is_flag=True, help="Case-insensitive search (default).")
@click.option("-s", "--case-sensitive", is_flag=True, help="Case-sensitive search.")
@click.option("--no-parallel", is_flag=True, help="Disable parallel scoring.")
@click.option("-j", "--jobs", type=int, default=None, help="Number of scoring workers (default: CPU count).")
@click.option("--hidden/--no-hidden", default=None, help="Include dot-prefixed entries (default: include).")
@click.option("-e", "--exclude", multiple=True, help="Glob pattern on entry names to skip; repeatable.")
@click.option("-d", "--max-depth", type=int, default=None, help="Maximum depth below ROOT (-1 = unlimited).")
@click.option(
    "--config",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (YAML or JSON).",
)
@click.option("--stats", "show_stats", is_flag=True, help="Print search statistics.")
@click.option("--verbose", count=True, help="Increase log verbosity (repeatable).")
@click.version_option(__version__, "-v", "--version", prog_name="shodh", message="%(prog)s v%(version)s")
def cli(
    query: str,
    root: Path,
    limit: Optional[int],
    files_only: bool,
    dirs_only: bool,
    ignore_case: bool,
    case_sensitive: bool,
    no_parallel: bool,
    jobs: Optional[int],
    hidden: Optional[bool],
    exclude: Tuple[str, ...],
    max_depth: Optional[int],
    settings_path: Optional[Path],
    show_stats: bool,
    verbose: int,
) -> None:
    """shodh - fast, smart, fuzzy file finder.

    Search ROOT (default: current directory) for files and directories whose
    names match QUERY.
    """
    console = Console(highlight=False)
    err_console = Console(stderr=True)
    _setup_logging(verbose, err_console)

    try:
        config = _build_config(
            settings_path,
            limit,
            files_only,
            dirs_only,
            ignore_case,
            case_sensitive,
            no_parallel,
            jobs,
            hidden,
            exclude,
            max_depth,
        )
        with FuzzySearchEngine(config) as engine:
            result = engine.search(query, root)
    except ShodhError as exc:
        err_console.print(Text.assemble(("Error: ", "bold red"), str(exc)))
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)

    render_results(result, console, show_stats=show_stats)


def main() -> None:
    """Console script entry point."""
    cli(prog_name="shodh")


if __name__ == "__main__":
    main()
