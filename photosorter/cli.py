"""
Command-line interface for photosorter.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress
from rich.table import Table

from .config import Config
from .constants import PROGRAM, get_console, get_logger
from .core import SortRun
from .errors import ConfigurationError
from .models import FolderScheme, RunResult, SortOptions
from .progress import ProgressContext
from .stats import RunStats


def parse_scheme(value: str) -> FolderScheme:
    """argparse type for --scheme."""
    try:
        return FolderScheme.from_name(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def setup_logging(console: Console, log_path: Optional[Path], verbose: bool) -> logging.Logger:
    """Send WARNING and above (DEBUG with --verbose) to the console and everything to the log file."""
    logger = get_logger()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)
    logger.setLevel(logging.DEBUG)

    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not open log file {log_path}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
            ))
            logger.addHandler(file_handler)

    return logger


def create_parser(config: Config) -> argparse.ArgumentParser:
    """Create argument parser with dynamic defaults from config."""
    last_source = config.get_last_source()
    last_dest = config.get_last_dest()
    scheme = config.get_folder_scheme()

    source_help = "Source directory containing photos and videos to sort"
    dest_help = "Destination directory for the date-named folders"
    if last_source:
        source_help += f" (default: {last_source})"
    if last_dest:
        dest_help += f" (default: {last_dest})"

    scheme_choices = ", ".join(f"{s.value} ({s.label})" for s in FolderScheme)

    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="Sort photos and videos into date-based folders using their capture dates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  {PROGRAM} ~/Downloads/Photos ~/Pictures/Sorted
  {PROGRAM} --scheme hierarchical --move
  {PROGRAM} --source ~/Desktop/NewPhotos --no-subfolders
        """
    )

    parser.add_argument(
        "source", nargs="?",
        help=source_help
    )
    parser.add_argument(
        "dest", nargs="?",
        help=dest_help
    )
    parser.add_argument(
        "--source", "-s", dest="source_override",
        help="Override source directory"
    )
    parser.add_argument(
        "--dest", "-d", dest="dest_override",
        help="Override destination directory"
    )
    parser.add_argument(
        "--scheme", "-f", type=parse_scheme, metavar="SCHEME",
        help=f"Folder structure: {scheme_choices} (default: {scheme.value})"
    )
    transfer = parser.add_mutually_exclusive_group()
    transfer.add_argument(
        "--move", "-m", dest="move_files", action="store_true", default=None,
        help="Move files instead of copying them"
    )
    transfer.add_argument(
        "--copy", "-c", dest="move_files", action="store_false", default=None,
        help="Copy files, leaving the source untouched (default)"
    )
    parser.add_argument(
        "--subfolders", action=argparse.BooleanOptionalAction, default=None,
        help="Include subfolders of the source (default: yes)"
    )
    parser.add_argument(
        "--skip-log", action=argparse.BooleanOptionalAction, default=None,
        help="Write SkippedFiles-<timestamp>.txt to the destination when files are skipped (default: yes)"
    )
    parser.add_argument(
        "--yes", "-y", action="store_true",
        help="Auto-confirm processing for saved source/dest paths"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=f"Display the version number of {PROGRAM} and exit"
    )

    return parser


def resolve_options(args: argparse.Namespace, config: Config) -> SortOptions:
    """Command-line flags override the saved options."""
    options = config.get_sort_options()
    if args.scheme is not None:
        options.scheme = args.scheme
    if args.move_files is not None:
        options.move_files = args.move_files
    if args.subfolders is not None:
        options.include_subfolders = args.subfolders
    if args.skip_log is not None:
        options.write_skip_log = args.skip_log
    return options


def show_processing_plan(source: Path, dest: Path, options: SortOptions, console: Console) -> None:
    """Display the processing plan before execution."""
    console.print("\n[bold]Processing Plan:[/bold]")
    console.print(f"  Source:          [blue]{escape(str(source))}[/blue]", soft_wrap=True)
    console.print(f"  Destination:     [blue]{escape(str(dest))}[/blue]", soft_wrap=True)
    console.print(f"  Processing Mode: [cyan]{options.transfer_mode.value.upper()}[/cyan]")
    console.print(f"  Folder Scheme:   [cyan]{options.scheme.label}[/cyan]")
    console.print(f"  Subfolders:      [cyan]{'Yes' if options.include_subfolders else 'No'}[/cyan]")
    console.print(f"  Skipped Log:     [cyan]{'Yes' if options.write_skip_log else 'No'}[/cyan]")
    console.print()  # Empty line for readability


def confirm_processing(console: Console) -> bool:
    """Ask for confirmation when using saved configuration."""
    console.print("[yellow]Confirm processing plan with saved configuration.[/yellow]")

    try:
        response = console.input("Continue? [y/N]: ").strip().lower()
        return response in ['y', 'yes']
    except (EOFError, KeyboardInterrupt):
        console.print("\n[red]Operation cancelled[/red]")
        return False


def print_summary(stats: RunStats, result: RunResult, console: Console) -> None:
    """Print processing summary and the skipped files with their reasons."""
    table = Table(title="Processing Summary")
    table.add_column("Category", style="cyan")
    table.add_column("Count", style="green")

    table.add_row("Processed", str(result.processed))
    table.add_row("Photos", str(stats.photos))
    table.add_row("Videos", str(stats.videos))
    table.add_row("Skipped", str(result.skipped))

    # Format total size
    size_mb = stats.get_total_size_mb()
    if size_mb > 1024:
        size_str = f"{size_mb/1024:.1f} GB"
    else:
        size_str = f"{size_mb:.1f} MB"
    table.add_row("Total Size", size_str)

    console.print(table)

    if result.skipped_entries:
        console.print("\n[bold]Skipped Files Log (why)[/bold]")
        for entry in result.skipped_entries:
            console.print(f"  [yellow]{escape(entry.format_line())}[/yellow]", soft_wrap=True)


def main(config_path: Optional[Path] = None) -> int:
    """Main entry point.

    Args:
        config_path: Optional path to config file (for testing)
    """
    config = Config(config_path=config_path)
    parser = create_parser(config)
    args = parser.parse_args()

    # Detect if running with no positional arguments (using saved config)
    using_saved_config = args.source is None and args.dest is None and \
                         args.source_override is None and args.dest_override is None

    if args.version:
        from . import __version__, __copyright__
        if args.verbose:
            print(f"{PROGRAM} version {__version__} {__copyright__}")
            print(f"Config:  {config.config_path}")
            print(f"Log:     {config.log_path}")
            return 0
        print(__version__)
        return 0

    # Determine source and destination
    source_path = (args.source_override or args.source or
                   config.get_last_source())
    dest_path = (args.dest_override or args.dest or
                 config.get_last_dest())

    if not source_path or not dest_path:
        parser.error("Source and destination directories are required")

    source = Path(source_path).expanduser().resolve()
    dest = Path(dest_path).expanduser().resolve()
    options = resolve_options(args, config)

    console = get_console()
    setup_logging(console, config.log_path, args.verbose)

    show_processing_plan(source, dest, options, console)

    # Show confirmation when using saved config without --yes flag
    if using_saved_config and not args.yes:
        if not confirm_processing(console):
            return 0  # Exit gracefully

    sorter = SortRun(source, dest, options)

    try:
        with Progress(console=console) as progress:
            task = progress.add_task("Scanning…", total=None)
            handle = sorter.start()
            ProgressContext(progress, task).follow(handle.events())
        result = handle.wait()

    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        return 1
    except KeyboardInterrupt:
        console.print("\n[red]Operation cancelled by user[/red]")
        return 1
    except Exception as e:
        console.print(f"\n[red]Fatal error: {escape(str(e))}[/red]", soft_wrap=True)
        return 1

    # Remember paths and options for the next run
    config.update_paths(str(source), str(dest))
    config.update_sort_options(options)

    if result.processed == 0 and result.skipped == 0:
        console.print("[yellow]No media files found in source directory[/yellow]")
        return 0

    print_summary(sorter.stats, result, console)
    console.print(f"\n[green]✓ {escape(result.status)}[/green]", soft_wrap=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
