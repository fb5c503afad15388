"""Command line interface for comic_mirror."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import MirrorConfig, load_config
from .core.archive import Archive
from .core.errors import NotFound, RemoteUnavailable
from .core.guard import GuardedArchive
from .core.logger import get_logger, initialize_logging
from .core.search import MAX_MATCHES
from .utils.file_manager import ArchiveStore


app = typer.Typer(help="Mirror a numbered comic archive and browse it offline.",
                  no_args_is_help=True)
console = Console()
logger = get_logger("cli")


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _version_callback(value: bool):
    if value:
        console.print(f"comic_mirror v{__version__}")
        raise typer.Exit()


def _resolve_config(ctx: typer.Context, **overrides) -> MirrorConfig:
    base: MirrorConfig = ctx.obj or MirrorConfig()
    return base.with_overrides(**overrides)


def _print_entry(entry_id: int, archive: Archive):
    nav = archive.navigate(entry_id)
    entry = nav.entry
    console.print(f"[bold]#{nav.id}[/bold] {escape(entry.title)} "
                  f"({entry.year}-{entry.month.zfill(2)}-{entry.day.zfill(2)})")
    console.print(f"[dim]image:[/dim] {entry.asset_file_name}")
    if entry.alt:
        console.print(f"[dim]alt:[/dim] {escape(entry.alt)}")
    console.print(f"[dim]previous:[/dim] {nav.previous_id}  "
                  f"[dim]next:[/dim] {nav.next_id}  [dim]latest:[/dim] {nav.max_id}")


def _exit_not_found(error: NotFound):
    console.print(f"[red]{error}[/red]")
    if error.redirect_id is not None:
        console.print(f"Try entry {error.redirect_id}")
    raise typer.Exit(code=1)


# ---------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------

@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show the version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to the console."),
):
    config = load_config()
    initialize_logging(config.log_dir, logging.DEBUG if verbose else logging.INFO)
    ctx.obj = config


@app.command()
def update(
    ctx: typer.Context,
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1,
                                       help="Number of threads for parallel downloading."),
    root: Optional[str] = typer.Option(None, "--root", help="Archive directory."),
):
    """Update the local archive from the remote source."""
    config = _resolve_config(ctx, jobs=jobs, root=root)
    guarded = GuardedArchive.load(config.root, config)
    try:
        report = guarded.update(config.jobs)
    except RemoteUnavailable as e:
        logger.error(f"Update aborted: {e}")
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title="Update summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Remote entries", str(report.latest_remote_count))
    table.add_row("Processed", str(report.processed))
    table.add_row("Up to date", str(report.skipped))
    table.add_row("Entries fetched", str(report.fetched_entries))
    table.add_row("Assets fetched", str(report.fetched_assets))
    table.add_row("Failed", str(len(report.failed_ids)))
    console.print(table)
    for failure in report.failures:
        console.print(f"[yellow]{failure.entry_id}[/yellow] {failure.stage}: "
                      f"{failure.error_type}: {failure.message}")


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to search for."),
    root: Optional[str] = typer.Option(None, "--root", help="Archive directory."),
    limit: int = typer.Option(MAX_MATCHES, "--limit", min=1, max=MAX_MATCHES,
                              help="Maximum number of results."),
):
    """Search titles, alt texts and transcripts."""
    config = _resolve_config(ctx, root=root)
    guarded = GuardedArchive.load(config.root, config)
    results = guarded.search(query, limit)
    if not results:
        console.print(f"No matches for {query!r}")
        return

    table = Table(title=f"{len(results)} matches for {query!r}")
    table.add_column("Id", justify="right")
    table.add_column("Title")
    table.add_column("Image")
    for entry_id, entry in results:
        table.add_row(str(entry_id), escape(entry.title), entry.asset_file_name)
    console.print(table)


@app.command()
def show(
    ctx: typer.Context,
    entry_id: Optional[int] = typer.Argument(None, help="Entry id (default: latest)."),
    root: Optional[str] = typer.Option(None, "--root", help="Archive directory."),
):
    """Show one entry with its neighbors."""
    config = _resolve_config(ctx, root=root)
    guarded = GuardedArchive.load(config.root, config)
    with guarded.access() as archive:
        try:
            if entry_id is None:
                entry_id = archive.latest_id()
            _print_entry(entry_id, archive)
        except NotFound as e:
            _exit_not_found(e)


@app.command()
def random(
    ctx: typer.Context,
    root: Optional[str] = typer.Option(None, "--root", help="Archive directory."),
):
    """Show a random entry."""
    config = _resolve_config(ctx, root=root)
    guarded = GuardedArchive.load(config.root, config)
    with guarded.access() as archive:
        try:
            _print_entry(archive.random_id(), archive)
        except NotFound as e:
            _exit_not_found(e)


@app.command()
def stats(
    ctx: typer.Context,
    root: Optional[str] = typer.Option(None, "--root", help="Archive directory."),
):
    """Show archive statistics."""
    config = _resolve_config(ctx, root=root)
    archive = Archive.load(config.root)
    store_stats = ArchiveStore(config.root).get_output_stats()

    table = Table(title=f"Archive {config.root}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Slots", str(len(archive)))
    table.add_row("Entries", str(archive.count_present()))
    table.add_row("Gaps", str(len(archive.missing_ids())))
    table.add_row("Assets", str(store_stats['asset_files']))
    table.add_row("Asset bytes", str(store_stats['total_asset_size']))
    console.print(table)


def run():
    app()
