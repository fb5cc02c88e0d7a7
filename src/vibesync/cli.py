#!/usr/bin/env python3
"""
Command-line interface for vibe-sync.

This module provides the commands for synchronizing AI coding tool
configuration across machines through a git repository.
"""

import re
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt, Confirm
from rich.markup import escape

from . import __version__
from .core.backup import BackupStore
from .core.config import SyncPaths
from .core.diff import DiffReporter
from .core.errors import VibeSyncError
from .core.git_handler import GitHandler, DEFAULT_REMOTE
from .core.reconcile import Reconciler
from .utils.logger import get_logger, setup_logging
from .utils.platform import platform_detector

# Rich console for formatted output
console = Console()

GIT_URL_PATTERN = re.compile(r'^(https?://|git@|ssh://|git://).+')

MAX_LISTED_BACKUPS = 10


def fail(message: str):
    """Print an error and exit with a non-zero status."""
    console.print(f"[red]✗ {escape(message)}[/red]")
    sys.exit(1)


def confirm_prompt(message: str) -> bool:
    """Ask the operator a yes/no question, defaulting to no."""
    return Confirm.ask(f"[yellow]{message}[/yellow]", default=False, console=console)


def spinner() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True
    )


def require_initialized(paths: SyncPaths):
    if not paths.is_initialized():
        fail("Sync repository not initialized. Run 'vibe-sync init' first.")


def run_import(paths: SyncPaths, no_plugins: bool, dry_run: bool):
    reconciler = Reconciler(paths, confirm=confirm_prompt)
    report = reconciler.import_(reinstall_plugins=not no_plugins, dry_run=dry_run)
    if report.skipped:
        console.print(f"[yellow]⚠ Skipped: {', '.join(report.skipped)}[/yellow]")


# Main CLI group
@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--log-file', type=click.Path(path_type=Path), help='Log file path')
@click.version_option(__version__, prog_name='vibe-sync')
@click.pass_context
def cli(ctx, verbose: bool, log_file: Optional[Path]):
    """vibe-sync - Sync AI coding tool configurations across machines via git."""
    ctx.ensure_object(dict)

    setup_logging(
        level='DEBUG' if verbose else 'INFO',
        log_file=log_file,
        verbose=verbose
    )

    ctx.obj['paths'] = SyncPaths.from_env()
    ctx.obj['verbose'] = verbose
    get_logger().debug(f"System info: {platform_detector.get_system_info()}")

    if ctx.invoked_subcommand is None:
        if ctx.obj['paths'].is_initialized():
            ctx.invoke(status)
        else:
            ctx.invoke(init)


def _validate_url(url: str):
    if not GIT_URL_PATTERN.match(url):
        fail("Invalid Git URL format. Expected https://, git@, ssh://, or git:// URL")


# Initialize command
@cli.command()
@click.option('--remote-url', type=str, help='Git remote URL (prompted when omitted)')
@click.pass_context
def init(ctx, remote_url: Optional[str] = None):
    """Initialize the sync repository or change its remote."""
    paths = ctx.obj['paths']

    try:
        git_handler = GitHandler(paths.sync_dir)

        if git_handler.is_initialized:
            current = git_handler.get_remote_url(DEFAULT_REMOTE)
            if current:
                console.print(f"[cyan]Current remote:[/cyan] {escape(current)}")
            else:
                console.print("[yellow]No remote configured[/yellow]")

            if remote_url is None:
                remote_url = Prompt.ask(
                    "? New Git remote URL (leave empty to keep current)",
                    default="", show_default=False, console=console
                )
            remote_url = remote_url.strip()
            if not remote_url:
                console.print("[dim]Remote unchanged[/dim]")
                return

            _validate_url(remote_url)
            git_handler.set_remote_url(DEFAULT_REMOTE, remote_url)
            return

        console.print("\nWelcome to vibe-sync! Let's set up config synchronization.\n")
        if remote_url is None:
            remote_url = Prompt.ask("? Git remote URL", default="", show_default=False,
                                    console=console)
        remote_url = remote_url.strip()
        if not remote_url:
            fail("URL cannot be empty")
        _validate_url(remote_url)

        git_handler.init()
        git_handler.add_remote(DEFAULT_REMOTE, remote_url)

        with spinner() as progress:
            progress.add_task("Pulling existing data from remote...", total=None)
            branch = git_handler.pull_initial()

        if branch:
            console.print(f"[green]✓ Pulled existing data from remote ({branch})[/green]")
        else:
            console.print("[dim]No existing data on remote (new repository)[/dim]")

        git_handler.ensure_gitignore()

        console.print(Panel(
            f"[green]✓ Sync repository initialized at:[/green]\n"
            f"[cyan]{escape(str(paths.sync_dir))}[/cyan]\n\n"
            "  vibe-sync push    Export configs and push to remote\n"
            "  vibe-sync pull    Pull from remote and import configs\n"
            "  vibe-sync status  Show diff between local and synced\n\n"
            f"[dim]Platform: {platform_detector.os_type.value}[/dim]",
            title="Setup Complete"
        ))

    except VibeSyncError as e:
        fail(f"Failed to initialize repository: {e}")


# Export command
@cli.command()
@click.pass_context
def export(ctx):
    """Export configs from ~/.claude/ to the sync repository."""
    try:
        Reconciler(ctx.obj['paths'], confirm=confirm_prompt).export()
    except VibeSyncError as e:
        fail(f"Export failed: {e}")


# Import command
@cli.command('import')
@click.option('--no-plugins', is_flag=True, help='Do not reinstall plugins via the claude CLI')
@click.option('--dry-run', is_flag=True, help='Show what would change without writing anything')
@click.pass_context
def import_cmd(ctx, no_plugins: bool, dry_run: bool):
    """Import configs from the sync repository into ~/.claude/."""
    try:
        run_import(ctx.obj['paths'], no_plugins, dry_run)
    except VibeSyncError as e:
        fail(f"Import failed: {e}")


# Status command
@cli.command()
@click.pass_context
def status(ctx):
    """Show differences between local and synced configs."""
    paths = ctx.obj['paths']
    console.print(Panel(
        f"[cyan]Local:[/cyan]  {escape(str(paths.claude_home))}\n"
        f"[cyan]Synced:[/cyan] {escape(str(paths.data_dir))}",
        title="vibe-sync status"
    ))

    try:
        DiffReporter(paths, console=console).report()
    except (VibeSyncError, OSError) as e:
        fail(f"Failed to get status: {e}")


# Push command
@cli.command()
@click.option('--message', '-m', type=str, help='Commit message')
@click.pass_context
def push(ctx, message: Optional[str]):
    """Export, commit and push to the remote."""
    paths = ctx.obj['paths']
    require_initialized(paths)

    try:
        Reconciler(paths, confirm=confirm_prompt).export()

        with spinner() as progress:
            progress.add_task("Pushing changes...", total=None)
            GitHandler(paths.sync_dir).commit_and_push(message)

    except VibeSyncError as e:
        fail(f"Push failed: {e}")


# Pull command
@cli.command()
@click.option('--no-plugins', is_flag=True, help='Do not reinstall plugins via the claude CLI')
@click.option('--dry-run', is_flag=True, help='Show what would change without writing anything')
@click.pass_context
def pull(ctx, no_plugins: bool, dry_run: bool):
    """Pull from the remote, then import."""
    paths = ctx.obj['paths']
    require_initialized(paths)

    try:
        with spinner() as progress:
            progress.add_task("Pulling changes...", total=None)
            GitHandler(paths.sync_dir).pull_from_remote()

        run_import(paths, no_plugins, dry_run)

    except VibeSyncError as e:
        fail(f"Pull failed: {e}")


# Restore command
@cli.command()
@click.argument('timestamp', type=str, required=False)
@click.pass_context
def restore(ctx, timestamp: Optional[str]):
    """Restore ~/.claude/ from a backup, or list backups."""
    store = BackupStore(ctx.obj['paths'])

    try:
        if timestamp is not None:
            count = store.restore_from_backup(timestamp)
            console.print(f"[green]✓ Restored {count} items from backup '[cyan]{escape(timestamp)}[/cyan]'[/green]")
            return

        backups = store.list_backups()
        if not backups:
            fail("No backups found. Run 'vibe-sync import' first to create a backup.")

        table = Table(show_header=True, header_style="bold blue")
        table.add_column("Backup", style="cyan", no_wrap=True)
        for name in backups[:MAX_LISTED_BACKUPS]:
            table.add_row(name)
        console.print(table)

        if len(backups) > MAX_LISTED_BACKUPS:
            console.print(f"[dim]... and {len(backups) - MAX_LISTED_BACKUPS} more[/dim]")
        console.print(f"\n[dim]Total: {len(backups)} backups. "
                      "To restore, run: vibe-sync restore <timestamp>[/dim]")

    except VibeSyncError as e:
        fail(f"Restore failed: {e}")


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Unexpected error: {escape(str(e))}[/red]")
        sys.exit(1)


if __name__ == '__main__':
    main()
