"""Command-line interface for cloudsync."""

import sys
from pathlib import Path
from typing import Dict, Optional

import click
from rich import print as rprint
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config.settings import CredentialsConfig, SyncConfig
from .errors import CloudSyncError
from .sync.models import ActionKind, ProgressEvent
from .sync.progress import format_action
from .sync.sync_manager import SyncManager
from .utils.file_utils import FileHelper
from .utils.logging import setup_logging

console = Console()

DEFAULT_CONFIG = Path('config/config.yaml')
DEFAULT_CREDENTIALS = Path('config/credentials.yaml')

ACTION_STYLES = {
    ActionKind.UPLOAD: "green",
    ActionKind.DOWNLOAD: "cyan",
    ActionKind.DELETE_LOCAL: "red",
    ActionKind.DELETE_REMOTE: "red",
    ActionKind.MERGE: "yellow",
}


class RichProgressSink:
    """Shows one progress bar per action kind while a plan executes."""

    def __init__(self, progress: Progress):
        self.progress = progress
        self._tasks: Dict[ActionKind, int] = {}

    def __call__(self, event: ProgressEvent):
        # A new plan starts counting from one again
        if event.kind not in self._tasks or event.completed == 1:
            self._tasks[event.kind] = self.progress.add_task(format_action(event.kind), total=event.total)
        self.progress.update(self._tasks[event.kind], completed=event.completed, total=event.total)


def _load(config: Path, credentials: Path):
    sync_config = SyncConfig.from_yaml(config)
    creds_config = CredentialsConfig.from_yaml(credentials).merged_with(CredentialsConfig.from_env())
    if sync_config.sync_options.log_file:
        setup_logging(
            log_level=click.get_current_context().find_root().params.get('log_level', 'WARNING'),
            log_file=Path(sync_config.sync_options.log_file),
        )
    return sync_config, creds_config


def _build_manager(sync_config: SyncConfig, creds_config: CredentialsConfig, progress_sink=None) -> SyncManager:
    return SyncManager(sync_config, creds_config, progress_sink=progress_sink)


config_option = click.option(
    '--config', '-c',
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG,
    help='Path to configuration file')
credentials_option = click.option(
    '--credentials',
    type=click.Path(path_type=Path),
    default=DEFAULT_CREDENTIALS,
    help='Path to credentials file (environment variables fill the gaps)')


@click.group()
@click.version_option(version=__version__)
@click.option('--log-level',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              default='WARNING',
              help='Console log level')
def cli(log_level: str):
    """CloudSync

    Two-way sync between a local folder and AWS S3, Azure Blob Storage or
    Google Cloud Storage. Files changed on both sides are merged line by line.
    """
    setup_logging(log_level=log_level)


@cli.command()
@click.option('--config', '-c',
              type=click.Path(path_type=Path),
              default=DEFAULT_CONFIG,
              help='Path to save configuration file')
@click.option('--local-root', '-l',
              type=click.Path(file_okay=False, path_type=Path),
              default=Path('~/CloudSync'),
              help='Local folder to keep in sync')
def init(config: Path, local_root: Path):
    """Initialize a new configuration file."""
    if config.exists():
        if not click.confirm(f"Configuration file {config} already exists. Overwrite?"):
            return

    console.print("Creating new configuration file...")

    sample_config = {
        'local_root': str(local_root),
        'remotes': [
            {
                'type': 'aws_s3',
                'name': 'my_s3',
                'bucket': 'my-sync-bucket',
                'region': 'us-east-1',
                'prefix': 'cloudsync',
            },
            {
                'type': 'azure_blob',
                'name': 'my_azure',
                'account': 'mystorageaccount',
                'container': 'cloudsync',
                'enabled': False,
            },
        ],
        'sync_options': {
            'retry_attempts': 3,
            'retry_delay': 1.0,
            'failure_policy': 'abort',
            'ignore': ['*.tmp', 'node_modules/'],
        }
    }

    SyncConfig(**sample_config).to_yaml(config)

    console.print(f"Configuration saved to {config}", style="green")
    console.print("\nNext steps:")
    console.print("1. Edit the configuration file to match your setup")
    console.print("2. Create credentials.yaml or export provider credentials")
    console.print("3. Run 'cloudsync test' to verify connections")
    console.print("4. Run 'cloudsync plan' to preview, then 'cloudsync sync'")


@cli.command()
@config_option
@credentials_option
def test(config: Path, credentials: Path):
    """Test connections to the local folder and all configured remotes."""
    try:
        sync_config, creds_config = _load(config, credentials)
        manager = _build_manager(sync_config, creds_config)

        with console.status("Testing connections..."):
            results = manager.test_connections()

        table = Table(title="Connection Test Results")
        table.add_column("Endpoint", style="cyan")
        table.add_column("Status", style="magenta")

        for endpoint, ok in results.items():
            status_text = "Connected" if ok else "Failed"
            status_style = "green" if ok else "red"
            table.add_row(endpoint, f"[{status_style}]{status_text}[/{status_style}]")

        console.print(table)

        if all(results.values()):
            console.print("\nAll connections successful!", style="green bold")
        else:
            console.print("\nSome connections failed. Check your configuration.", style="yellow bold")
            sys.exit(1)

    except CloudSyncError as e:
        console.print(f"Error: {e}", style="red bold")
        sys.exit(1)


@cli.command()
@config_option
def status(config: Path):
    """Show configured remotes and their last successful sync."""
    try:
        sync_config = SyncConfig.from_yaml(config)
        manager = _build_manager(sync_config, CredentialsConfig())

        console.print(f"[bold]Local folder:[/bold] {sync_config.local_root}")
        console.print(f"[bold]State directory:[/bold] {sync_config.state_path}\n")

        table = Table(title="Remotes")
        table.add_column("Name", style="cyan")
        table.add_column("Type")
        table.add_column("Location", style="magenta")
        table.add_column("Enabled")
        table.add_column("Files in baseline", justify="right")
        table.add_column("Last sync")

        for row in manager.status():
            enabled = "[green]yes[/green]" if row['enabled'] else "[red]no[/red]"
            last_sync = row['last_sync'].strftime('%Y-%m-%d %H:%M:%S UTC') if row['last_sync'] else "never"
            table.add_row(row['remote'], row['type'], row['location'], enabled, str(row['files']), last_sync)

        console.print(table)

    except CloudSyncError as e:
        console.print(f"Error: {e}", style="red bold")
        sys.exit(1)


@cli.command()
@config_option
@click.option('--remote', '-r', required=True, help='Remote whose baselines are cleared')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
def reset(config: Path, remote: str, yes: bool):
    """Forget the last sync with a remote; the next sync starts over."""
    try:
        sync_config = SyncConfig.from_yaml(config)
        manager = _build_manager(sync_config, CredentialsConfig())

        if not yes:
            if not click.confirm(f"Reset the sync state for {remote}? Nothing will be deleted on the next sync."):
                return

        manager.reset_remote(remote)
        console.print(f"Sync state for {remote} reset", style="green")

    except CloudSyncError as e:
        console.print(f"Error: {e}", style="red bold")
        sys.exit(1)


@cli.command()
@config_option
@credentials_option
@click.option('--remote', '-r', help='Plan a single remote (default: all enabled remotes)')
def plan(config: Path, credentials: Path, remote: Optional[str]):
    """Show what a sync would do, without changing anything."""
    try:
        sync_config, creds_config = _load(config, credentials)
        manager = _build_manager(sync_config, creds_config)
        names = [remote] if remote else [r.name for r in sync_config.get_enabled_remotes()]

        for name in names:
            with console.status(f"Comparing local folder with {name}..."):
                actions = manager.plan_remote(name)
            _display_plan(name, actions)

    except CloudSyncError as e:
        console.print(f"Error: {e}", style="red bold")
        sys.exit(1)


def _display_plan(remote: str, actions):
    if not actions:
        console.print(f"{remote} is up to date", style="green")
        return

    table = Table(title=f"Planned changes for {remote}")
    table.add_column("Action")
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")

    for action in actions:
        style = ACTION_STYLES.get(action.kind, "white")
        record = action.local if action.local is not None else action.remote
        table.add_row(
            f"[{style}]{format_action(action.kind)}[/{style}]",
            action.identity,
            FileHelper.format_file_size(record.size),
        )

    console.print(table)


@cli.command()
@config_option
@credentials_option
@click.option('--remote', '-r', help='Sync a single remote (default: all enabled remotes)')
@click.option('--dry-run', '-d',
              is_flag=True,
              help='Show what would be synced without actually doing it')
def sync(config: Path, credentials: Path, remote: Optional[str], dry_run: bool):
    """Sync the local folder with the configured remotes."""
    try:
        sync_config, creds_config = _load(config, credentials)

        if dry_run:
            console.print("DRY RUN MODE - nothing will be changed", style="yellow bold")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        ) as progress:
            manager = _build_manager(sync_config, creds_config, RichProgressSink(progress))
            results = manager.run(remote_name=remote, dry_run=dry_run)

        _display_sync_results(results, manager)

        if any(r['status'] == 'failed' for r in results):
            sys.exit(1)

    except CloudSyncError as e:
        console.print(f"Error: {e}", style="red bold")
        sys.exit(1)


def _display_sync_results(results, manager: SyncManager):
    """Display sync results in a table."""
    table = Table(title="Sync Results")
    table.add_column("Remote", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Changes", justify="right")
    table.add_column("Actions")
    table.add_column("Data Transferred", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Errors", justify="right", style="red")

    for result in results:
        status_style = "red" if result['status'] == 'failed' else "green"
        actions = ", ".join(
            f"{format_action(ActionKind(kind))}: {count}" for kind, count in result.get('actions', {}).items()
        )
        table.add_row(
            result['remote'],
            f"[{status_style}]{result['status']}[/{status_style}]",
            str(result.get('planned', 0)),
            actions or "-",
            FileHelper.format_file_size(result.get('bytes_transferred', 0)),
            f"{result.get('duration', 0):.1f}s",
            str(len(result.get('errors', [])))
        )

    console.print(table)

    summary = manager.get_sync_summary(results)
    rprint("\n[bold]Summary:[/bold]")
    rprint(f"   • Remotes: {summary['total_remotes']}")
    rprint(f"   • Successful: [green]{summary['successful_remotes']}[/green]")
    rprint(f"   • Failed: [red]{summary['failed_remotes']}[/red]")
    rprint(f"   • Changes: {summary['total_actions']}")
    rprint(f"   • Data transferred: {FileHelper.format_file_size(summary['total_bytes_transferred'])}")

    if summary['total_errors'] > 0:
        rprint(f"\n[yellow]{summary['total_errors']} error(s) occurred:[/yellow]")
        for result in results:
            for error in result.get('errors', []):
                console.print(f"   • {result['remote']}: {error}", style="red")


if __name__ == '__main__':
    cli()
