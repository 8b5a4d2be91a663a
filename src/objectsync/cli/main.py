"""
ObjectSync CLI Main Entry Point.

Provides the command-line interface for bucket backup, upload and status.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
import humanize
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from objectsync import __version__
from objectsync.cli.reporter import ProgressReporter, describe_report
from objectsync.core.config import (
    DEFAULT_CONFIG_PATH,
    ObjectSyncConfig,
    Overrides,
    write_default_config,
)
from objectsync.core.errors import ObjectSyncError
from objectsync.core.logging import setup_logging
from objectsync.core.models import Direction, JobSpec, format_timestamp
from objectsync.store.s3 import S3ObjectStore
from objectsync.sync.orchestrator import JobOrchestrator, RunSummary
from objectsync.sync.state import read_state

console = Console()


def transfer_options(func: Any) -> Any:
    """Options shared by the backup and upload commands."""
    options = [
        click.option("--endpoint", help="Object store endpoint URL"),
        click.option("--access-key", help="Access key"),
        click.option("--secret-key", help="Secret key"),
        click.option("--bucket", "-b", help="Run a single bucket instead of the configured list"),
        click.option(
            "--output",
            "-o",
            "output_dir",
            type=click.Path(path_type=Path),
            help="Local directory (single bucket mode)",
        ),
        click.option("--state-file", type=click.Path(path_type=Path), help="State file (single bucket mode)"),
        click.option("--workers", "-w", type=click.IntRange(min=1), help="Concurrent transfers per bucket"),
        click.option(
            "--incremental/--full",
            default=None,
            help="Skip unchanged objects using the saved state",
        ),
        click.option("--verbose/--no-verbose", "-v", default=None, help="Show live progress"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def get_config(ctx: click.Context, overrides: Overrides | None = None) -> ObjectSyncConfig:
    """Load the configuration named on the command line."""
    config_path: Path = ctx.obj["config_path"]
    if config_path.exists():
        config = ObjectSyncConfig.load(config_path)
    elif overrides is not None and overrides.bucket:
        config = ObjectSyncConfig()
    else:
        console.print(f"[red]Configuration file not found: {config_path}[/red]")
        console.print("Run [bold]objectsync init[/bold] to create one.")
        sys.exit(1)

    if overrides is not None:
        config = config.apply_overrides(overrides)
    setup_logging(config.logging.model_copy(update={"level": ctx.obj["log_level"]}))
    return config


def store_factory(config: ObjectSyncConfig) -> Any:
    def build(spec: JobSpec) -> S3ObjectStore:
        return S3ObjectStore(config.store, max_pool_connections=max(10, spec.worker_count))

    return build


def run_transfers(ctx: click.Context, direction: Direction, overrides: Overrides) -> None:
    try:
        config = get_config(ctx, overrides)
        config.validate_ready()
    except ObjectSyncError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    specs = config.job_specs(direction)
    arrow = "->" if direction is Direction.DOWNLOAD else "<-"
    console.print(
        f"Starting {direction.value} of {len(specs)} bucket(s) from [cyan]{config.store.endpoint}[/cyan]"
    )
    for index, spec in enumerate(specs, start=1):
        console.print(f"  {index}. {spec.remote_name} {arrow} {spec.local_dir}")

    with ProgressReporter(console) as reporter:
        orchestrator = JobOrchestrator(store_factory(config), on_job_start=reporter.on_job_start)
        summary = orchestrator.run_all(specs)

    print_summary(summary, ctx.obj["json_output"])
    if summary.failed:
        sys.exit(1)


def print_summary(summary: RunSummary, json_output: bool) -> None:
    if json_output:
        click.echo(json.dumps(summary.to_dict(), indent=2, default=str))
        return

    table = Table(title="Run Summary")
    table.add_column("Bucket", style="cyan")
    table.add_column("Result")
    table.add_column("Details")
    for outcome in summary.outcomes:
        if outcome.success and outcome.result.data is not None:
            table.add_row(outcome.name, "[green]ok[/green]", describe_report(outcome.result.data))
        else:
            table.add_row(outcome.name, "[red]failed[/red]", outcome.result.error or "")
    console.print(table)

    line = f"[green]Succeeded: {summary.succeeded}[/green]"
    if summary.failed:
        line += f"  [red]Failed: {summary.failed}[/red]"
    console.print(line)


@click.group()
@click.version_option(version=__version__, prog_name="ObjectSync")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_context
def cli(ctx: click.Context, config_path: Path, log_level: str, json_output: bool) -> None:
    """
    ObjectSync - incremental mirroring between S3-compatible buckets
    and local directories.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level.upper()
    ctx.obj["json_output"] = json_output


@cli.command("backup")
@transfer_options
@click.pass_context
def backup(ctx: click.Context, **options: Any) -> None:
    """Download configured buckets into local directories."""
    run_transfers(ctx, Direction.DOWNLOAD, Overrides(**options))


@cli.command("upload")
@transfer_options
@click.pass_context
def upload(ctx: click.Context, **options: Any) -> None:
    """Upload local directories into their buckets."""
    run_transfers(ctx, Direction.UPLOAD, Overrides(**options))


@cli.command("status")
@click.option("--state-file", type=click.Path(path_type=Path), help="Show a single state file")
@click.option("--recent", type=int, default=5, show_default=True, help="Entries to list per bucket")
@click.option("--upload", "show_upload", is_flag=True, help="Show upload state instead of backup state")
@click.pass_context
def status(ctx: click.Context, state_file: Path | None, recent: int, show_upload: bool) -> None:
    """Show the saved sync state of each bucket."""
    if state_file is not None:
        targets = [(state_file.stem, state_file)]
    else:
        try:
            config = get_config(ctx)
        except ObjectSyncError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)
        direction = Direction.UPLOAD if show_upload else Direction.DOWNLOAD
        targets = [(spec.remote_name, spec.state_path) for spec in config.job_specs(direction)]
        if not targets:
            console.print("[yellow]No buckets configured[/yellow]")
            return

    for name, path in targets:
        try:
            state = read_state(path)
        except ObjectSyncError as e:
            console.print(f"[red]{name}: {e}[/red]")
            continue

        if state is None:
            console.print(
                Panel(f"State file {path} does not exist (no run yet)", title=name, style="yellow")
            )
            continue

        last_run = format_timestamp(state.last_run_at) if state.last_run_at else "never"
        table = Table(title=f"{name} ({path})")
        table.add_column("Key", style="cyan")
        table.add_column("Size", style="green")
        table.add_column("Modified", style="white")
        newest = sorted(state.entries.items(), key=lambda item: item[1].modified_at, reverse=True)
        for key, fingerprint in newest[:recent]:
            table.add_row(
                key,
                humanize.naturalsize(fingerprint.size_bytes, binary=True),
                format_timestamp(fingerprint.modified_at),
            )
        console.print(table)
        console.print(
            f"Last run: {last_run}  Entries: {len(state.entries)}  "
            f"Total: {humanize.naturalsize(state.total_size_bytes, binary=True)}"
        )
        if len(state.entries) > recent:
            console.print(f"  ... and {len(state.entries) - recent} more")


@cli.command("validate")
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate the configuration and test connectivity."""
    try:
        config = get_config(ctx)
        config.validate_ready()
    except ObjectSyncError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    console.print("[green]✓ Configuration is valid[/green]")
    specs = config.job_specs()
    build = store_factory(config)
    failed = False
    for spec in specs:
        try:
            build(spec).check_connection(spec.remote_name)
            console.print(f"[green]✓ {spec.remote_name}: connected[/green]")
        except ObjectSyncError as e:
            console.print(f"[red]✗ {spec.remote_name}: {e}[/red]")
            failed = True
    if failed:
        sys.exit(1)


@cli.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write a configuration template."""
    path: Path = ctx.obj["config_path"]
    try:
        write_default_config(path, overwrite=force)
    except ObjectSyncError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    console.print(f"[green]Configuration written to {path}[/green]")
    console.print("Edit the endpoint, credentials and buckets, then run: objectsync backup -v")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
