"""Main CLI entry point for the workspace migration tool."""

import signal
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..api.exceptions import IdentityEnumerationError
from ..config.config import Config
from ..migration.engine import MigrationEngine
from ..models.relocation import RelocationStatus
from ..models.report import MigrationReport
from ..utils.logging import setup_logging

console = Console()


@click.group()
@click.version_option(version='0.1.0', prog_name='workspace-migrate')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Workspace Migration Tool - Move user-owned projects into workspaces and relocate their artifacts."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    setup_logging('DEBUG' if verbose else 'INFO')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
@click.pass_context
def init(ctx: click.Context, output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]Workspace Migration Tool[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        Config.create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your credentials and bucket details[/yellow]'
        )

    except OSError as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.option(
    '--dry-run',
    is_flag=True,
    help='Look up and report without creating, updating or writing anything',
)
@click.option(
    '--limit',
    type=int,
    default=None,
    help='Process only the first N identities',
)
@click.option(
    '--all',
    'all_identities',
    is_flag=True,
    help='Process every identity, ignoring the configured limit',
)
@click.option(
    '--skip-artifacts',
    is_flag=True,
    help='Do not relocate branch and version artifacts',
)
@click.option(
    '--skip-ownership',
    is_flag=True,
    help='Do not move projects into workspaces',
)
@click.option(
    '--report',
    'report_path',
    type=click.Path(dir_okay=False),
    default=None,
    help='Write the full JSON report to this file',
)
@click.pass_context
def migrate(
    ctx: click.Context,
    dry_run: bool,
    limit: Optional[int],
    all_identities: bool,
    skip_artifacts: bool,
    skip_ownership: bool,
    report_path: Optional[str],
) -> None:
    """Start the migration process."""
    console.print(
        Panel.fit(
            '[bold blue]Workspace Migration Tool[/bold blue]\n'
            'Starting migration process...',
            border_style='blue',
        )
    )

    if dry_run:
        console.print(
            '[yellow]Running in dry-run mode - no changes will be made[/yellow]'
        )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        if dry_run:
            config.migration.dry_run = True
        if all_identities:
            config.migration.identity_limit = None
        elif limit is not None:
            if limit <= 0:
                raise click.BadParameter('--limit must be positive')
            config.migration.identity_limit = limit
        if skip_artifacts:
            config.migration.relocate_artifacts = False
        if skip_ownership:
            config.migration.migrate_ownership = False

        report = _run_migration(config)

    except IdentityEnumerationError as e:
        console.print(f'[red]✗[/red] Could not enumerate identities: {e}')
        sys.exit(1)
    except Exception as e:
        console.print(f'[red]✗[/red] Migration failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)

    _display_migration_summary(report)

    if report_path:
        path = Path(report_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report.to_json(), encoding='utf-8')
        console.print(f'[blue]Report written to:[/blue] {report_path}')


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate configuration and connectivity."""
    console.print(
        Panel.fit(
            '[bold cyan]Workspace Migration Tool[/bold cyan]\nValidating configuration...',
            border_style='cyan',
        )
    )

    try:
        config = _load_config(ctx)

        problems = []
        if not config.auth.has_credentials():
            problems.append('No Firebase service account configured')
        if not config.auth.api_key:
            problems.append('No API key configured for the token exchange')
        if config.migration.relocate_artifacts and not config.storage.bucket:
            problems.append('Artifact relocation is enabled but no bucket is set')

        if not problems:
            engine = MigrationEngine(config)
            try:
                problem = engine.test_connectivity()
            finally:
                engine.close()
            if problem:
                problems.append(problem)

        if problems:
            for problem in problems:
                console.print(f'[red]✗[/red] {problem}')
            sys.exit(1)

        console.print('[green]✓[/green] Connectivity validation passed')
        console.print('[green]✓[/green] Configuration validation completed')

    except Exception as e:
        console.print(f'[red]✗[/red] Validation failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective migration configuration."""
    console.print(
        Panel.fit(
            '[bold magenta]Workspace Migration Tool[/bold magenta]\nMigration Status',
            border_style='magenta',
        )
    )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        limit = config.migration.identity_limit

        table = Table(title='Migration Configuration')
        table.add_column('Setting', style='cyan')
        table.add_column('Value', style='green')

        table.add_row('API URL', config.api.base_url)
        table.add_row('Bucket', config.storage.bucket or '-')
        table.add_row('Legacy Root', config.storage.legacy_root or '/')
        table.add_row('New Root', config.storage.target_root or '/')
        table.add_row(
            'Migrate Ownership', '✓' if config.migration.migrate_ownership else '✗'
        )
        table.add_row(
            'Relocate Artifacts', '✓' if config.migration.relocate_artifacts else '✗'
        )
        table.add_row('Identity Limit', 'all' if limit is None else str(limit))
        table.add_row('Pacing Delay', f'{config.migration.pacing_delay}s')

        console.print(table)

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to load status: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        return Config.from_file(config_path)

    default_paths = ['config.yaml', 'config.yml', '.workspace-migrate.yaml']
    for path in default_paths:
        if Path(path).exists():
            return Config.from_file(path)

    return Config.from_env()


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)

    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level, log_file=config.logging.file, log_format=config.logging.format
    )


def _run_migration(config: Config) -> MigrationReport:
    """Run the migration; the first Ctrl-C stops it after the current unit."""
    engine = MigrationEngine(config)

    def request_cancel(signum, frame):
        console.print('\n[yellow]Stopping after the current unit...[/yellow]')
        engine.cancel()
        signal.signal(signal.SIGINT, previous)

    previous = signal.signal(signal.SIGINT, request_cancel)
    try:
        with console.status('[blue]Migration in progress...'):
            return engine.migrate()
    finally:
        signal.signal(signal.SIGINT, previous)


def _display_migration_summary(report: MigrationReport) -> None:
    """Display migration summary results."""
    table = Table(title='Migration Summary')
    table.add_column('Sweep', style='cyan')
    table.add_column('Total', style='blue')
    table.add_column('Successful', style='green')
    table.add_column('Failed', style='red')

    for sweep, counts in report.results_by_sweep().items():
        table.add_row(
            sweep.title(),
            str(counts['total']),
            str(counts['successful']),
            str(counts['failed']),
        )
    console.print(table)

    console.print(
        f'Identities: {report.identities_total} enumerated, '
        f'{report.identities_processed} processed, '
        f'{report.identities_skipped} skipped, '
        f'{report.identities_failed} failed'
    )
    console.print(
        f'Projects: {report.resources_updated} updated, '
        f'{report.resources_failed} failed'
        + (f', {report.resources_planned} planned' if report.dry_run else '')
    )

    counts = report.relocation_counts()
    console.print(
        'Artifacts: '
        + ', '.join(f'{counts[status.value]} {status.value}' for status in RelocationStatus)
    )

    if report.completed_at:
        duration = report.completed_at - report.started_at
        console.print(f'\n[blue]Migration Duration:[/blue] {duration}')

    if report.cancelled:
        console.print('[yellow]Run was cancelled before completion[/yellow]')

    warnings = [w for o in report.identity_outcomes for w in o.warnings]
    errors = [
        f'{o.sweep.value} {o.identity_id}: {o.error}'
        for o in report.identity_outcomes
        if o.error
    ]
    errors.extend(
        f'project {r.resource_id}: {r.error}'
        for o in report.identity_outcomes
        for r in o.resources
        if r.error
    )
    errors.extend(
        f'{record.old_key}: {record.error}'
        for record in report.relocations
        if record.status == RelocationStatus.FAILED
    )

    if warnings:
        console.print(f'\n[yellow]Warnings ({len(warnings)}):[/yellow]')
        for warning in warnings[:5]:
            console.print(f'  • {warning}')
        if len(warnings) > 5:
            console.print(f'  ... and {len(warnings) - 5} more warnings')

    if errors:
        console.print(f'\n[red]Errors ({len(errors)}):[/red]')
        for error in errors[:5]:
            console.print(f'  • {error}')
        if len(errors) > 5:
            console.print(f'  ... and {len(errors) - 5} more errors')


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Migration interrupted by user[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
