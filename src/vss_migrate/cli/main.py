"""Main CLI entry point for VSS Migration Tool."""

import sys
from typing import Any, Dict, Optional
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
)
from rich.table import Table

from .. import __version__
from ..config.config import (
    Config,
    MigrationConfig,
    SUPPORTED_VCS,
    TargetConfig,
)
from ..utils.logging import setup_logging
from ..migration.context import RunMode
from ..migration.engine import MigrationEngine
from ..migration.results import AnalysisReport, MigrationSummary

console = Console()

DEFAULT_CONFIG_PATHS = ['config.yaml', 'config.yml', '.vss-migrate.yaml']

RUN_TITLES = {
    RunMode.ANALYZE: 'Analyzing SourceSafe history...',
    RunMode.FULL: 'Starting full migration...',
    RunMode.CONTINUOUS: 'Starting continuous migration...',
}


def run_options(func):
    """Options shared by the commands that run the driver."""
    options = [
        click.option(
            '--vcs',
            type=click.Choice(SUPPORTED_VCS, case_sensitive=False),
            help='Target VCS',
        ),
        click.option(
            '--branch-model',
            type=click.IntRange(0, 2),
            help='0: single branch, 1: master=production + develop, '
            '2: master=develop + product',
        ),
        click.option(
            '--time-shift',
            type=click.IntRange(-12, 12),
            help='Hours added to every source timestamp',
        ),
        click.option(
            '--working-dir',
            type=click.Path(file_okay=False),
            help='Target working directory',
        ),
        click.option('--email-domain', help='Domain for synthesized author e-mails'),
        click.option(
            '--user-map',
            type=click.Path(exists=True, dir_okay=False),
            help='User map file (JSON or YAML)',
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


verify_option = click.option(
    '--verify',
    is_flag=True,
    help='Check repository integrity after writing',
)


@click.group()
@click.version_option(version=__version__, prog_name='vss-migrate')
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
    """VSS Migration Tool - Replay Visual SourceSafe history into Git, Mercurial or Bazaar."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    log_level = 'DEBUG' if verbose else 'INFO'
    setup_logging(log_level)


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
            '[bold green]VSS Migration Tool[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        Config.create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your SourceSafe database details[/yellow]'
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@run_options
@click.pass_context
def analyze(ctx: click.Context, **overrides: Any) -> None:
    """Report on the SourceSafe history without writing to the target."""
    _run(ctx, RunMode.ANALYZE, overrides)


@cli.command()
@run_options
@verify_option
@click.pass_context
def migrate(ctx: click.Context, **overrides: Any) -> None:
    """Create a new repository from the complete history."""
    _run(ctx, RunMode.FULL, overrides)


@cli.command()
@run_options
@verify_option
@click.pass_context
def sync(ctx: click.Context, **overrides: Any) -> None:
    """Bring an existing repository up to date with SourceSafe."""
    _run(ctx, RunMode.CONTINUOUS, overrides)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective configuration."""
    console.print(
        Panel.fit(
            '[bold magenta]VSS Migration Tool[/bold magenta]\nConfiguration Status',
            border_style='magenta',
        )
    )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        table = Table(title='Migration Configuration')
        table.add_column('Setting', style='cyan')
        table.add_column('Value', style='green')

        table.add_row('Database', config.source.database_dir)
        table.add_row('VSS User', config.source.user)
        table.add_row('Project', config.source.project)
        table.add_row('Target VCS', config.target.vcs)
        table.add_row('Working Directory', config.target.working_dir)
        table.add_row('Branch Model', str(config.target.branch_model))
        table.add_row('E-mail Domain', config.target.email_domain or '-')
        table.add_row('User Map', config.target.user_map or '-')
        table.add_row('Time Shift', f'{config.migration.time_shift:+d} h')
        table.add_row('Changeset Window', f'{config.migration.changeset_window} s')
        table.add_row('Quiet Window', f'{config.migration.quiet_window} s')
        table.add_row('Verify', 'yes' if config.migration.verify else 'no')

        console.print(table)

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to load status: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


def _run(ctx: click.Context, mode: RunMode, overrides: Dict[str, Any]) -> None:
    """Load configuration, apply overrides and execute one run."""
    console.print(
        Panel.fit(
            f'[bold blue]VSS Migration Tool[/bold blue]\n{RUN_TITLES[mode]}',
            border_style='blue',
        )
    )

    try:
        config = _apply_overrides(_load_config(ctx), overrides)
        _setup_logging_with_config(ctx, config)

        engine = MigrationEngine(config)
        result = _run_with_progress(engine, mode)

        if isinstance(result, AnalysisReport):
            _display_analysis_report(result)
        else:
            _display_migration_summary(result)

    except Exception as e:
        console.print(f'[red]✗[/red] {mode.value.capitalize()} run failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)

    if isinstance(result, AnalysisReport) and result.anomalies:
        console.print(
            '[red]✗[/red] History contains unrecognized actions; '
            'migration is not possible'
        )
        sys.exit(1)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        if not Path(config_path).exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')
        return Config.from_file(config_path)
    else:
        for path in DEFAULT_CONFIG_PATHS:
            if Path(path).exists():
                return Config.from_file(path)

        # Fall back to environment variables
        try:
            return Config.from_env()
        except Exception:
            raise FileNotFoundError(
                'No configuration found. Use --config to specify a file or run "vss-migrate init" to create one.'
            )


def _apply_overrides(config: Config, overrides: Dict[str, Any]) -> Config:
    """Return a configuration with command line overrides applied."""
    target = {
        key: overrides.get(key)
        for key in ('vcs', 'branch_model', 'working_dir', 'email_domain', 'user_map')
        if overrides.get(key) is not None
    }
    if target:
        config.target = TargetConfig(**{**config.target.dict(), **target})

    migration = {}
    if overrides.get('time_shift') is not None:
        migration['time_shift'] = overrides['time_shift']
    if overrides.get('verify'):
        migration['verify'] = True
    if migration:
        config.migration = MigrationConfig(**{**config.migration.dict(), **migration})
    return config


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)

    # Verbose flag overrides the configured level
    log_level = 'DEBUG' if verbose else config.logging.level

    setup_logging(
        level=log_level, log_file=config.logging.file, log_format=config.logging.format
    )


def _run_with_progress(engine: MigrationEngine, mode: RunMode):
    """Run the engine with a progress bar fed by the driver."""
    with Progress(
        SpinnerColumn(),
        TextColumn('[progress.description]{task.description}'),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task('[blue]Initializing...', total=1)

        def update_progress(current: int, total: int, description: str):
            progress.update(
                task,
                completed=current,
                total=total,
                description=f'[blue]{description}',
            )

        try:
            result = engine.run(mode, on_progress=update_progress)
        except Exception as e:
            progress.update(task, description=f'[red]Failed: {e}')
            raise

        progress.update(task, description='[green]Completed')

    return result


def _display_analysis_report(report: AnalysisReport) -> None:
    """Display analysis statistics and the effective user map."""
    table = Table(title=f'History of {report.project_root}')
    table.add_column('Statistic', style='cyan')
    table.add_column('Value', style='green', justify='right')

    table.add_row('Files', str(report.file_count))
    table.add_row('Version records', str(report.record_count))
    table.add_row('Migrated events', str(report.event_count))
    table.add_row('Changesets', str(report.changeset_count))
    table.add_row('Authors', str(len(report.authors)))
    console.print(table)

    actions = Table(title='Source Actions')
    actions.add_column('Action', style='cyan')
    actions.add_column('Count', style='blue', justify='right')
    for action, count in report.action_counts.items():
        if count:
            actions.add_row(action, str(count))
    console.print(actions)

    console.print('\n[blue]User map:[/blue]')
    console.print_json(data=report.user_map)

    if report.anomalies:
        console.print(f'\n[red]Unrecognized actions ({len(report.anomalies)}):[/red]')
        for anomaly in report.anomalies[:5]:
            console.print(f'  • {anomaly}')
        if len(report.anomalies) > 5:
            console.print(f'  ... and {len(report.anomalies) - 5} more')


def _display_migration_summary(summary: MigrationSummary) -> None:
    """Display migration summary results."""
    if summary.aborted:
        console.print(f'[yellow]Run skipped: {summary.abort_reason}[/yellow]')

    table = Table(title='Migration Summary')
    table.add_column('Changesets', style='cyan')
    table.add_column('Replayed', style='green')
    table.add_column('Skipped', style='yellow')
    table.add_column('Failed', style='red')
    table.add_column('Commits', style='blue')
    table.add_column('Tags', style='blue')

    table.add_row(
        str(summary.total_changesets),
        str(summary.replayed),
        str(summary.skipped),
        str(summary.failed),
        str(summary.commits),
        str(summary.tags_applied),
    )
    console.print(table)

    if summary.cursor:
        console.print(f'\n[blue]Previous latest commit:[/blue] {summary.cursor}')

    if summary.completed_at:
        duration = summary.completed_at - summary.started_at
        console.print(f'[blue]Migration Duration:[/blue] {duration}')

    warnings = [w for result in summary.results for w in result.warnings]
    errors = list(summary.errors)
    errors.extend(
        f'Changeset {result.index}: {error}'
        for result in summary.results
        for error in result.errors
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
    except Exception as e:
        console.print(f'[red]Error: {e}[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
