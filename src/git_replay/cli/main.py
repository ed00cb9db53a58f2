"""Command line interface for Git Replay."""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from git_replay.config import ConfigError, ReplayConfig
from git_replay.core.destination import GitDestination
from git_replay.core.errors import ReplayError
from git_replay.core.runner import ReplayRunner
from git_replay.core.source import CvsRevisionSource
from git_replay.models.replay import ReplaySummary

console = Console()


def setup_logging(verbose: bool, debug: bool) -> None:
    """Route log records through rich on stderr."""
    level = logging.WARNING
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=debug)],
        force=True,
    )
    # GitPython logs every command at DEBUG
    logging.getLogger("git").setLevel(logging.DEBUG if debug else logging.WARNING)


def print_summary(summary: ReplaySummary) -> None:
    """Print the totals of a replay run."""
    title = f"Replay onto {summary.branch}"
    if summary.dry_run:
        title += " (dry run)"

    table = Table(title=title)
    table.add_column("Commits", justify="right")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Modified", justify="right", style="yellow")
    table.add_column("Deleted", justify="right", style="red")
    table.add_row(
        str(summary.commits),
        str(summary.added),
        str(summary.modified),
        str(summary.deleted),
    )
    console.print(table)


@click.command()
@click.version_option(package_name="git-replay")
@click.argument("log_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("branch")
@click.argument("destination", type=click.Path(exists=True, file_okay=False))
@click.argument("source", type=click.Path(exists=True, file_okay=False))
@click.option("--verbose", "-v", is_flag=True, help="Show messages and file actions")
@click.option(
    "--dry-run", "-n", is_flag=True, help="Report what would happen without changes"
)
@click.option("--debug", "-d", is_flag=True, help="Trace every external command")
@click.option(
    "--force", "-f", is_flag=True, help="Replay even if commits predate the tip"
)
@click.option("--email-domain", help="Domain used to synthesize author emails")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON configuration file",
)
def main(
    log_file: str,
    branch: str,
    destination: str,
    source: str,
    verbose: bool,
    dry_run: bool,
    debug: bool,
    force: bool,
    email_domain: Optional[str],
    config_file: Optional[str],
):
    """Replay the commits of BRANCH recorded in LOG_FILE onto DESTINATION.

    File contents are fetched from the CVS checkout in SOURCE.
    """
    destination_dir = Path(destination).resolve()

    try:
        config = ReplayConfig.load(
            config_file=Path(config_file) if config_file else None,
            destination_dir=destination_dir,
            # flags only override the file when given
            verbose=verbose or None,
            dry_run=dry_run or None,
            debug=debug or None,
            force=force or None,
            email_domain=email_domain,
        )
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    setup_logging(config.verbose, config.debug)

    runner = ReplayRunner(
        CvsRevisionSource(Path(source), cvs_executable=config.cvs_executable),
        GitDestination(destination_dir),
        config=config,
        console=console,
    )

    try:
        summary = runner.run(Path(log_file), branch)
    except ReplayError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        raise click.Abort() from e

    print_summary(summary)


if __name__ == "__main__":
    main()
