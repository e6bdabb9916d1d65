#!/usr/bin/env python3
"""appdeploy CLI - Main entry point"""

import signal
import sys
from typing import List, Optional

import rich_click as click
from click.exceptions import Abort, UsageError
from rich.console import Console

from appdeploy import __version__
from appdeploy.commands import CleanupCommand, DeployCommand
from appdeploy.constants import PROG_NAME

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_HELPTEXT_FIRST_LINE = "bold white"
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"
click.rich_click.MAX_WIDTH = 100

console = Console()

CONTEXT_SETTINGS = {"help_option_names": ["--help", "-h"]}


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("--cleanup", is_flag=True, help="Remove all deployed resources from the server")
@click.version_option(
    __version__,
    "--version",
    "-v",
    prog_name=PROG_NAME,
    message="%(prog)s version %(version)s\nProduction-grade automated deployment tool",
)
def cli(cleanup):
    """
    Automated deployment for Dockerized applications.

    Without options, runs the full deployment process.

    \b
    Features:
    - Git repository cloning with PAT authentication
    - Remote server provisioning (Docker, Docker Compose, Nginx)
    - Docker container deployment and management
    - Nginx reverse proxy configuration
    - Comprehensive logging and validation

    \b
    Configuration:
      Parameters are prompted for interactively. Values found in
      appdeploy.yml, .env or APPDEPLOY_* environment variables are
      used without prompting.

    \b
    Examples:
      appdeploy            # Run full deployment
      appdeploy --cleanup  # Remove deployed resources
    """
    if cleanup:
        CleanupCommand().run()
    else:
        DeployCommand().run()


def _raise_interrupt(signum, _frame):
    raise KeyboardInterrupt(f"signal {signum}")


def show_usage(ctx=None) -> None:
    """Print the full help text."""
    if ctx is None:
        ctx = cli.make_context(PROG_NAME, [], resilient_parsing=True)
    click.echo(ctx.get_help())


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point with error handling."""
    signal.signal(signal.SIGTERM, _raise_interrupt)

    try:
        exit_code = cli.main(args=argv, prog_name=PROG_NAME, standalone_mode=False)
    except UsageError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e.format_message()}\n")
        show_usage(e.ctx)
        sys.exit(1)
    except Abort:
        console.print("\n[yellow]⚠  Operation cancelled by user[/yellow]")
        sys.exit(1)

    sys.exit(exit_code if isinstance(exit_code, int) else 0)


if __name__ == "__main__":
    main()
