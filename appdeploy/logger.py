"""
Logging system for appdeploy
Writes a timestamped, append-only run log with clean console output
"""

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Set, TextIO

from rich.console import Console
from rich.markup import escape

from appdeploy.constants import (
    LOG_DATETIME_FORMAT,
    LOG_FILENAME_FORMAT,
    LOG_TIMESTAMP_FORMAT,
    MASKED_VALUE,
    VERBOSE_ENV_VAR,
)

console = Console()

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def build_log_path(operation: str, log_dir: Optional[Path] = None) -> Path:
    """Log file path for this invocation, e.g. deploy_20250101_120000.log"""
    timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
    filename = LOG_FILENAME_FORMAT.format(operation=operation, timestamp=timestamp)
    return (log_dir or Path.cwd()) / filename


class DeployLogger:
    """
    Manages the run log for a deploy or cleanup invocation
    - Writes every entry to the log file in real-time
    - Shows clean progress UI in console
    - Masks registered secrets everywhere
    """

    def __init__(
        self,
        operation: str,
        log_dir: Optional[Path] = None,
        verbose: Optional[bool] = None,
        output: Optional[Console] = None,
    ):
        """
        Initialize logger

        Args:
            operation: Operation name ('deploy' or 'cleanup')
            log_dir: Directory for the log file (default: current directory)
            verbose: Echo DEBUG lines to console (default: APPDEPLOY_VERBOSE)
            output: Rich console for output (default: module console)
        """
        self.operation = operation
        if verbose is None:
            verbose = os.environ.get(VERBOSE_ENV_VAR, "").lower() in ("1", "true", "yes")
        self.verbose = verbose
        self.console = output or console
        self.current_step = ""
        self.has_errors = False
        self._secrets: Set[str] = set()

        self.log_path = build_log_path(operation, log_dir)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        # Append mode, line buffered
        self.log_file: Optional[TextIO] = open(self.log_path, "a", buffering=1)
        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""{"=" * 80}
appdeploy Run Log
{"=" * 80}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self._write(header)

    def mask(self, secret: Optional[str]) -> None:
        """Register a value that must never appear in output."""
        if secret:
            self._secrets.add(secret)

    def redact(self, text: str) -> str:
        """Replace registered secrets in text."""
        for secret in self._secrets:
            text = text.replace(secret, MASKED_VALUE)
        return text

    def _write(self, text: str) -> None:
        if self.log_file:
            self.log_file.write(self.redact(text))
            self.log_file.flush()

    def _print(self, markup: str) -> None:
        self.console.print(self.redact(markup))

    def log(self, message: str, level: str = "INFO"):
        """
        Append a timestamped entry to the log file

        Args:
            message: Message to log
            level: Log level (INFO, SUCCESS, WARNING, ERROR, DEBUG)
        """
        timestamp = datetime.now().strftime(LOG_DATETIME_FORMAT)
        self._write(f"[{timestamp}] [{level}] {message}\n")

        if self.verbose and level == "DEBUG":
            self._print(f"[dim]{escape(message)}[/dim]")

    def info(self, message: str):
        """Log an informational message"""
        self.log(message, "INFO")
        self._print(f"  [blue]•[/blue] {escape(message)}")

    def log_command(self, command: str):
        """Log a command being executed"""
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "output"):
        """
        Log command output to the file (console only if verbose)

        Args:
            output: Command output (single line or multiline)
            stream: Stream label
        """
        if not output:
            return

        clean_output = _ANSI_ESCAPE.sub("", output)
        for line in clean_output.splitlines():
            self._write(f"  [{stream}] {line}\n")

        if self.verbose:
            self._print(f"[dim]{escape(clean_output)}[/dim]")

    def log_lines(self, lines: Iterable[str], level: str = "INFO"):
        """Log several lines at one level (file only)"""
        for line in lines:
            self.log(line, level)

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., failing command output)
        """
        self.has_errors = True

        self.log(error, "ERROR")
        error_block = f"{'!' * 80}\n{error}\n"
        if context:
            error_block += f"\nContext: {context}\n"
        error_block += f"{'!' * 80}\n\n"
        self._write(error_block)

        self._print(f"\n[bold red]✗ {escape(error)}[/bold red]")
        if context:
            self._print(f"  [color(208)]{escape(context)}[/color(208)]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        if self.current_step:
            self.console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")
        self._print(f"[color(214)]▶[/color(214)] [white]{escape(step_name)}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "SUCCESS")
        self._print(f"  [green]✓[/green] {escape(message)}")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")
        self._print(f"  [yellow]⚠[/yellow] [dim]{escape(message)}[/dim]")

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self._write(footer)
            self.log_file.close()
            self.log_file = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        """Context manager exit"""
        if exc_type is not None and not issubclass(exc_type, (SystemExit, KeyboardInterrupt)):
            self.log_error(
                str(exc_val) if exc_val else "Operation failed",
                context=exc_type.__name__,
            )
        elif exc_type is not None and issubclass(exc_type, KeyboardInterrupt):
            self.has_errors = True
        self.close()
        return False
