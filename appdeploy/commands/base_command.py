"""
Base Command Class

Abstract base for appdeploy commands.
Provides run-log setup and the single place where errors become exit codes.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from appdeploy.exceptions import AppDeployError
from appdeploy.logger import DeployLogger
from appdeploy.services.config_service import ConfigService
from appdeploy.services.parameter_collector import ParameterCollector
from appdeploy.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Parameter presets and prompts
    - Error handling and exit codes
    """

    operation = "command"

    def __init__(
        self,
        verbose: Optional[bool] = None,
        base_dir: Optional[Path] = None,
        console: Optional[Console] = None,
    ):
        self.verbose = verbose
        self.base_dir = base_dir or Path.cwd()
        self.console = console or Console()
        self.logger: Optional[DeployLogger] = None

    def init_logger(self) -> DeployLogger:
        """Create the run log; its filename is fixed for the whole run."""
        self.logger = DeployLogger(
            self.operation, log_dir=self.base_dir, verbose=self.verbose, output=self.console
        )
        return self.logger

    def build_parameter_collector(self) -> ParameterCollector:
        """Presets from appdeploy.yml/.env/environment, prompts for the rest."""
        config_service = ConfigService(self.base_dir)
        presets = config_service.load_presets()
        for warning in config_service.warnings:
            self.logger.warning(warning)
        return ParameterCollector(presets, console=self.console)

    def show_header(self, title: str, subtitle: Optional[str] = None, details: Optional[dict] = None) -> None:
        show_header(title=title, subtitle=subtitle, details=details, console=self.console)

    def print_logs_location(self) -> None:
        if self.logger:
            self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    @abstractmethod
    def execute(self) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """

    def run(self) -> None:
        """
        Run command with error handling.

        Raises:
            SystemExit: 1 on any failure or interrupt
        """
        self.init_logger()
        try:
            self.execute()
        except KeyboardInterrupt:
            self.logger.log_error("Script interrupted by user")
            self.print_logs_location()
            raise SystemExit(1)
        except SystemExit:
            raise
        except AppDeployError as e:
            self.logger.log_error(f"{e.stage.capitalize()} failed: {e.message}", context=e.context)
            self.print_logs_location()
            raise SystemExit(1)
        except Exception as e:
            error_type = type(e).__name__
            self.console.print(f"\n[bold red]✗ {error_type}:[/bold red] {escape(str(e))}\n")
            self.logger.log_error(f"{error_type}: {e}")
            self.print_logs_location()
            raise SystemExit(1)
        finally:
            self.logger.close()
