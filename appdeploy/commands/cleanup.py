"""Cleanup command - remove a deployment from the server"""

from appdeploy.commands.base_command import BaseCommand
from appdeploy.core.orchestrator import CleanupOrchestrator


class CleanupCommand(BaseCommand):
    """Tear down containers, project files and the proxy site."""

    operation = "cleanup"

    def execute(self) -> None:
        self.show_header("Cleanup Deployment", subtitle=f"Log file: {self.logger.log_path.name}")
        collector = self.build_parameter_collector()
        orchestrator = CleanupOrchestrator(
            self.logger,
            parameter_source=lambda: collector.collect(require_token=False),
        )
        orchestrator.run()
