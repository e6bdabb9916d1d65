"""Deploy command - full provisioning and deployment pipeline"""

from appdeploy.commands.base_command import BaseCommand
from appdeploy.core.orchestrator import DeploymentOrchestrator


class DeployCommand(BaseCommand):
    """Clone, provision, deploy, proxy and validate."""

    operation = "deploy"

    def execute(self) -> None:
        self.show_header("Deploy Application", subtitle=f"Log file: {self.logger.log_path.name}")
        collector = self.build_parameter_collector()
        orchestrator = DeploymentOrchestrator(
            self.logger,
            parameter_source=collector.collect,
            workspace=self.base_dir,
        )
        orchestrator.run()
