"""
Deployment Orchestrator

Drives the deploy chain and the cleanup chain through their states:

    deploy:  INIT → PARAMS_READY → CONNECTED → SOURCE_SYNCED → CONFIG_DISCOVERED
             → PROVISIONED → DEPLOYED → PROXY_CONFIGURED → VALIDATED
    cleanup: INIT → PARAMS_READY → CONNECTED → CLEANED

Any stage error moves the pipeline to FAILED and propagates.
"""

from pathlib import Path
from typing import Callable, List, Optional

from rich.panel import Panel

from appdeploy.constants import PROG_NAME, SUCCESS_CLEANUP, SUCCESS_DEPLOYMENT
from appdeploy.core.discovery import discover_docker_config
from appdeploy.logger import DeployLogger
from appdeploy.models.deployment import (
    CLEANUP_CHAIN,
    DEPLOY_CHAIN,
    DockerConfig,
    PipelineState,
    ProjectIdentity,
    ProjectWorkingCopy,
)
from appdeploy.models.parameters import DeploymentParameters
from appdeploy.services.app_deployer import ApplicationDeployer
from appdeploy.services.cleanup_service import ResourceReclaimer
from appdeploy.services.deployment_validator import DeploymentValidator
from appdeploy.services.git_service import SourceSynchronizer
from appdeploy.services.provisioner import EnvironmentProvisioner
from appdeploy.services.proxy_service import ProxyConfigurator
from appdeploy.services.ssh_service import RemoteExecutor

ParameterSource = Callable[[], DeploymentParameters]


class InvalidTransitionError(RuntimeError):
    """Raised when the pipeline is asked to move backwards or out of a terminal state."""


class PipelineStateMachine:
    """Linear state machine shared by both chains."""

    chain: List[PipelineState] = []

    def __init__(
        self,
        logger: DeployLogger,
        parameter_source: ParameterSource,
        executor_factory: Callable[..., RemoteExecutor] = RemoteExecutor,
    ):
        self.logger = logger
        self.parameter_source = parameter_source
        self.executor_factory = executor_factory
        self.state = PipelineState.INIT
        self.history: List[PipelineState] = [PipelineState.INIT]
        self.params: Optional[DeploymentParameters] = None
        self.executor: Optional[RemoteExecutor] = None

    def _transition(self, new_state: PipelineState) -> None:
        if self.state.is_terminal:
            raise InvalidTransitionError(f"Pipeline already finished in state {self.state.value}")
        if new_state != PipelineState.FAILED:
            current = self.chain.index(self.state)
            if new_state not in self.chain or self.chain.index(new_state) != current + 1:
                raise InvalidTransitionError(f"Cannot move from {self.state.value} to {new_state.value}")
        self.state = new_state
        self.history.append(new_state)
        self.logger.log(f"State: {new_state.value}", "DEBUG")

    def _fail(self) -> None:
        if not self.state.is_terminal:
            self._transition(PipelineState.FAILED)

    def collect_parameters(self) -> DeploymentParameters:
        self.logger.step("Collecting deployment parameters")
        params = self.parameter_source()
        self.logger.mask(params.access_token)
        self.params = params
        self.logger.success("All parameters collected and validated")
        self._transition(PipelineState.PARAMS_READY)
        return params

    def connect(self) -> RemoteExecutor:
        self.logger.step(f"Testing SSH connection to {self.params.server_ip}")
        self.executor = self.executor_factory(self.params, self.logger)
        self.executor.verify_connection()
        self.logger.success("SSH connection established")
        self._transition(PipelineState.CONNECTED)
        return self.executor


class DeploymentOrchestrator(PipelineStateMachine):
    """Runs the full deployment for one application on one host."""

    chain = DEPLOY_CHAIN

    def __init__(
        self,
        logger: DeployLogger,
        parameter_source: ParameterSource,
        workspace: Optional[Path] = None,
        executor_factory: Callable[..., RemoteExecutor] = RemoteExecutor,
        synchronizer_factory: Callable[..., SourceSynchronizer] = SourceSynchronizer,
        provisioner_factory: Callable[..., EnvironmentProvisioner] = EnvironmentProvisioner,
        deployer_factory: Callable[..., ApplicationDeployer] = ApplicationDeployer,
        proxy_factory: Callable[..., ProxyConfigurator] = ProxyConfigurator,
        validator_factory: Callable[..., DeploymentValidator] = DeploymentValidator,
    ):
        """
        Initialize orchestrator.

        Args:
            logger: Run logger shared by every stage
            parameter_source: Returns validated parameters (prompts, presets)
            workspace: Local directory for the working copy (default: cwd)
            *_factory: Stage constructors, replaceable for testing
        """
        super().__init__(logger, parameter_source, executor_factory)
        self.workspace = workspace
        self.synchronizer_factory = synchronizer_factory
        self.provisioner_factory = provisioner_factory
        self.deployer_factory = deployer_factory
        self.proxy_factory = proxy_factory
        self.validator_factory = validator_factory

        self.working_copy: Optional[ProjectWorkingCopy] = None
        self.docker_config: Optional[DockerConfig] = None

    def run(self) -> ProjectWorkingCopy:
        """
        Execute every stage in order.

        Returns:
            The deployed working copy

        Raises:
            AppDeployError: From the first failing stage
        """
        self.logger.log("Starting automated deployment process...")
        try:
            self.collect_parameters()
            self.connect()
            self.sync_source()
            self.discover_configuration()
            self.provision()
            self.deploy()
            self.configure_proxy()
            self.validate()
        except BaseException:
            self._fail()
            raise

        self.show_deployment_info()
        return self.working_copy

    def sync_source(self) -> ProjectWorkingCopy:
        self.logger.step("Synchronizing source repository")
        synchronizer = self.synchronizer_factory(self.params, self.logger, workspace=self.workspace)
        self.working_copy = synchronizer.sync()
        # the token is not needed past this point
        self.params = self.params.without_secret()
        self._transition(PipelineState.SOURCE_SYNCED)
        return self.working_copy

    def discover_configuration(self) -> DockerConfig:
        self.logger.step("Verifying Docker configuration files")
        self.docker_config = discover_docker_config(self.working_copy.path)
        self.logger.success(f"{self.docker_config.filename} found")
        self._transition(PipelineState.CONFIG_DISCOVERED)
        return self.docker_config

    def provision(self) -> None:
        self.logger.step("Provisioning remote environment")
        self.provisioner_factory(self.executor, self.logger).provision()
        self._transition(PipelineState.PROVISIONED)

    def deploy(self) -> None:
        self.logger.step("Deploying application")
        self.deployer_factory(self.executor, self.logger).deploy(
            self.working_copy, self.docker_config, self.params.app_port, self.params.ssh_user
        )
        self._transition(PipelineState.DEPLOYED)

    def configure_proxy(self) -> None:
        self.logger.step("Configuring reverse proxy")
        self.proxy_factory(self.executor, self.logger).configure(self.params.server_ip, self.params.app_port)
        self._transition(PipelineState.PROXY_CONFIGURED)

    def validate(self) -> None:
        self.logger.step("Validating deployment")
        identity = self.working_copy.identity
        self.validator_factory(self.executor, self.logger).validate(
            self.docker_config,
            self.params.app_port,
            identity.remote_dir(self.params.ssh_user),
            identity.container_name,
        )
        self._transition(PipelineState.VALIDATED)

    def show_deployment_info(self) -> None:
        """Log and display the final summary."""
        params = self.params
        lines = [
            f"URL: {params.public_url}",
            f"App Port: {params.app_port}",
            f"Server: {params.ssh_target}",
            f"Project: {self.working_copy.identity}",
            f"Branch: {self.working_copy.branch}",
            f"Commit: {self.working_copy.short_commit or 'unknown'}",
            f"Log File: {self.logger.log_path}",
        ]
        next_steps = [
            f"1. Test the application at: {params.public_url}",
            f"2. Check logs if needed: {self.logger.log_path}",
            f"3. To cleanup, run: {PROG_NAME} --cleanup",
        ]

        self.logger.console.print()
        self.logger.success(SUCCESS_DEPLOYMENT)
        self.logger.log_lines(lines + next_steps)
        self.logger.console.print(
            Panel.fit(
                "\n".join(lines) + "\n\n[bold]Next steps:[/bold]\n" + "\n".join(next_steps),
                title="Application Information",
                border_style="green",
            )
        )


class CleanupOrchestrator(PipelineStateMachine):
    """Tears down the deployment identified by the repository URL."""

    chain = CLEANUP_CHAIN

    def __init__(
        self,
        logger: DeployLogger,
        parameter_source: ParameterSource,
        executor_factory: Callable[..., RemoteExecutor] = RemoteExecutor,
        reclaimer_factory: Callable[..., ResourceReclaimer] = ResourceReclaimer,
    ):
        super().__init__(logger, parameter_source, executor_factory)
        self.reclaimer_factory = reclaimer_factory

    def run(self) -> ProjectIdentity:
        """
        Collect parameters, connect and reclaim resources.

        Raises:
            AppDeployError: From the first failing stage
        """
        self.logger.log("Starting cleanup process...")
        try:
            self.collect_parameters()
            self.connect()
            identity = ProjectIdentity.from_repository_url(self.params.repository_url)
            self.logger.step(f"Cleaning up deployment resources for {identity}")
            self.reclaimer_factory(self.executor, self.logger).cleanup(identity, self.params.ssh_user)
            self._transition(PipelineState.CLEANED)
        except BaseException:
            self._fail()
            raise

        self.logger.success(SUCCESS_CLEANUP)
        return identity
