"""Post-deploy validation: ordered health checks on the remote host."""

from typing import Callable, List, Tuple

from appdeploy.constants import COMPOSE_BINARY, HEALTH_CHECK_PATH
from appdeploy.core.remote_commands import Command, in_directory
from appdeploy.exceptions import ValidationError
from appdeploy.models.deployment import DockerConfig
from appdeploy.services.app_deployer import container_running_command, localhost_probe_command
from appdeploy.services.base_service import RemoteStage


class DeploymentValidator(RemoteStage):
    """Runs pass/fail checks in order and stops at the first failure."""

    error_class = ValidationError

    def validate(
        self, config: DockerConfig, port: int, remote_dir: str, container_name: str
    ) -> List[str]:
        """
        Validate the deployment end to end.

        Args:
            config: Discovered Docker configuration
            port: Application port
            remote_dir: Remote project directory
            container_name: Name of the single container (Dockerfile mode)

        Returns:
            Names of the checks that passed (all of them)

        Raises:
            ValidationError: Naming the first failing check
        """
        self.logger.info("Validating deployment...")

        checks: List[Tuple[str, Callable[[], bool]]] = [
            ("Docker service is running", lambda: self.service_active("docker")),
            ("Application containers are running", lambda: self.containers_running(config, remote_dir, container_name)),
            ("Nginx service is running", lambda: self.service_active("nginx")),
            (f"Application is responding on port {port}", lambda: self.app_responds(port)),
            ("Nginx proxy is working correctly", self.proxy_responds),
            ("End-to-end request succeeds", self.end_to_end),
        ]

        passed = []
        for name, check in checks:
            if not check():
                raise ValidationError(name)
            self.logger.success(name)
            passed.append(name)

        self.logger.success("Deployment validation successful")
        return passed

    def service_active(self, service: str) -> bool:
        return self.check(Command(["systemctl", "is-active", "--quiet", service]))

    def containers_running(self, config: DockerConfig, remote_dir: str, container_name: str) -> bool:
        if config.is_compose:
            result = self.executor.execute(in_directory(remote_dir, Command([COMPOSE_BINARY, "ps"])))
            return result.is_success and "Up" in result.output
        result = self.executor.execute(container_running_command(container_name))
        return result.is_success and container_name in result.output.split()

    def app_responds(self, port: int) -> bool:
        """The app answers 200 on its own port."""
        result = self.executor.execute(
            Command(["curl", "-s", "-o", "/dev/null", "-w", "%{http_code}", f"http://localhost:{port}"])
        )
        return result.is_success and result.output.strip().endswith("200")

    def proxy_responds(self) -> bool:
        return self.check(Command(["curl", "-fsS", "-o", "/dev/null", "http://localhost"]))

    def end_to_end(self) -> bool:
        """Health path, then site root, then any HTTP answer at all."""
        if self.check(localhost_probe_command(80, HEALTH_CHECK_PATH)):
            return True
        self.logger.log(f"{HEALTH_CHECK_PATH} not available, falling back to /", "DEBUG")
        if self.check(localhost_probe_command(80, "/")):
            return True
        self.logger.log("/ did not succeed, falling back to a bare connection check", "DEBUG")
        return self.check(Command(["curl", "-s", "-o", "/dev/null", "http://localhost"]))
