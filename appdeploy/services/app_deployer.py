"""Application deployment: transfer the working copy, build and start containers."""

import posixpath
import time

from appdeploy.constants import (
    BUILD_TIMEOUT,
    COMPOSE_BINARY,
    COMPOSE_SETTLE_SECONDS,
    CONTAINER_LOG_TAIL,
    DOCKERFILE_SETTLE_SECONDS,
    PROBE_ATTEMPTS,
    PROBE_DELAY_SECONDS,
)
from appdeploy.core.remote_commands import Command, in_directory
from appdeploy.exceptions import DeploymentError
from appdeploy.models.deployment import DockerConfig, ProjectWorkingCopy
from appdeploy.services.base_service import RemoteStage


def container_running_command(container_name: str) -> Command:
    """List the named container only if it is running."""
    return Command(
        ["docker", "ps", "--filter", f"name=^{container_name}$", "--format", "{{.Names}}"]
    )


def localhost_probe_command(port: int, path: str = "") -> Command:
    """curl that fails on connection errors and HTTP >= 400."""
    return Command(["curl", "-fsS", "-o", "/dev/null", f"http://localhost:{port}{path}"])


class ApplicationDeployer(RemoteStage):
    """Copies the source to the host and (re)starts the containerized app."""

    error_class = DeploymentError

    def deploy(
        self,
        working_copy: ProjectWorkingCopy,
        config: DockerConfig,
        port: int,
        ssh_user: str,
    ) -> None:
        """
        Deploy the working copy on the remote host.

        Args:
            working_copy: Synchronized local checkout
            config: Discovered Docker configuration
            port: Application port
            ssh_user: Remote user (owns the project directory)

        Raises:
            DeploymentError: On transfer, build, start or reachability failure
        """
        identity = working_copy.identity
        remote_dir = identity.remote_dir(ssh_user)

        self.transfer(working_copy, remote_dir)
        self.stop_previous(remote_dir, identity.container_name)

        if config.is_compose:
            self.start_compose(remote_dir)
        else:
            self.start_container(remote_dir, identity.image_name, identity.container_name, port)

        self.wait_until_reachable(port)
        self.logger.success("Application deployed successfully")

    def transfer(self, working_copy: ProjectWorkingCopy, remote_dir: str) -> None:
        """Copy the working copy tree to remote_dir (overwriting files)."""
        self.logger.info("Transferring project files to remote server...")
        parent = posixpath.dirname(remote_dir)
        self.run_required(Command(["mkdir", "-p", parent]), f"Cannot create {parent} on remote host")

        result = self.executor.copy(working_copy.path, parent + "/")
        if result.is_failure:
            raise DeploymentError("Failed to transfer project files", context=result.tail() or None)
        self.logger.success("Project files transferred")

    def stop_previous(self, remote_dir: str, container_name: str) -> None:
        """Tear down whatever an earlier run left behind."""
        self.logger.info("Stopping any existing containers...")
        self.run_best_effort(
            in_directory(remote_dir, Command([COMPOSE_BINARY, "down", "--remove-orphans"])),
            "docker-compose down",
        )
        self.run_best_effort(Command(["docker", "stop", container_name]), f"docker stop {container_name}")
        self.run_best_effort(Command(["docker", "rm", container_name]), f"docker rm {container_name}")

    def start_compose(self, remote_dir: str) -> None:
        """Build and start services with docker-compose."""
        self.logger.info("Using Docker Compose for deployment...")
        self.run_required(
            in_directory(remote_dir, Command([COMPOSE_BINARY, "up", "-d", "--build"])),
            "docker-compose up failed",
            timeout=BUILD_TIMEOUT,
            context_lines=40,
        )

        self.logger.info(f"Waiting {COMPOSE_SETTLE_SECONDS}s for containers to settle...")
        time.sleep(COMPOSE_SETTLE_SECONDS)

        status = self.executor.execute(in_directory(remote_dir, Command([COMPOSE_BINARY, "ps"])))
        if status.is_success and "Up" in status.output:
            self.logger.success("Docker Compose containers are running")
            return

        logs = self.executor.execute(
            in_directory(remote_dir, Command([COMPOSE_BINARY, "logs", "--tail", CONTAINER_LOG_TAIL]))
        )
        raise DeploymentError(
            "Docker Compose containers failed to start",
            context=logs.tail(40) or status.tail() or None,
            logs=logs.output,
        )

    def start_container(self, remote_dir: str, image_name: str, container_name: str, port: int) -> None:
        """Build the image and run a single container publishing `port`."""
        self.logger.info("Using Dockerfile for deployment...")
        self.run_required(
            in_directory(remote_dir, Command(["docker", "build", "-t", image_name, "."])),
            f"docker build of {image_name} failed",
            timeout=BUILD_TIMEOUT,
            context_lines=40,
        )
        self.run_required(
            Command(["docker", "run", "-d", "--name", container_name, "-p", f"{port}:{port}", image_name]),
            f"docker run of {container_name} failed",
        )

        self.logger.info(f"Waiting {DOCKERFILE_SETTLE_SECONDS}s for container to settle...")
        time.sleep(DOCKERFILE_SETTLE_SECONDS)

        status = self.executor.execute(container_running_command(container_name))
        if status.is_success and container_name in status.output.split():
            self.logger.success("Docker container is running")
            return

        logs = self.executor.execute(Command(["docker", "logs", "--tail", CONTAINER_LOG_TAIL, container_name]))
        raise DeploymentError(
            "Docker container failed to start",
            context=logs.tail(40) or None,
            logs=logs.output,
        )

    def wait_until_reachable(self, port: int) -> None:
        """
        Probe the app on the remote loopback with bounded retries.

        Raises:
            DeploymentError: If no attempt succeeds
        """
        self.logger.info("Verifying application health...")
        last = None
        for attempt in range(1, PROBE_ATTEMPTS + 1):
            last = self.executor.execute(localhost_probe_command(port))
            if last.is_success:
                self.logger.success(f"Application is healthy and responding on port {port}")
                return
            self.logger.log(f"Health probe attempt {attempt}/{PROBE_ATTEMPTS} failed", "WARNING")
            if attempt < PROBE_ATTEMPTS:
                time.sleep(PROBE_DELAY_SECONDS)

        raise DeploymentError(
            f"Application health check failed on port {port} after {PROBE_ATTEMPTS} attempts",
            context=last.tail(5) if last else None,
        )
