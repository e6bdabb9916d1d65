"""Environment provisioning: Docker, docker-compose and Nginx on the target."""

from typing import List

from appdeploy.constants import (
    COMPOSE_BINARY,
    COMPOSE_BINARY_PATH,
    COMPOSE_DOWNLOAD_URL,
    DOCKER_INSTALL_SCRIPT_PATH,
    DOCKER_INSTALL_SCRIPT_URL,
    PROVISION_TIMEOUT,
)
from appdeploy.core.remote_commands import (
    Command,
    Conditional,
    Echo,
    RemoteScript,
    ShellSnippet,
    command_exists,
)
from appdeploy.exceptions import ProvisioningError
from appdeploy.services.base_service import RemoteStage

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}
VERSION_MARKERS = ("Docker version", "Docker Compose version", "docker-compose version", "nginx version")


class EnvironmentProvisioner(RemoteStage):
    """Installs and starts the remote runtime dependencies, idempotently."""

    error_class = ProvisioningError

    def build_script(self) -> RemoteScript:
        """
        Composite provisioning script.

        Every install is gated by `command -v`, so a second run only
        refreshes package indices, re-enables services and prints versions.
        """
        install_docker = Conditional(
            test=command_exists("docker"),
            negate=True,
            then=(
                Echo("Installing Docker..."),
                Command(["curl", "-fsSL", DOCKER_INSTALL_SCRIPT_URL, "-o", DOCKER_INSTALL_SCRIPT_PATH]),
                Command(["sh", DOCKER_INSTALL_SCRIPT_PATH], sudo=True),
                Command(["usermod", "-aG", "docker", self.executor.user], sudo=True),
                Echo("Docker installed"),
            ),
            otherwise=(Echo("Docker already installed"),),
        )
        install_compose = Conditional(
            test=command_exists(COMPOSE_BINARY),
            negate=True,
            then=(
                Echo("Installing Docker Compose..."),
                # uname expansion is intentional, the URL is a constant
                ShellSnippet(f'sudo curl -fsSL "{COMPOSE_DOWNLOAD_URL}" -o {COMPOSE_BINARY_PATH}'),
                Command(["chmod", "+x", COMPOSE_BINARY_PATH], sudo=True),
                Echo("Docker Compose installed"),
            ),
            otherwise=(Echo("Docker Compose already installed"),),
        )
        install_nginx = Conditional(
            test=command_exists("nginx"),
            negate=True,
            then=(
                Echo("Installing Nginx..."),
                Command(["apt-get", "install", "-y", "-qq", "nginx"], sudo=True, env=APT_ENV),
                Echo("Nginx installed"),
            ),
            otherwise=(Echo("Nginx already installed"),),
        )

        return RemoteScript(
            [
                Echo("Updating package indices..."),
                Command(["apt-get", "update", "-qq"], sudo=True, env=APT_ENV),
                install_docker,
                install_compose,
                install_nginx,
                Command(["systemctl", "enable", "--now", "docker"], sudo=True),
                Command(["systemctl", "enable", "--now", "nginx"], sudo=True),
                Command(["docker", "--version"], sudo=True),
                Command([COMPOSE_BINARY, "--version"]),
                Command(["nginx", "-v"], sudo=True),
            ]
        )

    def provision(self) -> List[str]:
        """
        Ensure the target has Docker, docker-compose and Nginx running.

        Returns:
            Version report lines

        Raises:
            ProvisioningError: If any install or service start fails
        """
        self.logger.info(f"Preparing remote environment on {self.executor.host}...")
        result = self.run_required(
            self.build_script(),
            "Remote environment provisioning failed",
            timeout=PROVISION_TIMEOUT,
        )

        for line in result.output.splitlines():
            if line.strip().endswith("installed"):
                self.logger.log(line.strip(), "INFO")

        versions = [
            line.strip()
            for line in result.output.splitlines()
            if line.strip().startswith(VERSION_MARKERS)
        ]
        for version in versions:
            self.logger.info(version)
        self.logger.success("Remote environment prepared")
        return versions
