"""Resource reclamation: tear down a deployment by project identity."""

from appdeploy.constants import COMPOSE_BINARY
from appdeploy.core.remote_commands import Command, in_directory
from appdeploy.exceptions import ProxyConfigurationError
from appdeploy.models.deployment import ProjectIdentity
from appdeploy.services.base_service import RemoteStage
from appdeploy.services.proxy_service import SITE_AVAILABLE, SITE_BACKUP, SITE_ENABLED


class ResourceReclaimer(RemoteStage):
    """Removes containers, images, project files and the proxy site."""

    error_class = ProxyConfigurationError

    def cleanup(self, identity: ProjectIdentity, ssh_user: str) -> None:
        """
        Tear down everything a deployment of `identity` created.

        Container, image and file removals are best-effort; only the
        final Nginx reload is fatal.

        Args:
            identity: Project identity to reclaim
            ssh_user: Remote user owning the project directory

        Raises:
            ProxyConfigurationError: If Nginx cannot be reloaded
        """
        remote_dir = identity.remote_dir(ssh_user)

        self.logger.info("Stopping and removing containers...")
        if self.check(Command(["test", "-d", remote_dir])):
            self.run_best_effort(
                in_directory(
                    remote_dir,
                    Command([COMPOSE_BINARY, "down", "--rmi", "local", "--remove-orphans"]),
                ),
                "docker-compose down",
            )
        else:
            self.logger.log(f"{remote_dir} not found, skipping compose teardown", "DEBUG")
        self.run_best_effort(Command(["docker", "stop", identity.container_name]), "docker stop")
        self.run_best_effort(Command(["docker", "rm", identity.container_name]), "docker rm")
        self.run_best_effort(Command(["docker", "rmi", identity.image_name]), "docker rmi")

        self.logger.info("Removing project files...")
        self.run_best_effort(Command(["rm", "-rf", remote_dir]), f"rm -rf {remote_dir}")

        self.logger.info("Cleaning up Nginx configuration...")
        for path in (SITE_ENABLED, SITE_AVAILABLE, SITE_BACKUP):
            self.run_best_effort(Command(["rm", "-f", path], sudo=True), f"rm -f {path}")
        self.run_required(
            Command(["systemctl", "reload", "nginx"], sudo=True), "Failed to reload Nginx after cleanup"
        )

        self.logger.success("Remote resources removed")
