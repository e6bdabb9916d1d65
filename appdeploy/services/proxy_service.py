"""Reverse proxy configuration: install the Nginx site definition."""

from pathlib import Path

from jinja2 import Template

from appdeploy.constants import (
    NGINX_BACKUP_SUFFIX,
    NGINX_DEFAULT_SITE,
    NGINX_SITE_NAME,
    NGINX_SITES_AVAILABLE,
    NGINX_SITES_ENABLED,
)
from appdeploy.core.remote_commands import Command, Conditional, RemoteScript, WriteFile
from appdeploy.exceptions import ProxyConfigurationError
from appdeploy.services.base_service import RemoteStage

TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "nginx_site.conf.j2"
PROXY_TIMEOUT_SECONDS = 300

SITE_AVAILABLE = f"{NGINX_SITES_AVAILABLE}/{NGINX_SITE_NAME}"
SITE_ENABLED = f"{NGINX_SITES_ENABLED}/{NGINX_SITE_NAME}"
SITE_BACKUP = f"{SITE_AVAILABLE}{NGINX_BACKUP_SUFFIX}"


def load_site_template() -> Template:
    """
    Load the Nginx site Jinja2 template.

    Raises:
        FileNotFoundError: If the template file is missing
    """
    if not TEMPLATE_PATH.exists():
        raise FileNotFoundError(str(TEMPLATE_PATH))

    with open(TEMPLATE_PATH, "r") as f:
        template_content = f.read()

    return Template(template_content, keep_trailing_newline=True)


def render_site_definition(server_ip: str, port: int) -> str:
    """Site definition for this deployment; same inputs, same bytes."""
    return load_site_template().render(
        server_name=server_ip,
        app_port=int(port),
        proxy_timeout=PROXY_TIMEOUT_SECONDS,
    )


class ProxyConfigurator(RemoteStage):
    """Installs the site definition as the only enabled Nginx site."""

    error_class = ProxyConfigurationError

    def stage_script(self, site_definition: str) -> RemoteScript:
        """Back up the current site, write the new one and enable it."""
        return RemoteScript(
            [
                Conditional(
                    test=Command(["test", "-f", SITE_AVAILABLE], sudo=True),
                    then=(Command(["cp", "-a", SITE_AVAILABLE, SITE_BACKUP], sudo=True),),
                    otherwise=(Command(["rm", "-f", SITE_BACKUP], sudo=True),),
                ),
                WriteFile(SITE_AVAILABLE, site_definition, sudo=True),
                Command(["ln", "-sf", SITE_AVAILABLE, SITE_ENABLED], sudo=True),
            ]
        )

    def restore_script(self) -> RemoteScript:
        """Put the previous site back, or remove ours if there was none."""
        return RemoteScript(
            [
                Conditional(
                    test=Command(["test", "-f", SITE_BACKUP], sudo=True),
                    then=(Command(["mv", "-f", SITE_BACKUP, SITE_AVAILABLE], sudo=True),),
                    otherwise=(
                        Command(["rm", "-f", SITE_AVAILABLE], sudo=True),
                        Command(["rm", "-f", SITE_ENABLED], sudo=True),
                    ),
                ),
            ]
        )

    def commit_script(self) -> RemoteScript:
        """Drop the default site and the backup, then reload."""
        return RemoteScript(
            [
                Command(["rm", "-f", NGINX_DEFAULT_SITE], sudo=True),
                Command(["rm", "-f", SITE_BACKUP], sudo=True),
                Command(["systemctl", "reload", "nginx"], sudo=True),
            ]
        )

    def configure(self, server_ip: str, port: int) -> str:
        """
        Install and activate the site definition.

        The running Nginx is reloaded only after `nginx -t` passes; on a
        failed check the previous site file is restored and nothing is
        reloaded.

        Returns:
            The installed site definition

        Raises:
            ProxyConfigurationError: If staging, syntax check or reload fails
        """
        self.logger.info("Configuring Nginx reverse proxy...")
        site_definition = render_site_definition(server_ip, port)

        self.run_required(self.stage_script(site_definition), "Failed to write Nginx site definition")

        test = self.executor.execute(Command(["nginx", "-t"], sudo=True))
        if test.is_failure:
            self.run_best_effort(self.restore_script(), "restore previous Nginx site")
            raise ProxyConfigurationError(
                "Nginx configuration test failed; previous configuration kept",
                context=test.tail(10) or None,
            )
        self.logger.success("Nginx configuration syntax is valid")

        self.run_required(self.commit_script(), "Failed to reload Nginx")
        self.logger.success("Nginx reverse proxy configured")
        return site_definition
