"""Parameter collection: presets first, interactive prompts for the rest."""

from typing import Callable, Dict, Optional

from rich.console import Console
from rich.prompt import Prompt

from appdeploy.constants import DEFAULT_APP_PORT, DEFAULT_BRANCH, DEFAULT_SSH_KEY_PATH
from appdeploy.exceptions import InputValidationError
from appdeploy.models.parameters import (
    DeploymentParameters,
    validate_access_token,
    validate_branch,
    validate_ipv4,
    validate_port,
    validate_repository_url,
    validate_ssh_key,
    validate_ssh_user,
)

# field name -> (prompt label, default, secret, validator)
PROMPTS = [
    ("repository_url", "Git Repository URL", None, False, validate_repository_url),
    ("access_token", "Personal Access Token (PAT)", None, True, validate_access_token),
    ("branch", "Branch name", DEFAULT_BRANCH, False, validate_branch),
    ("ssh_user", "SSH username", None, False, validate_ssh_user),
    ("server_ip", "Server IP address", None, False, validate_ipv4),
    ("ssh_key_path", "SSH key path", DEFAULT_SSH_KEY_PATH, False, validate_ssh_key),
    ("app_port", "Application port", str(DEFAULT_APP_PORT), False, validate_port),
]

# Fields the cleanup chain needs
CLEANUP_FIELDS = {"repository_url", "ssh_user", "server_ip", "ssh_key_path"}


class ParameterCollector:
    """Builds validated DeploymentParameters."""

    def __init__(
        self,
        presets: Optional[Dict[str, str]] = None,
        console: Optional[Console] = None,
        ask: Optional[Callable[..., str]] = None,
    ):
        """
        Initialize parameter collector.

        Args:
            presets: Values from config file/environment; never prompted for
            console: Rich console for prompts
            ask: Prompt function (default: rich Prompt.ask)
        """
        self.presets = dict(presets or {})
        self.console = console or Console()
        self.ask = ask or Prompt.ask

    def collect(self, require_token: bool = True) -> DeploymentParameters:
        """
        Collect every parameter.

        Preset values that fail validation abort immediately; prompted
        values are re-asked until valid.

        Args:
            require_token: False for cleanup, which never talks to git

        Raises:
            InputValidationError: If a preset value is invalid
        """
        values = {}
        for name, label, default, secret, validator in PROMPTS:
            if not require_token and name not in CLEANUP_FIELDS:
                continue
            if name in self.presets:
                values[name] = validator(self.presets[name])
            else:
                values[name] = self._prompt(label, default, secret, validator)

        return DeploymentParameters(
            repository_url=values["repository_url"],
            access_token=values.get("access_token", ""),
            branch=values.get("branch", DEFAULT_BRANCH),
            ssh_user=values["ssh_user"],
            server_ip=values["server_ip"],
            ssh_key_path=values["ssh_key_path"],
            app_port=values.get("app_port", DEFAULT_APP_PORT),
        )

    def _prompt(self, label: str, default: Optional[str], secret: bool, validator):
        while True:
            kwargs = {"console": self.console, "password": secret}
            if default is not None:
                kwargs["default"] = default
            answer = self.ask(f"Enter {label}", **kwargs)
            try:
                return validator(answer if answer is not None else "")
            except InputValidationError as e:
                self.console.print(f"[red]✗ {e.message}[/red]")
