"""SSH service: the only channel through which appdeploy touches the remote host."""

import shlex
import subprocess
import time
from pathlib import Path
from typing import List, Optional, Union

from appdeploy.constants import (
    SSH_COMMAND_TIMEOUT,
    SSH_CONNECT_TIMEOUT,
    SSH_TIMEOUT_EXIT_STATUS,
)
from appdeploy.core.remote_commands import Command, Renderable
from appdeploy.exceptions import ConnectivityError
from appdeploy.logger import DeployLogger
from appdeploy.models.parameters import DeploymentParameters
from appdeploy.models.results import RemoteCommandResult


class RemoteExecutor:
    """
    Runs commands and copies files on the target host.

    Every call opens a fresh ssh/scp session; nothing is kept between
    calls. A non-zero remote exit status is returned, not raised.
    """

    def __init__(self, params: DeploymentParameters, logger: Optional[DeployLogger] = None):
        """
        Initialize remote executor.

        Args:
            params: Deployment parameters (user, address, key)
            logger: Run logger for commands and output
        """
        self.key_path = Path(params.ssh_key_path)
        self.user = params.ssh_user
        self.host = params.server_ip
        self.logger = logger

    @property
    def target(self) -> str:
        """Get SSH connection string (user@host)."""
        return f"{self.user}@{self.host}"

    def _common_options(self) -> List[str]:
        return [
            "-i",
            str(self.key_path),
            "-o",
            "StrictHostKeyChecking=no",
            "-o",
            "UserKnownHostsFile=/dev/null",
            "-o",
            f"ConnectTimeout={SSH_CONNECT_TIMEOUT}",
            "-o",
            "BatchMode=yes",
            "-o",
            "LogLevel=ERROR",
        ]

    def build_ssh_command(self, script: str) -> List[str]:
        """Full ssh argv running `script` under bash on the remote host."""
        return ["ssh", *self._common_options(), self.target, shlex.join(["bash", "-c", script])]

    def build_scp_command(self, local_path: Union[str, Path], remote_path: str) -> List[str]:
        """Full scp argv copying a tree to the remote host."""
        return ["scp", *self._common_options(), "-r", str(local_path), f"{self.target}:{remote_path}"]

    def execute(
        self, command: Union[Renderable, str], timeout: Optional[int] = SSH_COMMAND_TIMEOUT
    ) -> RemoteCommandResult:
        """
        Execute a command on the remote host.

        Args:
            command: Structured command/script (or constant shell text)
            timeout: Local timeout in seconds for the whole round trip

        Returns:
            RemoteCommandResult with exit status and combined output
        """
        script = command if isinstance(command, str) else command.render()
        return self._run(self.build_ssh_command(script), script, timeout)

    def copy(
        self, local_path: Union[str, Path], remote_path: str, timeout: Optional[int] = SSH_COMMAND_TIMEOUT
    ) -> RemoteCommandResult:
        """
        Recursively copy a local directory tree to the remote host.

        Args:
            local_path: Local file or directory
            remote_path: Destination on the remote host

        Returns:
            RemoteCommandResult of the scp invocation
        """
        description = f"scp -r {local_path} {self.target}:{remote_path}"
        return self._run(self.build_scp_command(local_path, remote_path), description, timeout)

    def verify_connection(self) -> RemoteCommandResult:
        """
        Check that an SSH session can be established.

        Raises:
            ConnectivityError: If the session fails
        """
        result = self.execute(Command(["echo", "SSH connection successful"]), timeout=SSH_CONNECT_TIMEOUT * 3)
        if result.is_failure:
            raise ConnectivityError(
                f"SSH connection to {self.target} failed. Please check credentials and network connectivity",
                context=result.tail(5) or f"exit status {result.exit_status}",
            )
        return result

    def _run(self, argv: List[str], description: str, timeout: Optional[int]) -> RemoteCommandResult:
        if self.logger:
            self.logger.log_command(description)

        start_time = time.time()
        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
            )
            result = RemoteCommandResult(
                exit_status=completed.returncode,
                output=completed.stdout or "",
                command=description,
                duration_seconds=time.time() - start_time,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.output.decode(errors="replace") if isinstance(e.output, bytes) else (e.output or "")
            result = RemoteCommandResult(
                exit_status=SSH_TIMEOUT_EXIT_STATUS,
                output=f"{partial}\nTimed out after {timeout}s".strip(),
                command=description,
                duration_seconds=time.time() - start_time,
            )
        except FileNotFoundError as e:
            raise ConnectivityError(
                f"Required binary not found: {argv[0]}",
                context=f"Install the OpenSSH client ({e})",
            )

        if self.logger:
            self.logger.log_output(result.output)
            if result.is_failure:
                self.logger.log(f"Exit status {result.exit_status}", "DEBUG")
        return result
