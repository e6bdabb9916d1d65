"""Shared plumbing for pipeline stages that act on the remote host."""

from typing import Optional, Type, Union

from appdeploy.constants import SSH_COMMAND_TIMEOUT
from appdeploy.core.remote_commands import Renderable
from appdeploy.exceptions import AppDeployError
from appdeploy.logger import DeployLogger
from appdeploy.models.results import RemoteCommandResult
from appdeploy.services.ssh_service import RemoteExecutor


class RemoteStage:
    """
    Base for stages driven through a RemoteExecutor.

    Each remote call is made through one of three helpers so that its
    failure policy is visible at the call site:

    - run_required: failure raises the stage's error
    - run_best_effort: failure is logged at DEBUG and ignored
    - check: pass/fail boolean, caller decides
    """

    error_class: Type[AppDeployError] = AppDeployError

    def __init__(self, executor: RemoteExecutor, logger: DeployLogger):
        self.executor = executor
        self.logger = logger

    def run_required(
        self,
        command: Union[Renderable, str],
        failure_message: str,
        timeout: Optional[int] = SSH_COMMAND_TIMEOUT,
        context_lines: int = 20,
    ) -> RemoteCommandResult:
        """
        Run a command whose failure aborts the stage.

        Raises:
            error_class: If the command exits non-zero
        """
        result = self.executor.execute(command, timeout=timeout)
        if result.is_failure:
            raise self.error_class(failure_message, context=result.tail(context_lines) or None)
        return result

    def run_best_effort(
        self,
        command: Union[Renderable, str],
        description: str,
        timeout: Optional[int] = SSH_COMMAND_TIMEOUT,
    ) -> RemoteCommandResult:
        """Run a command whose failure is intentionally ignored."""
        result = self.executor.execute(command, timeout=timeout)
        if result.is_failure:
            self.logger.log(
                f"Best-effort step skipped ({description}): exit status {result.exit_status}",
                "DEBUG",
            )
        return result

    def check(self, command: Union[Renderable, str], timeout: Optional[int] = SSH_COMMAND_TIMEOUT) -> bool:
        """Run a command and report whether it succeeded."""
        return self.executor.execute(command, timeout=timeout).is_success
