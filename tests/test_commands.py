import io

import pytest
from rich.console import Console

from appdeploy.commands.base_command import BaseCommand
from appdeploy.exceptions import ConnectivityError


class ScriptedCommand(BaseCommand):
    operation = "deploy"

    def __init__(self, error=None, **kwargs):
        super().__init__(**kwargs)
        self.error = error

    def execute(self):
        self.logger.info("working")
        if self.error is not None:
            raise self.error


def run_command(tmp_path, error):
    command = ScriptedCommand(error, verbose=False, base_dir=tmp_path, console=Console(file=io.StringIO()))
    with pytest.raises(SystemExit) as exc_info:
        command.run()
    return exc_info.value.code, command.logger.log_path.read_text()


def test_success_closes_log(tmp_path):
    command = ScriptedCommand(verbose=False, base_dir=tmp_path, console=Console(file=io.StringIO()))
    command.run()
    assert "Status: SUCCESS" in command.logger.log_path.read_text()


def test_stage_error_exit_code(tmp_path):
    code, log = run_command(tmp_path, ConnectivityError("SSH connection to deploy@203.0.113.10 failed"))
    assert code == 1
    assert "Connectivity check failed: SSH connection" in log
    assert "Status: FAILED" in log


def test_interrupt_exit_code(tmp_path):
    code, log = run_command(tmp_path, KeyboardInterrupt())
    assert code == 1
    assert "Script interrupted by user" in log


def test_unexpected_error(tmp_path):
    code, log = run_command(tmp_path, RuntimeError("boom"))
    assert code == 1
    assert "RuntimeError: boom" in log


def test_presets_warnings_logged(tmp_path):
    (tmp_path / "appdeploy.yml").write_text("access_token: nope\n")
    command = ScriptedCommand(verbose=False, base_dir=tmp_path, console=Console(file=io.StringIO()))
    command.init_logger()
    collector = command.build_parameter_collector()
    command.logger.close()

    assert "access_token" not in collector.presets
    assert "Ignoring 'access_token'" in command.logger.log_path.read_text()
