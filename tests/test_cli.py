import pytest

from appdeploy import main as cli_module


@pytest.fixture(autouse=True)
def keep_signal_handlers(monkeypatch):
    monkeypatch.setattr(cli_module.signal, "signal", lambda *args: None)


def run_main(argv):
    with pytest.raises(SystemExit) as exc_info:
        cli_module.main(argv)
    return exc_info.value.code


def test_version(capsys):
    assert run_main(["--version"]) == 0
    assert "appdeploy version" in capsys.readouterr().out


def test_help(capsys):
    assert run_main(["--help"]) == 0
    assert "--cleanup" in capsys.readouterr().out


def test_unknown_option():
    assert run_main(["--bogus"]) == 1


@pytest.mark.parametrize("argv,expected", [([], "deploy"), (["--cleanup"], "cleanup")])
def test_dispatch(monkeypatch, argv, expected):
    ran = []

    class Recorder:
        def __init__(self, name):
            self.name = name

        def run(self):
            ran.append(self.name)

    monkeypatch.setattr(cli_module, "DeployCommand", lambda: Recorder("deploy"))
    monkeypatch.setattr(cli_module, "CleanupCommand", lambda: Recorder("cleanup"))

    assert run_main(argv) == 0
    assert ran == [expected]


def test_command_exit_code_propagates(monkeypatch):
    class Failing:
        def run(self):
            raise SystemExit(1)

    monkeypatch.setattr(cli_module, "DeployCommand", Failing)
    assert run_main([]) == 1


def test_interrupt_outside_command_exits_1(monkeypatch):
    class Interrupted:
        def run(self):
            raise KeyboardInterrupt

    monkeypatch.setattr(cli_module, "DeployCommand", Interrupted)
    assert run_main([]) == 1
