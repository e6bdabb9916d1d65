"""Tests for the remote command builders."""

import pytest

from appdeploy.core.remote_commands import (
    HEREDOC_DELIMITER,
    ChangeDirectory,
    Command,
    Conditional,
    Echo,
    Pipeline,
    RemoteScript,
    WriteFile,
    command_exists,
    in_directory,
)


class TestCommand:
    def test_quotes_hostile_arguments(self):
        rendered = Command(["echo", "$(rm -rf /); `id` 'x'"]).render()
        assert rendered == "echo '$(rm -rf /); `id` '\"'\"'x'\"'\"''"

    def test_sudo_env_and_quiet(self):
        rendered = Command(["apt-get", "update"], sudo=True, env={"DEBIAN_FRONTEND": "noninteractive"}, quiet=True).render()
        assert rendered == "sudo env DEBIAN_FRONTEND=noninteractive apt-get update >/dev/null 2>&1"

    def test_numbers_are_stringified(self):
        assert Command(["docker", "logs", "--tail", 200, "c"]).render() == "docker logs --tail 200 c"


class TestComposites:
    def test_pipeline(self):
        assert Pipeline(Command(["docker", "ps"]), Command(["grep", "Up"])).render() == "docker ps | grep Up"

    def test_negated_conditional(self):
        rendered = Conditional(
            test=command_exists("nginx"),
            negate=True,
            then=(Echo("install"),),
            otherwise=(Echo("skip"),),
        ).render()
        assert rendered.splitlines() == [
            "if ! command -v nginx >/dev/null 2>&1; then",
            "    echo install",
            "else",
            "    echo skip",
            "fi",
        ]

    def test_empty_then_branch_is_valid_bash(self):
        rendered = Conditional(test=Command(["true"])).render()
        assert "    :" in rendered

    def test_write_file_keeps_nginx_variables_literal(self):
        rendered = WriteFile("/etc/nginx/sites-available/appdeploy", "proxy_set_header Host $host;", sudo=True).render()
        assert rendered.startswith(f"sudo tee /etc/nginx/sites-available/appdeploy >/dev/null <<'{HEREDOC_DELIMITER}'\n")
        assert "proxy_set_header Host $host;\n" in rendered
        assert rendered.endswith(HEREDOC_DELIMITER)

    def test_write_file_rejects_delimiter_in_content(self):
        with pytest.raises(ValueError):
            WriteFile("/tmp/x", f"a\n{HEREDOC_DELIMITER}\nb").render()

    def test_heredoc_not_indented_inside_conditional(self):
        rendered = Conditional(test=Command(["true"]), then=(WriteFile("/tmp/x", "line"),)).render()
        assert f"\n{HEREDOC_DELIMITER}" in rendered


class TestRemoteScript:
    def test_strict_mode_prefix(self):
        script = RemoteScript([Echo("hi")]).render()
        assert script == "set -euo pipefail\necho hi\n"

    def test_non_strict(self):
        assert RemoteScript([Echo("hi")], strict=False).render() == "echo hi\n"

    def test_in_directory_quotes_path(self):
        script = in_directory("/home/deploy/my app", Command(["docker-compose", "ps"])).render()
        assert "cd '/home/deploy/my app'\ndocker-compose ps" in script

    def test_change_directory(self):
        assert ChangeDirectory("/srv").render() == "cd /srv"
