import pytest

from appdeploy.exceptions import InputValidationError
from appdeploy.services.config_service import ConfigService


def test_no_sources(tmp_path):
    assert ConfigService(tmp_path, environ={}).load_presets() == {}


def test_yaml_presets(tmp_path):
    (tmp_path / "appdeploy.yml").write_text(
        "repository_url: https://example.com/org/app.git\nserver_ip: 203.0.113.10\napp_port: 8080\n"
    )
    presets = ConfigService(tmp_path, environ={}).load_presets()
    assert presets == {
        "repository_url": "https://example.com/org/app.git",
        "server_ip": "203.0.113.10",
        "app_port": "8080",
    }


def test_token_in_yaml_is_ignored(tmp_path):
    (tmp_path / "appdeploy.yml").write_text("access_token: abc\nflavour: vanilla\n")
    service = ConfigService(tmp_path, environ={})

    assert service.load_presets() == {}
    assert any("access_token" in w for w in service.warnings)
    assert any("flavour" in w for w in service.warnings)


def test_yaml_must_be_mapping(tmp_path):
    (tmp_path / "appdeploy.yml").write_text("- a\n- b\n")
    with pytest.raises(InputValidationError):
        ConfigService(tmp_path, environ={}).load_presets()


def test_environment_overrides_file_and_dotenv(tmp_path):
    (tmp_path / "appdeploy.yml").write_text("server_ip: 10.0.0.1\nssh_user: ubuntu\n")
    (tmp_path / ".env").write_text("APPDEPLOY_SERVER_IP=10.0.0.2\nAPPDEPLOY_GIT_TOKEN=from-dotenv\n")
    environ = {"APPDEPLOY_SERVER_IP": "10.0.0.3", "UNRELATED": "x"}

    presets = ConfigService(tmp_path, environ=environ).load_presets()

    assert presets == {"server_ip": "10.0.0.3", "ssh_user": "ubuntu", "access_token": "from-dotenv"}


def test_blank_environment_values_ignored(tmp_path):
    presets = ConfigService(tmp_path, environ={"APPDEPLOY_BRANCH": "  "}).load_presets()
    assert "branch" not in presets
