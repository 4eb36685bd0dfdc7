"""Tests for configuration, CLI entry point and client scripts."""

import sys

import pytest

from keyper_service.config import KeyperServiceConfig
from keyper_service.scripts import render_auth_script, render_setup_script
from keyper_service.version import __version__

main_module = sys.modules["keyper_service.main"]


@pytest.fixture
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(main_module, "setup_logging", lambda config: None)


class TestConfig:
    def test_defaults(self, monkeypatch):
        for name in ("KEYPER_PORT", "KEYPER_KEY_FETCH_INTERVAL", "KEYPER_CERT_FILE", "KEYPER_KEY_FILE"):
            monkeypatch.delenv(name, raising=False)
        config = KeyperServiceConfig.from_env()
        assert config.port == 8080
        assert config.key_fetch_interval == 300.0
        assert config.tls_enabled is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("KEYPER_PORT", "9443")
        monkeypatch.setenv("KEYPER_KEY_FETCH_INTERVAL", "60")
        monkeypatch.setenv("KEYPER_DIRECTORY_FILE", "/etc/keyper/directory.yaml")
        monkeypatch.setenv("KEYPER_CERT_FILE", "/etc/keyper/cert.pem")
        monkeypatch.setenv("KEYPER_KEY_FILE", "/etc/keyper/key.pem")
        config = KeyperServiceConfig.from_env()
        assert config.port == 9443
        assert config.key_fetch_interval == 60.0
        assert config.directory_file == "/etc/keyper/directory.yaml"
        assert config.tls_enabled is True


class TestMain:
    def test_version(self, capsys):
        assert main_module.main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_auth_script(self, capsys):
        assert main_module.main(["--auth-script", "--url", "https://keys.example.org/"]) == 0
        out = capsys.readouterr().out
        assert out == render_auth_script("https://keys.example.org")
        assert 'KEYPER_SERVER="https://keys.example.org"' in out

    def test_setup_script(self, capsys):
        assert main_module.main(["--setup-script", "--url", "https://keys.example.org"]) == 0
        assert capsys.readouterr().out == render_setup_script("https://keys.example.org")

    def test_invalid_directory_does_not_start(self, tmp_path, monkeypatch, no_logging_setup):
        path = tmp_path / "directory.yaml"
        path.write_text(
            "servers:\n  web1: {}\nservergroups:\n  web:\n    members: [web1]\n",
            encoding="utf-8",
        )
        started = []
        monkeypatch.setattr(main_module.uvicorn, "run", lambda *a, **kw: started.append(True))

        assert main_module.main(["--config", str(path)]) == 1
        assert started == []

    def test_valid_directory_starts_server(self, tmp_path, monkeypatch, no_logging_setup):
        path = tmp_path / "directory.yaml"
        path.write_text("users:\n  alice: {keys: [k1]}\nservers:\n  web1: {mapusers: true}\n", encoding="utf-8")
        calls = []
        monkeypatch.setattr(main_module.uvicorn, "run", lambda app, **kw: calls.append(kw))

        try:
            assert main_module.main(["--config", str(path), "--port", "9000"]) == 0
        finally:
            main_module.set_key_service(None)
            main_module.set_config(KeyperServiceConfig())

        assert calls[0]["port"] == 9000
        assert calls[0]["ssl_certfile"] is None


class TestScripts:
    def test_auth_script_queries_the_keys_endpoint(self):
        script = render_auth_script("https://keyper.example.com")
        assert '"$KEYPER_SERVER/api/v1/keys/$host/$user"' in script
        assert 'user="${1:?usage: $0 <user>}"' in script
        assert "${keyper_server}" not in script

    def test_trailing_slash_is_stripped(self):
        assert 'KEYPER_SERVER="http://k:8080"' in render_setup_script("http://k:8080/")
