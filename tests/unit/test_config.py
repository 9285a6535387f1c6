"""
Unit tests for configuration and the command line.
"""

from pathlib import Path

import pytest

from webserver.__main__ import build_parser, main
from webserver.config import ServerConfig


class TestDefaults:

    def test_defaults(self):
        config = ServerConfig()

        assert config.port == 8080
        assert config.index_file == "index.html"
        assert config.login_page == "/login.html"
        assert config.redirect_path == "/redirect"
        assert config.fallback_resource == "/a/b/index.html"
        assert config.post_login_resource is None
        assert config.log_format == "text"

    def test_credentials_default_to_document_root(self, docroot: Path):
        config = ServerConfig(document_root=str(docroot))
        assert config.credentials_path == docroot / "LoginInfo.txt"

    def test_credentials_override(self, tmp_path: Path):
        config = ServerConfig(credentials_file=str(tmp_path / "users.txt"))
        assert config.credentials_path == tmp_path / "users.txt"


class TestFromEnv:

    def test_reads_environment(self, monkeypatch, docroot: Path):
        monkeypatch.setenv("WEB_HOST", "0.0.0.0")
        monkeypatch.setenv("WEB_PORT", "9000")
        monkeypatch.setenv("WEB_DOCUMENT_ROOT", str(docroot))
        monkeypatch.setenv("WEB_TIMEOUT", "2.5")
        monkeypatch.setenv("WEB_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert config.document_root == str(docroot)
        assert config.timeout == 2.5
        assert config.log_format == "json"
        assert config.credentials_file is None

    def test_unset_environment_gives_defaults(self, monkeypatch):
        for name in ("WEB_HOST", "WEB_PORT", "WEB_DOCUMENT_ROOT", "WEB_CREDENTIALS_FILE",
                     "WEB_TIMEOUT", "WEB_LOG_LEVEL", "WEB_LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()
        assert config.port == 8080
        assert config.timeout == 30.0


class TestValidate:

    def test_valid(self, config: ServerConfig):
        config.validate()

    def test_port_zero_is_allowed(self, config: ServerConfig):
        config.port = 0
        config.validate()

    @pytest.mark.parametrize("changes", [
        {"port": -1},
        {"port": 65536},
        {"backlog": 0},
        {"timeout": 0},
        {"chunk_size": 0},
        {"max_header_size": 0},
        {"login_page": "login.html"},
        {"redirect_target": "a/b/index.html"},
        {"post_login_resource": "welcome.html"},
        {"upload_dir": "/tmp/uploads"},
        {"upload_dir": "../outside"},
        {"upload_filename": "a/b.jpg"},
        {"upload_filename": ""},
        {"log_format": "xml"},
    ])
    def test_invalid(self, config: ServerConfig, changes):
        for name, value in changes.items():
            setattr(config, name, value)

        with pytest.raises(ValueError):
            config.validate()

    def test_missing_document_root(self, tmp_path: Path):
        config = ServerConfig(document_root=str(tmp_path / "missing"))
        with pytest.raises(ValueError, match="document_root"):
            config.validate()

    def test_timeout_none_is_allowed(self, config: ServerConfig):
        config.timeout = None
        config.validate()


class TestCommandLine:

    def test_positional_arguments(self):
        args = build_parser().parse_args(["8081", "./www"])

        assert args.port == 8081
        assert args.document_root == "./www"
        assert args.host == "127.0.0.1"
        assert args.credentials is None
        assert args.log_format == "text"

    def test_options(self):
        args = build_parser().parse_args([
            "0", "/srv/www",
            "--host", "0.0.0.0",
            "-c", "/etc/users.txt",
            "--post-login", "/welcome.html",
            "-t", "5",
            "--log-format", "json",
        ])

        assert args.port == 0
        assert args.host == "0.0.0.0"
        assert args.credentials == "/etc/users.txt"
        assert args.post_login == "/welcome.html"
        assert args.timeout == 5.0
        assert args.log_format == "json"

    def test_missing_arguments(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["8080"])
        assert exc_info.value.code == 2

    def test_non_numeric_port(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["http", "./www"])

    def test_invalid_config_exits_2(self, tmp_path: Path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["8080", str(tmp_path / "missing")])

        assert exc_info.value.code == 2
        assert "document_root" in capsys.readouterr().err
