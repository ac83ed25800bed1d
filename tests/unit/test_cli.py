"""
Unit tests for the command-line entry point.
"""

import pytest

from minihttp import __version__
from minihttp.__main__ import build_parser, create_demo_app, main
from minihttp.config import ServerConfig


class TestArgumentParser:
    """Tests for build_parser."""

    def test_defaults_from_config(self):
        args = build_parser(ServerConfig()).parse_args([])

        assert args.host == "127.0.0.1"
        assert args.port == 4221
        assert args.workers == 4
        assert args.body_limit == 100 * 1024
        assert args.directory is None
        assert args.read_timeout is None
        assert args.log_level == "INFO"
        assert args.log_format == "text"

    def test_flags(self):
        args = build_parser(ServerConfig()).parse_args([
            "-H", "0.0.0.0", "-p", "0", "-w", "8",
            "--directory", "/tmp", "--log-level", "debug", "--log-format", "json",
        ])

        assert args.host == "0.0.0.0"
        assert args.port == 0
        assert args.workers == 8
        assert args.directory == "/tmp"
        assert args.log_level == "DEBUG"
        assert args.log_format == "json"

    def test_environment_defaults(self):
        defaults = ServerConfig(port=9000, static_dir="/srv")
        args = build_parser(defaults).parse_args([])

        assert args.port == 9000
        assert args.directory == "/srv"

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            build_parser(ServerConfig()).parse_args(["--version"])

        assert __version__ in capsys.readouterr().out


class TestDemoApp:
    """Tests for create_demo_app."""

    def test_routes_registered(self):
        app = create_demo_app(ServerConfig(port=0))
        routes = [(r.method, r.pattern) for r in app.router.routes]

        assert routes == [
            ("GET", "/"),
            ("GET", "/echo/:str"),
            ("GET", "/user-agent"),
            ("POST", "/files/:fileName"),
        ]

    def test_static_routes_come_first(self, tmp_path):
        (tmp_path / "foo").write_bytes(b"x")
        app = create_demo_app(ServerConfig(port=0, static_dir=str(tmp_path)))

        assert app.router.routes[0].pattern == "/files/foo"
        assert app.static_dir == str(tmp_path.resolve())


class TestMain:
    """Tests for main()."""

    def test_invalid_config_exit_code(self, monkeypatch, capsys):
        monkeypatch.delenv("HTTP_PORT", raising=False)

        assert main(["--workers", "0"]) == 2
        assert "num_workers" in capsys.readouterr().err

    def test_invalid_environment_exit_code(self, monkeypatch, capsys):
        monkeypatch.setenv("HTTP_PORT", "not-a-port")

        assert main([]) == 2
        assert "environment" in capsys.readouterr().err
