"""
Unit tests for Application registration and per-connection processing.
"""

import socket

import pytest

from minihttp import Application, ServerConfig
from minihttp.core.connection import Connection


@pytest.fixture
def app():
    return Application(ServerConfig(port=0, log_level="WARNING"))


def run_connection(app: Application, raw: bytes) -> bytes:
    """Feed raw bytes through _process_connection over a socketpair."""
    server_side, client_side = socket.socketpair()
    try:
        client_side.sendall(raw)
        client_side.shutdown(socket.SHUT_WR)
        app._process_connection(Connection(socket=server_side, address=("127.0.0.1", 1)))
        client_side.settimeout(2.0)
        chunks = []
        while True:
            chunk = client_side.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)
    finally:
        client_side.close()


class TestRegistration:
    """Route and static mount registration."""

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            Application(ServerConfig(num_workers=0))

    def test_decorators(self, app):
        @app.get("/a")
        def a(request, response):
            response.send()

        @app.post("/b")
        def b(request, response):
            response.send()

        assert [(r.method, r.pattern) for r in app.router.routes] == [("GET", "/a"), ("POST", "/b")]

    def test_register_returns_route(self, app):
        route = app.register("PUT", "/x/:id", lambda req, res: res.send())

        assert route.method == "PUT"
        assert route.matcher.param_names == ("id",)

    def test_static_files_once(self, app, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"a")
        other = tmp_path / "other"
        other.mkdir()
        (other / "b.txt").write_bytes(b"b")

        assert app.static_files("/files", tmp_path) is True
        assert app.static_files("/other", other) is False
        assert app.static_dir == str(tmp_path.resolve())
        assert [r.pattern for r in app.router.routes] == ["/files/a.txt"]

    def test_static_files_missing_directory(self, app, tmp_path):
        assert app.static_files("/files", tmp_path / "missing") is False
        assert app.static_dir is None

    def test_static_files_unreadable_directory(self, app, tmp_path, monkeypatch):
        """A directory that cannot be listed is skipped like a missing one."""
        def deny(router, prefix, directory):
            raise PermissionError(13, "Permission denied", str(directory))

        monkeypatch.setattr("minihttp.server.mount_static", deny)

        assert app.static_files("/files", tmp_path) is False
        assert app.static_dir is None

    def test_unreadable_static_dir_from_config(self, tmp_path, monkeypatch):
        def deny(router, prefix, directory):
            raise PermissionError(13, "Permission denied", str(directory))

        monkeypatch.setattr("minihttp.server.mount_static", deny)
        app = Application(ServerConfig(static_dir=str(tmp_path)))

        assert app.static_dir is None
        assert app.router.routes == ()

    def test_static_dir_from_config(self, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"a")
        app = Application(ServerConfig(static_dir=str(tmp_path), static_prefix="/static"))

        assert app.router.match("GET", "/static/a.txt") is not None

    def test_port_before_listen(self):
        assert Application(ServerConfig(port=8123)).port == 8123
        assert not Application().is_running


class TestProcessConnection:
    """One request through parse, dispatch and response guarantees."""

    def test_dispatch(self, app):
        app.register("GET", "/echo/:str", lambda req, res: res.send_text(req.params["str"]))

        raw = run_connection(app, b"GET /echo/hey HTTP/1.1\r\n\r\n")

        assert raw.endswith(b"\r\n\r\nhey")

    def test_static_dir_reaches_handler(self, app, tmp_path):
        app.static_files("/files", tmp_path)
        seen = []

        @app.get("/where")
        def where(request, response):
            seen.append(request.static_dir)
            response.send()

        run_connection(app, b"GET /where HTTP/1.1\r\n\r\n")

        assert seen == [str(tmp_path.resolve())]

    def test_malformed_request_line(self, app):
        assert run_connection(app, b"NOPE\r\n\r\n") == b""

    def test_empty_read(self, app):
        assert run_connection(app, b"") == b""

    def test_handler_error_logged(self, app, caplog):
        @app.get("/boom")
        def boom(request, response):
            raise RuntimeError("kaboom")

        raw = run_connection(app, b"GET /boom HTTP/1.1\r\n\r\n")

        assert raw == b"HTTP/1.1 500 Internal Server Error\r\n\r\n"
        assert "kaboom" in caplog.text

    def test_access_log(self, app, caplog):
        app.register("GET", "/", lambda req, res: res.send())

        with caplog.at_level("INFO", logger="minihttp.access"):
            run_connection(app, b"GET / HTTP/1.1\r\n\r\n")

        assert '"GET /" 200' in caplog.text
