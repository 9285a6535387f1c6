"""
End-to-end tests against a real listening server.

Each test talks to the server over TCP, exactly as a browser would:
send one request, read until the server closes the connection.
"""

import socket
import threading
import time
from dataclasses import replace
from pathlib import Path

import pytest

from webserver import ServerConfig, WebServer


class TestLifecycle:

    def test_port_zero_gets_real_port(self, live_server):
        assert live_server.port != 0

    def test_bind_conflict_raises(self, live_server, config: ServerConfig):
        clash = replace(config, port=live_server.port)
        with pytest.raises(OSError):
            WebServer(clash).run(setup_logging=False)

    def test_invalid_config_is_rejected(self, tmp_path: Path):
        with pytest.raises(ValueError):
            WebServer(ServerConfig(document_root=str(tmp_path / "missing")))


class TestRequests:

    def test_get_file(self, live_server, make_get, split_responses, docroot: Path):
        [response] = split_responses(live_server.request(make_get("/images/logo.png")))

        assert response.status == 200
        assert response.headers["content-type"] == "image/png"
        assert response.body == (docroot / "images" / "logo.png").read_bytes()

    def test_root_serves_index(self, live_server, make_get, split_responses, docroot: Path):
        [response] = split_responses(live_server.request(make_get("/")))
        assert response.body == (docroot / "index.html").read_bytes()

    def test_connection_is_closed(self, live_server, make_get):
        # request() only returns once the server closes its side
        data = live_server.request(make_get("/index.html"))
        assert b"Connection: close\r\n" in data

    def test_redirect_sends_two_responses(self, live_server, make_get, split_responses, docroot: Path):
        redirect, page = split_responses(live_server.request(make_get("/redirect")))

        assert redirect.status == 302
        assert redirect.headers["location"] == "/a/b/index.html"
        assert page.status == 200
        assert page.body == (docroot / "a" / "b" / "index.html").read_bytes()

    def test_login(self, live_server, make_post, split_responses, sample_login_body):
        [response] = split_responses(live_server.request(make_post("/login.html", sample_login_body)))

        assert response.status == 200
        assert response.text == "Login successful!"

    def test_bad_login(self, live_server, make_post, split_responses):
        [response] = split_responses(
            live_server.request(make_post("/login.html", b"username=alice&password=guess"))
        )
        assert response.status == 401

    def test_upload(self, live_server, make_post, split_responses, docroot: Path):
        payload = b"\xff\xd8" + b"\x42" * 50000 + b"\xff\xd9"
        [response] = split_responses(live_server.request(make_post("/upload", payload, "image/jpeg")))

        assert response.status == 200
        assert (docroot / "uploads" / "uploaded_image.jpg").read_bytes() == payload

    def test_traversal(self, live_server, split_responses, docroot: Path):
        (docroot.parent / "secret.txt").write_text("top secret")
        data = live_server.request(b"GET /../secret.txt HTTP/1.1\r\n\r\n")

        [response] = split_responses(data)
        assert response.status == 404
        assert b"top secret" not in data

    def test_malformed_request(self, live_server, split_responses):
        [response] = split_responses(live_server.request(b"HELLO\r\n\r\n"))
        assert response.status == 400


class TestTimeouts:

    def test_stalled_request_gets_408(self, live_server, split_responses):
        # No blank line: the server waits for more headers until its deadline
        started = time.monotonic()
        data = live_server.request(b"GET /index.html HTTP/1.1\r\nHost: localhost\r\n")
        elapsed = time.monotonic() - started

        [response] = split_responses(data)
        assert response.status == 408
        assert elapsed >= 0.9

    def test_idle_client_does_not_block_others(self, live_server, make_get, split_responses):
        with socket.create_connection(("127.0.0.1", live_server.port)):
            # Silent connection holds a thread; the next client is still served
            [response] = split_responses(live_server.request(make_get("/index.html"), timeout=0.9))
            assert response.status == 200


class TestConcurrency:

    def test_parallel_clients(self, live_server, make_get, split_responses, docroot: Path):
        expected = (docroot / "images" / "logo.png").read_bytes()
        results = []
        errors = []

        def fetch():
            try:
                [response] = split_responses(live_server.request(make_get("/images/logo.png")))
                results.append(response.body)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=fetch) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert len(results) == 20
        assert all(body == expected for body in results)
