"""
Unit tests for access log formatting.
"""

import json
import logging

import pytest

from webserver.access_log import AccessLogger, RequestLog


def make_entry(**overrides) -> RequestLog:
    fields = dict(
        request_id="abcd1234",
        client_ip="192.168.1.9",
        method="GET",
        path="/index.html",
        status_code=200,
        bytes_sent=512,
        duration_ms=3.14159,
        timestamp="18/Oct/2026:09:00:00 +0000",
    )
    fields.update(overrides)
    return RequestLog(**fields)


class TestRequestLog:

    def test_to_text(self):
        assert make_entry().to_text() == (
            '192.168.1.9 - - [18/Oct/2026:09:00:00 +0000] '
            '"GET /index.html" 200 512 3.14ms [abcd1234]'
        )

    def test_unknown_client_ip(self):
        assert make_entry(client_ip="").to_text().startswith("- - - [")

    def test_to_dict_rounds_duration(self):
        data = make_entry().to_dict()

        assert data["duration_ms"] == 3.14
        assert data["status_code"] == 200
        assert set(data) == {
            "request_id", "client_ip", "method", "path",
            "status_code", "bytes_sent", "duration_ms", "timestamp",
        }


class TestAccessLogger:

    def test_text_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="webserver.access"):
            AccessLogger().log(make_entry())

        [record] = caplog.records
        assert record.name == "webserver.access"
        assert record.getMessage() == make_entry().to_text()

    def test_json_line(self):
        line = AccessLogger("json").format(make_entry())
        assert json.loads(line)["path"] == "/index.html"

    def test_custom_level(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="webserver.access"):
            AccessLogger(log_level=logging.DEBUG).log(make_entry())
        assert caplog.records[0].levelno == logging.DEBUG

    def test_invalid_format(self):
        with pytest.raises(ValueError):
            AccessLogger("xml")

    def test_request_ids_are_short_and_distinct(self):
        ids = {AccessLogger.new_request_id() for _ in range(50)}

        assert len(ids) == 50
        assert all(len(i) == 8 for i in ids)
