"""
=============================================================================
ACCESS LOG
=============================================================================

One log line per handled request, written to the "webserver.access" logger.

=============================================================================
FORMATS
=============================================================================

    text (Apache-like, human readable):

        127.0.0.1 - - [18/Oct/2026:09:00:00 +0000] "GET /a/b/index.html" 200 5120 1.37ms [a1b2c3d4]

    json (one object per line, for log aggregators):

        {"request_id": "a1b2c3d4", "client_ip": "127.0.0.1", "method": "GET",
         "path": "/a/b/index.html", "status_code": 200, "bytes_sent": 5120,
         "duration_ms": 1.37, "timestamp": "18/Oct/2026:09:00:00 +0000"}

Request bodies are never logged, so login passwords never reach the log.

=============================================================================
CONFIGURING THE ACCESS LOG
=============================================================================

The logger is namespaced, so it can be routed on its own:

    logging.getLogger("webserver.access").addHandler(
        logging.FileHandler("access.log"))
    logging.getLogger("webserver.access").propagate = False

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass


logger = logging.getLogger("webserver.access")


LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    Fields:
        request_id:  Short random ID to correlate this line with error logs
        client_ip:   Client's IP address
        method:      HTTP method, or "-" if the request line never parsed
        path:        Request path, or "-"
        status_code: Status of the first response written (0 if none)
        bytes_sent:  Body bytes written across all responses
        duration_ms: Time from first read to last write
        timestamp:   When the request finished, in common log format
    """

    request_id: str
    client_ip: str
    method: str
    path: str
    status_code: int
    bytes_sent: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.bytes_sent} {self.duration_ms:.2f}ms [{self.request_id}]'
        )


class AccessLogger:
    """
    Emits RequestLog entries in the configured format.

    Usage:
        access_log = AccessLogger(log_format="json")
        request_id = access_log.new_request_id()
        ...
        access_log.log(RequestLog(...))
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        """
        Args:
            log_format: "text" or "json".
            log_level: Level the access lines are logged at.
        """
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    @staticmethod
    def new_request_id() -> str:
        # 8 hex chars is plenty to correlate lines within one log file
        return uuid.uuid4().hex[:8]

    @staticmethod
    def timestamp() -> str:
        return time.strftime("%d/%b/%Y:%H:%M:%S %z")

    def format(self, entry: RequestLog) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict())
        return entry.to_text()

    def log(self, entry: RequestLog) -> None:
        logger.log(self.log_level, self.format(entry))
