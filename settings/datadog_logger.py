import json
import logging
import os
import re
from typing import Iterable, Optional

import requests

# Only drop very noisy library internals
EXCLUDED_LOGGERS = {
    "httpcore",
    "urllib3",
    "sqlalchemy.engine",
}

# Structured fields lifted from ``extra=`` into the Datadog payload
STRUCTURED_PREFIXES = ("http.", "org.", "error.")
STRUCTURED_FIELDS = {"duration_ms", "event_type"}


class DatadogLogger(logging.Handler):
    """
    Ships log records to the Datadog HTTP intake.

    Records are dropped silently when no API key is configured, so local runs
    and tests never reach the network.
    """

    def __init__(
        self,
        service: str,
        api_key: Optional[str] = None,
        log_url: str = "https://http-intake.logs.datadoghq.com/v1/input",
        env: str = "development",
        include_loggers: Optional[Iterable[str]] = None,
    ):
        super().__init__()
        self.service = service
        self.api_key = api_key
        self.log_url = log_url
        self.env = env
        self.include_loggers = [p for p in (include_loggers or []) if p]

        # uvicorn already formats access lines; keep the raw message
        self.setFormatter(logging.Formatter("%(message)s"))

        # "10.2.10.131:35054 - "GET /health HTTP/1.1" 200"
        self.access_log_pattern = re.compile(
            r'(\d+\.\d+\.\d+\.\d+):(\d+)\s+-\s+"(\w+)\s+([^\s?]+)(?:\?[^"]*)?\s+HTTP/[^"]+"\s+(\d+)'
        )

    def parse_access_log(self, message: str) -> dict:
        match = self.access_log_pattern.match(message)
        if not match:
            return {}

        client_ip, client_port, method, path, status_code = match.groups()
        return {
            "http.method": method,
            "http.url": path,
            "http.status_code": int(status_code),
            "http.client_ip": client_ip,
            "http.client_port": int(client_port),
        }

    def should_log(self, record: logging.LogRecord) -> bool:
        if self.include_loggers:
            return any(record.name.startswith(prefix) for prefix in self.include_loggers)
        return not any(record.name.startswith(excluded) for excluded in EXCLUDED_LOGGERS)

    def build_payload(self, record: logging.LogRecord) -> dict:
        message = record.getMessage()
        payload = {
            "message": message,
            "ddsource": "python",
            "service": self.service,
            "hostname": os.getenv("HOSTNAME"),
            "status": record.levelname.lower(),
            "logger": record.name,
        }
        tags = [f"env:{self.env}", f"service:{self.service}"]

        for attr, value in vars(record).items():
            if value is None:
                continue
            if attr.startswith(STRUCTURED_PREFIXES) or attr in STRUCTURED_FIELDS:
                payload[attr] = value

        if record.name == "uvicorn.access" and "http.method" not in payload:
            payload.update(self.parse_access_log(message))

        if payload.get("http.method"):
            tags.append(f"http.method:{str(payload['http.method']).lower()}")
        if payload.get("http.status_code"):
            tags.append(f"http.status_code:{payload['http.status_code']}")
        if payload.get("event_type"):
            tags.append(f"event_type:{payload['event_type']}")
        if payload.get("org.tenant_id"):
            tags.append(f"tenant_id:{payload['org.tenant_id']}")

        payload["ddtags"] = ",".join(tags)
        return payload

    def emit(self, record: logging.LogRecord):
        if not self.api_key or not self.should_log(record):
            return

        try:
            requests.post(
                self.log_url,
                headers={
                    "Content-Type": "application/json",
                    "DD-API-KEY": self.api_key,
                },
                data=json.dumps(self.build_payload(record), default=str),
                timeout=2,
            )
        except Exception:
            self.handleError(record)
