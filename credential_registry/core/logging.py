"""Logging configuration for credential-registry.

Two output modes share one setup function:

  _ContainerFormatter: single-line text for local dev and `docker logs`.
  _JsonFormatter:      JSON Lines for log aggregation (LOG_JSON=true).

Registry services log every rejected call at WARNING with the caller
identity and credential id attached as `extra` fields, so an operator can
filter a JSON log stream down to one credential's history:

    credential_id == 42 AND level == "WARNING"

Request-scoped fields (request_id, method, path, ...) are attached by the
RequestContextMiddleware and its log record factory.

LEVELS IN THIS SERVICE
----------------------
  DEBUG    token validated for an identity
  INFO     a committed change: issuer added, credential issued, revoked,
           renewed, transferred, dispute filed or answered; one line per
           HTTP request
  WARNING  a rejected call (NotAuthorized, CredentialExpired, ...), an
           invalid bearer token, a rate-limited request
  ERROR    a dependency failure: database or Redis unreachable

Rejections are WARNING rather than ERROR because they are the registry
doing its job; an alert on ERROR should page for outages only.

WHY STDOUT
----------
The process never manages log files.  The container runtime collects
stdout, and rotation and shipping belong to it.  Bearer tokens are never
logged at any level; only the subject they resolve to.
"""

from __future__ import annotations

import json
import logging
import sys


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter tuned for container stdout.

    - Always: ISO-8601 timestamp, level, logger name, message
    - WARNING+: appends [filename:lineno] so you can locate the guard clause
    - ERROR/CRITICAL: stack trace included when exc_info is present
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # Insert .NNN before the timezone offset (last 5 chars: +0000)
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON formatter: one object per line.

    Context fields become top-level keys when present on the record.
    """

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "caller",
        "credential_id",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger for container environments.

    Args:
        level_name: Log level string (debug/info/warning/error)
        json_format: If True, emit JSON lines. Controlled by LOG_JSON.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # Keep third-party loggers from flooding at DEBUG
    for name in (
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpcore",
        "httpx",
        "sqlalchemy.engine",
    ):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
