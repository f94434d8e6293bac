from __future__ import annotations

import json
import logging
import sys

import pytest

from credential_registry.core.logging import (
    _ContainerFormatter,
    _JsonFormatter,
    setup_logging,
)


def _record(level: int = logging.INFO, msg: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="credential_registry.services.credential_service",
        level=level,
        pathname="credential_service.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ---- setup_logging ----


@pytest.mark.parametrize(
    ("name", "level"),
    [("debug", logging.DEBUG), ("warning", logging.WARNING), ("nonsense", logging.INFO)],
)
def test_setup_logging_sets_root_level(name: str, level: int) -> None:
    setup_logging(name)
    assert logging.getLogger().level == level


def test_setup_logging_quiets_third_party_loggers() -> None:
    setup_logging("debug")
    for name in ("uvicorn", "httpx", "sqlalchemy.engine"):
        assert logging.getLogger(name).level == logging.WARNING

    setup_logging("error")
    assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR


def test_setup_logging_selects_formatter() -> None:
    setup_logging("info", json_format=True)
    assert isinstance(logging.getLogger().handlers[0].formatter, _JsonFormatter)
    setup_logging("info")
    assert isinstance(logging.getLogger().handlers[0].formatter, _ContainerFormatter)


# ---- container formatter ----


def test_container_format_adds_location_from_warning_up() -> None:
    fmt = _ContainerFormatter()
    assert "[credential_service.py:42]" not in fmt.format(_record(logging.INFO))
    assert "[credential_service.py:42]" in fmt.format(_record(logging.WARNING))
    assert "[credential_service.py:42]" in fmt.format(_record(logging.ERROR))


def test_container_format_is_plain_text() -> None:
    output = _ContainerFormatter().format(_record(msg="Credential issued id=0"))
    assert "INFO" in output
    assert "credential_registry.services.credential_service" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output)


# ---- JSON formatter ----


def test_json_format_carries_registry_fields() -> None:
    output = _JsonFormatter().format(
        _record(logging.WARNING, msg="Rejected NotAuthorized", caller="mallory", credential_id=7)
    )
    parsed = json.loads(output)
    assert parsed["level"] == "WARNING"
    assert parsed["message"] == "Rejected NotAuthorized"
    assert parsed["caller"] == "mallory"
    assert parsed["credential_id"] == 7


def test_json_format_omits_absent_fields() -> None:
    parsed = json.loads(_JsonFormatter().format(_record(caller=None)))
    assert "caller" not in parsed
    assert "credential_id" not in parsed
    assert "timestamp" in parsed


def test_json_format_includes_exception() -> None:
    try:
        raise ValueError("store unavailable")
    except ValueError:
        record = _record(logging.ERROR)
        record.exc_info = sys.exc_info()

    parsed = json.loads(_JsonFormatter().format(record))
    assert "ValueError: store unavailable" in parsed["exception"]
