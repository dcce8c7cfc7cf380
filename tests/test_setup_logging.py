"""Unit coverage for webhook_tester.core.setup_logging."""

import json
import logging
import sys

from webhook_tester.core import setup_logging as logging_module
from webhook_tester.core.setup_logging import (
    LOGGER_NAME,
    ContextFormatter,
    JSONFormatter,
    _coerce_log_level,
    get_uvicorn_log_config,
    setup_default_logging,
    setup_logging,
)


def _record(**extra):
    record = logging.LogRecord(
        name="webhook_tester",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg="Webhook %s failed",
        args=("wh-1",),
        exc_info=extra.pop("exc_info", None),
    )
    record.__dict__.update(extra)
    return record


def test_text_formatter_appends_webhook_context():
    line = ContextFormatter().format(_record(webhook_id="wh-1", job_id="job-1"))

    assert line.endswith("WARNING - Webhook wh-1 failed [webhook_id=wh-1 job_id=job-1]")


def test_text_formatter_leaves_plain_records_alone():
    line = ContextFormatter().format(_record())

    assert line.endswith("WARNING - Webhook wh-1 failed")


def test_json_formatter_emits_context_as_keys():
    entry = json.loads(JSONFormatter().format(_record(webhook_id="wh-1", operation="poll_timeout")))

    assert entry["message"] == "Webhook wh-1 failed"
    assert entry["level"] == "WARNING"
    assert entry["webhook_id"] == "wh-1"
    assert entry["operation"] == "poll_timeout"
    assert "job_id" not in entry


def test_json_formatter_handles_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record(exc_info=sys.exc_info())

    entry = json.loads(JSONFormatter().format(record))

    assert "ValueError: boom" in entry["exception"]


def test_coerce_log_level():
    assert _coerce_log_level(logging.DEBUG) == logging.DEBUG
    assert _coerce_log_level(" warning ") == logging.WARNING
    assert _coerce_log_level("unknown") == logging.INFO


def test_setup_logging_under_pytest_only_adds_console(tmp_path):
    logger = setup_logging("webhook_tester_test_component", log_dir=str(tmp_path))

    assert logger.propagate is False
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert list(tmp_path.iterdir()) == []
    logger.handlers.clear()


def test_setup_logging_adds_rotating_file_outside_tests(tmp_path, monkeypatch):
    monkeypatch.setattr(logging_module, "_is_test_run", lambda: False)

    logger = setup_logging("webhook_tester_file_component", json_format=True, log_dir=str(tmp_path / "logs"))
    try:
        assert len(logger.handlers) == 2
        assert isinstance(logger.handlers[1].formatter, JSONFormatter)
        assert (tmp_path / "logs" / "webhook_tester.log").exists()
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()


def test_setup_default_logging_reuses_configured_logger(monkeypatch):
    calls = []
    original = logging_module.setup_logging

    def tracking_setup_logging(*args, **kwargs):
        calls.append(kwargs)
        return original(*args, **kwargs)

    monkeypatch.setattr(logging_module, "setup_logging", tracking_setup_logging)

    first = setup_default_logging(log_level="DEBUG")
    second = setup_default_logging(log_level="DEBUG")

    assert first is second
    assert first.name == LOGGER_NAME
    assert len(calls) <= 1
    setup_default_logging()


def test_uvicorn_log_config_routes_server_logs_to_file():
    log_config = get_uvicorn_log_config(json_format=True)

    assert log_config["formatters"]["app"]["()"] is JSONFormatter
    assert log_config["handlers"]["file"]["filename"].endswith("webhook_tester_uvicorn.log")
    assert log_config["loggers"]["uvicorn.access"]["handlers"] == ["console", "file"]
    assert get_uvicorn_log_config()["formatters"]["app"]["()"] is ContextFormatter
