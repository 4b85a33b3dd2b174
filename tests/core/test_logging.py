import json
import logging
import sys

from core.logging import JSONFormatter


def _record(msg, *args, **extra):
    record = logging.makeLogRecord({"name": "crm", "levelname": "INFO", "msg": msg, "args": args})
    record.__dict__.update(extra)
    return record


def test_json_formatter_renders_message_and_extras():
    line = JSONFormatter().format(_record("Quarter %s closed", "q1-2025", quarter_id="q1-2025"))

    payload = json.loads(line)
    assert payload["message"] == "Quarter q1-2025 closed"
    assert payload["logger"] == "crm"
    assert payload["quarter_id"] == "q1-2025"
    assert "exception" not in payload


def test_json_formatter_includes_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.makeLogRecord({"name": "crm", "msg": "failed"})
        record.exc_info = sys.exc_info()

    payload = json.loads(JSONFormatter().format(record))

    assert "RuntimeError: boom" in payload["exception"]
