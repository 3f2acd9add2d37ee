import json
import logging
from unittest.mock import MagicMock

import pytest

from talenthub.logging_config import JSONFormatter, SensitiveDataFilter, log_structured, setup_logging


def make_record(msg, args=None, **extra):
    record = logging.LogRecord("talenthub.test", logging.INFO, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_sensitive_filter_masks_emails_and_secrets():
    record = make_record("search by ada@example.com with api_key set")

    assert SensitiveDataFilter().filter(record)
    assert "ada@example.com" not in record.msg
    assert "****@****" in record.msg
    assert "api_key" not in record.msg


def test_sensitive_filter_masks_format_arguments():
    record = make_record("Searching for %s with %s", ("ada@example.com", "token=abc"))

    assert SensitiveDataFilter().filter(record)

    message = JSONFormatter().format(record)
    assert "ada@example.com" not in message
    assert "token" not in message
    assert json.loads(message)["message"] == "Searching for ****@**** with ****REDACTED****=abc"


def test_json_formatter_includes_extra():
    record = make_record("Search returned 3 results", extra={"tier": "starter-monthly"})

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Search returned 3 results"
    assert data["level"] == "INFO"
    assert data["tier"] == "starter-monthly"


def test_setup_logging_writes_to_log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_DIR", str(tmp_path))

    logger = setup_logging("talenthub.test_setup", level="debug")

    assert logger.level == logging.DEBUG
    assert (tmp_path / "talenthub.test_setup.log").exists()
    for handler in logger.handlers:
        handler.close()


def test_log_structured_appends_data():
    logger = MagicMock()

    log_structured(logger, "info", "Import finished", {"success": 2}, source="api")

    logger.info.assert_called_once_with('Import finished {"success": 2} {"source": "api"}')


def test_log_structured_rejects_unknown_level():
    with pytest.raises(ValueError):
        log_structured(logging.getLogger("talenthub.test"), "loud", "message")
