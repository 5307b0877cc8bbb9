# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for logging setup and the error taxonomy
"""

import json
import logging
import pytest

from binstash.core.errors import (
    AmbiguousPackageError,
    BinstashError,
    NetworkError,
    NotFoundError,
    ParseError,
    StorageError,
    UserAbortedError,
    format_error_for_user,
)
from binstash.core.logging import JSONFormatter, configure_logging, log_event


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by configure_logging"""
    yield
    logger = logging.getLogger("binstash")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class TestLogging:
    """Test logging configuration"""

    def test_json_formatter_includes_extra_fields(self):
        record = logging.LogRecord("binstash.test", logging.INFO, __file__, 1, "download_complete", None, None)
        record.target = "owner/tool"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "download_complete"
        assert data["level"] == "INFO"
        assert data["target"] == "owner/tool"
        assert "pathname" not in data

    def test_configure_logging_single_handler(self, temp_dir):
        configure_logging("DEBUG", "json")
        logger = configure_logging("WARNING", "text", log_file=temp_dir / "logs" / "binstash.log")

        assert logger.name == "binstash"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 2
        assert logger.propagate is False

    def test_log_event_writes_fields(self, temp_dir):
        log_file = temp_dir / "events.log"
        configure_logging("INFO", "text", log_file=log_file)

        log_event(logging.getLogger("binstash.tests"), "package_installed", package="jq", version="1.7")
        for handler in logging.getLogger("binstash").handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert entry["message"] == "package_installed"
        assert entry["package"] == "jq"


class TestErrors:
    """Test error taxonomy"""

    @pytest.mark.parametrize("error,code", [
        (NotFoundError("Package", "jq"), 2),
        (AmbiguousPackageError("jq", ["a", "b"]), 3),
        (NetworkError("down", url="https://x"), 4),
        (ParseError("bad", value="?"), 5),
        (StorageError("full", path="/tmp"), 6),
        (UserAbortedError(), 130),
    ])
    def test_exit_codes(self, error, code):
        assert isinstance(error, BinstashError)
        assert error.exit_code == code

    def test_not_found_message(self):
        assert NotFoundError("Package", "jq").message == "Package not found: jq"

    def test_to_dict(self):
        data = AmbiguousPackageError("jq", ["a", "b"]).to_dict()
        assert data["error"] == "AmbiguousPackageError"
        assert data["details"]["candidates"] == ["a", "b"]

    def test_format_error_for_user(self):
        assert format_error_for_user(ParseError("Invalid regex")) == "Invalid regex"
        assert format_error_for_user(ValueError("oops")) == "ValueError: oops"
