"""Unit tests for the logging formatters, filter and ColorLogger."""
import logging

import pytest

from shared.logging.logging_setup import ColorLogger, ConsoleFormatter, PdfWarningFilter, TimezoneFormatter


def _record(level: int, msg: str, name: str = "pdfchat", **extra) -> logging.LogRecord:
    record = logging.LogRecord(name, level, __file__, 1, msg, ("x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestFormatters:

    def test_prefixes_warnings_and_errors(self):
        formatter = TimezoneFormatter("UTC", "%(message)s")

        assert formatter.format(_record(logging.INFO, "plain %s")) == "plain x"
        assert formatter.format(_record(logging.WARNING, "careful %s")) == "⚠️ careful x"
        assert formatter.format(_record(logging.ERROR, "broken %s")) == "⛔ broken x"

    def test_original_record_is_untouched(self):
        formatter = TimezoneFormatter("UTC", "%(message)s")
        record = _record(logging.ERROR, "broken %s")

        formatter.format(record)

        assert record.msg == "broken %s"
        assert record.args == ("x",)

    def test_color_applied_only_when_requested(self):
        formatter = ConsoleFormatter("UTC", "%(message)s")

        assert formatter.format(_record(logging.INFO, "done %s", color="green")) == "\033[32mdone x\033[0m"
        assert formatter.format(_record(logging.INFO, "done %s")) == "done x"

    def test_pypdf_warnings_are_dropped(self):
        pdf_filter = PdfWarningFilter()

        assert pdf_filter.filter(_record(logging.WARNING, "repair %s", name="pypdf._reader")) is False
        assert pdf_filter.filter(_record(logging.ERROR, "fatal %s", name="pypdf._reader")) is True
        assert pdf_filter.filter(_record(logging.WARNING, "other %s", name="pdfchat")) is True


@pytest.mark.unit
class TestColorLogger:

    def test_color_travels_as_extra(self, caplog):
        logger = ColorLogger(logging.getLogger("tests.color"))

        with caplog.at_level(logging.INFO, logger="tests.color"):
            logger.info("ingested %s", "doc-1", color="cyan")
            logger.info("plain")

        assert caplog.records[0].color == "cyan"
        assert caplog.records[0].getMessage() == "ingested doc-1"
        assert not hasattr(caplog.records[1], "color")

    def test_delegates_other_attributes(self):
        logger = ColorLogger(logging.getLogger("tests.delegate"))

        assert logger.name == "tests.delegate"
