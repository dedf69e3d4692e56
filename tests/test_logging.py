"""
tests/test_logging.py
PII scrubbing for log output and outbound payloads.
"""

import logging

import pytest

from dhansetu.core.logging_config import PIISanitizingFormatter, scrub_pii, setup_logging


class TestScrubPii:

    @pytest.mark.parametrize("raw, expected", [
        ("Rs.500 debited from A/c XX1234", "Rs.500 debited from A/c <ACCOUNT>"),
        ("Paid to ravi@okaxis", "Paid to <UPI>"),
        ("Call 9876543210 for help", "Call <PHONE> for help"),
        ("PAN ABCDE1234F linked", "PAN <PAN> linked"),
        ("Dear Rahul Sharma, your card is ready", "Dear Customer, your card is ready"),
    ])
    def test_masks(self, raw, expected):
        assert scrub_pii(raw) == expected

    def test_empty(self):
        assert scrub_pii("") == ""

    def test_plain_text_untouched(self):
        assert scrub_pii("Rs.750 debited") == "Rs.750 debited"


class TestFormatter:

    def test_formatted_record_is_scrubbed(self):
        formatter = PIISanitizingFormatter("%(levelname)s - %(message)s")
        record = logging.LogRecord(
            "dhansetu", logging.INFO, __file__, 1,
            "Parsed SMS for A/c %s", ("XX9999",), None,
        )
        assert formatter.format(record) == "INFO - Parsed SMS for A/c <ACCOUNT>"


class TestSetupLogging:

    @pytest.fixture
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield root
        for h in root.handlers[:]:
            root.removeHandler(h)
        for h in handlers:
            root.addHandler(h)
        root.setLevel(level)

    def test_installs_sanitizing_formatter(self, restore_root):
        setup_logging()
        assert restore_root.handlers
        assert all(isinstance(h.formatter, PIISanitizingFormatter) for h in restore_root.handlers)
        assert logging.getLogger("httpx").level == logging.WARNING
