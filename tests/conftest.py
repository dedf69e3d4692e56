"""
tests/conftest.py
Shared fixtures. A fixed receipt timestamp keeps every parse deterministic.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from dhansetu.core.config import get_settings
from dhansetu.features.categories.service import KeywordCategorySuggester
from dhansetu.features.sms.extractor import RuleBasedSmsExtractor
from dhansetu.features.sms.service import SmsParserService

# 2024-11-25 10:15:30 Asia/Kolkata
RECEIVED_AT_MS = 1732509930000


@pytest.fixture
def extractor():
    return RuleBasedSmsExtractor()


@pytest.fixture
def tz():
    return ZoneInfo(get_settings().TIMEZONE)


@pytest.fixture
def received_at(tz):
    return datetime.fromtimestamp(RECEIVED_AT_MS / 1000, tz)


@pytest.fixture
def service(extractor):
    return SmsParserService(extractor=extractor, suggester=KeywordCategorySuggester())
