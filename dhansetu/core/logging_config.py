import logging
import sys
import os
import re
from logging.handlers import RotatingFileHandler

from dhansetu.core.config import get_settings

# PII Patterns (Sync with RemoteCategorySuggester)
PII_PATTERNS = {
    'UPI': re.compile(r'[a-zA-Z0-9.\-_]{2,}@[a-zA-Z]{2,}'),
    'EMAIL': re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b'),
    'PHONE': re.compile(r'(?:\+?91|0)?[6-9]\d{9}'),
    'CARD': re.compile(r'(?:\d[ -]*?){12,19}'),
    'ACCOUNT': re.compile(r'[Xx]+\d{3,6}'),
    'PAN': re.compile(r'[A-Z]{5}[0-9]{4}[A-Z]{1}'),
    'AADHAAR': re.compile(r'\d{4}\s\d{4}\s\d{4}'),
}

GREETING_PATTERN = re.compile(r'(?i)(Dear|Hello|Hi)\s+[A-Za-z\s]+,')


def scrub_pii(message: str) -> str:
    """Mask greeting names and account/card/contact identifiers."""
    if not message:
        return message
    message = GREETING_PATTERN.sub(r'\1 Customer,', message)
    for label, pattern in PII_PATTERNS.items():
        message = pattern.sub(f'<{label}>', message)
    return message


class PIISanitizingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return scrub_pii(super().format(record))


def setup_logging():
    settings = get_settings()
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = PIISanitizingFormatter(log_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    # File logging only when running locally
    if settings.ENVIRONMENT == "local":
        log_dir = "logs"
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        log_file = os.path.join(log_dir, "app.log")
        file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=5)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    for h in root_logger.handlers[:]:
        root_logger.removeHandler(h)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        handlers=handlers
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


