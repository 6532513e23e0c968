"""Centralized logging configuration for the tinyshrink application.

Sets up standard Python logging with appropriate levels, formatters,
handlers (console, optional file) and a filter that keeps API secrets
out of every log record.
"""

import logging
import re
import sys
from typing import Iterable, Optional

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = None
REDACTED = "***"

_AUTH_HEADER_PATTERN = re.compile(r"(Basic|Bearer)\s+[A-Za-z0-9+/=._-]+")


class SecretRedactingFilter(logging.Filter):
    """Masks known secrets and Authorization header values in log messages."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def add_secret(self, secret: str) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return _AUTH_HEADER_PATTERN.sub(lambda m: f"{m.group(1)} {REDACTED}", text)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = DEFAULT_LOG_FILE,
    secrets: Iterable[str] = (),
) -> SecretRedactingFilter:
    """Configures the root logger for the application.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG, logging.INFO).
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output.
        secrets: Values that must never appear in log output (e.g. the API key).

    Returns:
        The redacting filter attached to every handler, so callers can
        register secrets learned later.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers attached to the root logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)
    redactor = SecretRedactingFilter(secrets)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(redactor)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}")
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(redactor)
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))
    logging.info(f"Logging configured. Level={logging.getLevelName(log_level)}")
    return redactor
