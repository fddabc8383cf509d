"""Custom logging configuration that keeps bearer tokens out of log output."""

import logging
import re
from typing import Optional

from hekate.core.config import settings


class RedactBearerTokenFilter(logging.Filter):
    """Filter that masks bearer tokens in log records instead of dropping them."""

    TOKEN_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*")
    MASK = r"\1***"

    def filter(self, record: logging.LogRecord) -> bool:
        """Always keep the record, rewriting its message if a token shows up."""
        message = self._render(record)
        if message is None or "Bearer" not in message:
            return True

        record.msg = self.TOKEN_PATTERN.sub(self.MASK, message)
        record.args = None
        return True

    @staticmethod
    def _render(record: logging.LogRecord) -> Optional[str]:
        """Build the final message string, or None if the args don't format."""
        try:
            return record.getMessage()
        except (TypeError, ValueError):
            return None


def configure_logging(level: Optional[str] = None):
    """Configure client logging with token redaction."""
    logger = logging.getLogger(__name__)

    package_logger = logging.getLogger("hekate")
    package_logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        package_logger.addHandler(handler)

    filter_instance = RedactBearerTokenFilter()
    for handler in package_logger.handlers:
        if not any(isinstance(f, RedactBearerTokenFilter) for f in handler.filters):
            handler.addFilter(filter_instance)

    # Suppress external library INFO/DEBUG logs (keep WARNING+)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info(
        f"Logging configured at {logging.getLevelName(package_logger.level)} "
        "with bearer token redaction"
    )
