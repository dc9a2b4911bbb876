"""Logging configuration helpers."""

import logging

CONTEXT_FIELDS = ("operation", "user_id", "asset_id", "error_kind", "path")


class ContextFormatter(logging.Formatter):
    """Formatter that appends request context passed through ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        if not context:
            return message
        return f"{message} [{' '.join(context)}]"


def configure_logging(level: str = "INFO") -> None:
    """Configure the application logger with a single stream handler."""
    logger = logging.getLogger("user_accounts")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
