from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Package logging: one labeled stdout handler on the ``sheet_orders`` logger.

Lines read ``LABEL message`` with LABEL one of DEBUG|INFO|WARN|ERROR|SUMMARY,
so status changes of the import session, backend warnings and the final
SUMMARY line share one stream. Modules log through
``logging.getLogger(__name__)``; their records reach the handler installed
here because every module lives below ``sheet_orders``.
"""

__all__ = [
    "LabeledFormatter",
    "setup_logging",
    "enable_debug",
    "get_logger",
    "log_summary",
    "reset_logging",
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
]

LOGGER_NAME = "sheet_orders"

# between INFO (20) and WARNING (30)
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``; WARNING is shortened to WARN."""

    LEVEL_LABELS = {
        logging.WARNING: "WARN",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        text = f"{label} {record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Install the labeled handler once and return the package logger.

    Args:
        level: level of both the logger and its handler
        stream: output stream, stdout when omitted (resolved at call time so
            that captured stdout in tests is honoured)
    """
    global _logger
    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    _drop_handlers(logger)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(LabeledFormatter())
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    # 不向 root 传播, 避免重复输出
    logger.propagate = False

    _logger = logger
    return logger


def enable_debug(logger: logging.Logger | None = None) -> None:
    """Lower the package logger and its handlers to DEBUG (``--debug``)."""
    logger = logger or get_logger()
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


def reset_logging() -> None:
    """Forget the configured logger and detach its handler (used by tests)."""
    global _logger
    _drop_handlers(logging.getLogger(LOGGER_NAME))
    _logger = None
