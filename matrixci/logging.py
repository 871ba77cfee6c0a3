"""
The basic logging module.
"""
import sys
import logging
from typing import Any

import structlog

from matrixci.config import const


class MatrixLogger:
    """
    Writes rendered log lines to stderr so that stdout only ever carries the
    pipeline report.
    """

    def __getstate__(self) -> str:
        return "stderr"

    def __setstate__(self, state: Any) -> None:
        pass

    def __deepcopy__(self, memodict: dict[Any, Any] = None) -> "MatrixLogger":
        return self.__class__()

    def msg(self, message: str) -> None:
        print(message, file=sys.stderr)

    log = debug = info = warn = warning = msg
    fatal = failure = err = error = critical = exception = msg


class MatrixLoggerFactory:
    def __init__(self):
        pass

    def __call__(self, *args) -> MatrixLogger:
        return MatrixLogger()


structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=False),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(const.log_level.upper())
    ),
    context_class=dict,
    logger_factory=MatrixLoggerFactory(),
    cache_logger_on_first_use=False,
)
logger = structlog.get_logger()
