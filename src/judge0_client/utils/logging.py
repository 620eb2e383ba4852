import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

PACKAGE_LOGGER = "judge0_client"
# third-party loggers that echo every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(*, level: int = logging.DEBUG, json_logs: bool = False) -> None:
    """
    Route the client's structlog events to stderr.

    Parameters
    ----------
    level : int, optional
        Level of the ``judge0_client`` logger.
    json_logs : bool, optional
        Render one JSON object per event instead of the console format.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stderr)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    renderer: structlog.typing.Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # token/batch_size bound by poll loops
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@contextmanager
def logging_context(**required_context) -> Iterator[None]:
    current = structlog.contextvars.get_contextvars()
    to_bind = {k: v for k, v in required_context.items() if k not in current}

    if to_bind:
        with structlog.contextvars.bound_contextvars(**to_bind):
            yield
    else:
        yield
