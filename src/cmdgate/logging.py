"""structlog configuration for cmdgate.

Every module logs through ``get_logger(__name__)`` with dotted event names and
keyword fields. Fields bound with ``dispatch_context`` ride along on every
line logged while a command runs.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def setup_logging(*, debug: bool = False, log_json: bool = False) -> None:
    """Route structlog through stdlib logging on stderr.

    Args:
        debug: Enable DEBUG output for cmdgate loggers. Otherwise INFO+.
        log_json: Render JSON lines instead of the console renderer.
    """
    level = logging.DEBUG if debug else logging.INFO

    renderers: list[structlog.types.Processor]
    if log_json:
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("cmdgate").setLevel(level)
    # py-cord is chatty at INFO
    logging.getLogger("discord").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name or "cmdgate")


def dispatch_context(**fields: Any) -> AbstractContextManager[None]:
    """Bind ``fields`` for the duration of a block, restoring prior values after.

    None values are skipped. Fields the caller bound beforehand survive.
    """
    return structlog.contextvars.bound_contextvars(
        **{key: value for key, value in fields.items() if value is not None}
    )
