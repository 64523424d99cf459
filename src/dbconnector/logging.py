import logging
import sys
import typing as t

import structlog


Logger: t.TypeAlias = structlog.stdlib.BoundLogger


class LoggingConfig(t.TypedDict):
    level: int


# SQLAlchemy logs every statement and pool event at INFO
LOGGERS: t.Dict[str, LoggingConfig] = {
    "sqlalchemy.engine": {
        "level": logging.WARNING,
    },
    "sqlalchemy.pool": {
        "level": logging.WARNING,
    },
}


def get_logger(name: str) -> Logger:
    """
    Get a logger with the given name.
    """
    return t.cast(Logger, structlog.getLogger(name))


def structlog_processors(as_json: bool | None = None) -> t.List:
    """
    Get the structlog processors to use.

    :param as_json: Render JSON lines instead of the console format. Defaults
        to JSON unless stderr is a terminal.
    """
    if as_json is None:
        as_json = not sys.stderr.isatty()

    processors: t.List = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if not as_json:
        return processors + [structlog.dev.ConsoleRenderer()]

    return processors + [
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]


def configure(
    loggers: t.Dict[str, LoggingConfig] | None = None,
    as_json: bool | None = None,
) -> None:
    """
    Configure structlog on top of the standard library logging.

    Applications that configure structlog themselves don't need to call this.
    """
    structlog.configure(
        processors=structlog_processors(as_json),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name, config in {**LOGGERS, **(loggers or {})}.items():
        logging.getLogger(name).setLevel(config["level"])
