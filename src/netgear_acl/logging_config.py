"""Logging setup: rich console output plus a durable warning log."""

import logging
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_FILE = Path.home() / '.netgear-acl' / 'logs' / 'netgear_acl.log'

FILE_FORMAT = '{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[logger_name]} | {message}'

_file_sink_id: int | None = None


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(exception=record.exc_info).bind(logger_name=record.name).log(
            level, record.getMessage()
        )


def remove_file_sink() -> None:
    """Close the log file sink, if one is installed."""
    global _file_sink_id
    if _file_sink_id is not None:
        logger.remove(_file_sink_id)
        _file_sink_id = None


def configure_logging(
    log_file: str | None = None,
    debug: bool = False,
    console: Console | None = None,
) -> None:
    """Configure console and file logging for the package.

    Every warning and error is written to the log file as well as the console,
    so operators can review what was skipped after the fact.

    Args:
        log_file: Path to log file (defaults to ~/.netgear-acl/logs/netgear_acl.log)
        debug: Show debug messages on the console
        console: Rich console to log to (defaults to stderr)
    """
    global _file_sink_id

    # Remove default handler
    logger.remove()
    _file_sink_id = None

    path = Path(log_file).expanduser() if log_file else DEFAULT_LOG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    logger.configure(extra={'logger_name': ''})
    _file_sink_id = logger.add(
        str(path),
        format=FILE_FORMAT,
        rotation='10 MB',
        retention='7 days',
        compression='gz',
        level='WARNING',
        backtrace=True,
        diagnose=False,
    )

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=debug,
    )
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)

    file_handler = InterceptHandler()
    file_handler.setLevel(logging.WARNING)

    package_logger = logging.getLogger('netgear_acl')
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    package_logger.addHandler(console_handler)
    package_logger.addHandler(file_handler)
    package_logger.propagate = False
