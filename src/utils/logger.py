"""Logging configuration using Loguru."""

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[request_id]} | {name}:{line} - {message}"

NO_REQUEST = "-"


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """
    Install the console sink and, optionally, a rotating file sink.

    Records logged outside ``request_scope`` carry ``request_id="-"``.
    """
    logger.remove()
    logger.configure(extra={"request_id": NO_REQUEST})

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "memorag_{time:YYYY-MM-DD}.log",
            level=level,
            format=FILE_FORMAT,
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


def get_logger(name: str):
    return logger.bind(module=name)


@contextmanager
def request_scope(request_id: str) -> Iterator[None]:
    """Tag every record logged inside the block, across awaits, with request_id."""
    with logger.contextualize(request_id=request_id):
        yield


def log_event(event: str, level: str = "INFO", **fields: Any) -> None:
    """
    Emit a structured domain event such as ``CHAT_REQUEST`` or ``LLM_RETRY``.

    The event name is the message; fields are bound onto the record so the
    serialized file sink carries them under ``record.extra``. The record's
    location is the caller's, not this helper's.
    """
    logger.bind(event=event, **fields).opt(depth=1).log(level, event)
