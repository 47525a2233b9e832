"""Small helpers: value type names, directory listing and logger setup."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

LOGGER_NAME = "driverbox"

_EDGEX_VALUE_TYPES = {"int": "Int64", "float": "Float64", "string": "String"}

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def point_value_type_to_edgex(value_type: str) -> str:
    """Map ``int``/``float``/``string`` (any case) to Int64/Float64/String; others pass through."""
    return _EDGEX_VALUE_TYPES.get(value_type.lower(), value_type)


def _walk_dirs(path: str) -> Iterator[str]:
    yield path
    with os.scandir(path) as entries:
        children = sorted(
            (entry for entry in entries if entry.is_dir(follow_symlinks=False)),
            key=lambda entry: entry.name,
        )
    for child in children:
        yield from _walk_dirs(child.path)


def get_child_dirs(path: str | os.PathLike) -> list[str]:
    """Return ``path`` and every directory below it, depth first in lexical order."""
    path = os.fspath(path)
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    if not os.path.isdir(path):
        return []
    return list(_walk_dirs(path))


def logger_level(level: str) -> int:
    """Return the logging level for a name; unknown names mean debug."""
    return _LEVELS.get(level, logging.DEBUG)


class _Handler(logging.StreamHandler):
    pass


def init_logger(level: str) -> logging.Logger:
    """Configure and return the package logger at the named level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logger_level(level))
    for handler in [h for h in logger.handlers if isinstance(h, _Handler)]:
        logger.removeHandler(handler)
    handler = _Handler()
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s.%(msecs)03d | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger