import logging
import os

from mapreduce.framework.errors import InvalidTaskError


DEFAULT_INTERMEDIATE_DIR = '.'
DEFAULT_DECODE_CHUNK_SIZE = 64 * 1024
DEFAULT_LOG_LEVEL = 'INFO'

LOG_FORMAT = '[%(asctime)s] %(message)s'


def intermediate_dir(value=None):
    """Directory holding intermediate files (argument, then env, then default)."""
    if value:
        return value
    return os.environ.get('MAPREDUCE_INTERMEDIATE_DIR', DEFAULT_INTERMEDIATE_DIR)


def decode_chunk_size(value=None):
    """Characters read per decoder refill."""
    if value is None:
        value = os.environ.get('MAPREDUCE_DECODE_CHUNK_SIZE', DEFAULT_DECODE_CHUNK_SIZE)
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise InvalidTaskError(f"decode chunk size must be an integer, got {value!r}")
    if size <= 0:
        raise InvalidTaskError(f"decode chunk size must be positive, got {size}")
    return size


class ConsoleHandler(logging.StreamHandler):
    """Stream handler installed by configure_logging."""


def configure_logging(level=None):
    """Attach a console handler to the package logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    level = level or os.environ.get('MAPREDUCE_LOG_LEVEL', DEFAULT_LOG_LEVEL)
    logger = logging.getLogger('mapreduce')
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(isinstance(h, ConsoleHandler) for h in logger.handlers):
        handler = ConsoleHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
