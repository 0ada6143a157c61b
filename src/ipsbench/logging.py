"""Logging setup for ipsbench.

Diagnostics go to stderr so that progress lines, comparison output and
``--format raw`` tables on stdout stay machine-readable.  The console
level follows the verbose/quiet flags; an optional file handler always
logs at DEBUG.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

_LOGGER_NAME = "ipsbench"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "ipsbench: %(levelname)s: %(message)s"


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Return the console log level for the CLI flags.

    ``--quiet`` hides progress lines, so it also hides INFO chatter.
    ``--verbose`` wins when both are given.
    """
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure and return the ipsbench logger.

    Args:
        verbose: Log DEBUG records to the console.
        quiet: Only log warnings and errors to the console.
        log_file: Also write every record to this file.  Missing parent
            directories are created.
        stream: Console stream.  Defaults to ``sys.stderr``.

    Returns:
        The configured ``ipsbench`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    # Records stop here; a host application's root handlers would
    # otherwise print them a second time.
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console.setLevel(console_level(verbose=verbose, quiet=quiet))
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)
        logger.debug("Logging to %s", log_file)

    return logger
