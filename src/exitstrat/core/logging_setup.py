"""Handler wiring for the ``exitstrat`` package logger.

Engine modules only call ``logging.getLogger(__name__)``.  Their records
propagate to the ``exitstrat`` logger, which is the one place handlers are
attached, by whichever entry point runs the engines.  Level and file output
come from :class:`~exitstrat.core.config.EngineConfig` (``log_level``,
``log_to_file``) and may be overridden on the command line.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from exitstrat.core.constants import LOG_LEVELS
from exitstrat.core.exceptions import ConfigError

PACKAGE_LOGGER = "exitstrat"
LOG_FILENAME = "exitstrat.log"

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
_CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"

_ROTATE_BYTES = 5 * 1024 * 1024
_ROTATE_KEEP = 3

# Marks handlers owned by configure_logging so reconfiguring only swaps ours.
_OWNED = "_exitstrat_owned"


def parse_level(level: str | int) -> int:
    """Map ``"debug"`` / ``"info"`` / ``"warning"`` / ``"error"`` to a level number."""
    if isinstance(level, int):
        return level
    name = str(level).strip().lower()
    if name not in LOG_LEVELS:
        raise ConfigError(f"unknown log level {level!r} (expected one of {', '.join(LOG_LEVELS)})")
    return getattr(logging, name.upper())


def configure_logging(
    level: str | int = "info",
    log_dir: Path | None = None,
    to_file: bool = True,
) -> logging.Logger:
    """Attach console (and optionally rotating file) handlers to the package logger.

    Calling it again replaces the handlers from the previous call, so an
    entry point can reconfigure after loading its settings.  Returns the
    ``exitstrat`` logger.
    """
    numeric = parse_level(level)
    reset_logging()

    root = logging.getLogger(PACKAGE_LOGGER)
    root.setLevel(numeric)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    _attach(root, console)

    if to_file:
        directory = log_dir if log_dir is not None else Path("logs")
        try:
            directory.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                directory / LOG_FILENAME,
                maxBytes=_ROTATE_BYTES,
                backupCount=_ROTATE_KEEP,
                encoding="utf-8",
            )
        except OSError as exc:
            root.warning("File logging disabled, cannot write to %s: %s", directory, exc)
        else:
            file_handler.setFormatter(logging.Formatter(_FORMAT))
            _attach(root, file_handler)

    return root


def reset_logging() -> None:
    """Detach and close the handlers added by :func:`configure_logging`."""
    root = logging.getLogger(PACKAGE_LOGGER)
    for handler in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _OWNED, True)
    logger.addHandler(handler)
