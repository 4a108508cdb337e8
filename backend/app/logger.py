# backend/app/logger.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "swiftnotes"

_FORMAT = "%(asctime)s | %(name)-12s | %(levelname)-8s | %(message)s"


def setup_logging(
    level: int = logging.INFO,
    *,
    file_path: Optional[Union[str, Path]] = None,
    file_level: Optional[int] = None,
) -> logging.Logger:
    """
    Attach console (and optionally rotating file) handlers to the package logger.

    Library code only ever calls logging.getLogger("swiftnotes"); the hosting
    application decides whether and where records go by calling this once.
    Calling it again replaces the handlers installed by the previous call.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(min(level, file_level) if file_level is not None else level)

    for handler in list(logger.handlers):
        if getattr(handler, "_swiftnotes", False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    console._swiftnotes = True  # type: ignore[attr-defined]
    logger.addHandler(console)

    if file_path:
        fp = Path(file_path)
        fp.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(fp, maxBytes=5 * 1024 * 1024, backupCount=2, encoding="utf-8")
        fh.setLevel(file_level if file_level is not None else level)
        fh.setFormatter(formatter)
        fh._swiftnotes = True  # type: ignore[attr-defined]
        logger.addHandler(fh)

    return logger
