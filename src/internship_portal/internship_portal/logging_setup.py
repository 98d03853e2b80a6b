from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILE_NAME = "internship_portal.log"

_HANDLER_MARK = "_internship_portal_handler"


class _ThirdPartyNoiseFilter(logging.Filter):
    """Console: our own records at any level, libraries only from WARNING up."""

    def filter(self, record: logging.LogRecord) -> bool:
        if "internship_portal" in record.name:
            return True
        return record.levelno >= logging.WARNING


def setup_logging(*, level: Union[int, str] = logging.INFO, log_dir: Optional[Union[str, Path]] = None) -> None:
    """Install a console handler and, when ``log_dir`` is set, a file handler.

    Safe to call more than once: handlers added by an earlier call are replaced.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        if getattr(h, _HANDLER_MARK, False):
            root.removeHandler(h)
            h.close()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyNoiseFilter())
    setattr(ch, _HANDLER_MARK, True)
    root.addHandler(ch)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / LOG_FILE_NAME), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        setattr(fh, _HANDLER_MARK, True)
        root.addHandler(fh)

    logging.captureWarnings(True)
