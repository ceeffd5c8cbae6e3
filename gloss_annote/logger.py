# gloss_annote/logger.py
from __future__ import annotations

import datetime
import logging
import os
import sys
from typing import Optional

import termcolor

__appname__ = "gloss_annote"


COLORS = {
    "WARNING": "yellow",
    "INFO": "white",
    "DEBUG": "blue",
    "CRITICAL": "red",
    "ERROR": "red",
}


class ColoredFormatter(logging.Formatter):
    def __init__(self, fmt, use_color=True):
        logging.Formatter.__init__(self, fmt)
        self.use_color = use_color

    def format(self, record):
        levelname = record.levelname
        if self.use_color and levelname in COLORS:

            def colored(text):
                return termcolor.colored(
                    text,
                    color=COLORS[levelname],
                    attrs=["bold"],
                )

            record.levelname2 = colored("{:<7}".format(record.levelname))
            record.message2 = colored(record.getMessage())

            asctime2 = datetime.datetime.fromtimestamp(record.created)
            record.asctime2 = termcolor.colored(str(asctime2), color="green")

            record.module2 = termcolor.colored(record.module, color="cyan")
            record.funcName2 = termcolor.colored(record.funcName, color="cyan")
            record.lineno2 = termcolor.colored(str(record.lineno), color="cyan")
        else:
            record.levelname2 = "{:<7}".format(record.levelname)
            record.message2 = record.getMessage()
            record.module2 = record.module
            record.funcName2 = record.funcName
            record.lineno2 = str(record.lineno)
        return logging.Formatter.format(self, record)


logger = logging.getLogger(__appname__)
logger.setLevel(logging.INFO)

# stderr handler is always present; the file handler is opt-in (see enable_file_logging)
stream_handler = logging.StreamHandler(sys.stderr)
stream_handler.setFormatter(
    ColoredFormatter(
        "%(asctime)s [%(levelname2)s] %(module2)s:%(funcName2)s:%(lineno2)s"
        "- %(message2)s",
        use_color=sys.stderr.isatty(),
    )
)
logger.addHandler(stream_handler)


def default_log_dir() -> str:
    return os.path.join(os.path.expanduser("~"), f"{__appname__}_logs")


def enable_file_logging(log_dir: Optional[str] = None) -> str:
    """
    Adds a dated log file handler, e.g. ~/gloss_annote_logs/gloss_annote_2024-01-31.log.
    Returns the log file path. Calling it twice does not add a second handler.
    """
    log_dir = log_dir or default_log_dir()
    os.makedirs(log_dir, exist_ok=True)
    current_date = datetime.datetime.now().strftime("%Y-%m-%d")
    path = os.path.join(log_dir, f"{__appname__}_{current_date}.log")

    for h in logger.handlers:
        if isinstance(h, logging.FileHandler) and os.path.abspath(h.baseFilename) == os.path.abspath(path):
            return path

    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(module)s:%(funcName)s:%(lineno)d - %(message)s")
    )
    logger.addHandler(file_handler)
    return path
