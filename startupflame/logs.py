from __future__ import annotations

import logging
import sys

from typing import Optional

FILE_FORMAT = "%(asctime)s [%(funcName)-12.12s] [%(levelname)-5.5s]  %(message)s"


class ConsoleFormatter(logging.Formatter):
    """Bare messages at INFO, ``LEVEL: message`` for everything else"""
    def __init__(self) -> None:
        super().__init__("%(levelname)s: %(message)s")
        self.info_formatter = logging.Formatter("%(message)s")

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return self.info_formatter.format(record)
        return super().format(record)


fileHandler: Optional[logging.Handler] = None
consoleHandler: Optional[logging.Handler] = None


def init_logging(verbose: bool, log_path: Optional[str] = None) -> None:
    """logging setup: safe to call more than once, earlier handlers are replaced.

    The console goes to stderr because stdout may be carrying the folded stacks.
    If 'log_path' is set, everything is also logged to that file.
    """
    global fileHandler
    global consoleHandler

    rootLogger = logging.getLogger()
    rootLogger.setLevel(logging.NOTSET)  # capture everything

    if fileHandler is not None:
        rootLogger.removeHandler(fileHandler)
        fileHandler.close()
        fileHandler = None

    if log_path is not None:
        fileHandler = logging.FileHandler(log_path)
        fileHandler.setFormatter(logging.Formatter(FILE_FORMAT))
        fileHandler.setLevel(logging.NOTSET)  # log everything to file
        rootLogger.addHandler(fileHandler)

    if consoleHandler is not None:
        rootLogger.removeHandler(consoleHandler)

    consoleHandler = logging.StreamHandler(stream=sys.stderr)
    consoleHandler.setFormatter(ConsoleFormatter())
    if verbose:
        consoleHandler.setLevel(logging.NOTSET)  # show everything
    else:
        consoleHandler.setLevel(logging.INFO)  # show only INFO and greater in console

    rootLogger.addHandler(consoleHandler)
