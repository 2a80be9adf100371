#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>


from __future__ import annotations

import logging as logthings
import sys

APP_LOGGER_NAME = "ecs-topology"


class MyFormatter(logthings.Formatter):
    default_format = "%(asctime)s [%(levelname)8s] %(message)s"
    debug_format = "%(asctime)s [%(levelname)8s] (%(filename)s.%(lineno)d , %(funcName)s,) %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    def format(self, record) -> str:
        if record.levelno == logthings.DEBUG:
            formatter = logthings.Formatter(self.debug_format, self.date_format)
        else:
            formatter = logthings.Formatter(self.default_format, self.date_format)
        return formatter.format(record)


class InfoFilter(logthings.Filter):
    """Lets through DEBUG and INFO records only, for stdout"""

    def filter(self, rec):
        return rec.levelno in (logthings.DEBUG, logthings.INFO)


class ErrorFilter(logthings.Filter):
    """Lets through WARNING and above, for stderr"""

    def filter(self, rec):
        return rec.levelno not in (logthings.DEBUG, logthings.INFO)


def setup_logging():
    """
    Sets the application logger with two handlers: informational records go to stdout,
    warnings and errors go to stderr.

    :return: the application logger
    :rtype: logging.Logger
    """
    app_logger = logthings.getLogger(APP_LOGGER_NAME)

    for h in list(app_logger.handlers):
        app_logger.removeHandler(h)

    stdout_handler = logthings.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(MyFormatter())
    stdout_handler.setLevel(logthings.INFO)
    stdout_handler.addFilter(InfoFilter())

    stderr_handler = logthings.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(MyFormatter())
    stderr_handler.setLevel(logthings.WARNING)
    stderr_handler.addFilter(ErrorFilter())

    app_logger.addHandler(stdout_handler)
    app_logger.addHandler(stderr_handler)
    app_logger.setLevel(logthings.INFO)
    return app_logger


def set_log_level(level: str) -> bool:
    """
    Changes the level of the application logger and of its stdout handler

    :param str level: name of the level, i.e. DEBUG
    :return: whether the level was valid and applied
    """
    valid_levels = [
        "FATAL",
        "CRITICAL",
        "ERROR",
        "WARNING",
        "WARN",
        "INFO",
        "DEBUG",
    ]
    if level.upper() not in valid_levels:
        return False
    LOG.setLevel(logthings.getLevelName(level.upper()))
    LOG.handlers[0].setLevel(logthings.getLevelName(level.upper()))
    return True


LOG = setup_logging()
