"""Logging setup for perch applications.

Every module logs through a ``perch.*`` logger (``perch.dispatch``,
``perch.response``, ``perch.server``). ``configure_logging`` attaches
handlers to the ``perch`` parent logger once per process.
"""

import logging
from pathlib import Path

from perch.config import AppConfig

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_MARK = "_perch_handler"


def configure_logging(config: AppConfig) -> logging.Logger:
    """Attach a stream handler and, if configured, an append-only file handler.

    Calling this more than once replaces the handlers it added earlier;
    handlers installed by the host application are left alone.
    """
    logger = logging.getLogger("perch")
    logger.setLevel(config.log_level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if config.log_file is not None:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        # Only failures go to the log file
        file_handler.setLevel(logging.ERROR)
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)

    return logger
