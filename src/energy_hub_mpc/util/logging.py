"""Centralized logger configuration for the energy hub controller.

Every module obtains its logger through `LoggingUtil.get_logger(__name__)` so
that the closed-loop simulation, the problem builder and the solver adapter
all share one format. The level is read from the `LOGLEVEL` environment
variable.
"""

import logging
import os


class LoggingUtil:
    """Hands out loggers that share the energy hub log format and level."""

    LOG_FORMAT = "%(asctime)s - [%(name)s][%(levelname)s] %(message)s"

    @staticmethod
    def get_logger(logger_name: str) -> logging.Logger:
        """Retrieves a configured logger instance.

        The logger's level is determined by the 'LOGLEVEL' environment variable.
        If 'LOGLEVEL' is not set or is not a known level name, it defaults to INFO.

        Args:
            logger_name: The name of the logger to retrieve (typically `__name__`
                         of the calling module).

        Returns:
            A configured `logging.Logger` instance.
        """
        logger = logging.getLogger(logger_name)
        log_level = os.getenv("LOGLEVEL", "INFO").upper()

        if log_level not in logging.getLevelNamesMapping():
            log_level = "INFO"

        logger.setLevel(log_level)

        # Handlers are attached once per logger name
        if not logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(LoggingUtil.LOG_FORMAT))
            logger.addHandler(console_handler)

        return logger
