import logging
import sys
from typing import TextIO


class Log:
    """Centralized logging for the intake pipeline, API and CLI."""

    _logger: logging.Logger = logging.getLogger("invoice_intake")
    _handler: logging.StreamHandler | None = None

    @classmethod
    def configure(cls, log_level: str, stream: TextIO | None = None) -> None:
        """Set the level and (re)bind the single stream handler, stdout by default.

        Calling again replaces the handler instead of stacking a second one.
        """
        cls._logger.setLevel(log_level.upper())
        if cls._handler is not None:
            cls._logger.removeHandler(cls._handler)
        cls._handler = logging.StreamHandler(stream or sys.stdout)
        cls._handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        cls._logger.addHandler(cls._handler)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def exception(cls, message: str, **kwargs: object) -> None:
        """Log at error level with the active exception's traceback."""
        cls._logger.exception(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=kwargs)
