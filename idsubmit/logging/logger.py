import logging
import sys


class Log:
    """Centralized logging for the submission pipeline.

    Keyword arguments are attached to the record as ``extra`` and also rendered
    as a ``key=value`` suffix, so attempt numbers and byte counts stay visible
    with the plain stdout formatter.
    """

    _logger: logging.Logger = logging.getLogger("idsubmit")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level and attach a single stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **context: object) -> None:
        """Log an info message."""
        cls._logger.info(cls._render(message, context), extra=context)

    @classmethod
    def error(cls, message: str, **context: object) -> None:
        """Log an error message."""
        cls._logger.error(cls._render(message, context), extra=context)

    @classmethod
    def warning(cls, message: str, **context: object) -> None:
        """Log a warning message."""
        cls._logger.warning(cls._render(message, context), extra=context)

    @classmethod
    def debug(cls, message: str, **context: object) -> None:
        """Log a debug message."""
        cls._logger.debug(cls._render(message, context), extra=context)

    @staticmethod
    def _render(message: str, context: dict[str, object]) -> str:
        if not context:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{message} [{suffix}]"
