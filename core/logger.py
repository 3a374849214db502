"""IdentityCenterLogger: singleton JSON logger with console and optional rotating file output.

Provides a single, project-wide logger instance that writes structured JSON to
stderr and, when a log directory is configured, to ``<dir>/identity_center.log``
with automatic rotation.  Stdout is left free for rendered documents.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional


class _JsonFormatter(logging.Formatter):
    """Format every log record as a single-line JSON object.

    Standard fields (timestamp, level, logger, message, module, func_name)
    are always present.  Any *extra* key-value pairs passed via the ``extra``
    parameter of a logging call are merged into the JSON object, so callers
    attach render context such as ``stage``, ``key`` or ``draft_count``.

    Example::

        logger.info("Stage finished", extra={"stage": "principals", "draft_count": 4})

    Produces::

        {"timestamp": "…", "level": "INFO", …, "stage": "principals", "draft_count": 4}
    """

    # Keys that belong to the standard LogRecord; everything else is extra.
    _BUILTIN_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
    )))

    def format(self, record: logging.LogRecord) -> str:
        """Serialize *record* to a JSON string."""
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }

        for key, value in record.__dict__.items():
            if key not in self._BUILTIN_ATTRS and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class IdentityCenterLogger:
    """Singleton logger with a console handler and an optional rotating file.

    Usage::

        from core.logger import IdentityCenterLogger

        logger = IdentityCenterLogger.get_logger()
        logger.info("Render started", extra={"composite": "acme"})
    """

    _instance: Optional["IdentityCenterLogger"] = None
    _logger: Optional[logging.Logger] = None

    _LOGGER_NAME: str = "identity_center"
    _LOG_FILE: str = "identity_center.log"
    _MAX_BYTES: int = 5 * 1024 * 1024  # 5 MB
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.INFO, log_dir: Optional[str] = None) -> "IdentityCenterLogger":
        """Ensure only one instance is ever created (Singleton)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_logger(level, log_dir)
        return cls._instance

    # ------------------------------------------------------------------
    # Initialisation helpers
    # ------------------------------------------------------------------

    def _init_logger(self, level: int, log_dir: Optional[str]) -> None:
        """Create the underlying :class:`logging.Logger` and attach handlers."""
        logger = logging.getLogger(self._LOGGER_NAME)
        logger.setLevel(level)
        logger.propagate = False
        self._logger = logger

        # Avoid duplicate handlers if the module is reloaded.
        if logger.handlers:
            return
        self._attach_handlers(logger, level, log_dir)

    def _attach_handlers(self, logger: logging.Logger, level: int, log_dir: Optional[str]) -> None:
        formatter = _JsonFormatter()

        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

        if not log_dir:
            return

        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, self._LOG_FILE),
            maxBytes=self._MAX_BYTES,
            backupCount=self._BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def get_logger(level: int = logging.INFO) -> logging.Logger:
        """Return the shared :class:`logging.Logger` instance.

        Creates the singleton on first call; subsequent calls return the
        same logger regardless of the *level* argument.  Use
        :meth:`configure` to change level or handlers afterwards.
        """
        IdentityCenterLogger(level)
        return logging.getLogger(IdentityCenterLogger._LOGGER_NAME)

    @classmethod
    def configure(cls, level: int = logging.INFO, log_dir: Optional[str] = None) -> logging.Logger:
        """Re-apply *level* and rebuild handlers on the shared logger.

        Module-level loggers obtained earlier keep working because they are
        the same :class:`logging.Logger` object.
        """
        instance = cls(level, log_dir)
        instance.cleanup()
        logger = logging.getLogger(cls._LOGGER_NAME)
        logger.setLevel(level)
        instance._attach_handlers(logger, level, log_dir)
        return logger

    def cleanup(self) -> None:
        """Flush and close all handlers attached to the logger."""
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)
