"""Factories for application loggers and helper utilities."""

import traceback
from typing import Optional

from configs.env_config import Env
from utils.logger.config import LogLevel, LoggerConfig
from utils.logger.handlers.base import BaseLogHandler
from utils.logger.handlers.file import ErrorFileHandler, RotatingFileHandler
from utils.logger.handlers.webhook import WebhookHandler
from utils.logger.logger import Logger


class EnhancedLoggerFactory:
    """Convenience constructors for configured application loggers."""

    @staticmethod
    def create_application_logger(name: str = "dashboard",
                                  enable_stdout: bool = False,
                                  log_level: Optional[LogLevel] = None,
                                  base_dir: Optional[str] = None,
                                  webhook_url: Optional[str] = None) -> Logger:
        """Create a service logger with rotating file handlers.

        :param name: Logger name used in records and as the log subdirectory.
        :param enable_stdout: Whether to emit log lines to stdout.
        :param log_level: Minimum level; defaults to ``LOG_LEVEL``.
        :param base_dir: Log root; defaults to ``LOG_DIR``.
        :param webhook_url: Error webhook; defaults to ``ALERT_WEBHOOK`` when set.
        :return: Configured :class:`Logger` instance, not yet started.
        """
        config = LoggerConfig(
            base_level=log_level if log_level is not None else LogLevel.parse(Env.LOG_LEVEL),
            do_stdout=enable_stdout,
        )
        root = base_dir or Env.LOG_DIR

        handlers: list[BaseLogHandler] = [
            RotatingFileHandler(base_dir=root, filename_prefix=name, rotation="daily"),
            ErrorFileHandler(base_dir=root, filename_prefix=name, rotation="daily"),
        ]
        url = webhook_url or Env.ALERT_WEBHOOK
        if url:
            handlers.append(WebhookHandler(webhook_url=url))

        return Logger(config=config, name=name, handlers=handlers)


def log_exception(logger: Logger, exc: BaseException, context: str = ""):
    """Log an exception with its traceback.

    :param logger: Logger instance used for reporting the failure.
    :param exc: Exception that should be logged.
    :param context: Optional textual context describing the failure.
    """
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(f"EXCEPTION in {context}: {type(exc).__name__}: {exc}\n{tb_str}")
