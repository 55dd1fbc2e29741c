# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-28
# Description: logging_utils.py
# -----------------------------------------------------------------------------
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

import colorlog

BASE_LOGGER_NAME = "dmr_lab"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_TRUTHY = ("1", "true", "yes", "y")


def _log_to_file_enabled() -> bool:
    # Off by default: lessons are short-lived console programs
    return os.getenv("DMR_LOG_TO_FILE", "0").lower() in _TRUTHY


def _console_handler() -> logging.Handler:
    handler = colorlog.StreamHandler()
    handler.setFormatter(colorlog.ColoredFormatter(
        fmt="%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s %(message)s",
        datefmt=DATE_FORMAT,
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
    ))
    return handler


def _file_handler() -> logging.Handler:
    log_path = Path(os.getenv("DMR_LOG_FILE", "./logs/dmr_lab.log"))
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=int(os.getenv("DMR_LOG_MAX_BYTES", str(5 * 1024 * 1024))),  # 5MB
        backupCount=int(os.getenv("DMR_LOG_BACKUP_COUNT", "5")),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s",
        datefmt=DATE_FORMAT,
    ))
    return handler


def _create_logger(full_name: str) -> logging.Logger:
    """
    Configure a logger once per name: colour console output, plus a rotating
    file when DMR_LOG_TO_FILE is set. Level comes from DMR_LOG_LEVEL.
    """
    logger = logging.getLogger(full_name)
    if logger.handlers:
        return logger

    logger.addHandler(_console_handler())
    if _log_to_file_enabled():
        logger.addHandler(_file_handler())

    level_name = os.getenv("DMR_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Module-level logger, e.g. dmr_lab.lessons.chat_stream."""
    full_name = f"{BASE_LOGGER_NAME}.{name}" if name else BASE_LOGGER_NAME
    return _create_logger(full_name)


def get_class_logger(cls: type) -> logging.Logger:
    """
    Logger named after module + class, e.g.:

      dmr_lab.agent.ToolCallLoop.ToolCallLoop
      dmr_lab.vectorstore.MemoryVectorStore.MemoryVectorStore
    """
    module = getattr(cls, "__module__", "unknown_module")
    classname = getattr(cls, "__name__", "UnknownClass")
    return _create_logger(f"{BASE_LOGGER_NAME}.{module}.{classname}")
