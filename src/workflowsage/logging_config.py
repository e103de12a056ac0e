"""
Logging configuration for Workflow Sage.

Sets up console and rotating file handlers based on application settings.
Each entry point (API server, CLI) calls setup_logging() once with its
context name so that log files are kept separate per process type.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from typing import Optional

from workflowsage.config import Settings, settings as default_settings

STANDARD_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "openai", "sqlalchemy.engine")


class JSONFormatter(logging.Formatter):
    """JSON log formatter for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in ("conversation_id", "phase", "duration_ms"):
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        return json.dumps(log_entry, ensure_ascii=False)


class _MaxLevelFilter(logging.Filter):
    """Only pass records strictly below a level (routes INFO/DEBUG to stdout)."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def _build_formatter(config: Settings) -> logging.Formatter:
    if config.log_format == "json":
        return JSONFormatter()
    return logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(context: str = "api", config: Optional[Settings] = None) -> None:
    """
    Configure the root logger.

    Args:
        context: Name of the running process ("api", "cli"); used for log file names
        config: Settings to use (defaults to the global settings instance)

    Raises:
        PermissionError: If the log directory cannot be created
    """
    config = config or default_settings
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    formatter = _build_formatter(config)

    root = logging.getLogger()
    # Remove existing handlers to prevent duplicates on re-initialization
    root.handlers.clear()
    root.setLevel(level)

    if config.log_console_enabled:
        if config.log_to_stdout:
            stdout_handler = logging.StreamHandler(sys.stdout)
            stdout_handler.setLevel(level)
            stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
            stdout_handler.setFormatter(formatter)
            root.addHandler(stdout_handler)

        if config.log_to_stderr:
            stderr_handler = logging.StreamHandler(sys.stderr)
            stderr_handler.setLevel(max(level, logging.WARNING))
            stderr_handler.setFormatter(formatter)
            root.addHandler(stderr_handler)

    if config.log_file_enabled:
        log_dir = config.log_directory
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / f"{context}.log",
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / f"{context}.error.log",
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root.addHandler(error_handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured: context={context} level={config.log_level} "
        f"format={config.log_format}"
    )
