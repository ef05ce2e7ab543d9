"""
Structured logging for brokerbook.

Every event is rendered by structlog as one JSON line and written through
stdlib logging handlers:
- stdout, always
- brokerbook.log in LOG_DIR, when file logging is enabled; the file rolls
  over every Monday (UTC) and the last 52 backups are kept gzip-compressed

Usage:
    configure_logging(log_level="DEBUG")
    logger = get_logger(__name__)
    logger.info("Statement parsed", format_code="broker_psb", records=12)
"""
import gzip
import logging
import logging.handlers
import shutil
import sys
from pathlib import Path
from typing import Any, List, Optional

import structlog
from structlog.types import EventDict

from brokerbook.config import get_settings

LOG_FILE_NAME = "brokerbook.log"
ROTATE_WHEN = "W0"
ROTATE_BACKUPS = 52


def _add_level(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["level"] = "WARNING" if method_name == "warn" else method_name.upper()
    return event_dict


def gzip_rotated(source: str, dest: str) -> None:
    """Rotator of the log file: gzip source into dest, then delete source."""
    with open(source, "rb") as f_in, gzip.open(dest, "wb") as f_out:
        shutil.copyfileobj(f_in, f_out)
    Path(source).unlink()


def _gzip_name(default_name: str) -> str:
    return default_name + ".gz"


def build_file_handler(log_dir: Path, level: int) -> logging.handlers.TimedRotatingFileHandler:
    """Weekly rotating handler of LOG_DIR/brokerbook.log, creating the directory."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_dir / LOG_FILE_NAME),
        when=ROTATE_WHEN,
        backupCount=ROTATE_BACKUPS,
        encoding="utf-8",
        utc=True
        )
    handler.rotator = gzip_rotated
    handler.namer = _gzip_name
    handler.setLevel(level)
    return handler


def configure_logging(
    log_level: Optional[str] = None,
    enable_file_logging: Optional[bool] = None,
    log_dir: Optional[Path] = None
    ) -> None:
    """
    Install handlers on the root logger and configure structlog.

    Calling it again replaces (and closes) the handlers installed before.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; settings.LOG_LEVEL if None
        enable_file_logging: Write the log file too; settings.LOG_FILE_ENABLED if None
        log_dir: Directory of the log file; settings.LOG_DIR if None
    """
    settings = get_settings()
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    if enable_file_logging is None:
        enable_file_logging = settings.LOG_FILE_ENABLED

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers: List[logging.Handler] = [console]
    if enable_file_logging:
        handlers.append(build_file_handler(Path(log_dir or settings.LOG_DIR), level))

    logging.basicConfig(format="%(message)s", handlers=handlers, level=level, force=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            _add_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False),
            ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
        )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for a module (name is usually __name__)."""
    return structlog.get_logger(name)
