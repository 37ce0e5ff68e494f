"""
Logging configuration and utilities.

Progress output goes to stdout, warnings and errors go to stderr. An optional
log file rotates at midnight and expired files are cleaned up daily.
"""

import logging
import logging.handlers
import sys
import time
import threading
from pathlib import Path
from typing import Optional
from datetime import datetime, timedelta

import schedule
import structlog


_cleanup_thread: Optional[threading.Thread] = None


class _BelowLevelFilter(logging.Filter):
    """Pass only records strictly below a level."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    retention_days: int = 7
) -> None:
    """
    Set up logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        retention_days: Number of days to retain log files
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Progress lines
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_BelowLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(console_formatter)
    root_logger.addHandler(stdout_handler)

    # Diagnostics
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(console_formatter)
    root_logger.addHandler(stderr_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_file,
            when='midnight',
            interval=1,
            backupCount=retention_days,
            encoding='utf-8'
        )
        file_handler.suffix = "%Y-%m-%d"

        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(threadName)s - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

        _start_log_cleanup_scheduler(log_path.parent, retention_days)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Standard library logger
    """
    return logging.getLogger(name)


def _start_log_cleanup_scheduler(logs_dir: Path, retention_days: int) -> None:
    """Start the daily log cleanup thread once per process."""
    global _cleanup_thread

    if _cleanup_thread is not None and _cleanup_thread.is_alive():
        return

    def cleanup_job():
        try:
            cleanup_old_logs(logs_dir, retention_days)
        except OSError as e:
            logging.getLogger(__name__).warning("Log cleanup failed: %s", e)

    schedule.every().day.at("02:00").do(cleanup_job)

    def run_scheduler():
        while True:
            schedule.run_pending()
            time.sleep(60)

    _cleanup_thread = threading.Thread(target=run_scheduler, name="LogCleanup", daemon=True)
    _cleanup_thread.start()


def cleanup_old_logs(logs_dir: Path, retention_days: int = 7) -> int:
    """
    Delete log files older than the retention period.

    Args:
        logs_dir: Directory holding the log files
        retention_days: Number of days to keep

    Returns:
        Number of files removed
    """
    logs_dir = Path(logs_dir)
    if not logs_dir.exists():
        return 0

    cleaned_count = 0
    cutoff_date = datetime.now() - timedelta(days=retention_days)
    logger = logging.getLogger(__name__)

    for log_file in logs_dir.glob("*.log*"):
        if not log_file.is_file():
            continue
        file_mtime = datetime.fromtimestamp(log_file.stat().st_mtime)
        if file_mtime < cutoff_date:
            log_file.unlink()
            cleaned_count += 1
            logger.debug("Removed expired log file %s", log_file.name)

    if cleaned_count > 0:
        logger.info("Log cleanup removed %d file(s)", cleaned_count)

    return cleaned_count
