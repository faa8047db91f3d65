"""
Structured logging system for clusterspecs.

Provides centralized logging with console and file outputs,
log levels, and metrics tracking for monitoring cluster queries.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json

from .env import get_settings


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring query execution.
    """

    def __init__(
        self,
        name: str = "clusterspecs",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self.metrics = {
            "queries_executed": 0,
            "queries_failed": 0,
            "rows_returned": 0,
            "errors_by_type": {},
            "queries_by_kind": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"clusterspecs_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def _count_kind(self, kind: str):
        if kind not in self.metrics["queries_by_kind"]:
            self.metrics["queries_by_kind"][kind] = {"executed": 0, "failed": 0}
        return self.metrics["queries_by_kind"][kind]

    def record_query(self, kind: str, rows: int):
        """Record a successful query and the number of rows it returned."""
        self.metrics["queries_executed"] += 1
        self.metrics["rows_returned"] += rows
        self._count_kind(kind)["executed"] += 1

    def record_query_failure(self, kind: str, error_type: str):
        """Record a failed query."""
        self.metrics["queries_failed"] += 1
        self._count_kind(kind)["failed"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        executed = metrics_copy["queries_executed"]
        metrics_copy["avg_rows_per_query"] = (
            round(metrics_copy["rows_returned"] / executed, 3) if executed else 0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total = metrics["queries_executed"] + metrics["queries_failed"]
        failure_rate = 0
        if total > 0:
            failure_rate = round(metrics["queries_failed"] / total * 100, 1)

        self.info("=== Cluster Query Metrics ===")
        self.info(f"Queries: {metrics['queries_executed']} executed, "
                  f"{metrics['queries_failed']} failed ({failure_rate}% failure)")
        self.info(f"Rows returned: {metrics['rows_returned']} "
                  f"(avg {metrics['avg_rows_per_query']} per query)")

        if metrics["queries_by_kind"]:
            self.info("Queries by kind:")
            for kind, stats in metrics["queries_by_kind"].items():
                self.info(f"  {kind}: {stats['executed']} executed, {stats['failed']} failed")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "clusterspecs",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level, log directory and file output default to the CLUSTERSPECS_LOG_*
    settings when not given.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        settings = get_settings()
        kwargs.setdefault("log_dir", settings.log_dir)
        kwargs.setdefault("enable_file", settings.log_to_file)
        _global_logger = StructuredLogger(name=name, level=level or settings.log_level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
