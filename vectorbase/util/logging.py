"""
Structured logging for store, index and database operations.
"""

import logging
import os
from typing import Any, Dict


class StructuredLogger:
    """Structured logger for vector record and search operations."""

    def __init__(self, name: str = "vectorbase"):
        self.logger = logging.getLogger(name)
        debug = os.getenv("VECTORBASE_DEBUG", "false").lower() == "true"
        self.logger.setLevel(logging.DEBUG if debug else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_store_operation(self, operation: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a record store operation."""
        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation(f"store.{operation}", status, details, level)

    def log_index_operation(self, operation: str, index_type: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a search index mutation."""
        log_details = {"index": index_type}
        if details:
            log_details.update(details)

        self.log_operation(f"index.{operation}", status, log_details, logging.DEBUG)

    def log_search(self, index_type: str, metric: str, candidates: int, returned: int, details: Dict[str, Any] = None):
        """Log a completed similarity query."""
        log_details = {
            "index": index_type,
            "metric": metric,
            "candidates": candidates,
            "returned": returned
        }
        if details:
            log_details.update(details)

        self.log_operation("index.search", "success", log_details, logging.DEBUG)

    def log_database_operation(self, operation: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log an orchestrated database operation."""
        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation(f"database.{operation}", status, details, level)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
