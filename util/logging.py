"""
Structured operation logging for the blog record store.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for record, integrity and query operations."""

    def __init__(self, name: str = "blogstore"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "error", "rejected", "violation"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_record_operation(self, operation: str, category: str, record_id: str = None,
                             status: str = "success", details: Dict[str, Any] = None):
        """Log a create/update/remove/clear on a category."""
        log_details = {"category": category}
        if record_id is not None:
            log_details["id"] = record_id
        if details:
            log_details.update(details)

        self.log_operation(f"record.{operation}", status, log_details)

    def log_rejected(self, operation: str, category: str, errors: List[Any]):
        """Log an operation rejected with typed errors."""
        log_details = {
            "category": category,
            "errors": [sanitize_message(str(e)) for e in errors],
            "error_count": len(errors),
        }
        self.log_operation(f"record.{operation}", "rejected", log_details)

    def log_integrity_violation(self, check: str, category: str, violation: Dict[str, Any]):
        """Log one referential integrity violation."""
        log_details = {"category": category}
        log_details.update(violation)

        self.log_operation(f"integrity.{check}", "violation", log_details)

    def log_query(self, category: str, criteria: Dict[str, Any], index: int, count: int, matched: int):
        """Log a find over a category."""
        log_details = {
            "category": category,
            "criteria": sorted(criteria),
            "index": index,
            "count": count,
            "matched": matched,
        }
        self.log_operation("query.find", "success", log_details)

    def log_store_error(self, operation: str, backend: str, error: Exception):
        """Log a backing medium failure."""
        log_details = {
            "backend": backend,
            "error": sanitize_message(str(error)),
        }
        self.log_operation(f"store.{operation}", "error", log_details)

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


def sanitize_message(message: str, limit: int = 200) -> str:
    """Truncate long messages for log lines."""
    return message[:limit - 3] + "..." if len(message) > limit else message


# Global logger instance
logger = StructuredLogger()


def log_integrity_violation(check: str, category: str, violation: Dict[str, Any]):
    """Log one referential integrity violation."""
    logger.log_integrity_violation(check, category, violation)


def log_store_error(operation: str, backend: str, error: Exception):
    """Log a backing medium failure."""
    logger.log_store_error(operation, backend, error)
