"""
Structured logging for the approval reconciliation layer.
Every fetch, command, override mutation and refresh cycle goes through one formatter.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for dashboard operations."""

    def __init__(self, name: str = "burhanpur_admin"):
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

    def set_debug(self, enabled: bool) -> None:
        """Switch between DEBUG and INFO verbosity."""
        self.logger.setLevel(logging.DEBUG if enabled else logging.INFO)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_fetch(self, endpoint: str, status: str, details: Dict[str, Any] = None):
        """Log a read-path call against the backend."""
        log_details = {"endpoint": endpoint}
        if details:
            log_details.update(details)

        level = logging.WARNING if status in ("failed", "unavailable") else logging.DEBUG
        self.log_operation("fetch", status, log_details, level=level)

    def log_command(self, kind: str, action: str, entity_id: str, status: str = "success", details: Dict[str, Any] = None):
        """Log a state-changing command (approve, reject, submit)."""
        log_details = {"kind": kind, "entity_id": entity_id}
        if details:
            log_details.update(sanitize_payload(details))

        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation(f"command.{action}", status, log_details, level=level)

    def log_override(self, operation: str, key: str, status: str = "success"):
        """Log a local override store mutation."""
        self.log_operation(f"override.{operation}", status, {"key": key}, level=logging.DEBUG)

    def log_bus_event(self, name: str, handler_count: int, details: Dict[str, Any] = None):
        """Log an event bus dispatch."""
        log_details = {"event": name, "handlers": handler_count}
        if details:
            log_details.update(details)

        self.log_operation("bus.publish", "dispatched", log_details, level=logging.DEBUG)

    def log_refresh(self, view: str, status: str, details: Dict[str, Any] = None):
        """Log a reconciler refresh cycle (applied, skipped, discarded)."""
        log_details = {"view": view}
        if details:
            log_details.update(details)

        self.log_operation("refresh", status, log_details, level=logging.DEBUG)

    def log_schema_validation_error(self, operation: str, errors: List[Any], source_record: Dict[str, Any] = None):
        """Log schema validation errors with sanitized details."""
        sanitized_errors = []
        for error in errors:
            if isinstance(error, dict):
                sanitized_error = error.copy()
                # Drop raw input values, keep location and message
                for field in ['input', 'ctx', 'url']:
                    sanitized_error.pop(field, None)
                sanitized_errors.append(sanitized_error)
            else:
                sanitized_errors.append(str(error)[:100])

        log_details = {
            "operation": operation,
            "errors": sanitized_errors,
            "error_count": len(sanitized_errors)
        }

        if source_record and isinstance(source_record, dict):
            # Only log identifiers
            if "_id" in source_record:
                log_details["target_identifier"] = source_record["_id"]

        self.log_operation("schema_validation.error", "rejected", log_details, level=logging.WARNING)

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

    def exception(self, message: str) -> None:
        """Log an error message with the active traceback."""
        self.logger.exception(message)


# Global logger instance
logger = StructuredLogger()


def sanitize_payload(payload: Any, max_length: int = 100) -> Any:
    """Truncate long strings anywhere inside a payload before it is logged."""
    if isinstance(payload, dict):
        return {k: sanitize_payload(v, max_length) for k, v in payload.items()}
    elif isinstance(payload, str):
        return payload[:max_length] + "..." if len(payload) > max_length else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, max_length) for item in payload]
    else:
        return payload
