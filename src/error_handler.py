"""Error handling helpers for the catalog API."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(
        self,
        exc: Exception,
        context: Dict[str, Any] = None,
        key: str = "message",
        message: str = "Server Error",
    ) -> Dict[str, Any]:
        """Log an unhandled failure and return the generic JSON body sent to the client."""
        context = context or {}
        logger.error("Unhandled exception in %s: %s (context=%s)", context.get("operation", "request"), exc, context, exc_info=True)
        return {key: message}

    def validation_error(self, field_errors: Dict[str, str], message: str) -> Dict[str, Any]:
        return {
            "error": "validation_error",
            "message": message,
            "field_errors": field_errors,
        }
