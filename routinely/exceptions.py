"""
Standardized exception hierarchy for routinely
Provides rich context, consistent logging, and user-friendly error messages

The progression core degrades to default state instead of raising; these
errors are reserved for authoring input, storage backends, backups and
configuration.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import json
import logging

logger = logging.getLogger(__name__)


class RoutinelyError(Exception):
    """
    Base exception for all routinely errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise RoutinelyError(
            message="Failed to save routines",
            operation="save_routines",
            context={"routine_id": "1700000000000"}
        )
    """

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "Something went wrong. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,
            "request_id": self.request_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for the UI layer"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(RoutinelyError):
    """
    Raised when authoring input fails validation

    Examples:
    - Empty routine title
    - Negative task points
    - Unknown recurrence type
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Storage Errors
# ==========================================

class StorageError(RoutinelyError):
    """Key-value store operation failed"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        **kwargs
    ):
        self.key = key
        super().__init__(
            message=message,
            user_message="We couldn't save your progress. Please try again.",
            context={"key": key},
            **kwargs
        )


# ==========================================
# Backup Errors
# ==========================================

class BackupError(RoutinelyError):
    """Backup creation or restore failed; existing data was left untouched unless user_message says otherwise"""

    def __init__(self, message: str, user_message: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            user_message=user_message or "The backup could not be processed. Your current data was not changed.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(RoutinelyError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The app is not properly configured. Check your .env file.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_storage_exception(
    error: Exception,
    operation: str,
    key: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> RoutinelyError:
    """
    Wrap backend exceptions (OSError, redis, json) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        key: Store key involved, if any
        context: Additional context

    Returns:
        Appropriate RoutinelyError subclass

    Example:
        try:
            await self._client.set(key, value)
        except redis.RedisError as e:
            raise wrap_storage_exception(e, operation="set", key=key)
    """
    import redis

    if isinstance(error, RoutinelyError):
        return error

    if isinstance(error, (OSError, redis.RedisError)):
        return StorageError(
            message=f"Store {operation} failed: {str(error)}",
            key=key,
            operation=operation,
            cause=error
        )
    elif isinstance(error, (json.JSONDecodeError, TypeError, ValueError)):
        return StorageError(
            message=f"Store {operation} could not encode/decode data: {str(error)}",
            key=key,
            operation=operation,
            cause=error
        )

    # Generic fallback
    return RoutinelyError(
        message=f"{operation} failed: {str(error)}",
        operation=operation,
        context=context,
        cause=error
    )
