"""Unit tests for custom exception hierarchy"""
import json
import pytest
from datetime import datetime

import redis

from routinely.exceptions import (
    RoutinelyError,
    ValidationError,
    StorageError,
    BackupError,
    ConfigurationError,
    wrap_storage_exception,
)


class TestRoutinelyError:
    """Test base exception class"""

    def test_basic_exception(self):
        """Test basic exception creation"""
        error = RoutinelyError("Test error")
        assert error.message == "Test error"
        assert error.user_message == "Something went wrong. Please try again."
        assert error.request_id is not None
        assert isinstance(error.timestamp, datetime)

    def test_exception_with_context(self):
        """Test exception with full context"""
        error = RoutinelyError(
            message="Failed to save routines",
            operation="save_routines",
            context={"routine_id": "1700000000000"},
            user_message="Could not save your routine"
        )
        assert error.operation == "save_routines"
        assert error.context["routine_id"] == "1700000000000"
        assert error.user_message == "Could not save your routine"

    def test_exception_with_cause(self):
        original_error = ValueError("Invalid value")
        error = RoutinelyError(message="Validation failed", cause=original_error)
        assert error.cause == original_error

    def test_to_dict(self):
        """Test exception serialization"""
        error_dict = RoutinelyError(message="Test error").to_dict()
        assert error_dict["error"] == "RoutinelyError"
        assert error_dict["message"] == "Test error"
        assert "request_id" in error_dict
        assert "timestamp" in error_dict


class TestSubclasses:
    """Test specific error types"""

    def test_validation_error(self):
        error = ValidationError("must not be empty", field="title", value="")
        assert isinstance(error, RoutinelyError)
        assert error.field == "title"
        assert error.context == {"field": "title", "value": ""}
        assert error.user_message == "Invalid title: must not be empty"

    def test_storage_error(self):
        error = StorageError("disk full", key="routines")
        assert error.key == "routines"
        assert "save" in error.user_message

    def test_backup_error_message(self):
        error = BackupError("bad payload")
        assert "not changed" in error.user_message

    def test_backup_error_custom_user_message(self):
        error = BackupError("rollback incomplete", user_message="Some data could not be put back.")
        assert error.user_message == "Some data could not be put back."

    def test_configuration_error(self):
        error = ConfigurationError("bad backend", config_key="STORE_BACKEND")
        assert error.config_key == "STORE_BACKEND"


class TestWrapStorageException:
    """Test backend exception wrapping"""

    def test_wrap_os_error(self):
        wrapped = wrap_storage_exception(OSError("read-only"), operation="flush", key="routines")
        assert isinstance(wrapped, StorageError)
        assert wrapped.key == "routines"
        assert wrapped.operation == "flush"

    def test_wrap_redis_error(self):
        wrapped = wrap_storage_exception(redis.ConnectionError("refused"), operation="set")
        assert isinstance(wrapped, StorageError)

    def test_wrap_decode_error(self):
        try:
            json.loads("{")
        except json.JSONDecodeError as e:
            wrapped = wrap_storage_exception(e, operation="load")
        assert isinstance(wrapped, StorageError)
        assert "encode/decode" in wrapped.message

    def test_wrap_passes_through_our_errors(self):
        original = BackupError("already ours")
        assert wrap_storage_exception(original, operation="x") is original

    def test_wrap_unknown_error(self):
        wrapped = wrap_storage_exception(RuntimeError("boom"), operation="thing")
        assert type(wrapped) is RoutinelyError
        assert "thing failed" in wrapped.message

    def test_raising_wrapped_error(self):
        with pytest.raises(StorageError):
            raise wrap_storage_exception(OSError("nope"), operation="flush")
