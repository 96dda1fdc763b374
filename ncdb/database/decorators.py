#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators for database operations.

Stacking order used by every manager method:

    @handle_db_errors
    @log_database_operation("create_tag")
    @atomic_operation            # mutating methods only
    @validate_metadata(["name"])
    def create(self, metadata): ...
"""
from functools import wraps
from typing import Callable, List
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ncdb.core.exceptions import (
    ConstraintViolationError,
    DuplicateKeyError,
    TransactionFailedError,
)
from ncdb.core.validators import DataValidator


def log_database_operation(operation_name: str):
    """
    Decorator to log database operations with timing and context.

    Args:
        operation_name: Name of the operation being logged

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            start_time = datetime.now()
            operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"

            if hasattr(self, "logger") and self.logger:
                self.logger.log_debug(
                    f"Starting {operation_name}",
                    {
                        "operation_id": operation_id,
                        "args_count": len(args),
                        "kwargs_keys": list(kwargs.keys()),
                    },
                )

            try:
                result = function(self, *args, **kwargs)

                duration = (datetime.now() - start_time).total_seconds()
                if hasattr(self, "logger") and self.logger:
                    self.logger.log_operation(
                        f"{operation_name}_completed",
                        {
                            "operation_id": operation_id,
                            "duration_seconds": duration,
                            "success": True,
                        },
                    )

                return result

            except Exception as e:
                duration = (datetime.now() - start_time).total_seconds()
                if hasattr(self, "logger") and self.logger:
                    self.logger.log_error(
                        e,
                        {
                            "operation": operation_name,
                            "operation_id": operation_id,
                            "duration_seconds": duration,
                        },
                    )
                raise

        return wrapper

    return decorator


def validate_metadata(required_fields: List[str]):
    """
    Decorator to validate metadata dictionaries before processing.

    The metadata dict is the last positional argument or the ``metadata``
    keyword argument.

    Args:
        required_fields: List of required field names

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            metadata = kwargs.get("metadata", args[-1] if args else {})

            DataValidator.validate_required_fields(metadata or {}, required_fields)

            return function(self, *args, **kwargs)

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator translating SQLAlchemy errors into the store's error types.

    - Unique constraint violations become DuplicateKeyError
    - Other integrity violations (CHECK, NOT NULL, FK) become
      ConstraintViolationError
    - Any other SQLAlchemyError becomes TransactionFailedError

    Store exceptions raised by the wrapped function pass through unchanged.

    Args:
        function: Function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except IntegrityError as e:
            if "UNIQUE constraint failed" in str(e.orig):
                raise DuplicateKeyError(f"Data integrity violation: {e.orig}") from e
            raise ConstraintViolationError(f"Data integrity violation: {e.orig}") from e
        except SQLAlchemyError as e:
            raise TransactionFailedError(f"Database operation failed: {e}") from e

    return wrapper


def atomic_operation(function: Callable) -> Callable:
    """
    Decorator running a manager method inside a SAVEPOINT.

    If the method raises, only its own writes are rolled back and the
    enclosing session_scope stays usable, so a caller that catches the
    error never commits a half-applied operation. Nested calls stack
    savepoints.

    The wrapped method's owner must expose ``session``.
    """

    @wraps(function)
    def wrapper(self, *args, **kwargs):
        with self.session.begin_nested():
            return function(self, *args, **kwargs)

    return wrapper
