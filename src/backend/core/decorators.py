"""
Error handling and transaction decorators for service operations.

Service methods take the session as their first argument and are wrapped with
`@transactional_database_operation("name")`, which runs the body through
`core.database.run_transaction` (commit on success, rollback on error) and logs
database failures before re-raising them.
"""
import functools
import inspect
import logging
import traceback
from typing import Any, Callable, Optional

from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DisconnectionError,
    TimeoutError,
    StatementError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from .exceptions import BookingError

logger = logging.getLogger(__name__)


class DatabaseErrorHandler:
    """Classifies and logs database failures."""

    DATABASE_EXCEPTIONS = (
        SQLAlchemyError,
        ConnectionError,
    )

    @staticmethod
    def handle_database_error(
        exc: Exception,
        operation: str,
        context: Optional[dict] = None
    ) -> tuple[bool, str]:
        """
        Log a database error and report whether a retry could succeed.

        Args:
            exc: The exception that occurred
            operation: Description of the database operation
            context: Additional context information

        Returns:
            Tuple of (is_recoverable, error_message)
        """
        context_str = f" | Context: {context}" if context else ""

        if isinstance(exc, IntegrityError):
            error_msg = f"Database integrity error during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
            return False, error_msg

        if isinstance(exc, (ConnectionError, DisconnectionError)):
            error_msg = f"Database connection error during {operation}: {exc}{context_str}"
            logger.error(error_msg)
            return True, error_msg

        if isinstance(exc, (TimeoutError, OperationalError)):
            error_msg = f"Database timeout during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
            return True, error_msg

        if isinstance(exc, StatementError):
            error_msg = f"Database statement error during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
            return False, error_msg

        error_msg = f"Unexpected database error during {operation}: {type(exc).__name__}: {exc}{context_str}"
        logger.error(f"{error_msg}\nTraceback: {traceback.format_exc()}")
        return False, error_msg


def _find_session(args: tuple, kwargs: dict) -> Optional[AsyncSession]:
    for value in (*args, *kwargs.values()):
        if isinstance(value, AsyncSession):
            return value
    return None


def handle_database_exceptions(
    operation_name: Optional[str] = None,
    reraise: bool = True,
    default_return: Any = None,
) -> Callable:
    """
    Decorator that logs database failures of an async operation.

    BookingError subclasses are domain outcomes, not failures: they pass
    through untouched.

    Args:
        operation_name: Name of the operation for logging (defaults to function name)
        reraise: Whether to re-raise the exception after logging
        default_return: Value to return if an error occurs and reraise=False
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or getattr(func, "__name__", "unknown")
            context = {
                "function": getattr(func, "__name__", "unknown"),
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()) if kwargs else [],
            }

            try:
                result = await func(*args, **kwargs)
                logger.debug(f"Successfully completed {operation}")
                return result

            except BookingError as exc:
                logger.info(f"{operation} rejected: {exc.kind}/{exc.code}")
                raise

            except DatabaseErrorHandler.DATABASE_EXCEPTIONS as exc:
                DatabaseErrorHandler.handle_database_error(exc, operation, context)
                if reraise:
                    raise
                logger.info(f"Operation {operation} failed but continuing with default return: {default_return}")
                return default_return

            except Exception as exc:
                logger.error(
                    f"Unexpected error in {operation}: {type(exc).__name__}: {exc}\n"
                    f"Traceback: {traceback.format_exc()}"
                )
                if reraise:
                    raise
                return default_return

        return async_wrapper

    return decorator


def database_transaction(operation_name: Optional[str] = None) -> Callable:
    """
    Decorator that runs an async function as one transaction.

    The first AsyncSession found in the arguments is committed on success and
    rolled back on error via `run_transaction`.
    """
    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"database_transaction requires an async function, got {func.__name__}")

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            # Imported here to keep decorators importable without an engine
            from .database import run_transaction

            operation = operation_name or func.__name__
            db_session = _find_session(args, kwargs)

            if db_session is None:
                logger.warning(f"No AsyncSession found for transaction operation {operation}")
                return await func(*args, **kwargs)

            logger.debug(f"Starting database transaction for {operation}")
            return await run_transaction(
                db_session,
                lambda _db: func(*args, **kwargs),
                operation_name=operation,
            )

        return async_wrapper

    return decorator


def log_database_operation(operation: str, level: str = "debug") -> Callable:
    """
    Decorator to log start, completion and failure of a read operation.

    Args:
        operation: Description of the operation
        level: Logging level ('debug', 'info', 'warning', 'error')
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            logger_method = getattr(logger, level)
            func_name = getattr(func, "__name__", "unknown")
            logger_method(f"Starting {operation} via {func_name}")

            try:
                result = await func(*args, **kwargs)
                logger_method(f"Completed {operation} via {func_name}")
                return result
            except Exception as exc:
                logger_method(f"Failed {operation} via {func_name}: {exc}")
                raise

        return async_wrapper

    return decorator


def transactional_database_operation(func=None, operation_name: Optional[str] = None) -> Callable:
    """
    Combined decorator for transactional operations with error logging.

    Can be used with or without parentheses:
        @transactional_database_operation
        async def my_func(db, ...): ...

        @transactional_database_operation("operation_name")
        async def my_func(db, ...): ...
    """
    def decorator(f: Callable) -> Callable:
        transaction_decorated = database_transaction(operation_name=operation_name)(f)
        return handle_database_exceptions(operation_name=operation_name, reraise=True)(transaction_decorated)

    if func is None:
        return decorator
    elif callable(func):
        return decorator(func)
    else:
        # Called with the operation name as first positional argument
        return transactional_database_operation(operation_name=func)
