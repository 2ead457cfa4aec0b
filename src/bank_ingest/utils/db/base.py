"""
Core database infrastructure.

This module provides:
- DynamoDB table management
- Decorators for cross-cutting concerns
- Common exceptions
"""

import os
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar
from functools import wraps

import boto3
from botocore.exceptions import ClientError
from pydantic import ValidationError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# ============================================================================
# Exceptions
# ============================================================================

class NotFound(Exception):
    """Raised when a requested resource is not found."""
    pass


class TableNotConfigured(Exception):
    """Raised when a table's environment variable is not set."""
    pass


# ============================================================================
# Decorators
# ============================================================================

def dynamodb_operation(operation_name: Optional[str] = None):
    """
    Decorator for consistent DynamoDB error handling and logging.

    ClientErrors are logged with their error code and re-raised; pydantic
    ValidationErrors are converted to ValueError.

    Usage:
        @dynamodb_operation("get_import")
        def get_import(import_id: str) -> Optional[ImportRecord]:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            op_name = operation_name or func.__name__
            try:
                logger.debug(f"Starting {op_name}")
                result = func(*args, **kwargs)
                logger.info(f"Successfully completed {op_name}")
                return result
            except ClientError as e:
                error_code = e.response.get('Error', {}).get('Code', 'Unknown')
                error_msg = e.response.get('Error', {}).get('Message', str(e))
                logger.error(
                    f"DynamoDB error in {op_name}: {error_code} - {error_msg}",
                    exc_info=True,
                    extra={
                        'operation': op_name,
                        'error_code': error_code,
                        'function': func.__name__
                    }
                )
                raise
            except ValidationError as e:
                logger.error(
                    f"Validation error in {op_name}: {str(e)}",
                    exc_info=True,
                    extra={'operation': op_name}
                )
                raise ValueError(f"Invalid data in {op_name}: {str(e)}")
            except Exception as e:
                logger.error(
                    f"Unexpected error in {op_name}: {str(e)}",
                    exc_info=True,
                    extra={'operation': op_name}
                )
                raise
        return wrapper
    return decorator


def retry_on_throttle(
    max_attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 5.0,
    exponential_base: float = 2,
    retry_on: Tuple[str, ...] = (
        'ProvisionedThroughputExceededException',
        'ThrottlingException',
        'RequestLimitExceeded'
    )
):
    """
    Decorator to retry DynamoDB operations on throttling with exponential backoff.

    delay = base_delay * (exponential_base ^ attempt), capped at max_delay.
    Only the listed error codes are retried; everything else propagates on
    the first failure.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except ClientError as e:
                    error_code = e.response.get('Error', {}).get('Code', 'Unknown')
                    if error_code not in retry_on or attempt >= max_attempts - 1:
                        raise
                    delay = min(base_delay * (exponential_base ** attempt), max_delay)
                    logger.warning(
                        f"Throttled on {func.__name__} "
                        f"(attempt {attempt + 1}/{max_attempts}), "
                        f"retrying in {delay:.2f}s... "
                        f"Error: {error_code}"
                    )
                    time.sleep(delay)
            raise RuntimeError(f"Unexpected state in retry_on_throttle for {func.__name__}")
        return wrapper
    return decorator


def monitor_performance(
    operation_type: str = "db_operation",
    warn_threshold_ms: float = 1000,
    error_threshold_ms: float = 5000
):
    """Decorator that logs the elapsed time of an operation, louder when slow."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed_ms = (time.time() - start_time) * 1000
                log_context = {
                    'operation': func.__name__,
                    'operation_type': operation_type,
                    'elapsed_ms': elapsed_ms
                }
                if elapsed_ms > error_threshold_ms:
                    logger.error(
                        f"SLOW OPERATION: {func.__name__} took {elapsed_ms:.2f}ms "
                        f"(threshold: {error_threshold_ms}ms)",
                        extra=log_context
                    )
                elif elapsed_ms > warn_threshold_ms:
                    logger.warning(
                        f"Slow operation: {func.__name__} took {elapsed_ms:.2f}ms "
                        f"(threshold: {warn_threshold_ms}ms)",
                        extra=log_context
                    )
                else:
                    logger.debug(
                        f"{func.__name__} completed in {elapsed_ms:.2f}ms",
                        extra=log_context
                    )
        return wrapper
    return decorator


# ============================================================================
# Table Management
# ============================================================================

class DynamoDBTables:
    """
    Singleton for managing DynamoDB table resources.

    Tables are resolved lazily from environment variables on first access.

    Usage:
        tables = DynamoDBTables()
        imports = tables.document_imports
    """
    _instance: Optional['DynamoDBTables'] = None

    # Table name to environment variable mapping
    TABLE_CONFIGS = {
        'document_imports': 'DOCUMENT_IMPORTS_TABLE',
        'bank_accounts': 'BANK_ACCOUNTS_TABLE',
        'bank_statements': 'BANK_STATEMENTS_TABLE',
        'bank_statement_lines': 'BANK_STATEMENT_LINES_TABLE',
    }

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._dynamodb = None
            self._tables: Dict[str, Any] = {}
            self._initialized = True

    def _get_table(self, table_key: str) -> Any:
        """Get table resource with lazy initialization."""
        if table_key not in self._tables:
            env_var_name = self.TABLE_CONFIGS.get(table_key)
            if not env_var_name:
                raise TableNotConfigured(f"Unknown table key: {table_key}")

            table_name = os.environ.get(env_var_name)
            if not table_name:
                raise TableNotConfigured(
                    f"Environment variable {env_var_name} not set, table '{table_key}' unavailable"
                )

            if self._dynamodb is None:
                self._dynamodb = boto3.resource('dynamodb')
            self._tables[table_key] = self._dynamodb.Table(table_name)
            logger.info(f"Initialized table: {table_key} ({table_name})")

        return self._tables[table_key]

    @property
    def document_imports(self) -> Any:
        """Get document imports table."""
        return self._get_table('document_imports')

    @property
    def bank_accounts(self) -> Any:
        """Get bank accounts table."""
        return self._get_table('bank_accounts')

    @property
    def bank_statements(self) -> Any:
        """Get bank statements table."""
        return self._get_table('bank_statements')

    @property
    def bank_statement_lines(self) -> Any:
        """Get bank statement lines table."""
        return self._get_table('bank_statement_lines')

    def reinitialize(self):
        """Reinitialize DynamoDB resource (useful for testing)."""
        self._dynamodb = boto3.resource('dynamodb')
        self._tables.clear()
        logger.info("Reinitialized DynamoDB tables")


# Global instance
tables = DynamoDBTables()
