"""
Unit tests for database decorators.

Tests the decorator functionality including:
- Error handling (dynamodb_operation)
- Retry logic (retry_on_throttle)
- Performance monitoring (monitor_performance)
"""

import itertools
import unittest
from unittest.mock import patch

from botocore.exceptions import ClientError

from bank_ingest.utils.db.base import (
    DynamoDBTables,
    TableNotConfigured,
    dynamodb_operation,
    monitor_performance,
    retry_on_throttle,
)


def _client_error(code: str) -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': code}}, 'UpdateItem')


class TestDynamoDBOperationDecorator(unittest.TestCase):
    """Tests for @dynamodb_operation decorator."""

    def test_successful_operation(self):
        """Test decorator returns the wrapped result."""
        @dynamodb_operation("test_op")
        def successful_function():
            return "success"

        self.assertEqual(successful_function(), "success")

    def test_client_error_reraised(self):
        """Test ClientError propagates unchanged."""
        @dynamodb_operation("test_op")
        def failing_function():
            raise _client_error('ResourceNotFoundException')

        with self.assertRaises(ClientError):
            failing_function()

    def test_validation_error_converted(self):
        """Test pydantic ValidationError becomes ValueError."""
        from bank_ingest.models.import_record import IngestionRequest

        @dynamodb_operation("test_op")
        def validation_failing_function():
            return IngestionRequest(rawContent="x", importId="", tenantId="t")

        with self.assertRaises(ValueError) as context:
            validation_failing_function()
        self.assertIn("Invalid data in test_op", str(context.exception))

    def test_preserves_function_name(self):
        @dynamodb_operation()
        def named_function():
            return None

        self.assertEqual(named_function.__name__, "named_function")


class TestRetryOnThrottleDecorator(unittest.TestCase):
    """Tests for @retry_on_throttle decorator."""

    @patch('bank_ingest.utils.db.base.time.sleep')
    def test_retries_on_throttle(self, mock_sleep):
        """Test throttled calls are retried until they succeed."""
        attempts = [0]

        @retry_on_throttle(max_attempts=3, base_delay=0.01)
        def throttled_function():
            attempts[0] += 1
            if attempts[0] < 3:
                raise _client_error('ProvisionedThroughputExceededException')
            return "success"

        self.assertEqual(throttled_function(), "success")
        self.assertEqual(attempts[0], 3)
        self.assertEqual(mock_sleep.call_count, 2)

    @patch('bank_ingest.utils.db.base.time.sleep')
    def test_gives_up_after_max_attempts(self, mock_sleep):
        """Test the last throttling error propagates."""
        @retry_on_throttle(max_attempts=2, base_delay=0.01)
        def always_throttled():
            raise _client_error('ThrottlingException')

        with self.assertRaises(ClientError):
            always_throttled()
        self.assertEqual(mock_sleep.call_count, 1)

    @patch('bank_ingest.utils.db.base.time.sleep')
    def test_other_errors_not_retried(self, mock_sleep):
        """Test non-throttling errors fail on the first attempt."""
        attempts = [0]

        @retry_on_throttle(max_attempts=3)
        def conditional_failure():
            attempts[0] += 1
            raise _client_error('ConditionalCheckFailedException')

        with self.assertRaises(ClientError):
            conditional_failure()
        self.assertEqual(attempts[0], 1)
        mock_sleep.assert_not_called()


class TestMonitorPerformanceDecorator(unittest.TestCase):
    """Tests for @monitor_performance decorator."""

    def test_returns_result(self):
        @monitor_performance(warn_threshold_ms=1000)
        def fast_function():
            return 42

        self.assertEqual(fast_function(), 42)

    @patch('bank_ingest.utils.db.base.time.time', side_effect=itertools.chain([0.0], itertools.repeat(2.0)))
    def test_slow_operation_logged_as_warning(self, mock_time):
        @monitor_performance(warn_threshold_ms=1000, error_threshold_ms=5000)
        def slow_function():
            return "done"

        with self.assertLogs('bank_ingest.utils.db.base', level='WARNING') as logs:
            slow_function()
        self.assertIn("Slow operation: slow_function", logs.output[0])

    def test_exception_still_propagates(self):
        @monitor_performance()
        def failing_function():
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            failing_function()


class TestDynamoDBTables(unittest.TestCase):
    """Tests for lazy table resolution."""

    def test_missing_environment_variable(self):
        tables = DynamoDBTables()
        tables._tables.pop('bank_statements', None)
        with patch.dict('os.environ', {}, clear=True):
            with self.assertRaises(TableNotConfigured):
                tables._get_table('bank_statements')

    def test_unknown_table_key(self):
        with self.assertRaises(TableNotConfigured):
            DynamoDBTables()._get_table('transactions')

    def test_singleton(self):
        self.assertIs(DynamoDBTables(), DynamoDBTables())
