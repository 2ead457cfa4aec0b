"""
Database utilities for DynamoDB operations.

Imports are organized by resource type for easy navigation.
"""

# ============================================================================
# Core Infrastructure
# ============================================================================

from .base import (
    # Table management
    tables,
    DynamoDBTables,

    # Exceptions
    NotFound,
    TableNotConfigured,

    # Decorators
    dynamodb_operation,
    retry_on_throttle,
    monitor_performance,
)

from .helpers import (
    batch_write_items,
    build_update_expression,
    current_timestamp,
)

# ============================================================================
# Resource Operations
# ============================================================================

from .imports import (
    get_import,
    update_import_status,
)

from .bank_accounts import (
    find_accounts_by_iban,
    find_accounts_by_number,
    list_tenant_accounts,
    create_bank_account,
)

from .statements import (
    create_statement,
    create_statement_lines,
    get_statement,
    list_statement_lines,
)

__all__ = [
    'tables',
    'DynamoDBTables',
    'NotFound',
    'TableNotConfigured',
    'dynamodb_operation',
    'retry_on_throttle',
    'monitor_performance',
    'batch_write_items',
    'build_update_expression',
    'current_timestamp',
    'get_import',
    'update_import_status',
    'find_accounts_by_iban',
    'find_accounts_by_number',
    'list_tenant_accounts',
    'create_bank_account',
    'create_statement',
    'create_statement_lines',
    'get_statement',
    'list_statement_lines',
]
