"""
Bank account database operations.

Accounts are stored with compacted identifiers (see BankAccount), so
identifier lookups are plain equality filters on the tenant's accounts.
"""

import logging
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr, Key

from bank_ingest.models.bank_account import BankAccount, compact_identifier
from .base import (
    tables,
    dynamodb_operation,
    retry_on_throttle,
    monitor_performance,
)

logger = logging.getLogger(__name__)

TENANT_INDEX = 'TenantIdIndex'


def _query_tenant_accounts(tenant_id: str, filter_expression: Optional[Any] = None) -> List[BankAccount]:
    """Query the tenant index, following pagination to the end."""
    query_params: Dict[str, Any] = {
        'IndexName': TENANT_INDEX,
        'KeyConditionExpression': Key('tenantId').eq(tenant_id),
    }
    if filter_expression is not None:
        query_params['FilterExpression'] = filter_expression

    accounts: List[BankAccount] = []
    while True:
        response = tables.bank_accounts.query(**query_params)
        for item in response.get('Items', []):
            account = BankAccount.from_dynamodb_item(item)
            if account.is_active:
                accounts.append(account)
        last_key = response.get('LastEvaluatedKey')
        if not last_key:
            break
        query_params['ExclusiveStartKey'] = last_key
    return accounts


@monitor_performance(operation_type="query", warn_threshold_ms=500)
@retry_on_throttle(max_attempts=3)
@dynamodb_operation("find_accounts_by_iban")
def find_accounts_by_iban(tenant_id: str, iban: str) -> List[BankAccount]:
    """Active tenant accounts whose IBAN equals `iban` (compared compacted)."""
    compact = compact_identifier(iban)
    if not compact:
        return []
    return _query_tenant_accounts(tenant_id, Attr('iban').eq(compact))


@monitor_performance(operation_type="query", warn_threshold_ms=500)
@retry_on_throttle(max_attempts=3)
@dynamodb_operation("find_accounts_by_number")
def find_accounts_by_number(tenant_id: str, account_number: str) -> List[BankAccount]:
    """Active tenant accounts whose local account number equals `account_number`."""
    compact = compact_identifier(account_number)
    if not compact:
        return []
    return _query_tenant_accounts(tenant_id, Attr('accountNumber').eq(compact))


@monitor_performance(operation_type="query", warn_threshold_ms=500)
@retry_on_throttle(max_attempts=3)
@dynamodb_operation("list_tenant_accounts")
def list_tenant_accounts(tenant_id: str) -> List[BankAccount]:
    """
    List all active bank accounts of a tenant.

    Args:
        tenant_id: The owning tenant

    Returns:
        List of BankAccount objects
    """
    return _query_tenant_accounts(tenant_id)


@retry_on_throttle(max_attempts=3)
@dynamodb_operation("create_bank_account")
def create_bank_account(account: BankAccount) -> None:
    """Store a bank account; used by account registration and fixtures."""
    tables.bank_accounts.put_item(Item=account.to_dynamodb_item())
