"""
Bank statement and statement line database operations.
"""

import logging
from typing import List, Optional

from boto3.dynamodb.conditions import Key

from bank_ingest.models.bank_statement import BankStatement, StatementLine
from .base import (
    tables,
    dynamodb_operation,
    retry_on_throttle,
    monitor_performance,
)
from .helpers import batch_write_items

logger = logging.getLogger(__name__)

STATEMENT_INDEX = 'StatementIdIndex'


@retry_on_throttle(max_attempts=3)
@dynamodb_operation("create_statement")
def create_statement(statement: BankStatement) -> None:
    """
    Store a statement record.

    The statement id is derived from the import id, so writing the same
    import twice replaces the record instead of adding a second one.
    """
    tables.bank_statements.put_item(Item=statement.to_dynamodb_item())


@monitor_performance(operation_type="batch_write", warn_threshold_ms=2000)
@retry_on_throttle(max_attempts=3)
@dynamodb_operation("create_statement_lines")
def create_statement_lines(lines: List[StatementLine]) -> int:
    """
    Store one batch of statement lines.

    Args:
        lines: Lines to write; callers bound the batch size

    Returns:
        Number of lines written
    """
    return batch_write_items(
        table=tables.bank_statement_lines,
        items=[line.to_dynamodb_item() for line in lines]
    )


@monitor_performance(warn_threshold_ms=200)
@retry_on_throttle(max_attempts=3)
@dynamodb_operation("get_statement")
def get_statement(statement_id: str) -> Optional[BankStatement]:
    response = tables.bank_statements.get_item(Key={'statementId': statement_id})
    if 'Item' in response:
        return BankStatement.from_dynamodb_item(response['Item'])
    return None


@monitor_performance(operation_type="query", warn_threshold_ms=500)
@retry_on_throttle(max_attempts=3)
@dynamodb_operation("list_statement_lines")
def list_statement_lines(statement_id: str) -> List[StatementLine]:
    """List a statement's lines sorted by lineOrder (file order)."""
    query_params = {
        'IndexName': STATEMENT_INDEX,
        'KeyConditionExpression': Key('statementId').eq(statement_id),
    }
    lines: List[StatementLine] = []
    while True:
        response = tables.bank_statement_lines.query(**query_params)
        lines.extend(StatementLine.from_dynamodb_item(item) for item in response.get('Items', []))
        last_key = response.get('LastEvaluatedKey')
        if not last_key:
            break
        query_params['ExclusiveStartKey'] = last_key
    return sorted(lines, key=lambda line: line.line_order)
