"""
Document import database operations.

The import row is owned by the upload layer; ingestion only reads it and
moves it through its status transitions.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from bank_ingest.models.import_record import ImportRecord, ImportStatus
from .base import (
    tables,
    dynamodb_operation,
    retry_on_throttle,
    monitor_performance,
    NotFound,
)
from .helpers import build_update_expression

logger = logging.getLogger(__name__)


@monitor_performance(warn_threshold_ms=200)
@retry_on_throttle(max_attempts=3)
@dynamodb_operation("get_import")
def get_import(import_id: str) -> Optional[ImportRecord]:
    """
    Retrieve an import record by ID.

    Args:
        import_id: The import's unique identifier

    Returns:
        ImportRecord if found, None otherwise
    """
    response = tables.document_imports.get_item(Key={'importId': import_id})
    if 'Item' in response:
        return ImportRecord.from_dynamodb_item(response['Item'])
    return None


@monitor_performance(warn_threshold_ms=200)
@retry_on_throttle(max_attempts=3)
@dynamodb_operation("update_import_status")
def update_import_status(import_id: str, status: ImportStatus, **fields: Any) -> None:
    """
    Set an import's status and any diagnostic or result fields.

    Args:
        import_id: The import to update
        status: New status
        **fields: camelCase attributes to set alongside the status
            (format, errorMessage, transactionCount, bankAccountId,
            statementId, processedAt); None values are skipped

    Raises:
        NotFound: If no import row exists for import_id
    """
    updates: Dict[str, Any] = {'status': status.value}
    for key, value in fields.items():
        if value is None:
            continue
        updates[key] = value.value if isinstance(value, Enum) else value

    update_expression, names, values = build_update_expression(updates)
    try:
        tables.document_imports.update_item(
            Key={'importId': import_id},
            UpdateExpression=update_expression,
            ConditionExpression='attribute_exists(importId)',
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
        )
    except ClientError as e:
        if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
            raise NotFound(f"Import {import_id} not found") from e
        raise
    logger.info(f"Import {import_id} status set to {status.value}")
