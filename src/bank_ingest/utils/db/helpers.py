"""
Helper functions for database operations.

This module provides:
- Batch write helpers
- Update expression building
- Timestamp helpers
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# DynamoDB BatchWriteItem accepts at most 25 requests per call
DYNAMODB_BATCH_LIMIT = 25


def batch_write_items(
    table: Any,
    items: List[Dict[str, Any]],
    batch_size: int = DYNAMODB_BATCH_LIMIT
) -> int:
    """
    Write items in batches respecting DynamoDB limits.

    Args:
        table: DynamoDB table resource
        items: List of item dicts to write
        batch_size: Items per batch_writer context (the writer itself
            flushes in chunks of 25)

    Returns:
        Number of items written

    Example:
        written_count = batch_write_items(
            table=tables.bank_statement_lines,
            items=[line.to_dynamodb_item() for line in lines]
        )
    """
    if not items:
        logger.debug("No items to write")
        return 0

    count = 0
    for i in range(0, len(items), batch_size):
        batch = items[i:i + batch_size]
        with table.batch_writer() as writer:
            for item in batch:
                writer.put_item(Item=item)
                count += 1

    logger.info(f"Batch wrote {count} items to {table.table_name}")
    return count


def build_update_expression(
    updates: Dict[str, Any],
    timestamp_field: Optional[str] = 'updatedAt',
    remove_fields: Optional[List[str]] = None
) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    """
    Build DynamoDB UpdateExpression from update dictionary.

    Args:
        updates: Dictionary of field names to new values
        timestamp_field: Name of timestamp field to auto-update (None to skip)
        remove_fields: List of field names to remove (optional)

    Returns:
        Tuple of (update_expression, expression_attribute_names, expression_attribute_values)
    """
    if not updates and not remove_fields:
        raise ValueError("Either updates or remove_fields must be provided")

    set_parts: List[str] = []
    remove_parts: List[str] = []
    expr_attr_names: Dict[str, str] = {}
    expr_attr_values: Dict[str, Any] = {}

    # Attribute name placeholders sidestep reserved words such as "status" and "format"
    for key, value in updates.items():
        safe_key = key.replace('-', '_').replace('.', '_')
        set_parts.append(f"#{safe_key} = :{safe_key}")
        expr_attr_names[f"#{safe_key}"] = key
        expr_attr_values[f":{safe_key}"] = value

    if timestamp_field:
        safe_timestamp = timestamp_field.replace('-', '_').replace('.', '_')
        set_parts.append(f"#{safe_timestamp} = :{safe_timestamp}")
        expr_attr_names[f"#{safe_timestamp}"] = timestamp_field
        expr_attr_values[f":{safe_timestamp}"] = current_timestamp()

    if remove_fields:
        for field in remove_fields:
            safe_field = field.replace('-', '_').replace('.', '_')
            remove_parts.append(f"#{safe_field}")
            expr_attr_names[f"#{safe_field}"] = field

    expression_parts = []
    if set_parts:
        expression_parts.append("SET " + ", ".join(set_parts))
    if remove_parts:
        expression_parts.append("REMOVE " + ", ".join(remove_parts))

    return " ".join(expression_parts), expr_attr_names, expr_attr_values


def current_timestamp() -> int:
    """
    Get current timestamp in milliseconds (DynamoDB timestamp format).

    Returns:
        Current UTC timestamp in milliseconds
    """
    return int(datetime.now(timezone.utc).timestamp() * 1000)
