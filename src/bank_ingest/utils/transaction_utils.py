"""
Utility functions for statement line identity and de-duplication.
"""
import hashlib
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional
import logging


logger = logging.getLogger(__name__)

# Fixed namespace so the same import always maps to the same statement id
STATEMENT_NAMESPACE = uuid.UUID("6f1c3a52-9d7e-4b8a-a1f0-3c2d5e8b7a91")


def statement_id_for_import(tenant_id: str, import_id: str) -> str:
    """Deterministic statement id for an import; a retried write targets the same record."""
    return str(uuid.uuid5(STATEMENT_NAMESPACE, f"{tenant_id}:{import_id}"))


def line_id_for_statement(statement_id: str, line_order: int) -> str:
    """Deterministic line id from the owning statement and 1-based file position."""
    return str(uuid.uuid5(STATEMENT_NAMESPACE, f"{statement_id}:{line_order}"))


def generate_line_hash(
    tenant_id: str,
    line_date: date,
    amount: Decimal,
    direction: str,
    description: Optional[str]
) -> int:
    """
    Generate a numeric hash for statement line de-duplication across imports.

    Args:
        tenant_id: Owning tenant
        line_date: Booking date of the line
        amount: Non-negative line amount
        direction: 'credit' or 'debit'
        description: Free-text description (may be None)

    Returns:
        int: A 64-bit hash of the line details
    """
    # Normalize the amount by removing trailing zeros and decimal point if not needed
    normalized_amount = amount.normalize()

    content = f"{tenant_id}|{line_date.isoformat()}|{direction}|{str(normalized_amount)}|{description or ''}"

    hash_obj = hashlib.sha256(content.encode('utf-8'))
    hash_value = int(hash_obj.hexdigest()[:16], 16)

    return hash_value
