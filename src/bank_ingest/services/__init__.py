"""
Services package: account resolution and statement ingestion.
"""

from .statement_store import StatementStore, DynamoDBStatementStore
from .account_resolver import AccountResolver
from .ingestion_service import (
    StatementIngestionService,
    IngestionError,
    PersistenceError,
)

__all__ = [
    'StatementStore',
    'DynamoDBStatementStore',
    'AccountResolver',
    'StatementIngestionService',
    'IngestionError',
    'PersistenceError',
]
