"""
Models package for statement ingestion.
"""

from .statement import (
    StatementFormat,
    Direction,
    TransactionType,
    ParsedTransaction,
    ParsedStatement,
)

from .import_record import (
    ImportStatus,
    ImportRecord,
    IngestionRequest,
    IngestionSuccess,
    IngestionFailure,
)

from .bank_account import BankAccount, compact_identifier

from .bank_statement import (
    BankStatement,
    StatementLine,
    build_statement_lines,
)

__all__ = [
    'StatementFormat',
    'Direction',
    'TransactionType',
    'ParsedTransaction',
    'ParsedStatement',
    'ImportStatus',
    'ImportRecord',
    'IngestionRequest',
    'IngestionSuccess',
    'IngestionFailure',
    'BankAccount',
    'compact_identifier',
    'BankStatement',
    'StatementLine',
    'build_statement_lines',
]
