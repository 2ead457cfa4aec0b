"""
Storage collaborator used by the ingestion service.

The ingestion core depends only on the StatementStore protocol; the
DynamoDB-backed implementation delegates to utils.db.
"""
import logging
from typing import Any, List, Optional, Protocol

from bank_ingest.models.bank_account import BankAccount
from bank_ingest.models.bank_statement import BankStatement, StatementLine
from bank_ingest.models.import_record import ImportRecord, ImportStatus
from bank_ingest.utils import db

logger = logging.getLogger(__name__)


class StatementStore(Protocol):
    """The four remote operations ingestion needs, plus the import lookup."""

    def get_import(self, import_id: str) -> Optional[ImportRecord]:
        ...

    def update_import_status(self, import_id: str, status: ImportStatus, **fields: Any) -> None:
        ...

    def find_accounts_by_iban(self, tenant_id: str, iban: str) -> List[BankAccount]:
        ...

    def find_accounts_by_number(self, tenant_id: str, account_number: str) -> List[BankAccount]:
        ...

    def list_tenant_accounts(self, tenant_id: str) -> List[BankAccount]:
        ...

    def create_statement(self, statement: BankStatement) -> None:
        ...

    def create_statement_lines(self, lines: List[StatementLine]) -> int:
        ...


class DynamoDBStatementStore:
    """StatementStore backed by the DynamoDB tables in utils.db."""

    def __init__(self):
        logger.info("DynamoDBStatementStore initialized")

    def get_import(self, import_id: str) -> Optional[ImportRecord]:
        return db.get_import(import_id)

    def update_import_status(self, import_id: str, status: ImportStatus, **fields: Any) -> None:
        db.update_import_status(import_id, status, **fields)

    def find_accounts_by_iban(self, tenant_id: str, iban: str) -> List[BankAccount]:
        return db.find_accounts_by_iban(tenant_id, iban)

    def find_accounts_by_number(self, tenant_id: str, account_number: str) -> List[BankAccount]:
        return db.find_accounts_by_number(tenant_id, account_number)

    def list_tenant_accounts(self, tenant_id: str) -> List[BankAccount]:
        return db.list_tenant_accounts(tenant_id)

    def create_statement(self, statement: BankStatement) -> None:
        db.create_statement(statement)

    def create_statement_lines(self, lines: List[StatementLine]) -> int:
        return db.create_statement_lines(lines)
