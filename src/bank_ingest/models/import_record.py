from enum import Enum
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone

from pydantic import BaseModel, Field, ConfigDict

from bank_ingest.models.statement import StatementFormat


class ImportStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PARSED = "PARSED"
    QUARANTINE = "QUARANTINE"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({ImportStatus.PARSED, ImportStatus.QUARANTINE, ImportStatus.FAILED})


class ImportRecord(BaseModel):
    """Persisted state of one ingestion attempt, keyed by importId."""
    import_id: str = Field(alias="importId")
    tenant_id: str = Field(alias="tenantId")
    status: ImportStatus = ImportStatus.PENDING
    format: Optional[StatementFormat] = None
    bank_account_id: Optional[str] = Field(default=None, alias="bankAccountId")
    statement_id: Optional[str] = Field(default=None, alias="statementId")
    transaction_count: Optional[int] = Field(default=None, alias="transactionCount")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    processed_at: Optional[int] = Field(default=None, alias="processedAt")
    updated_at: int = Field(
        default_factory=lambda: int(datetime.now(timezone.utc).timestamp() * 1000),
        alias="updatedAt"
    )

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """Convert the model to a DynamoDB item."""
        item: Dict[str, Any] = {
            'importId': self.import_id,
            'tenantId': self.tenant_id,
            'status': self.status.value,
            'updatedAt': self.updated_at,
        }

        if self.format is not None:
            item['format'] = self.format.value
        if self.bank_account_id is not None:
            item['bankAccountId'] = self.bank_account_id
        if self.statement_id is not None:
            item['statementId'] = self.statement_id
        if self.transaction_count is not None:
            item['transactionCount'] = self.transaction_count
        if self.error_message is not None:
            item['errorMessage'] = self.error_message
        if self.processed_at is not None:
            item['processedAt'] = self.processed_at

        return item

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]) -> 'ImportRecord':
        """Create an ImportRecord from a DynamoDB item."""
        return cls(
            importId=item['importId'],
            tenantId=item['tenantId'],
            status=ImportStatus(item.get('status', ImportStatus.PENDING.value)),
            format=StatementFormat(item['format']) if item.get('format') else None,
            bankAccountId=item.get('bankAccountId'),
            statementId=item.get('statementId'),
            transactionCount=int(item['transactionCount']) if item.get('transactionCount') is not None else None,
            errorMessage=item.get('errorMessage'),
            processedAt=int(item['processedAt']) if item.get('processedAt') is not None else None,
            updatedAt=int(item.get('updatedAt', 0)),
        )


class IngestionRequest(BaseModel):
    """Inbound contract: one uploaded file plus its correlation identifiers."""
    raw_content: str = Field(alias="rawContent", min_length=1)
    import_id: str = Field(alias="importId", min_length=1)
    tenant_id: str = Field(alias="tenantId", min_length=1)
    explicit_bank_account_id: Optional[str] = Field(default=None, alias="explicitBankAccountId")

    model_config = ConfigDict(populate_by_name=True)


class IngestionSuccess(BaseModel):
    format: StatementFormat
    transaction_count: int = Field(alias="transactionCount")
    account_identifier: Optional[str] = Field(default=None, alias="accountIdentifier")
    statement_number: Optional[str] = Field(default=None, alias="statementNumber")
    bank_account_id: Optional[str] = Field(default=None, alias="bankAccountId")
    statement_id: Optional[str] = Field(default=None, alias="statementId")
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    @property
    def requires_account_assignment(self) -> bool:
        return self.bank_account_id is None

    def to_response_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class IngestionFailure(BaseModel):
    error: str
    format: Optional[StatementFormat] = None
    hint: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    def to_response_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
