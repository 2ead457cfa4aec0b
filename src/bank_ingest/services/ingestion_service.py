"""
Statement ingestion service.

Drives one uploaded file through normalize -> detect -> extract -> resolve ->
persist, recording the import status as it goes:

    PENDING -> PROCESSING -> PARSED | QUARANTINE
                          -> FAILED (storage failure, exception propagates)

PROCESSING is recorded before any parsing so a crash mid-parse is visible as
a stuck import rather than a lost one.
"""
import logging
from typing import List, Optional, Union

from bank_ingest.models.bank_statement import BankStatement, build_statement_lines
from bank_ingest.models.import_record import (
    ImportStatus,
    IngestionFailure,
    IngestionRequest,
    IngestionSuccess,
)
from bank_ingest.models.statement import ParsedStatement, StatementFormat
from bank_ingest.services.account_resolver import AccountResolver
from bank_ingest.services.statement_store import DynamoDBStatementStore, StatementStore
from bank_ingest.utils.config import IngestionConfig, DEFAULT_CONFIG
from bank_ingest.utils.db.helpers import current_timestamp
from bank_ingest.utils.envelope import normalize
from bank_ingest.utils.format_detector import detect_format
from bank_ingest.utils.statement_parsers import parse_statement

logger = logging.getLogger(__name__)

IngestionResult = Union[IngestionSuccess, IngestionFailure]

UNKNOWN_FORMAT_HINT = (
    "Supported formats are ISO 20022 camt.053 XML, SWIFT MT940 text and national XML statements"
)
EMPTY_EXTRACTION_HINT = (
    "The format was recognized but no transactions could be extracted; "
    "the file may use a bank dialect with unknown tag names"
)


class IngestionError(Exception):
    """Base class for ingestion failures that are not quarantine outcomes."""
    pass


class PersistenceError(IngestionError):
    """A storage call failed after the import was marked PROCESSING."""

    def __init__(self, message: str, import_id: Optional[str] = None):
        super().__init__(message)
        self.import_id = import_id


def build_diagnostic(
    reason: str,
    format_label: str,
    normalized: str,
    config: IngestionConfig
) -> str:
    """Bounded error message with the format label and a content snippet for manual triage."""
    snippet = " ".join(normalized[:config.snippet_length].split())
    message = f"{reason} [format={format_label}] snippet: {snippet}"
    return message[:config.max_error_length]


class StatementIngestionService:
    """Service for ingesting one bank statement file per call."""

    def __init__(
        self,
        store: Optional[StatementStore] = None,
        config: Optional[IngestionConfig] = None,
        resolver: Optional[AccountResolver] = None
    ):
        self.store = store if store is not None else DynamoDBStatementStore()
        self.config = config or DEFAULT_CONFIG
        self.resolver = resolver or AccountResolver(self.store, self.config)

    def ingest(self, request: IngestionRequest) -> IngestionResult:
        """
        Ingest one raw statement file.

        Args:
            request: Raw content plus import and tenant identifiers

        Returns:
            IngestionSuccess, or IngestionFailure when the import was quarantined

        Raises:
            PersistenceError: If a storage call fails; the import is marked FAILED best-effort
        """
        import_id = request.import_id
        logger.info(f"Starting ingestion of import {import_id} for tenant {request.tenant_id}")
        self._set_status(import_id, ImportStatus.PROCESSING)

        raw_size = len(request.raw_content.encode('utf-8', errors='replace'))
        if raw_size > self.config.max_input_bytes:
            return self._quarantine(
                import_id,
                StatementFormat.UNKNOWN,
                f"Input of {raw_size} bytes exceeds the {self.config.max_input_bytes} byte limit",
                request.raw_content[:self.config.snippet_length],
                hint=f"Split the statement into files of at most {self.config.max_input_bytes} bytes",
            )

        normalized = normalize(request.raw_content)
        statement_format = detect_format(normalized, self.config)
        if statement_format == StatementFormat.UNKNOWN:
            return self._quarantine(
                import_id,
                statement_format,
                "Unrecognized statement format",
                normalized,
                hint=UNKNOWN_FORMAT_HINT,
            )

        parsed = parse_statement(normalized, statement_format, self.config)
        if parsed.is_empty:
            return self._quarantine(
                import_id,
                statement_format,
                f"No transactions extracted from {statement_format.value} statement",
                normalized,
                hint=EMPTY_EXTRACTION_HINT,
            )

        try:
            return self._persist(request, parsed)
        except Exception as e:
            self._mark_failed(import_id, statement_format, e)
            raise PersistenceError(f"Failed to store statement for import {import_id}: {str(e)}", import_id) from e

    def _persist(self, request: IngestionRequest, parsed: ParsedStatement) -> IngestionSuccess:
        warnings: List[str] = []

        explicit_account_id = request.explicit_bank_account_id or self._preselected_account(request.import_id)
        bank_account_id = self.resolver.resolve(
            request.tenant_id,
            parsed.account_identifier,
            explicit_account_id,
        )
        if bank_account_id is None:
            warnings.append(
                f"No registered bank account matches {parsed.account_identifier or 'the statement'}; "
                f"manual assignment required"
            )

        if parsed.balances_reconcile() is False:
            warnings.append(
                f"Opening balance {parsed.opening_balance} plus movements does not equal "
                f"closing balance {parsed.closing_balance}"
            )

        statement = BankStatement.from_parsed(parsed, request.tenant_id, request.import_id, bank_account_id)
        self.store.create_statement(statement)
        logger.info(f"Created statement {statement.statement_id} for import {request.import_id}")

        lines = build_statement_lines(parsed, statement)
        batch_size = self.config.line_batch_size
        written = 0
        for start in range(0, len(lines), batch_size):
            batch = lines[start:start + batch_size]
            self.store.create_statement_lines(batch)
            written += len(batch)
            logger.debug(f"Wrote statement lines {start + 1}-{start + len(batch)} of {len(lines)}")

        self.store.update_import_status(
            request.import_id,
            ImportStatus.PARSED,
            format=parsed.format,
            transactionCount=written,
            bankAccountId=bank_account_id,
            statementId=statement.statement_id,
            processedAt=current_timestamp(),
        )
        logger.info(
            f"Import {request.import_id} parsed: {written} {parsed.format.value} lines, "
            f"account {bank_account_id or 'unresolved'}"
        )

        for warning in warnings:
            logger.warning(f"Import {request.import_id}: {warning}")

        return IngestionSuccess(
            format=parsed.format,
            transactionCount=written,
            accountIdentifier=parsed.account_identifier,
            statementNumber=parsed.statement_number,
            bankAccountId=bank_account_id,
            statementId=statement.statement_id,
            warnings=warnings,
        )

    def _preselected_account(self, import_id: str) -> Optional[str]:
        """Account chosen at upload time and stored on the import row, if any."""
        record = self.store.get_import(import_id)
        return record.bank_account_id if record else None

    def _quarantine(
        self,
        import_id: str,
        statement_format: StatementFormat,
        reason: str,
        content: str,
        hint: Optional[str] = None
    ) -> IngestionFailure:
        diagnostic = build_diagnostic(reason, statement_format.value, content, self.config)
        logger.warning(f"Quarantining import {import_id}: {reason} (format {statement_format.value})")
        self._set_status(
            import_id,
            ImportStatus.QUARANTINE,
            format=statement_format,
            errorMessage=diagnostic,
            processedAt=current_timestamp(),
        )
        return IngestionFailure(error=reason, format=statement_format, hint=hint)

    def _set_status(self, import_id: str, status: ImportStatus, **fields) -> None:
        try:
            self.store.update_import_status(import_id, status, **fields)
        except Exception as e:
            logger.error(f"Could not set import {import_id} to {status.value}: {str(e)}")
            if status != ImportStatus.PROCESSING:
                self._mark_failed(import_id, fields.get('format'), e)
            raise PersistenceError(f"Failed to set import {import_id} to {status.value}: {str(e)}", import_id) from e

    def _mark_failed(self, import_id: str, statement_format: Optional[StatementFormat], error: Exception) -> None:
        """Best-effort FAILED transition; a second storage failure is only logged."""
        try:
            self.store.update_import_status(
                import_id,
                ImportStatus.FAILED,
                format=statement_format,
                errorMessage=f"Persistence failure: {str(error)}"[:self.config.max_error_length],
                processedAt=current_timestamp(),
            )
        except Exception as e:
            logger.error(f"Could not mark import {import_id} as FAILED: {str(e)}")
