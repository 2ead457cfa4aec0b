"""
Integration tests for the DynamoDB access functions, run against moto.
"""
import os
from datetime import date
from decimal import Decimal

import boto3
import pytest
from moto import mock_aws

from bank_ingest.models.bank_statement import BankStatement, build_statement_lines
from bank_ingest.models.import_record import ImportRecord, ImportStatus
from bank_ingest.models.statement import Direction, ParsedStatement, ParsedTransaction, StatementFormat
from bank_ingest.utils.db import (
    NotFound,
    create_bank_account,
    create_statement,
    create_statement_lines,
    find_accounts_by_iban,
    find_accounts_by_number,
    get_import,
    get_statement,
    list_statement_lines,
    list_tenant_accounts,
    tables,
    update_import_status,
)
from tests.fixtures.statement_fixtures import CAMT_IBAN, IMPORT_ID, TENANT_ID, create_test_account

TABLE_NAMES = {
    'DOCUMENT_IMPORTS_TABLE': 'test-document-imports',
    'BANK_ACCOUNTS_TABLE': 'test-bank-accounts',
    'BANK_STATEMENTS_TABLE': 'test-bank-statements',
    'BANK_STATEMENT_LINES_TABLE': 'test-bank-statement-lines',
}


def _create_tables(dynamodb):
    dynamodb.create_table(
        TableName=TABLE_NAMES['DOCUMENT_IMPORTS_TABLE'],
        KeySchema=[{'AttributeName': 'importId', 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': 'importId', 'AttributeType': 'S'}],
        BillingMode='PAY_PER_REQUEST',
    )
    dynamodb.create_table(
        TableName=TABLE_NAMES['BANK_ACCOUNTS_TABLE'],
        KeySchema=[{'AttributeName': 'accountId', 'KeyType': 'HASH'}],
        AttributeDefinitions=[
            {'AttributeName': 'accountId', 'AttributeType': 'S'},
            {'AttributeName': 'tenantId', 'AttributeType': 'S'},
        ],
        GlobalSecondaryIndexes=[{
            'IndexName': 'TenantIdIndex',
            'KeySchema': [{'AttributeName': 'tenantId', 'KeyType': 'HASH'}],
            'Projection': {'ProjectionType': 'ALL'},
        }],
        BillingMode='PAY_PER_REQUEST',
    )
    dynamodb.create_table(
        TableName=TABLE_NAMES['BANK_STATEMENTS_TABLE'],
        KeySchema=[{'AttributeName': 'statementId', 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': 'statementId', 'AttributeType': 'S'}],
        BillingMode='PAY_PER_REQUEST',
    )
    dynamodb.create_table(
        TableName=TABLE_NAMES['BANK_STATEMENT_LINES_TABLE'],
        KeySchema=[{'AttributeName': 'lineId', 'KeyType': 'HASH'}],
        AttributeDefinitions=[
            {'AttributeName': 'lineId', 'AttributeType': 'S'},
            {'AttributeName': 'statementId', 'AttributeType': 'S'},
        ],
        GlobalSecondaryIndexes=[{
            'IndexName': 'StatementIdIndex',
            'KeySchema': [{'AttributeName': 'statementId', 'KeyType': 'HASH'}],
            'Projection': {'ProjectionType': 'ALL'},
        }],
        BillingMode='PAY_PER_REQUEST',
    )


@pytest.fixture
def dynamodb_tables(monkeypatch):
    for env_var, table_name in TABLE_NAMES.items():
        monkeypatch.setenv(env_var, table_name)
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name=os.environ.get('AWS_DEFAULT_REGION', 'eu-central-1'))
        _create_tables(dynamodb)
        tables.reinitialize()
        yield dynamodb
    tables._tables.clear()
    tables._dynamodb = None


@pytest.fixture
def pending_import(dynamodb_tables):
    record = ImportRecord(importId=IMPORT_ID, tenantId=TENANT_ID)
    dynamodb_tables.Table(TABLE_NAMES['DOCUMENT_IMPORTS_TABLE']).put_item(Item=record.to_dynamodb_item())
    return record


def _parsed_statement(count: int) -> ParsedStatement:
    return ParsedStatement(
        format=StatementFormat.SWIFT_TEXT,
        accountIdentifier="DE89370400440532013000",
        openingBalance=Decimal("100.00"),
        periodEnd=date(2024, 2, 3),
        transactions=[
            ParsedTransaction(
                lineDate=date(2024, 2, 1),
                amount=Decimal(f"{index}.50"),
                direction=Direction.DEBIT if index % 2 else Direction.CREDIT,
                description=f"Line {index}",
            )
            for index in range(1, count + 1)
        ],
    )


class TestImports:
    def test_get_import(self, pending_import):
        record = get_import(IMPORT_ID)

        assert record.import_id == IMPORT_ID
        assert record.status == ImportStatus.PENDING
        assert get_import("missing") is None

    def test_update_import_status(self, pending_import):
        update_import_status(
            IMPORT_ID,
            ImportStatus.PARSED,
            format=StatementFormat.SWIFT_TEXT,
            transactionCount=3,
            bankAccountId=None,
        )

        record = get_import(IMPORT_ID)
        assert record.status == ImportStatus.PARSED
        assert record.format == StatementFormat.SWIFT_TEXT
        assert record.transaction_count == 3
        assert record.bank_account_id is None
        assert record.is_terminal

    def test_update_missing_import_raises_not_found(self, dynamodb_tables):
        with pytest.raises(NotFound):
            update_import_status("missing", ImportStatus.PROCESSING)


class TestBankAccounts:
    def test_find_by_iban_and_number(self, dynamodb_tables):
        create_bank_account(create_test_account(account_id="acc-1", iban="RS35 2600 0560 1001 6113 79"))
        create_bank_account(create_test_account(account_id="acc-2", iban=None, account_number="160-0000000123456-78"))
        create_bank_account(create_test_account(account_id="acc-other", tenant_id="tenant-other"))

        assert [a.account_id for a in find_accounts_by_iban(TENANT_ID, CAMT_IBAN)] == ["acc-1"]
        assert [a.account_id for a in find_accounts_by_number(TENANT_ID, "160 0000000123456 78")] == ["acc-2"]
        assert find_accounts_by_iban(TENANT_ID, "") == []

    def test_list_tenant_accounts_skips_inactive(self, dynamodb_tables):
        create_bank_account(create_test_account(account_id="acc-1"))
        inactive = create_test_account(account_id="acc-2", iban="DE89370400440532013000")
        create_bank_account(inactive.model_copy(update={'is_active': False}))

        assert [a.account_id for a in list_tenant_accounts(TENANT_ID)] == ["acc-1"]
        assert list_tenant_accounts("tenant-other") == []


class TestStatements:
    def test_statement_round_trip(self, dynamodb_tables):
        parsed = _parsed_statement(2)
        statement = BankStatement.from_parsed(parsed, TENANT_ID, IMPORT_ID, "acc-1")

        create_statement(statement)
        stored = get_statement(statement.statement_id)

        assert stored.bank_account_id == "acc-1"
        assert stored.format == StatementFormat.SWIFT_TEXT
        assert stored.statement_date == date(2024, 2, 3)
        assert stored.opening_balance == Decimal("100.00")
        assert stored.line_count == 2
        assert get_statement("missing") is None

    def test_lines_written_and_listed_in_file_order(self, dynamodb_tables):
        parsed = _parsed_statement(30)
        statement = BankStatement.from_parsed(parsed, TENANT_ID, IMPORT_ID, None)
        lines = build_statement_lines(parsed, statement)

        assert create_statement_lines(lines) == 30

        stored = list_statement_lines(statement.statement_id)
        assert [line.line_order for line in stored] == list(range(1, 31))
        assert stored[0].direction == Direction.DEBIT
        assert stored[0].amount == Decimal("1.50")
        assert stored[0].line_hash == lines[0].line_hash

    def test_rewriting_the_same_import_is_idempotent(self, dynamodb_tables):
        parsed = _parsed_statement(3)
        statement = BankStatement.from_parsed(parsed, TENANT_ID, IMPORT_ID, None)
        lines = build_statement_lines(parsed, statement)

        create_statement(statement)
        create_statement_lines(lines)
        create_statement(BankStatement.from_parsed(parsed, TENANT_ID, IMPORT_ID, None))
        create_statement_lines(build_statement_lines(parsed, statement))

        assert len(list_statement_lines(statement.statement_id)) == 3
        scanned = dynamodb_tables.Table(TABLE_NAMES['BANK_STATEMENTS_TABLE']).scan()['Items']
        assert len(scanned) == 1
