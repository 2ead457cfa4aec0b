"""
Tests for amount, date, text and code normalization rules.
"""
import unittest
from datetime import date
from decimal import Decimal

import pytest

from bank_ingest.models.statement import Direction, TransactionType
from bank_ingest.utils.config import DEFAULT_PAYMENT_CODE_RANGES, NationalDialectConfig
from bank_ingest.utils.normalization import (
    classify_iso_code,
    classify_payment_code,
    direction_from_indicator,
    parse_amount,
    parse_date,
    parse_yymmdd,
    split_signed_amount,
    truncate_text,
)


@pytest.mark.parametrize("raw, expected", [
    ("500,00", Decimal("500.00")),
    ("1.234,56", Decimal("1234.56")),
    ("1,234.56", Decimal("1234.56")),
    ("1 234,56", Decimal("1234.56")),
    ("1\u00a0234,56", Decimal("1234.56")),
    ("1'234.56", Decimal("1234.56")),
    ("1.000.000", Decimal("1000000")),
    ("1500,", Decimal("1500")),
    ("-1.200,00", Decimal("-1200.00")),
    ("+75,00", Decimal("75.00")),
    ("500,00-", Decimal("-500.00")),
    ("0,00", Decimal("0.00")),
])
def test_parse_amount_locales(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "abc", "12a", "--5", "1,2,3.4.5x"])
def test_parse_amount_rejects_garbage(raw):
    assert parse_amount(raw) is None


class TestSplitSignedAmount(unittest.TestCase):
    def test_negative_is_debit(self):
        self.assertEqual(split_signed_amount(Decimal("-12.50")), (Decimal("12.50"), Direction.DEBIT))

    def test_positive_and_zero_are_credit(self):
        self.assertEqual(split_signed_amount(Decimal("12.50")), (Decimal("12.50"), Direction.CREDIT))
        self.assertEqual(split_signed_amount(Decimal("0")), (Decimal("0"), Direction.CREDIT))


class TestTruncateText(unittest.TestCase):
    def test_collapses_whitespace(self):
        self.assertEqual(truncate_text("  Salary \n  February\t", 100), "Salary February")

    def test_truncates(self):
        self.assertEqual(truncate_text("abcdef", 3), "abc")

    def test_empty_becomes_none(self):
        self.assertIsNone(truncate_text("   \n", 10))
        self.assertIsNone(truncate_text(None, 10))


class TestParseDate(unittest.TestCase):
    def test_supported_layouts(self):
        expected = date(2024, 3, 12)
        for raw in ("2024-03-12", "12.03.2024", "12.03.2024.", "12/03/2024", "20240312", "12-03-2024", "2024/03/12"):
            self.assertEqual(parse_date(raw), expected, raw)

    def test_datetime_cut_to_date(self):
        self.assertEqual(parse_date("2024-01-15T10:30:00"), date(2024, 1, 15))
        self.assertEqual(parse_date("2024-01-15 23:59:59"), date(2024, 1, 15))

    def test_unparseable(self):
        self.assertIsNone(parse_date("2024-01-15+1"))
        self.assertIsNone(parse_date("15th of March"))
        self.assertIsNone(parse_date("31.02.2024"))
        self.assertIsNone(parse_date(None))


@pytest.mark.parametrize("raw", [
    "2024-01-15+01:00",
    "2024-01-15-05:00",
    "2024-01-15Z",
    "2024-01-15T08:00:00.000+01:00",
    "15.01.2024 00:00:00",
    "15.01.2024. 12:30",
    "15.01.2024T00:00:00",
    "15/01/2024 00:00",
])
def test_zoned_dates_and_datetimes_cut_to_date(raw):
    assert parse_date(raw) == date(2024, 1, 15)


class TestParseYymmdd(unittest.TestCase):
    def test_valid(self):
        self.assertEqual(parse_yymmdd("060315"), date(2006, 3, 15))

    def test_invalid(self):
        self.assertIsNone(parse_yymmdd("061315"))
        self.assertIsNone(parse_yymmdd("06031"))
        self.assertIsNone(parse_yymmdd("06O315"))
        self.assertIsNone(parse_yymmdd(None))


class TestDirectionFromIndicator(unittest.TestCase):
    def setUp(self):
        dialect = NationalDialectConfig()
        self.debit_tokens = dialect.debit_tokens
        self.credit_tokens = dialect.credit_tokens

    def resolve(self, value):
        return direction_from_indicator(value, self.debit_tokens, self.credit_tokens)

    def test_codes(self):
        self.assertEqual(self.resolve("1"), Direction.CREDIT)
        self.assertEqual(self.resolve("2"), Direction.DEBIT)
        self.assertEqual(self.resolve(" D "), Direction.DEBIT)
        self.assertEqual(self.resolve("CRDT"), Direction.CREDIT)

    def test_phrase_decided_by_first_known_word(self):
        self.assertEqual(self.resolve("Rashod - provizija"), Direction.DEBIT)
        self.assertEqual(self.resolve("Uplata na racun"), Direction.CREDIT)

    def test_unknown(self):
        self.assertIsNone(self.resolve("X"))
        self.assertIsNone(self.resolve(""))
        self.assertIsNone(self.resolve(None))


class TestClassifyIsoCode(unittest.TestCase):
    def test_rules(self):
        self.assertEqual(classify_iso_code("PMNT RCDT SALA"), TransactionType.SALARY)
        self.assertEqual(classify_iso_code("ACMT MDOP CHRG"), TransactionType.FEE)
        self.assertEqual(classify_iso_code("PMNT ICDT TAXS"), TransactionType.TAX)
        self.assertEqual(classify_iso_code("PMNT CCRD POSD"), TransactionType.CARD)
        self.assertEqual(classify_iso_code("pmnt icdt esct"), TransactionType.WIRE)

    def test_fee_wins_over_wire(self):
        self.assertEqual(classify_iso_code("PMNT ICDT CHRG"), TransactionType.FEE)

    def test_unknown_is_wire(self):
        self.assertEqual(classify_iso_code("XTND NTAV NTAV"), TransactionType.WIRE)
        self.assertEqual(classify_iso_code(None), TransactionType.WIRE)


class TestClassifyPaymentCode(unittest.TestCase):
    def test_ranges(self):
        self.assertEqual(classify_payment_code("240", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.SALARY)
        self.assertEqual(classify_payment_code("253", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.TAX)
        self.assertEqual(classify_payment_code("263", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.FEE)
        self.assertEqual(classify_payment_code("221", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.WIRE)

    def test_payment_form_digit_ignored(self):
        self.assertEqual(classify_payment_code("153", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.TAX)
        self.assertEqual(classify_payment_code("340", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.SALARY)

    def test_unusable_codes_are_wire(self):
        self.assertEqual(classify_payment_code("", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.WIRE)
        self.assertEqual(classify_payment_code("2a", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.WIRE)
        self.assertEqual(classify_payment_code("953", DEFAULT_PAYMENT_CODE_RANGES), TransactionType.WIRE)
