"""
Tests for IngestionConfig and the national dialect tables.
"""
import pytest

from bank_ingest.utils.config import DEFAULT_CONFIG, IngestionConfig, NationalDialectConfig


def test_defaults():
    assert DEFAULT_CONFIG.line_batch_size == 100
    assert DEFAULT_CONFIG.max_text_length == 500
    assert DEFAULT_CONFIG.suffix_match_digits == 10
    assert DEFAULT_CONFIG.national_dialect.debit_amount[0] == "Duguje"


def test_from_environment(monkeypatch):
    monkeypatch.setenv('STATEMENT_LINE_BATCH_SIZE', '25')
    monkeypatch.setenv('STATEMENT_MAX_TEXT_LENGTH', '200')
    monkeypatch.setenv('STATEMENT_SUFFIX_MATCH_DIGITS', '8')

    config = IngestionConfig.from_environment()

    assert config.line_batch_size == 25
    assert config.max_text_length == 200
    assert config.suffix_match_digits == 8
    assert config.detection_prefix_chars == DEFAULT_CONFIG.detection_prefix_chars


def test_from_environment_without_overrides(monkeypatch):
    for name in ('STATEMENT_MAX_INPUT_BYTES', 'STATEMENT_LINE_BATCH_SIZE', 'STATEMENT_MAX_TEXT_LENGTH'):
        monkeypatch.delenv(name, raising=False)
    assert IngestionConfig.from_environment().max_input_bytes == DEFAULT_CONFIG.max_input_bytes


@pytest.mark.parametrize("overrides", [
    {"line_batch_size": 0},
    {"max_text_length": 0},
    {"max_text_length": 5000},
    {"max_input_bytes": 0},
    {"suffix_match_digits": 3},
])
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValueError):
        IngestionConfig(**overrides)


def test_with_variants_appends_without_reordering():
    base = NationalDialectConfig()
    extended = base.with_variants("debit_amount", "IznosZaduzenja", "Duguje")

    assert extended.debit_amount == base.debit_amount + ("IznosZaduzenja",)
    assert base.debit_amount[-1] != "IznosZaduzenja"


def test_with_variants_unknown_field():
    with pytest.raises(ValueError):
        NationalDialectConfig().with_variants("no_such_field", "X")
    with pytest.raises(ValueError):
        NationalDialectConfig().with_variants("payment_code_ranges", "X")
