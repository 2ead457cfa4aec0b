"""
Ingestion configuration settings.

Centralizes size limits, batch sizes and the national-format fallback tables.
The orchestrator receives an IngestionConfig explicitly; nothing in the
parsing path reads environment variables on its own.
"""
import os
from dataclasses import dataclass, field, fields, replace
from typing import Tuple

from bank_ingest.models.statement import TransactionType, TEXT_FIELD_CEILING


# Ordered (low, high, type) ranges over three-digit payment codes.
DEFAULT_PAYMENT_CODE_RANGES: Tuple[Tuple[int, int, TransactionType], ...] = (
    (240, 249, TransactionType.SALARY),
    (250, 259, TransactionType.TAX),
    (260, 269, TransactionType.FEE),
    (270, 279, TransactionType.CARD),
)


@dataclass(frozen=True)
class NationalDialectConfig:
    """
    Fallback tag tables for the national XML family.

    Every tuple is an ordered list of tag-name variants; the first variant
    present in a document wins. New bank dialects are supported by appending
    variants (see `with_variants`), never by reordering existing ones.
    """

    root_tags: Tuple[str, ...] = (
        "DnevniIzvod", "Izvod", "NalogZaPrenos", "IzvodRacuna", "StanjeIPromene",
    )
    """Root/element names whose presence classifies a document as national XML."""

    container_tags: Tuple[str, ...] = (
        "Stavka", "Transakcija", "StavkaIzvoda", "Promena", "NalogZaPrenos",
    )
    """Element names of one transaction item."""

    wrapper_tags: Tuple[str, ...] = (
        "Stavke", "Transakcije", "StavkeIzvoda", "Promene", "Prometi",
    )
    """Wrappers whose direct children are items when no container tag matched."""

    statement_number: Tuple[str, ...] = ("BrojIzvoda", "RedniBroj", "BrIzvoda")
    account: Tuple[str, ...] = ("BrojRacuna", "Racun", "RacunKorisnika", "Partija")
    currency: Tuple[str, ...] = ("Valuta", "OznakaValute")
    opening_balance: Tuple[str, ...] = ("PrethodnoStanje", "PocetnoStanje", "StaroStanje")
    closing_balance: Tuple[str, ...] = ("NovoStanje", "KrajnjeStanje", "ZavrsnoStanje")
    period_start: Tuple[str, ...] = ("DatumOd", "PeriodOd")
    period_end: Tuple[str, ...] = ("DatumDo", "PeriodDo", "DatumIzvoda")

    line_date: Tuple[str, ...] = ("Datum", "DatumKnjizenja", "DatumPrometa", "DatumValute")
    value_date: Tuple[str, ...] = ("DatumValute",)
    amount: Tuple[str, ...] = ("Iznos", "IznosPrometa")
    side_indicator: Tuple[str, ...] = ("Smer", "Tip", "Strana", "VrstaPrometa")
    debit_amount: Tuple[str, ...] = ("Duguje", "IznosDuguje", "Zaduzenje", "Isplata")
    credit_amount: Tuple[str, ...] = ("Potrazuje", "IznosPotrazuje", "Odobrenje", "Uplata")
    description: Tuple[str, ...] = ("Opis", "Svrha", "SvrhaPlacanja", "Napomena")
    counterparty_name: Tuple[str, ...] = ("Nalogodavac", "Naziv", "NazivPrimaoca", "Primalac", "Korisnik")
    counterparty_account: Tuple[str, ...] = ("RacunNalogodavca", "RacunPrimaoca", "Racun", "BrojRacunaPartnera")
    counterparty_bank: Tuple[str, ...] = ("Banka", "NazivBanke", "BankaPartnera")
    payment_reference: Tuple[str, ...] = ("PozivNaBroj", "PozivNaBrojOdobrenja", "PozivNaBrojZaduzenja", "Referenca")
    payment_code: Tuple[str, ...] = ("SifraPlacanja", "Sifra", "SifraOsnova")

    debit_tokens: Tuple[str, ...] = (
        "d", "dr", "debit", "dbit", "duguje", "rashod", "isplata", "zaduzenje", "out", "2",
    )
    """Side-indicator values meaning DEBIT (compared case-insensitively)."""

    credit_tokens: Tuple[str, ...] = (
        "c", "cr", "p", "credit", "crdt", "potrazuje", "prihod", "uplata", "odobrenje", "in", "1",
    )
    """Side-indicator values meaning CREDIT (compared case-insensitively)."""

    payment_code_ranges: Tuple[Tuple[int, int, TransactionType], ...] = DEFAULT_PAYMENT_CODE_RANGES

    def with_variants(self, field_name: str, *tags: str) -> 'NationalDialectConfig':
        """Return a copy with `tags` appended to the variant list of `field_name`."""
        known = {f.name for f in fields(self)} - {"payment_code_ranges"}
        if field_name not in known:
            raise ValueError(f"Unknown dialect field: {field_name}")
        current: Tuple[str, ...] = getattr(self, field_name)
        additions = tuple(tag for tag in tags if tag not in current)
        return replace(self, **{field_name: current + additions})


@dataclass(frozen=True)
class IngestionConfig:
    """Configuration for one ingestion pipeline."""

    max_input_bytes: int = 10 * 1024 * 1024
    """Inputs larger than this are quarantined before extraction."""

    detection_prefix_chars: int = 65536
    """The format detector never looks past this many characters."""

    line_batch_size: int = 100
    """Statement lines written per storage call."""

    max_text_length: int = 500
    """Free-text fields are truncated to this length."""

    snippet_length: int = 300
    """Characters of normalized content kept in quarantine diagnostics."""

    max_error_length: int = 1000
    """Upper bound of a persisted error message."""

    suffix_match_digits: int = 10
    """Trailing digits compared by last-resort account matching."""

    national_dialect: NationalDialectConfig = field(default_factory=NationalDialectConfig)

    def __post_init__(self):
        if self.line_batch_size < 1:
            raise ValueError(f"line_batch_size must be positive, got {self.line_batch_size}")
        if not 1 <= self.max_text_length <= TEXT_FIELD_CEILING:
            raise ValueError(
                f"max_text_length must be between 1 and {TEXT_FIELD_CEILING}, got {self.max_text_length}"
            )
        if self.max_input_bytes < 1 or self.detection_prefix_chars < 1:
            raise ValueError("max_input_bytes and detection_prefix_chars must be positive")
        if self.suffix_match_digits < 4:
            raise ValueError(f"suffix_match_digits below 4 is too ambiguous, got {self.suffix_match_digits}")

    @classmethod
    def from_environment(cls) -> 'IngestionConfig':
        """
        Create configuration from environment variables with fallback to defaults.

        Environment variables:
        - STATEMENT_MAX_INPUT_BYTES
        - STATEMENT_DETECTION_PREFIX_CHARS
        - STATEMENT_LINE_BATCH_SIZE
        - STATEMENT_MAX_TEXT_LENGTH
        - STATEMENT_SNIPPET_LENGTH
        - STATEMENT_SUFFIX_MATCH_DIGITS
        """
        return cls(
            max_input_bytes=int(os.getenv('STATEMENT_MAX_INPUT_BYTES', 10 * 1024 * 1024)),
            detection_prefix_chars=int(os.getenv('STATEMENT_DETECTION_PREFIX_CHARS', 65536)),
            line_batch_size=int(os.getenv('STATEMENT_LINE_BATCH_SIZE', 100)),
            max_text_length=int(os.getenv('STATEMENT_MAX_TEXT_LENGTH', 500)),
            snippet_length=int(os.getenv('STATEMENT_SNIPPET_LENGTH', 300)),
            suffix_match_digits=int(os.getenv('STATEMENT_SUFFIX_MATCH_DIGITS', 10)),
        )


# Default configuration instance
DEFAULT_CONFIG = IngestionConfig()
