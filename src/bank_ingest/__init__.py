"""
Bank statement ingestion and normalization.

Turns a raw bank export (camt.053 XML, MT940 text or a national XML dialect)
into one canonical statement and persists it for a tenant.
"""

__version__ = "0.1.0"
