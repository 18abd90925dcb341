"""
Error taxonomy for the ledger pipeline.

Record-level anomalies (malformed explorer rows, unparseable prices, missing
tags) are absorbed where they occur and never raise. Everything below aborts
the run.
"""


class ArbLedgerError(Exception):
    pass


class FetchError(ArbLedgerError):
    """A pagination request to the block explorer failed."""


class ConfigParseError(ArbLedgerError):
    """A tag/category or settings file could not be read or matched no schema."""


class PriceLookupError(ArbLedgerError):
    """The remote price source was unreachable."""


class ValuationError(ArbLedgerError):
    """Splits could not be valued because a price lookup failed."""
