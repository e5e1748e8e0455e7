"""
Fatal errors.

Bad input never raises: rejected and malformed records become ErrorRecords.
The exceptions here mean the run cannot continue.
"""


class PaymentsError(Exception):
    pass


class RecordSourceError(PaymentsError):
    """The input as a whole is unusable (missing or broken header)."""


class LedgerInvariantError(PaymentsError):
    """Account state broke an accounting invariant; indicates an engine bug."""


class ArithmeticOverflowError(LedgerInvariantError):
    """A balance left the signed 64-bit fixed-point range."""
