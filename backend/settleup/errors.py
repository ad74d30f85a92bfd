"""Ledger error hierarchy raised by the balance and settlement services."""


class LedgerError(Exception):
    """Base class for errors raised by the ledger core."""


class LedgerValidationError(LedgerError):
    """The caller asked for something the ledger refuses to record."""


class SettlementValidationError(LedgerValidationError):
    pass


class ExpenseValidationError(LedgerValidationError):
    pass


class LedgerInvariantError(LedgerError):
    """Stored data broke a bookkeeping invariant (balances not summing to zero)."""
