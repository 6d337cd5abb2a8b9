# Overview: Ledger error kinds; every one is recoverable and maps to an HTTP status.

from __future__ import annotations


class LedgerError(ValueError):
    """Base for ledger rule violations. Raised before anything is committed."""

    status_code = 400


class ValidationError(LedgerError):
    """400-level input problem (bad amount, unknown payment method...)."""


class NotFound(LedgerError):
    """Referenced entity does not exist."""

    status_code = 404


class NoSessionFound(NotFound):
    """Cash session id is invalid."""


class LimitExceeded(LedgerError):
    """Credit grant would push the player's balance over the credit limit."""

    status_code = 409


class OverpaymentRejected(LedgerError):
    """Payment is larger than what is still owed on a credit record."""

    status_code = 409


class ExcessPayment(OverpaymentRejected):
    """Payment is larger than the player's total outstanding debt."""


class SessionClosed(LedgerError):
    """Mutation attempted against a closed cash session."""

    status_code = 409


class NotUndoable(LedgerError):
    """Audit log entry is not of an undoable event type."""

    status_code = 409


class IncompleteSnapshot(LedgerError):
    """Audit log entry lacks fields required to re-insert the record."""

    status_code = 422
