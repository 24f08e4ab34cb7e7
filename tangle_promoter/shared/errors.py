"""
Promoter Error Taxonomy
=======================
Only InvalidInput and StateFileError are allowed to escape a run.
Everything the ledger raises is a LedgerError and is turned into
bundle bookkeeping by the step that caught it.
"""

from typing import Optional

INCONSISTENT_SUBTANGLE_MARKER = "inconsistent subtangle"


class PromoterError(Exception):
    """Base class for all promoter errors."""


class InvalidInput(PromoterError, ValueError):
    """Malformed or missing construction/configuration arguments."""


class StateFileError(PromoterError):
    """A persisted bundle list could not be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Unreadable state file {path}: {reason}")
        self.path = path
        self.reason = reason


class LedgerError(PromoterError):
    """Any failure reported by (or while talking to) a ledger node."""

    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.method = method


def is_inconsistent_subtangle(error: BaseException) -> bool:
    """True when a promotion was rejected because the tail left the consensus view."""
    message = getattr(error, "message", None) or str(error)
    return INCONSISTENT_SUBTANGLE_MARKER in message.lower()
