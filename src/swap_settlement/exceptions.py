"""
Swap Settlement Exception Hierarchy

All exceptions inherit from SettlementError for easy catching.
"""


class SettlementError(Exception):
    """Base exception for all settlement errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(SettlementError, ValueError):
    """Raised when an offer or request is rejected before any state changes"""
    pass


class AuthorizationError(SettlementError):
    """Raised when a maker has not authorized the requested movement"""
    pass


class StateError(SettlementError):
    """Raised when a nullifier update would decrease or exceed the fill cap"""
    pass


class TransferError(SettlementError):
    """Raised when the asset ledger refuses or fails a transfer"""
    pass
