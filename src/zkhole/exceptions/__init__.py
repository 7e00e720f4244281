"""Custom exceptions for the zkHole SDK."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Discriminant carried by every SDK error."""
    ZKHOLE = "zkhole"
    VALIDATION = "validation"
    WALLET = "wallet"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NETWORK = "network"
    TRANSACTION = "transaction"


class ZkHoleError(Exception):
    """Base exception for all zkHole errors."""

    kind: ErrorKind = ErrorKind.ZKHOLE

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def retryable(self) -> bool:
        """Network failures are transient by convention; nothing else is."""
        return self.kind is ErrorKind.NETWORK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "message": self.message,
            "cause": repr(self.cause) if self.cause is not None else None,
        }


class ValidationError(ZkHoleError):
    """Raised when operation parameters are malformed or break a business rule."""
    kind = ErrorKind.VALIDATION


class WalletError(ZkHoleError):
    """Raised when the wallet lacks a capability the operation needs."""
    kind = ErrorKind.WALLET


class InsufficientFundsError(ZkHoleError):
    """Raised when the balance check fails after validation."""
    kind = ErrorKind.INSUFFICIENT_FUNDS


class NetworkError(ZkHoleError):
    """Raised when the ledger or prover fails; wraps the original cause."""
    kind = ErrorKind.NETWORK


class TransactionError(ZkHoleError):
    """Raised by a ledger that rejects a submitted operation."""
    kind = ErrorKind.TRANSACTION


class OperationNotFoundError(TransactionError):
    """Raised by a ledger asked about an operation it does not hold."""
    pass


def is_error_kind(exc: BaseException, kind: ErrorKind) -> bool:
    """Check an exception's discriminant without relying on isinstance."""
    return getattr(exc, "kind", None) is kind


__all__ = [
    "ErrorKind",
    "ZkHoleError",
    "ValidationError",
    "WalletError",
    "InsufficientFundsError",
    "NetworkError",
    "TransactionError",
    "OperationNotFoundError",
    "is_error_kind",
]
