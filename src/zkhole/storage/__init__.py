"""Storage layer: the SQLAlchemy reference ledger."""

from zkhole.storage.database import (
    Base,
    BalanceRecord,
    LocalLedger,
    OperationRecord,
)

__all__ = [
    "Base",
    "BalanceRecord",
    "LocalLedger",
    "OperationRecord",
]
