"""Ledger capability and the records exchanged with it.

The ledger is the system of record: it takes submitted operations, reports
balances and status, and confirms finality. Clients only rely on the
contract below; ``zkhole.storage.database.LocalLedger`` is the reference
implementation. Implementations may raise anything on failure: the pipeline
treats every ledger exception as an opaque network/submission failure.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from zkhole.models.schemas import Confirmation
from zkhole.utils.hash import canonical_json


class OperationKind(str, Enum):
    """Operation type enumeration."""
    TRANSFER = "transfer"
    IDENTITY = "identity"
    CREDENTIAL = "credential"
    MESSAGE = "message"
    SWAP = "swap"
    REVOCATION = "revocation"
    DELETION = "deletion"


class LedgerOperation(BaseModel):
    """An operation handed to Ledger.submit."""

    operation_id: str
    kind: OperationKind
    owner: str = Field(..., description="Submitting wallet address")
    status: str = Field(..., description="Status the operation is recorded with")
    recipient: Optional[str] = None
    token: Optional[str] = None
    amount: Optional[float] = None
    to_token: Optional[str] = None
    output_amount: Optional[float] = None
    target_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    authorization: Optional[str] = Field(default=None, description="Wallet signature (hex)")

    def signing_payload(self) -> bytes:
        """Bytes the wallet signs: every field except the authorization itself."""
        return canonical_json(self.model_dump(mode="json", exclude={"authorization"}))


class LedgerRecord(BaseModel):
    """A stored operation as the ledger reports it."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    operation_id: str
    kind: OperationKind
    owner: str
    status: str
    signature: str
    slot: int
    recipient: Optional[str] = None
    token: Optional[str] = None
    amount: Optional[float] = None
    to_token: Optional[str] = None
    output_amount: Optional[float] = None
    target_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class StatusRecord(BaseModel):
    """Ledger-side status of an operation, keyed by its identifier."""

    model_config = ConfigDict(frozen=True)

    operation_id: str
    kind: OperationKind
    signature: str
    status: str
    created_at: datetime
    updated_at: datetime
    confirmations: int = 0
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    error: Optional[str] = None


class Ledger(ABC):
    """External system of record."""

    @abstractmethod
    async def get_balance(self, address: str, token: str = "SOL") -> float:
        """Return the account's balance in whole token units."""

    @abstractmethod
    async def submit(self, operation: LedgerOperation) -> str:
        """Record an operation and return its 88-character signature."""

    @abstractmethod
    async def get_status(self, reference: str) -> StatusRecord:
        """Return the status of an operation, by operation id or signature."""

    @abstractmethod
    async def confirm(self, signature: str) -> Confirmation:
        """Report whether the operation behind a signature is final."""

    @abstractmethod
    async def fetch(self, operation_id: str) -> LedgerRecord:
        """Return a stored operation."""

    @abstractmethod
    async def list_records(
        self,
        kind: OperationKind,
        owner: Optional[str] = None,
        recipient: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[LedgerRecord]:
        """List stored operations of one kind, newest first, skipping deleted ones."""
