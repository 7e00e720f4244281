"""Pydantic data models for the zkHole SDK.

Parameter records are what callers hand to a client; result and status
records are what clients hand back. Field names are snake_case in Python
and camelCase on the wire (``model_dump(by_alias=True)``), matching the
shapes existing integrations already consume. Result and status records are
frozen: a status change is observed by fetching a new record, never by
mutating an old one.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Network(str, Enum):
    """Supported cluster names."""
    MAINNET_BETA = "mainnet-beta"
    DEVNET = "devnet"
    TESTNET = "testnet"


class TransactionStatus(str, Enum):
    """Transaction status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class IdentityStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"


class CredentialStatus(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    REVOKED = "revoked"


class MessageState(str, Enum):
    """Delivery lifecycle of a message."""
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class SwapState(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class InboxFilter(str, Enum):
    ALL = "all"
    UNREAD = "unread"
    READ = "read"


class ParamsModel(BaseModel):
    """Base for caller-supplied parameter records."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordModel(BaseModel):
    """Base for immutable result and status records."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        from_attributes=True,
    )


# ==================== Transfer ====================

class TransactionParams(ParamsModel):
    """Request model for anonymous transfers."""
    recipient: str = Field(..., description="Recipient account address (64 hex chars)")
    amount: float = Field(..., description="Amount in SOL")
    memo: Optional[str] = None


class Transaction(RecordModel):
    """Anonymous transfer returned from send_anonymous."""
    transaction_id: str
    signature: str = Field(..., description="Ledger signature (88 chars)")
    status: TransactionStatus
    timestamp: datetime
    amount: Optional[float] = None
    recipient: Optional[str] = None
    memo: Optional[str] = None
    zk_proof: Optional[str] = None


class TransactionStatusInfo(RecordModel):
    transaction_id: str
    signature: Optional[str] = None
    status: TransactionStatus
    timestamp: datetime
    confirmations: int = 0


class Confirmation(RecordModel):
    """Transaction confirmation details."""
    signature: str
    confirmed: bool
    slot: Optional[int] = None
    block_time: Optional[datetime] = None
    error: Optional[str] = None


class Balance(RecordModel):
    address: str
    lamports: int
    sol: float


# ==================== HoleID ====================

class IdentityParams(ParamsModel):
    username: str
    metadata: Optional[Dict[str, Any]] = None


class Identity(RecordModel):
    """Unlinkable identity with its verifiable credential string."""
    hole_id: str
    username: str
    credential: str
    zk_proof: str
    timestamp: datetime
    status: IdentityStatus


class CredentialParams(ParamsModel):
    hole_id: str
    claims: Dict[str, Any] = Field(default_factory=dict)
    expires_at: Optional[datetime] = None


class Credential(RecordModel):
    """
    Verifiable credential.

    ``status`` is the status at issuance. Whether a credential is valid now is
    never read from here; it is recomputed by verify_credential.
    """
    credential_id: str
    hole_id: str
    claims: Dict[str, Any]
    zk_proof: str
    issued_at: datetime
    expires_at: Optional[datetime] = None
    status: CredentialStatus


class VerificationParams(ParamsModel):
    credential: Optional[Credential] = None
    required_claims: Optional[List[str]] = None


class VerificationResult(RecordModel):
    """Outcome of a verification; each sub-check is reported individually."""
    is_valid: bool
    proof_valid: bool
    not_expired: bool
    claims_valid: bool
    verified_at: datetime


class RevocationResult(RecordModel):
    target_id: str
    success: bool
    revoked_at: datetime


# ==================== HoleMail ====================

class MessageParams(ParamsModel):
    recipient: str = Field(..., description="Recipient HoleID (hole_...)")
    subject: str
    content: str
    attachments: Optional[List[str]] = None


class Message(RecordModel):
    """Sealed message; ``content`` is only populated by read_message."""
    message_id: str
    recipient: str
    subject: str
    content: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)
    encrypted_content: str
    encrypted_metadata: str
    routing_proof: str
    timestamp: datetime
    status: MessageState


class MessageStatus(RecordModel):
    message_id: str
    status: MessageState
    sent_at: datetime
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class InboxParams(ParamsModel):
    limit: Optional[int] = None
    offset: int = 0
    filter: InboxFilter = InboxFilter.ALL
    hole_id: Optional[str] = None


class DeletionResult(RecordModel):
    message_id: str
    success: bool
    deleted_at: datetime


# ==================== HoleSwap ====================

class SwapParams(ParamsModel):
    from_token: str
    to_token: str
    amount: float
    slippage_tolerance: Optional[float] = None


class SwapQuote(RecordModel):
    """Swap quote with pricing information."""
    from_token: str
    to_token: str
    input_amount: float
    output_amount: float
    exchange_rate: float
    minimum_received: float
    price_impact: float
    fee: float
    route: List[str]
    estimated_time: int


class SwapResult(RecordModel):
    swap_id: str
    signature: str
    from_token: str
    to_token: str
    input_amount: float
    output_amount: float
    exchange_rate: float
    zk_proof: str
    routing_proof: str
    status: SwapState
    timestamp: datetime


class SwapStatus(RecordModel):
    swap_id: str
    status: SwapState
    timestamp: datetime
    confirmations: Optional[int] = None
    error: Optional[str] = None


class PoolInfo(RecordModel):
    token_a: str
    token_b: str
    liquidity_a: float
    liquidity_b: float
    fee: float
    volume_24h: float = Field(..., alias="volume24h")
    apy: float
