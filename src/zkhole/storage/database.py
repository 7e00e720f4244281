"""SQLAlchemy-backed reference ledger.

LocalLedger keeps every submitted operation in an ``operations`` table and
per-token account balances in a ``balances`` table. It is what
``BaseClient.from_settings`` wires up, and what the test-suite runs against.

Behaviour:
    - each submission gets the next slot; confirmations = head slot - slot
    - transfers debit SOL from the owner, credit the recipient, and are
      recorded as ``confirmed``
    - swaps debit the from-token and credit the to-token
    - a debit that would take a balance below zero raises TransactionError
    - revocations mark a known identity/credential ``revoked``
    - deletions hide the target from fetch and list_records
"""

import json
import logging
from datetime import datetime, UTC
from typing import List, Optional, Sequence

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    func,
    or_,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from zkhole.core.interfaces import (
    Ledger,
    LedgerOperation,
    LedgerRecord,
    OperationKind,
    StatusRecord,
)
from zkhole.crypto.artifacts import ArtifactGenerator, get_artifact_generator
from zkhole.exceptions import OperationNotFoundError, TransactionError
from zkhole.models.schemas import Confirmation

logger = logging.getLogger(__name__)

Base = declarative_base()

NATIVE_TOKEN = "SOL"
IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")

# Statuses a ledger reports as final
FINAL_STATUSES = frozenset({
    "confirmed", "completed", "active", "valid", "sent", "delivered", "read", "revoked", "applied",
})

REVOCABLE_KINDS = (OperationKind.IDENTITY, OperationKind.CREDENTIAL)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands DateTime columns back naive
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _now() -> datetime:
    return datetime.now(UTC)


class OperationRecord(Base):
    """Stored ledger operation."""
    __tablename__ = "operations"

    id = Column(Integer, primary_key=True)
    operation_id = Column(String(64), unique=True, nullable=False, index=True)
    kind = Column(SQLEnum(OperationKind), nullable=False, index=True)
    owner = Column(String(128), nullable=False, index=True)
    status = Column(String(32), nullable=False)
    signature = Column(String(88), unique=True, nullable=False, index=True)
    slot = Column(Integer, unique=True, nullable=False)

    recipient = Column(String(128), nullable=True, index=True)
    token = Column(String(16), nullable=True)
    amount = Column(Float, nullable=True)
    to_token = Column(String(16), nullable=True)
    output_amount = Column(Float, nullable=True)
    target_id = Column(String(64), nullable=True, index=True)

    payload = Column(Text, nullable=False, default="{}")
    authorization = Column(Text, nullable=True)
    deleted = Column(Boolean, default=False, nullable=False)
    error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, nullable=False)
    delivered_at = Column(DateTime, nullable=True)
    read_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<OperationRecord({self.operation_id} {self.kind.value} {self.status})>"


class BalanceRecord(Base):
    """Token balance of one account."""
    __tablename__ = "balances"
    __table_args__ = (UniqueConstraint("address", "token", name="uq_balance_account_token"),)

    id = Column(Integer, primary_key=True)
    address = Column(String(128), nullable=False, index=True)
    token = Column(String(16), nullable=False)
    amount = Column(Float, nullable=False, default=0.0)
    updated_at = Column(DateTime, default=_now, nullable=False)

    def __repr__(self) -> str:
        return f"<BalanceRecord({self.address[:8]}... {self.amount} {self.token})>"


class LocalLedger(Ledger):
    """
    Ledger backed by a SQL database.

    Args:
        database_url: SQLAlchemy database URL
                      Default: private in-memory SQLite
                      File example: "sqlite:///zkhole_ledger.db"
        timeout_ms: Connection timeout handed to the database driver
        generator: Signature source (default: process-wide generator)
    """

    def __init__(
        self,
        database_url: str = "sqlite://",
        timeout_ms: int = 30_000,
        generator: Optional[ArtifactGenerator] = None,
    ):
        self.database_url = database_url
        self.timeout_ms = timeout_ms
        self.generator = generator or get_artifact_generator()

        engine_args = {}
        if database_url.startswith("sqlite"):
            engine_args["connect_args"] = {
                "check_same_thread": False,
                "timeout": timeout_ms / 1000,
            }
            if database_url in IN_MEMORY_URLS:
                # One shared connection, or every session sees an empty database
                engine_args["poolclass"] = StaticPool

        self.engine = create_engine(database_url, echo=False, **engine_args)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self):
        """Create all tables in database."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self):
        """Drop all tables (for testing)."""
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    # ------------------------------------------------------------- balances

    def credit(self, address: str, token: str, amount: float) -> float:
        """Add funds to an account (faucet). Returns the new balance."""
        if amount <= 0:
            raise TransactionError(f"Credit amount must be positive, got {amount}")
        with self.get_session() as session:
            balance = self._credit(session, address, token, amount)
            session.commit()
        logger.debug(f"Credited {amount} {token} to {address[:8]}...")
        return balance

    def _account(self, session: Session, address: str, token: str) -> Optional[BalanceRecord]:
        return session.query(BalanceRecord).filter_by(address=address, token=token).first()

    def _credit(self, session: Session, address: str, token: str, amount: float) -> float:
        account = self._account(session, address, token)
        if account is None:
            account = BalanceRecord(address=address, token=token, amount=0.0)
            session.add(account)
        account.amount += amount
        account.updated_at = _now()
        return account.amount

    def _debit(self, session: Session, address: str, token: str, amount: float) -> float:
        account = self._account(session, address, token)
        available = account.amount if account is not None else 0.0
        if available < amount:
            raise TransactionError(
                f"Cannot debit {amount} {token} from {address[:8]}...: balance {available}"
            )
        account.amount -= amount
        account.updated_at = _now()
        return account.amount

    async def get_balance(self, address: str, token: str = NATIVE_TOKEN) -> float:
        with self.get_session() as session:
            account = self._account(session, address, token)
            return account.amount if account is not None else 0.0

    # ------------------------------------------------------------ submission

    async def submit(self, operation: LedgerOperation) -> str:
        """
        Record an operation and apply its effects atomically.

        Raises:
            TransactionError: Duplicate operation id or a debit below zero
        """
        with self.get_session() as session:
            try:
                if session.query(OperationRecord).filter_by(operation_id=operation.operation_id).first():
                    raise TransactionError(f"Duplicate operation: {operation.operation_id}")

                status = self._apply(session, operation)
                now = _now()
                record = OperationRecord(
                    operation_id=operation.operation_id,
                    kind=operation.kind,
                    owner=operation.owner,
                    status=status,
                    signature=self._new_signature(session),
                    slot=self._head_slot(session) + 1,
                    recipient=operation.recipient,
                    token=operation.token,
                    amount=operation.amount,
                    to_token=operation.to_token,
                    output_amount=operation.output_amount,
                    target_id=operation.target_id,
                    payload=json.dumps(operation.payload, default=str),
                    authorization=operation.authorization,
                    created_at=now,
                    updated_at=now,
                )
                session.add(record)
                session.commit()
            except Exception:
                session.rollback()
                raise

        logger.debug(f"Recorded {operation.kind.value} {operation.operation_id} at slot {record.slot}")
        return record.signature

    def _apply(self, session: Session, operation: LedgerOperation) -> str:
        """Apply balance and target effects; return the status to record."""
        kind = operation.kind

        if kind is OperationKind.TRANSFER:
            self._debit(session, operation.owner, operation.token or NATIVE_TOKEN, operation.amount)
            self._credit(session, operation.recipient, operation.token or NATIVE_TOKEN, operation.amount)
            return "confirmed"

        if kind is OperationKind.SWAP:
            self._debit(session, operation.owner, operation.token, operation.amount)
            self._credit(session, operation.owner, operation.to_token, operation.output_amount)
            return operation.status

        if kind in (OperationKind.REVOCATION, OperationKind.DELETION):
            target = (
                session.query(OperationRecord)
                .filter_by(operation_id=operation.target_id)
                .first()
            )
            if target is not None:
                if kind is OperationKind.REVOCATION and target.kind in REVOCABLE_KINDS:
                    target.status = "revoked"
                    target.updated_at = _now()
                elif kind is OperationKind.DELETION and target.kind is OperationKind.MESSAGE:
                    target.deleted = True
                    target.updated_at = _now()

        return operation.status

    def _head_slot(self, session: Session) -> int:
        return session.query(func.max(OperationRecord.slot)).scalar() or 0

    def _new_signature(self, session: Session) -> str:
        while True:
            signature = self.generator.random_signature()
            if not session.query(OperationRecord).filter_by(signature=signature).first():
                return signature

    # ---------------------------------------------------------------- reads

    def _lookup(self, session: Session, reference: str) -> Optional[OperationRecord]:
        return (
            session.query(OperationRecord)
            .filter(or_(OperationRecord.operation_id == reference, OperationRecord.signature == reference))
            .first()
        )

    async def get_status(self, reference: str) -> StatusRecord:
        with self.get_session() as session:
            row = self._lookup(session, reference)
            if row is None:
                raise OperationNotFoundError(f"Operation not found: {reference}")
            head = self._head_slot(session)
            return StatusRecord(
                operation_id=row.operation_id,
                kind=row.kind,
                signature=row.signature,
                status=row.status,
                created_at=_utc(row.created_at),
                updated_at=_utc(row.updated_at),
                confirmations=head - row.slot,
                delivered_at=_utc(row.delivered_at),
                read_at=_utc(row.read_at),
                error=row.error,
            )

    async def confirm(self, signature: str) -> Confirmation:
        with self.get_session() as session:
            row = session.query(OperationRecord).filter_by(signature=signature).first()
            if row is None:
                return Confirmation(signature=signature, confirmed=False, error="Signature not found")
            return Confirmation(
                signature=signature,
                confirmed=row.status in FINAL_STATUSES and row.error is None,
                slot=row.slot,
                block_time=_utc(row.created_at),
                error=row.error,
            )

    async def fetch(self, operation_id: str) -> LedgerRecord:
        with self.get_session() as session:
            row = session.query(OperationRecord).filter_by(operation_id=operation_id, deleted=False).first()
            if row is None:
                raise OperationNotFoundError(f"Operation not found: {operation_id}")
            return self._to_record(row)

    async def list_records(
        self,
        kind: OperationKind,
        owner: Optional[str] = None,
        recipient: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[LedgerRecord]:
        with self.get_session() as session:
            query = session.query(OperationRecord).filter_by(kind=kind, deleted=False)
            if owner is not None:
                query = query.filter_by(owner=owner)
            if recipient is not None:
                query = query.filter_by(recipient=recipient)
            if statuses is not None:
                query = query.filter(OperationRecord.status.in_(list(statuses)))
            rows = query.order_by(OperationRecord.slot.desc()).offset(offset).limit(limit).all()
            return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: OperationRecord) -> LedgerRecord:
        return LedgerRecord(
            operation_id=row.operation_id,
            kind=row.kind,
            owner=row.owner,
            status=row.status,
            signature=row.signature,
            slot=row.slot,
            recipient=row.recipient,
            token=row.token,
            amount=row.amount,
            to_token=row.to_token,
            output_amount=row.output_amount,
            target_id=row.target_id,
            payload=json.loads(row.payload or "{}"),
            created_at=_utc(row.created_at),
            updated_at=_utc(row.updated_at),
            delivered_at=_utc(row.delivered_at),
            read_at=_utc(row.read_at),
        )

    # ------------------------------------------------------------- progress

    def set_status(self, reference: str, status: str, error: Optional[str] = None) -> bool:
        """
        Move an operation to a new status, as the network would.

        ``delivered`` and ``read`` also stamp delivered_at / read_at.
        Returns False when the operation is unknown.
        """
        with self.get_session() as session:
            row = self._lookup(session, reference)
            if row is None:
                return False
            now = _now()
            row.status = status
            row.error = error
            row.updated_at = now
            if status == "delivered" and row.delivered_at is None:
                row.delivered_at = now
            if status == "read":
                if row.delivered_at is None:
                    row.delivered_at = now
                row.read_at = now
            session.commit()
        logger.debug(f"{reference} moved to {status}")
        return True
