"""Anonymous SOL transfers (the original zkHole client)."""

import logging
from typing import Any, Dict, List, Optional, Union

from zkhole.core.client import BaseClient
from zkhole.core.interfaces import LedgerOperation, LedgerRecord, OperationKind
from zkhole.core.pipeline import OperationStrategy, RunContext
from zkhole.core.validation import (
    coerce_params,
    require_identifier,
    validate_address,
    validate_transfer_params,
)
from zkhole.crypto.prover import ProofContext
from zkhole.exceptions import ValidationError
from zkhole.models.schemas import (
    Balance,
    Confirmation,
    Transaction,
    TransactionParams,
    TransactionStatus,
    TransactionStatusInfo,
)
from zkhole.utils.encoding import bytes_to_hex
from zkhole.utils.hash import hash_concatenate

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
NATIVE_TOKEN = "SOL"
MAX_HISTORY_LIMIT = 100


class ZkHoleClient(BaseClient):
    """
    Sends SOL without linking sender and recipient on the ledger.

    Transfers move funds, so the wallet must be able to sign and must hold
    at least the transferred amount before a proof is generated.
    """

    TRANSACTION_PREFIX = "tx"

    async def send_anonymous(self, params: Union[TransactionParams, Dict[str, Any]]) -> Transaction:
        """
        Send an anonymous transfer.

        Args:
            params: recipient (base58 account address), amount (SOL), optional memo

        Returns:
            Transaction: Submitted transfer with status ``pending``

        Raises:
            ValidationError: Bad recipient, non-positive amount, memo too long
            WalletError: Wallet not connected or cannot sign
            InsufficientFundsError: SOL balance below amount
            NetworkError: Proof generation or submission failed
        """
        params = coerce_params(params, TransactionParams, "transaction parameters")
        return await self.executor.run(self._transfer_strategy(), params)

    def _transfer_strategy(self) -> OperationStrategy[TransactionParams, Transaction]:
        return OperationStrategy(
            name="send anonymous transaction",
            prefix=self.TRANSACTION_PREFIX,
            validate=validate_transfer_params,
            requires_signing=True,
            required_funds=lambda ctx: (NATIVE_TOKEN, ctx.params.amount),
            build_proof_contexts=self._transfer_proofs,
            build_operation=self._transfer_operation,
            build_result=self._transfer_result,
        )

    def _transfer_proofs(self, ctx: RunContext[TransactionParams]) -> Dict[str, ProofContext]:
        # The recipient is hidden behind a per-transfer commitment.
        recipient_commitment = bytes_to_hex(hash_concatenate(ctx.params.recipient, ctx.operation_id))
        return {
            "zk_proof": ProofContext(
                statement="transfer_validity",
                owner=ctx.wallet_address,
                public_inputs={
                    "operation_id": ctx.operation_id,
                    "amount": ctx.params.amount,
                    "recipient_commitment": recipient_commitment,
                },
            ),
        }

    async def _transfer_operation(self, ctx: RunContext[TransactionParams]) -> LedgerOperation:
        return LedgerOperation(
            operation_id=ctx.operation_id,
            kind=OperationKind.TRANSFER,
            owner=ctx.wallet_address,
            status=TransactionStatus.PENDING.value,
            recipient=ctx.params.recipient,
            token=NATIVE_TOKEN,
            amount=ctx.params.amount,
            payload={"memo": ctx.params.memo, "zk_proof": ctx.proofs["zk_proof"]},
        )

    def _transfer_result(self, ctx: RunContext[TransactionParams]) -> Transaction:
        return Transaction(
            transaction_id=ctx.operation_id,
            signature=ctx.signature,
            status=TransactionStatus.PENDING,
            timestamp=ctx.timestamp,
            amount=ctx.params.amount,
            recipient=ctx.params.recipient,
            memo=ctx.params.memo,
            zk_proof=ctx.proofs["zk_proof"],
        )

    async def get_balance(self, address: Optional[str] = None) -> Balance:
        """
        Get the SOL balance of an address (default: the wallet's own).

        Raises:
            ValidationError: If the address is malformed
            NetworkError: If the ledger query fails
        """
        if address is None:
            address = self.get_wallet_address()
        else:
            validate_address(address)

        sol = await self.executor.query(
            "fetch balance", lambda: self.ledger.get_balance(address, NATIVE_TOKEN)
        )
        return Balance(address=address, lamports=int(round(sol * LAMPORTS_PER_SOL)), sol=sol)

    async def confirm_transaction(self, signature: str) -> Confirmation:
        require_identifier(signature, "Signature")
        return await self.executor.query(
            "confirm transaction", lambda: self.ledger.confirm(signature)
        )

    async def get_transaction_status(self, reference: str) -> TransactionStatusInfo:
        """Get the ledger-side status of a transfer by transaction id or signature."""
        require_identifier(reference, "Transaction ID")

        async def load() -> TransactionStatusInfo:
            record = await self.ledger.get_status(reference)
            if record.kind is not OperationKind.TRANSFER:
                raise ValidationError(f"{reference} is not a transfer")
            return TransactionStatusInfo(
                transaction_id=record.operation_id,
                signature=record.signature,
                status=TransactionStatus(record.status),
                timestamp=record.updated_at,
                confirmations=record.confirmations,
            )

        return await self.executor.query("get transaction status", load)

    async def get_transaction_history(self, limit: int = 10) -> List[Transaction]:
        """Most recent transfers sent by this wallet, newest first."""
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_HISTORY_LIMIT:
            raise ValidationError(f"Limit must be between 1 and {MAX_HISTORY_LIMIT}")
        address = self.get_wallet_address()

        async def load() -> List[Transaction]:
            records = await self.ledger.list_records(OperationKind.TRANSFER, owner=address, limit=limit)
            return [self._transaction_from_record(record) for record in records]

        return await self.executor.query("fetch transaction history", load)

    @staticmethod
    def _transaction_from_record(record: LedgerRecord) -> Transaction:
        return Transaction(
            transaction_id=record.operation_id,
            signature=record.signature,
            status=TransactionStatus(record.status),
            timestamp=record.created_at,
            amount=record.amount,
            recipient=record.recipient,
            memo=record.payload.get("memo"),
            zk_proof=record.payload.get("zk_proof"),
        )
