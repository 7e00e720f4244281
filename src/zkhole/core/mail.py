"""HoleMail: sealed messages between HoleIDs."""

import logging
from typing import Any, Dict, List, Optional, Union

from zkhole.core.client import BaseClient
from zkhole.core.interfaces import LedgerOperation, LedgerRecord, OperationKind
from zkhole.core.pipeline import OperationStrategy, RunContext
from zkhole.core.validation import (
    coerce_params,
    require_hole_id,
    require_identifier,
    validate_inbox_params,
    validate_message_params,
)
from zkhole.crypto.prover import ProofContext
from zkhole.crypto.sealing import MessageSealer, SealingError, get_default_sealer
from zkhole.exceptions import ValidationError
from zkhole.models.schemas import (
    DeletionResult,
    InboxFilter,
    InboxParams,
    Message,
    MessageParams,
    MessageState,
    MessageStatus,
)
from zkhole.utils.encoding import bytes_to_hex
from zkhole.utils.hash import hash_concatenate

logger = logging.getLogger(__name__)

UNREAD_STATES = (MessageState.PENDING, MessageState.SENT, MessageState.DELIVERED)

INBOX_FILTERS = {
    InboxFilter.ALL: None,
    InboxFilter.UNREAD: [state.value for state in UNREAD_STATES],
    InboxFilter.READ: [MessageState.READ.value],
}


class HoleMailClient(BaseClient):
    """
    Sends and reads sealed messages.

    The ledger only ever sees ciphertext: the body and the metadata
    (subject, recipient, attachments) are sealed before submission.

    Args:
        hole_id: HoleID whose inbox this client reads by default
        sealer: Payload sealer (default: keyed from settings, or the
            process-wide sealer when no key is configured)
        (remaining arguments as for BaseClient)
    """

    MESSAGE_PREFIX = "msg"

    def __init__(
        self,
        ledger,
        wallet,
        network: Optional[str] = None,
        timeout: Optional[int] = None,
        *,
        hole_id: Optional[str] = None,
        sealer: Optional[MessageSealer] = None,
        **kwargs,
    ):
        super().__init__(ledger, wallet, network, timeout, **kwargs)
        if hole_id is not None:
            require_hole_id(hole_id)
        self.hole_id = hole_id
        if sealer is None:
            if self.settings.sealing_key is not None:
                sealer = MessageSealer(self.settings.sealing_key)
            else:
                sealer = get_default_sealer()
        self.sealer = sealer

    # ----------------------------------------------------------------- sending

    async def send_message(self, params: Union[MessageParams, Dict[str, Any]]) -> Message:
        """
        Seal and send a message through the anonymous routing network.

        Raises:
            ValidationError: Recipient not a HoleID, empty subject or content
            WalletError: Wallet not connected
            NetworkError: Sealing, routing proof or submission failed
        """
        params = coerce_params(params, MessageParams, "message parameters")
        return await self.executor.run(self._message_strategy(), params)

    def _message_strategy(self) -> OperationStrategy[MessageParams, Message]:
        return OperationStrategy(
            name="send message",
            prefix=self.MESSAGE_PREFIX,
            validate=validate_message_params,
            build_proof_contexts=self._message_proofs,
            build_operation=self._message_operation,
            build_result=self._message_result,
        )

    def _message_proofs(self, ctx: RunContext[MessageParams]) -> Dict[str, ProofContext]:
        recipient_commitment = bytes_to_hex(hash_concatenate(ctx.params.recipient, ctx.operation_id))
        return {
            "routing_proof": ProofContext(
                statement="message_routing",
                owner=ctx.wallet_address,
                public_inputs={
                    "message_id": ctx.operation_id,
                    "recipient_commitment": recipient_commitment,
                },
            ),
        }

    async def _message_operation(self, ctx: RunContext[MessageParams]) -> LedgerOperation:
        encrypted_content = self.sealer.seal(ctx.params.content)
        encrypted_metadata = self.sealer.seal_json({
            "subject": ctx.params.subject,
            "recipient": ctx.params.recipient,
            "attachments": ctx.params.attachments or [],
        })
        return LedgerOperation(
            operation_id=ctx.operation_id,
            kind=OperationKind.MESSAGE,
            owner=ctx.wallet_address,
            status=MessageState.SENT.value,
            recipient=ctx.params.recipient,
            payload={
                "encrypted_content": encrypted_content,
                "encrypted_metadata": encrypted_metadata,
                "routing_proof": ctx.proofs["routing_proof"],
            },
        )

    def _message_result(self, ctx: RunContext[MessageParams]) -> Message:
        payload = ctx.operation.payload
        return Message(
            message_id=ctx.operation_id,
            recipient=ctx.params.recipient,
            subject=ctx.params.subject,
            encrypted_content=payload["encrypted_content"],
            encrypted_metadata=payload["encrypted_metadata"],
            routing_proof=payload["routing_proof"],
            timestamp=ctx.timestamp,
            status=MessageState.SENT,
        )

    # ---------------------------------------------------------------- reading

    async def get_inbox(self, params: Optional[Union[InboxParams, Dict[str, Any]]] = None) -> List[Message]:
        """
        List messages addressed to a HoleID, newest first.

        Bodies stay sealed; use read_message to open one. Messages this
        client cannot unseal are left out of the listing.
        """
        params = coerce_params(params if params is not None else {}, InboxParams, "inbox parameters")
        validate_inbox_params(params)
        hole_id = params.hole_id or self.hole_id
        if hole_id is None:
            raise ValidationError("HoleID is required to fetch the inbox")
        limit = params.limit or self.settings.inbox_page_size

        async def load() -> List[Message]:
            records = await self.ledger.list_records(
                OperationKind.MESSAGE,
                recipient=hole_id,
                statuses=INBOX_FILTERS[params.filter],
                limit=limit,
                offset=params.offset,
            )
            messages = []
            for record in records:
                try:
                    messages.append(self._message_from_record(record))
                except SealingError as e:
                    logger.warning(f"Skipping {record.operation_id} in inbox: {e}")
            return messages

        return await self.executor.query("fetch inbox", load)

    async def read_message(self, message_id: str) -> Message:
        """
        Open a message.

        Returns a new record with the body and attachments filled in and
        status ``read``; nothing is written to the ledger.
        """
        require_identifier(message_id, "Message ID")

        async def load() -> Message:
            record = await self.ledger.fetch(message_id)
            if record.kind is not OperationKind.MESSAGE:
                raise ValidationError(f"{message_id} is not a message")
            metadata = self.sealer.open_json(record.payload["encrypted_metadata"])
            content = self.sealer.open(record.payload["encrypted_content"])
            return self._message_from_record(record, metadata).model_copy(update={
                "content": content,
                "attachments": list(metadata.get("attachments", [])),
                "status": MessageState.READ,
            })

        return await self.executor.query("read message", load)

    def _message_from_record(self, record: LedgerRecord, metadata: Optional[dict] = None) -> Message:
        if metadata is None:
            metadata = self.sealer.open_json(record.payload["encrypted_metadata"])
        return Message(
            message_id=record.operation_id,
            recipient=record.recipient,
            subject=metadata.get("subject", ""),
            encrypted_content=record.payload["encrypted_content"],
            encrypted_metadata=record.payload["encrypted_metadata"],
            routing_proof=record.payload["routing_proof"],
            timestamp=record.created_at,
            status=MessageState(record.status),
        )

    # ------------------------------------------------------------- lifecycle

    async def delete_message(self, message_id: str) -> DeletionResult:
        """Delete a message. Deleting twice is not an error."""
        deleted_at = await self.executor.transition(OperationKind.DELETION, message_id, "Message ID")
        return DeletionResult(message_id=message_id, success=True, deleted_at=deleted_at)

    async def get_message_status(self, message_id: str) -> MessageStatus:
        require_identifier(message_id, "Message ID")

        async def load() -> MessageStatus:
            record = await self.ledger.get_status(message_id)
            if record.kind is not OperationKind.MESSAGE:
                raise ValidationError(f"{message_id} is not a message")
            return MessageStatus(
                message_id=record.operation_id,
                status=MessageState(record.status),
                sent_at=record.created_at,
                delivered_at=record.delivered_at,
                read_at=record.read_at,
            )

        return await self.executor.query("get message status", load)
