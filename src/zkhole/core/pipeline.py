"""Operation pipeline shared by every zkHole domain client.

Each write operation (transfer, identity, credential, message, swap) runs
through the same state machine:

    received -> validated -> (quoted) -> proved -> submitted -> result
                    \\____________ any failure ____________/-> rejected

Domain clients do not hand-write this sequence. They describe an operation
as an ``OperationStrategy`` (how to validate, which proofs to request, what
to submit, how to build the result) and hand it to ``OperationExecutor``.

Error policy at the pipeline boundary:
    - ValidationError, WalletError, InsufficientFundsError pass through as-is
    - anything else (ledger, prover, sealing, unexpected) becomes NetworkError
      carrying the original exception as ``cause``

Steps inside one run are strictly sequential; separate runs share nothing
but the injected collaborators.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

from zkhole.core.interfaces import Ledger, LedgerOperation, OperationKind
from zkhole.core.validation import check_funds, check_wallet, require_identifier
from zkhole.crypto.artifacts import ArtifactGenerator
from zkhole.crypto.prover import ProofContext, Prover
from zkhole.exceptions import (
    InsufficientFundsError,
    NetworkError,
    ValidationError,
    WalletError,
)
from zkhole.security.wallet import wallet_address
from zkhole.utils.encoding import bytes_to_hex

logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")
T = TypeVar("T")

PASSTHROUGH_ERRORS = (ValidationError, WalletError, InsufficientFundsError)

TRANSITION_PREFIXES = {
    OperationKind.REVOCATION: "rev",
    OperationKind.DELETION: "del",
}


class PipelineState(str, Enum):
    """States of one pipeline run."""
    RECEIVED = "received"
    VALIDATED = "validated"
    QUOTED = "quoted"
    PROVED = "proved"
    SUBMITTED = "submitted"
    RESULT = "result"
    REJECTED = "rejected"


Observer = Callable[[str, PipelineState], None]


@dataclass
class RunContext(Generic[P]):
    """Values accumulated by one run; each step reads what earlier steps wrote."""

    run_id: str
    params: P
    wallet_address: Optional[str] = None
    quote: Any = None
    operation_id: Optional[str] = None
    proofs: Dict[str, str] = field(default_factory=dict)
    operation: Optional[LedgerOperation] = None
    signature: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class OperationStrategy(Generic[P, R]):
    """
    Domain-specific behaviour plugged into the executor.

    Attributes:
        name: Human-readable action, used in logs and error messages
        prefix: Identifier prefix for results of this operation
        validate: Parameter checks (raises ValidationError)
        build_proof_contexts: Named proof statements to generate, in order
        build_operation: Ledger operation to submit
        build_result: Result record constructor
        requires_signing: Whether the wallet must sign the submission
        quote: Optional derived-value step (swap pricing)
        required_funds: Optional (token, amount) the wallet must hold
    """

    name: str
    prefix: str
    validate: Callable[[P], None]
    build_proof_contexts: Callable[[RunContext[P]], Dict[str, ProofContext]]
    build_operation: Callable[[RunContext[P]], Awaitable[LedgerOperation]]
    build_result: Callable[[RunContext[P]], R]
    requires_signing: bool = False
    quote: Optional[Callable[[P], Awaitable[Any]]] = None
    required_funds: Optional[Callable[[RunContext[P]], Optional[Tuple[str, float]]]] = None


class OperationExecutor:
    """
    Runs operation strategies against injected collaborators.

    The executor holds no per-run state, so one instance can serve any
    number of concurrent runs.
    """

    def __init__(
        self,
        ledger: Ledger,
        prover: Prover,
        generator: ArtifactGenerator,
        wallet: Any,
        observer: Optional[Observer] = None,
    ):
        self.ledger = ledger
        self.prover = prover
        self.generator = generator
        self.wallet = wallet
        self.observer = observer

    def _notify(self, run_id: str, state: PipelineState) -> None:
        logger.debug(f"run {run_id}: {state.value}")
        if self.observer is not None:
            self.observer(run_id, state)

    async def run(self, strategy: OperationStrategy[P, R], params: P) -> R:
        """
        Execute one pipeline run.

        Args:
            strategy: Operation description
            params: Already-coerced parameter record

        Returns:
            The strategy's result record

        Raises:
            ValidationError: Parameters rejected (no collaborator was called)
            WalletError: Wallet not connected or cannot sign
            InsufficientFundsError: Balance below the required amount
            NetworkError: Any collaborator failure
        """
        ctx: RunContext[P] = RunContext(run_id=uuid.uuid4().hex[:12], params=params)
        self._notify(ctx.run_id, PipelineState.RECEIVED)

        try:
            strategy.validate(params)
            ctx.wallet_address = check_wallet(self.wallet, strategy.requires_signing)
        except PASSTHROUGH_ERRORS as e:
            self._reject(ctx, strategy, e)
            raise

        self._notify(ctx.run_id, PipelineState.VALIDATED)

        try:
            if strategy.quote is not None:
                ctx.quote = await strategy.quote(params)
                self._notify(ctx.run_id, PipelineState.QUOTED)

            if strategy.required_funds is not None:
                requirement = strategy.required_funds(ctx)
                if requirement is not None:
                    token, amount = requirement
                    available = await self.ledger.get_balance(ctx.wallet_address, token)
                    check_funds(available, amount, token)

            ctx.operation_id = self.generator.new_id(strategy.prefix)

            for proof_name, context in strategy.build_proof_contexts(ctx).items():
                ctx.proofs[proof_name] = await self.prover.generate(context)
            self._notify(ctx.run_id, PipelineState.PROVED)

            operation = await strategy.build_operation(ctx)
            if strategy.requires_signing:
                signed = await self.wallet.sign_transaction(operation.signing_payload())
                operation = operation.model_copy(update={"authorization": bytes_to_hex(signed)})
            ctx.operation = operation
            ctx.signature = await self.ledger.submit(operation)
            self._notify(ctx.run_id, PipelineState.SUBMITTED)

            ctx.timestamp = datetime.now(UTC)
            result = strategy.build_result(ctx)
        except PASSTHROUGH_ERRORS as e:
            self._reject(ctx, strategy, e)
            raise
        except Exception as e:
            self._reject(ctx, strategy, e)
            raise NetworkError(f"Failed to {strategy.name}: {e}", cause=e) from e

        self._notify(ctx.run_id, PipelineState.RESULT)
        logger.info(f"{strategy.name} completed: {ctx.operation_id}")
        return result

    def _reject(self, ctx: RunContext, strategy: OperationStrategy, error: Exception) -> None:
        if isinstance(error, PASSTHROUGH_ERRORS):
            logger.warning(f"{strategy.name} rejected: {error}")
        else:
            logger.error(f"{strategy.name} failed: {error!r}", exc_info=True)
        self._notify(ctx.run_id, PipelineState.REJECTED)

    async def transition(self, kind: OperationKind, target_id: str, label: str) -> datetime:
        """
        Apply a single-step transition (revocation, deletion) to an existing id.

        Only the identifier's presence is validated. Applying the same
        transition twice is not an error.

        Returns:
            datetime: When the transition was recorded
        """
        require_identifier(target_id, label)

        operation = LedgerOperation(
            operation_id=self.generator.new_id(TRANSITION_PREFIXES[kind]),
            kind=kind,
            owner=wallet_address(self.wallet) or "",
            status="applied",
            target_id=target_id,
        )
        try:
            await self.ledger.submit(operation)
        except Exception as e:
            logger.error(f"{kind.value} of {target_id} failed: {e!r}", exc_info=True)
            raise NetworkError(f"Failed to apply {kind.value}: {e}", cause=e) from e

        logger.info(f"{kind.value} recorded for {target_id}")
        return datetime.now(UTC)

    async def query(self, action: str, call: Callable[[], Awaitable[T]]) -> T:
        """
        Run a read-path collaborator call under the same error policy.

        Read paths never write; they only re-derive records from the ledger
        or prover.
        """
        try:
            return await call()
        except PASSTHROUGH_ERRORS:
            raise
        except Exception as e:
            logger.error(f"Failed to {action}: {e!r}")
            raise NetworkError(f"Failed to {action}: {e}", cause=e) from e
