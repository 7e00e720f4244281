"""HoleSwap: MEV-protected token swaps.

Pricing is a reference table, not a live pool query:

    exchange_rate    = RATES[to] / RATES[from]
    output_amount    = amount * exchange_rate
    minimum_received = output_amount * (1 - slippage_tolerance)   (default 2%)
    fee              = amount * fee_rate                           (default 0.3%)
    price_impact     = amount / 100000 * 100                       (percent)
"""

import logging
from typing import Any, Dict, List, Union

from zkhole.core.client import BaseClient
from zkhole.core.interfaces import LedgerOperation, OperationKind
from zkhole.core.pipeline import OperationStrategy, RunContext
from zkhole.core.validation import (
    coerce_params,
    require_identifier,
    validate_swap_params,
)
from zkhole.crypto.prover import ProofContext
from zkhole.exceptions import ValidationError
from zkhole.models.schemas import (
    PoolInfo,
    SwapParams,
    SwapQuote,
    SwapResult,
    SwapState,
    SwapStatus,
)

logger = logging.getLogger(__name__)

# Mint addresses (mainnet)
SUPPORTED_TOKENS: Dict[str, str] = {
    "SOL": "So11111111111111111111111111111111111111112",
    "USDC": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    "USDT": "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
    "RAY": "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R",
    "SRM": "SRMuApVNdxXokk5GT7XD5cUUgXMBCoAz2LHeuAoKWRt",
    "ORCA": "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE",
}

# USD reference prices
REFERENCE_RATES: Dict[str, float] = {
    "SOL": 100.0,
    "USDC": 1.0,
    "USDT": 1.0,
    "RAY": 2.5,
    "SRM": 0.8,
    "ORCA": 3.2,
}

PRICE_IMPACT_DEPTH = 100_000
POOL_DEPTH_USD = 1_000_000
POOL_VOLUME_24H = 5_000_000
POOL_APY = 12.5
ESTIMATED_TIME_SECONDS = 3


def exchange_rate(from_token: str, to_token: str) -> float:
    return REFERENCE_RATES[to_token] / REFERENCE_RATES[from_token]


def price_impact(amount: float) -> float:
    return (amount / PRICE_IMPACT_DEPTH) * 100


class HoleSwapClient(BaseClient):
    """Quotes and executes private swaps between supported tokens."""

    SWAP_PREFIX = "swap"

    def get_supported_tokens(self) -> List[str]:
        return list(SUPPORTED_TOKENS)

    def _validate(self, params: SwapParams) -> None:
        validate_swap_params(params, SUPPORTED_TOKENS)

    async def _quote(self, params: SwapParams) -> SwapQuote:
        rate = exchange_rate(params.from_token, params.to_token)
        output_amount = params.amount * rate
        tolerance = (
            params.slippage_tolerance
            if params.slippage_tolerance is not None
            else self.settings.default_slippage
        )
        return SwapQuote(
            from_token=params.from_token,
            to_token=params.to_token,
            input_amount=params.amount,
            output_amount=output_amount,
            exchange_rate=rate,
            minimum_received=output_amount * (1 - tolerance),
            price_impact=price_impact(params.amount),
            fee=params.amount * self.settings.swap_fee_rate,
            route=[params.from_token, params.to_token],
            estimated_time=ESTIMATED_TIME_SECONDS,
        )

    async def get_quote(self, params: Union[SwapParams, Dict[str, Any]]) -> SwapQuote:
        """
        Price a swap without executing it.

        Raises:
            ValidationError: Unsupported token, same token, non-positive amount
            NetworkError: Pricing failed
        """
        params = coerce_params(params, SwapParams, "swap parameters")
        self._validate(params)
        return await self.executor.query("get quote", lambda: self._quote(params))

    async def execute_swap(self, params: Union[SwapParams, Dict[str, Any]]) -> SwapResult:
        """
        Execute a private swap with MEV protection.

        Raises:
            ValidationError: Bad parameters
            WalletError: Wallet not connected or cannot sign
            InsufficientFundsError: from-token balance below amount
            NetworkError: Proof generation or submission failed
        """
        params = coerce_params(params, SwapParams, "swap parameters")
        return await self.executor.run(self._swap_strategy(), params)

    def _swap_strategy(self) -> OperationStrategy[SwapParams, SwapResult]:
        return OperationStrategy(
            name="execute swap",
            prefix=self.SWAP_PREFIX,
            validate=self._validate,
            requires_signing=True,
            quote=self._quote,
            required_funds=lambda ctx: (ctx.params.from_token, ctx.params.amount),
            build_proof_contexts=self._swap_proofs,
            build_operation=self._swap_operation,
            build_result=self._swap_result,
        )

    def _swap_proofs(self, ctx: RunContext[SwapParams]) -> Dict[str, ProofContext]:
        quote: SwapQuote = ctx.quote
        return {
            "zk_proof": ProofContext(
                statement="swap_validity",
                owner=ctx.wallet_address,
                public_inputs={
                    "swap_id": ctx.operation_id,
                    "from_token": quote.from_token,
                    "to_token": quote.to_token,
                    "minimum_received": quote.minimum_received,
                },
            ),
            "routing_proof": ProofContext(
                statement="swap_routing",
                owner=ctx.wallet_address,
                public_inputs={"swap_id": ctx.operation_id, "route": quote.route},
            ),
        }

    async def _swap_operation(self, ctx: RunContext[SwapParams]) -> LedgerOperation:
        quote: SwapQuote = ctx.quote
        return LedgerOperation(
            operation_id=ctx.operation_id,
            kind=OperationKind.SWAP,
            owner=ctx.wallet_address,
            status=SwapState.COMPLETED.value,
            token=quote.from_token,
            amount=quote.input_amount,
            to_token=quote.to_token,
            output_amount=quote.output_amount,
            payload={
                "exchange_rate": quote.exchange_rate,
                "minimum_received": quote.minimum_received,
                "fee": quote.fee,
                "zk_proof": ctx.proofs["zk_proof"],
                "routing_proof": ctx.proofs["routing_proof"],
            },
        )

    def _swap_result(self, ctx: RunContext[SwapParams]) -> SwapResult:
        quote: SwapQuote = ctx.quote
        return SwapResult(
            swap_id=ctx.operation_id,
            signature=ctx.signature,
            from_token=quote.from_token,
            to_token=quote.to_token,
            input_amount=quote.input_amount,
            output_amount=quote.output_amount,
            exchange_rate=quote.exchange_rate,
            zk_proof=ctx.proofs["zk_proof"],
            routing_proof=ctx.proofs["routing_proof"],
            status=SwapState.COMPLETED,
            timestamp=ctx.timestamp,
        )

    async def get_swap_status(self, swap_id: str) -> SwapStatus:
        require_identifier(swap_id, "Swap ID")

        async def load() -> SwapStatus:
            record = await self.ledger.get_status(swap_id)
            if record.kind is not OperationKind.SWAP:
                raise ValidationError(f"{swap_id} is not a swap")
            return SwapStatus(
                swap_id=record.operation_id,
                status=SwapState(record.status),
                timestamp=record.updated_at,
                confirmations=record.confirmations,
                error=record.error,
            )

        return await self.executor.query("get swap status", load)

    async def get_pool_info(self, token_a: str, token_b: str) -> PoolInfo:
        """Reference pool figures for a token pair, computed per request."""
        if token_a not in SUPPORTED_TOKENS or token_b not in SUPPORTED_TOKENS:
            raise ValidationError("Unsupported token pair")

        return PoolInfo(
            token_a=token_a,
            token_b=token_b,
            liquidity_a=POOL_DEPTH_USD / REFERENCE_RATES[token_a],
            liquidity_b=POOL_DEPTH_USD / REFERENCE_RATES[token_b],
            fee=self.settings.swap_fee_rate,
            volume_24h=POOL_VOLUME_24H,
            apy=POOL_APY,
        )
