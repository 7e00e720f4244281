"""HoleID: unlinkable identities and verifiable credentials."""

import logging
from datetime import datetime, UTC
from typing import Any, Dict, Union

from zkhole.core.client import BaseClient
from zkhole.core.interfaces import LedgerOperation, OperationKind
from zkhole.core.pipeline import OperationStrategy, RunContext
from zkhole.core.validation import (
    as_utc,
    coerce_params,
    validate_credential_params,
    validate_identity_params,
    validate_verification_params,
)
from zkhole.crypto.prover import ProofContext
from zkhole.models.schemas import (
    Credential,
    CredentialParams,
    CredentialStatus,
    Identity,
    IdentityParams,
    IdentityStatus,
    RevocationResult,
    VerificationParams,
    VerificationResult,
)
from zkhole.utils.encoding import bytes_to_hex
from zkhole.utils.hash import sha256

logger = logging.getLogger(__name__)


def compose_verification(
    proof_valid: bool,
    not_expired: bool,
    claims_valid: bool,
    verified_at: datetime,
) -> VerificationResult:
    """Combine the three independent checks; is_valid is their conjunction."""
    return VerificationResult(
        is_valid=proof_valid and not_expired and claims_valid,
        proof_valid=proof_valid,
        not_expired=not_expired,
        claims_valid=claims_valid,
        verified_at=verified_at,
    )


class HoleIDClient(BaseClient):
    """
    Issues identities and credentials backed by zero-knowledge proofs.

    Only hashes of usernames and the names of claims reach the ledger;
    usernames and claim values stay with the caller.
    """

    IDENTITY_PREFIX = "hole"
    CREDENTIAL_PREFIX = "cred"

    # ---------------------------------------------------------------- identity

    async def create_identity(self, params: Union[IdentityParams, Dict[str, Any]]) -> Identity:
        """
        Create a new unlinkable identity.

        Raises:
            ValidationError: Username shorter than 3 characters
            WalletError: Wallet not connected
            NetworkError: Proof generation or registration failed
        """
        params = coerce_params(params, IdentityParams, "identity parameters")
        return await self.executor.run(self._identity_strategy(), params)

    def _identity_strategy(self) -> OperationStrategy[IdentityParams, Identity]:
        return OperationStrategy(
            name="create identity",
            prefix=self.IDENTITY_PREFIX,
            validate=validate_identity_params,
            build_proof_contexts=self._identity_proofs,
            build_operation=self._identity_operation,
            build_result=self._identity_result,
        )

    def _identity_proofs(self, ctx: RunContext[IdentityParams]) -> Dict[str, ProofContext]:
        username_hash = bytes_to_hex(sha256(ctx.params.username))
        return {
            "zk_proof": ProofContext(
                statement="identity_ownership",
                owner=ctx.wallet_address,
                public_inputs={"hole_id": ctx.operation_id, "username_hash": username_hash},
            ),
            "credential": ProofContext(
                statement="identity_credential",
                owner=ctx.wallet_address,
                public_inputs={"hole_id": ctx.operation_id},
            ),
        }

    async def _identity_operation(self, ctx: RunContext[IdentityParams]) -> LedgerOperation:
        return LedgerOperation(
            operation_id=ctx.operation_id,
            kind=OperationKind.IDENTITY,
            owner=ctx.wallet_address,
            status=IdentityStatus.ACTIVE.value,
            payload={
                "username_hash": bytes_to_hex(sha256(ctx.params.username)),
                "zk_proof": ctx.proofs["zk_proof"],
                "credential": ctx.proofs["credential"],
            },
        )

    def _identity_result(self, ctx: RunContext[IdentityParams]) -> Identity:
        return Identity(
            hole_id=ctx.operation_id,
            username=ctx.params.username,
            credential=ctx.proofs["credential"],
            zk_proof=ctx.proofs["zk_proof"],
            timestamp=ctx.timestamp,
            status=IdentityStatus.ACTIVE,
        )

    # -------------------------------------------------------------- credential

    async def generate_credential(self, params: Union[CredentialParams, Dict[str, Any]]) -> Credential:
        """
        Issue a verifiable credential for a HoleID.

        Raises:
            ValidationError: Missing HoleID, empty claims, expiry in the past
            WalletError: Wallet not connected
            NetworkError: Proof generation or anchoring failed
        """
        params = coerce_params(params, CredentialParams, "credential parameters")
        return await self.executor.run(self._credential_strategy(), params)

    def _credential_strategy(self) -> OperationStrategy[CredentialParams, Credential]:
        return OperationStrategy(
            name="generate credential",
            prefix=self.CREDENTIAL_PREFIX,
            validate=validate_credential_params,
            build_proof_contexts=self._credential_proofs,
            build_operation=self._credential_operation,
            build_result=self._credential_result,
        )

    @staticmethod
    def _expiry(params: CredentialParams):
        return as_utc(params.expires_at) if params.expires_at is not None else None

    def _credential_proofs(self, ctx: RunContext[CredentialParams]) -> Dict[str, ProofContext]:
        expires_at = self._expiry(ctx.params)
        return {
            "zk_proof": ProofContext(
                statement="credential_claims",
                owner=ctx.wallet_address,
                public_inputs={
                    "credential_id": ctx.operation_id,
                    "hole_id": ctx.params.hole_id,
                    "claim_keys": sorted(ctx.params.claims),
                    "expires_at": expires_at.isoformat() if expires_at else None,
                },
            ),
        }

    async def _credential_operation(self, ctx: RunContext[CredentialParams]) -> LedgerOperation:
        expires_at = self._expiry(ctx.params)
        return LedgerOperation(
            operation_id=ctx.operation_id,
            kind=OperationKind.CREDENTIAL,
            owner=ctx.wallet_address,
            status=CredentialStatus.VALID.value,
            target_id=ctx.params.hole_id,
            payload={
                "claim_keys": sorted(ctx.params.claims),
                "zk_proof": ctx.proofs["zk_proof"],
                "expires_at": expires_at.isoformat() if expires_at else None,
            },
        )

    def _credential_result(self, ctx: RunContext[CredentialParams]) -> Credential:
        return Credential(
            credential_id=ctx.operation_id,
            hole_id=ctx.params.hole_id,
            claims=dict(ctx.params.claims),
            zk_proof=ctx.proofs["zk_proof"],
            issued_at=ctx.timestamp,
            expires_at=self._expiry(ctx.params),
            status=CredentialStatus.VALID,
        )

    # ------------------------------------------------------------ verification

    async def verify_credential(
        self, params: Union[VerificationParams, Dict[str, Any]]
    ) -> VerificationResult:
        """
        Verify a credential without revealing the identity behind it.

        Validity is recomputed on every call from proof validity, expiry and
        required-claim coverage; nothing is cached.

        Raises:
            ValidationError: Credential missing
            NetworkError: Prover failure
        """
        params = coerce_params(params, VerificationParams, "verification parameters")
        validate_verification_params(params)
        credential = params.credential

        proof_valid = await self.executor.query(
            "verify credential", lambda: self.prover.verify(credential.zk_proof)
        )

        now = datetime.now(UTC)
        not_expired = credential.expires_at is None or as_utc(credential.expires_at) > now
        claims_valid = all(claim in credential.claims for claim in params.required_claims or [])

        result = compose_verification(bool(proof_valid), not_expired, claims_valid, now)
        logger.debug(f"Verified {credential.credential_id}: valid={result.is_valid}")
        return result

    # -------------------------------------------------------------- revocation

    async def revoke(self, target_id: str) -> RevocationResult:
        """
        Revoke an identity or credential.

        Revoking an id twice succeeds both times.
        """
        revoked_at = await self.executor.transition(OperationKind.REVOCATION, target_id, "HoleID")
        return RevocationResult(target_id=target_id, success=True, revoked_at=revoked_at)
