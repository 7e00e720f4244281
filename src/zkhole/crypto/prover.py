"""Proof generation capability.

The SDK never builds real zero-knowledge proofs itself. It asks a ``Prover``
for an opaque 64-character artifact bound to one operation and later asks the
same capability whether an artifact is valid. ``PlaceholderProver`` keeps
that interface honest (async, awaited by the pipeline) while producing
SHA-256 digests over the proof context plus fresh randomness.

A production deployment substitutes a prover backed by a real proving
system; nothing in the pipeline depends on how artifacts are produced.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from zkhole.crypto.artifacts import PROOF_LENGTH, ArtifactGenerator, get_artifact_generator
from zkhole.utils.encoding import bytes_to_hex
from zkhole.utils.hash import canonical_json, hash_concatenate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofContext:
    """
    Statement a proof is generated for.

    Attributes:
        statement: What is being proven (``transfer_validity``,
            ``identity_ownership``, ``credential_claims``, ``message_routing``,
            ``swap_validity``, ``swap_routing``)
        owner: Public identifier of the wallet requesting the proof
        public_inputs: Values the verifier is allowed to see
    """

    statement: str
    owner: str
    public_inputs: Dict[str, Any] = field(default_factory=dict)

    def to_bytes(self) -> bytes:
        return canonical_json({
            "statement": self.statement,
            "owner": self.owner,
            "public_inputs": self.public_inputs,
        })


class Prover(ABC):
    """Produces and checks opaque proof artifacts."""

    @abstractmethod
    async def generate(self, context: ProofContext) -> str:
        """Return a 64-character proof artifact for the given context."""

    @abstractmethod
    async def verify(self, artifact: str) -> bool:
        """Return whether the artifact is a valid proof."""


class PlaceholderProver(Prover):
    """
    Hash-based stand-in for a real proving system.

    artifact = hex(SHA-256(context || 32 random bytes))

    Verification only enforces the artifact length (64 characters); it
    makes no alphabet or soundness claim.
    """

    def __init__(self, generator: Optional[ArtifactGenerator] = None):
        self.generator = generator or get_artifact_generator()

    async def generate(self, context: ProofContext) -> str:
        nonce = self.generator.random_bytes(32)
        artifact = bytes_to_hex(hash_concatenate(context.to_bytes(), nonce))
        logger.debug(f"Generated {context.statement} proof for {context.owner[:8]}...")
        return artifact

    async def verify(self, artifact: str) -> bool:
        return isinstance(artifact, str) and len(artifact) == PROOF_LENGTH


# Global instance
_prover: Optional[PlaceholderProver] = None


def get_prover() -> PlaceholderProver:
    """Get or create global prover instance"""
    global _prover
    if _prover is None:
        _prover = PlaceholderProver()
    return _prover
