"""Artifact generation, proving and sealing capabilities."""

from zkhole.crypto.artifacts import (
    ArtifactGenerator,
    get_artifact_generator,
    is_proof_artifact,
    is_signature,
)
from zkhole.crypto.prover import ProofContext, Prover, PlaceholderProver, get_prover
from zkhole.crypto.sealing import MessageSealer, SealingError, get_default_sealer

__all__ = [
    'ArtifactGenerator',
    'get_artifact_generator',
    'is_proof_artifact',
    'is_signature',
    'ProofContext',
    'Prover',
    'PlaceholderProver',
    'get_prover',
    'MessageSealer',
    'SealingError',
    'get_default_sealer',
]
