"""Identifier and opaque-artifact generation.

Every random identifier, proof placeholder and ledger signature in the SDK
comes from one ``ArtifactGenerator`` so the randomness source can be swapped
without touching call sites. The default implementation draws from the
``secrets`` CSPRNG.

Formats:
    - Identifiers: ``<prefix>_<13 base36 chars>`` (e.g. ``swap_k3j9x0a1b2c3d``)
    - Proof / credential strings: 64 lowercase hex characters
    - Ledger signatures: 88 characters from ``[A-Za-z0-9]``
"""

import secrets
import string
import threading
from collections import deque
from typing import Deque, Optional, Set

ID_SUFFIX_LENGTH = 13
# How many recent identifiers are remembered for the collision check
ISSUED_WINDOW = 100_000
PROOF_LENGTH = 64
SIGNATURE_LENGTH = 88

ID_ALPHABET = string.digits + string.ascii_lowercase
SIGNATURE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
HEX_ALPHABET = frozenset(string.hexdigits.lower())


class ArtifactGenerator:
    """
    Source of identifiers and opaque artifacts.

    Identifiers are unique for the lifetime of the generator. The 13-character
    base36 suffix carries about 67 bits of randomness, and the most recent
    ``window`` identifiers are also remembered so a colliding draw among them
    is discarded. Memory stays bounded by ``window``.
    """

    def __init__(self, window: int = ISSUED_WINDOW):
        if window < 1:
            raise ValueError("Issued window must be positive")
        self.window = window
        self._issued: Set[str] = set()
        self._order: Deque[str] = deque()
        self._count = 0
        self._lock = threading.Lock()

    def random_bytes(self, length: int = 32) -> bytes:
        return secrets.token_bytes(length)

    def random_suffix(self, length: int = ID_SUFFIX_LENGTH) -> str:
        return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))

    def new_id(self, prefix: str) -> str:
        """
        Issue a new domain-prefixed identifier.

        Args:
            prefix: Domain prefix (``tx``, ``hole``, ``cred``, ``msg``, ``swap``)

        Returns:
            str: Identifier never issued before by this generator
        """
        if not prefix:
            raise ValueError("Identifier prefix is required")

        with self._lock:
            while True:
                candidate = f"{prefix}_{self.random_suffix()}"
                if candidate not in self._issued:
                    self._remember(candidate)
                    return candidate

    def _remember(self, identifier: str) -> None:
        if len(self._order) >= self.window:
            self._issued.discard(self._order.popleft())
        self._order.append(identifier)
        self._issued.add(identifier)
        self._count += 1

    def random_hash(self) -> str:
        """Return a 64-character hex string."""
        return secrets.token_hex(PROOF_LENGTH // 2)

    def random_signature(self) -> str:
        """Return an 88-character alphanumeric string."""
        return "".join(secrets.choice(SIGNATURE_ALPHABET) for _ in range(SIGNATURE_LENGTH))

    @property
    def issued_count(self) -> int:
        """Total identifiers issued, including ones no longer remembered."""
        return self._count

    @property
    def remembered_count(self) -> int:
        return len(self._issued)


def is_proof_artifact(value: object) -> bool:
    """Structural check for a proof / credential string."""
    return (
        isinstance(value, str)
        and len(value) == PROOF_LENGTH
        and all(ch in HEX_ALPHABET for ch in value)
    )


def is_signature(value: object) -> bool:
    """Structural check for a ledger signature."""
    return (
        isinstance(value, str)
        and len(value) == SIGNATURE_LENGTH
        and value.isascii()
        and value.isalnum()
    )


# Global instance
_generator: Optional[ArtifactGenerator] = None


def get_artifact_generator() -> ArtifactGenerator:
    """Get or create global generator instance"""
    global _generator
    if _generator is None:
        _generator = ArtifactGenerator()
    return _generator
