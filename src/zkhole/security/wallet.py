"""Wallet capability and a local keypair wallet."""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from Crypto.PublicKey import ECC
from Crypto.Signature import eddsa
from solders.pubkey import Pubkey


@runtime_checkable
class WalletAdapter(Protocol):
    """
    What the SDK needs from a wallet.

    ``public_key`` identifies the account. ``sign_transaction`` is optional:
    watch-only wallets omit it and cannot take part in funds-moving
    operations.
    """

    public_key: str


def can_sign(wallet: object) -> bool:
    """Check whether a wallet exposes a signing function."""
    return callable(getattr(wallet, "sign_transaction", None))


def wallet_address(wallet: object) -> Optional[str]:
    """Return the wallet's public identifier, or None when not connected."""
    public_key = getattr(wallet, "public_key", None)
    if public_key is None:
        return None
    address = str(public_key)
    return address or None


@dataclass
class WatchOnlyWallet:
    """Wallet that exposes an address but cannot sign."""
    public_key: str


class KeypairWallet:
    """
    Local Ed25519 wallet.

    The address is the base58 form of the raw 32-byte public key, the same
    encoding Solana uses for account addresses. Signatures are RFC 8032
    (pure Ed25519) over the payload bytes.
    """

    CURVE = "Ed25519"

    def __init__(self, private_key: Optional[bytes] = None):
        """
        Initialize wallet with new or existing key.

        Args:
            private_key: Optional existing private key (DER or PEM)

        Raises:
            ValueError: If provided private key is invalid
        """
        if private_key is None:
            self._key = ECC.generate(curve=self.CURVE)
        else:
            try:
                self._key = ECC.import_key(private_key)
            except (ValueError, IndexError, TypeError) as e:
                raise ValueError(f"Failed to load private key: {e}")
            if not self._key.has_private():
                raise ValueError("Provided key is not a private key")
            if self._key.curve != self.CURVE:
                raise ValueError(f"Unsupported curve: {self._key.curve}")

        self.public_key = str(Pubkey.from_bytes(self.public_key_bytes))

    @property
    def public_key_der(self) -> bytes:
        return self._key.public_key().export_key(format="DER")

    @property
    def public_key_bytes(self) -> bytes:
        # SubjectPublicKeyInfo ends with the 32-byte encoded point
        return self.public_key_der[-32:]

    def export_private_key(self) -> bytes:
        """
        Return the private key in DER format.

        Security: never log or persist this unencrypted.
        """
        return self._key.export_key(format="DER")

    async def sign_transaction(self, payload: bytes) -> bytes:
        return eddsa.new(self._key, "rfc8032").sign(payload)

    def verify_signature(self, payload: bytes, signature: bytes) -> bool:
        try:
            eddsa.new(self._key.public_key(), "rfc8032").verify(payload, signature)
            return True
        except ValueError:
            return False
