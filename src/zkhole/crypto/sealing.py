"""Message payload sealing for HoleMail.

Message bodies and metadata are sealed with Fernet (AES-128-CBC + HMAC-SHA256)
before they reach the ledger, so the ledger only ever stores ciphertext.
Key distribution between sender and recipient is outside this module: a
sealer is constructed with a shared key, or generates one for the process.
"""

import json
from typing import Any, Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from zkhole.exceptions import ZkHoleError


class SealingError(ZkHoleError):
    """Raised when a payload cannot be sealed or opened."""
    pass


class MessageSealer:
    """Symmetric sealer for message content and metadata."""

    def __init__(self, key: Optional[Union[str, bytes]] = None):
        """
        Initialize sealer with an existing or fresh key.

        Args:
            key: urlsafe-base64 Fernet key; a new one is generated when omitted

        Raises:
            SealingError: If the key is malformed
        """
        if key is None:
            key = Fernet.generate_key()
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise SealingError(f"Invalid sealing key: {e}", cause=e)

    def seal(self, plaintext: str) -> str:
        if not isinstance(plaintext, str):
            raise SealingError("Plaintext must be a string")
        return self._fernet.encrypt(plaintext.encode('utf-8')).decode('ascii')

    def open(self, token: str) -> str:
        try:
            return self._fernet.decrypt(token.encode('ascii')).decode('utf-8')
        except (InvalidToken, AttributeError, UnicodeError) as e:
            raise SealingError(f"Failed to open sealed payload: {e!r}", cause=e)

    def seal_json(self, payload: Any) -> str:
        return self.seal(json.dumps(payload, sort_keys=True))

    def open_json(self, token: str) -> Any:
        return json.loads(self.open(token))


# Global instance
_default_sealer: Optional[MessageSealer] = None


def get_default_sealer() -> MessageSealer:
    """Get or create the process-wide sealer used when no key is configured"""
    global _default_sealer
    if _default_sealer is None:
        _default_sealer = MessageSealer()
    return _default_sealer
