"""Hash utilities for proof contexts and wallet addresses."""

import hashlib
import json
from typing import Any, Union

from zkhole.utils.encoding import ensure_bytes


def sha256(data: Union[bytes, str]) -> bytes:
    """
    Compute SHA-256 hash of data.

    Args:
        data: Bytes or string to hash

    Returns:
        bytes: 32-byte SHA-256 hash
    """
    return hashlib.sha256(ensure_bytes(data)).digest()


def hash_concatenate(*data: Union[bytes, str]) -> bytes:
    """
    Hash concatenated data.

    Args:
        *data: Multiple bytes or strings to concatenate and hash

    Returns:
        bytes: SHA-256 hash of concatenated data
    """
    return sha256(b"".join(ensure_bytes(item) for item in data))


def canonical_json(payload: Any) -> bytes:
    """
    Serialize a payload deterministically (sorted keys, no whitespace).

    Values json cannot encode natively (datetimes, enums) fall back to str().
    """
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str).encode('utf-8')
