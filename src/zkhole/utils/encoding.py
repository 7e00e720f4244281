"""Encoding and decoding utilities."""

from typing import Union

from solders.pubkey import Pubkey


def bytes_to_hex(data: bytes) -> str:
    """
    Convert bytes to a bare hexadecimal string.

    Args:
        data: Bytes to convert

    Returns:
        str: Lowercase hexadecimal string (no '0x' prefix)
    """
    return data.hex()


def ensure_bytes(data: Union[bytes, str]) -> bytes:
    """
    Ensure data is in bytes format.

    Args:
        data: Bytes or string (UTF-8 encoded)

    Returns:
        bytes: Data as bytes
    """
    if isinstance(data, bytes):
        return data
    elif isinstance(data, str):
        return data.encode('utf-8')
    else:
        raise TypeError(f"Expected bytes or str, got {type(data)}")


def is_base58_address(value: object) -> bool:
    """Check that a value is a base58-encoded 32-byte account address."""
    if not isinstance(value, str) or not value:
        return False
    try:
        Pubkey.from_string(value)
    except ValueError:
        return False
    return True
