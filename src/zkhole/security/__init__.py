"""Wallet capability module."""

from zkhole.security.wallet import (
    WalletAdapter,
    KeypairWallet,
    WatchOnlyWallet,
    can_sign,
    wallet_address,
)

__all__ = [
    "WalletAdapter",
    "KeypairWallet",
    "WatchOnlyWallet",
    "can_sign",
    "wallet_address",
]
