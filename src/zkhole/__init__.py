"""zkHole SDK: private transfers, identities, messages and swaps."""

__version__ = "0.1.0"
__author__ = "zkHole Team"
__description__ = "Privacy SDK for anonymous transfers, HoleID, HoleMail and HoleSwap"

from .core.transfer import ZkHoleClient
from .core.identity import HoleIDClient
from .core.mail import HoleMailClient
from .core.swap import HoleSwapClient
from .core.interfaces import Ledger, LedgerOperation, OperationKind
from .core.pipeline import PipelineState
from .crypto.prover import Prover, PlaceholderProver
from .security.wallet import KeypairWallet, WatchOnlyWallet
from .storage.database import LocalLedger
from .config import ZkHoleSettings, configure_logging, get_settings
from .exceptions import (
    ErrorKind,
    ZkHoleError,
    ValidationError,
    WalletError,
    InsufficientFundsError,
    NetworkError,
    TransactionError,
)

__all__ = [
    "ZkHoleClient",
    "HoleIDClient",
    "HoleMailClient",
    "HoleSwapClient",
    "Ledger",
    "LedgerOperation",
    "OperationKind",
    "PipelineState",
    "Prover",
    "PlaceholderProver",
    "KeypairWallet",
    "WatchOnlyWallet",
    "LocalLedger",
    "ZkHoleSettings",
    "configure_logging",
    "get_settings",
    "ErrorKind",
    "ZkHoleError",
    "ValidationError",
    "WalletError",
    "InsufficientFundsError",
    "NetworkError",
    "TransactionError",
]
