"""Shared wiring for the domain clients."""

import logging
from typing import Any, Optional

from zkhole.config import ZkHoleSettings, get_settings
from zkhole.core.interfaces import Ledger
from zkhole.core.pipeline import Observer, OperationExecutor
from zkhole.core.validation import validate_network
from zkhole.crypto.artifacts import ArtifactGenerator, get_artifact_generator
from zkhole.crypto.prover import PlaceholderProver, Prover
from zkhole.exceptions import ValidationError, WalletError
from zkhole.security.wallet import wallet_address

logger = logging.getLogger(__name__)


class BaseClient:
    """
    Holds the collaborators every domain client needs.

    Args:
        ledger: Ledger implementation (system of record)
        wallet: Wallet exposing ``public_key`` and optionally ``sign_transaction``
        network: ``mainnet-beta``, ``devnet`` or ``testnet`` (default from settings)
        timeout: Ledger timeout in milliseconds (default from settings)
        prover: Proof capability (default: PlaceholderProver)
        generator: Identifier/artifact source (default: process-wide generator)
        settings: SDK settings (default: get_settings())
        observer: Optional pipeline state callback

    Raises:
        ValidationError: If ledger or wallet is missing, or the network is unknown
    """

    def __init__(
        self,
        ledger: Ledger,
        wallet: Any,
        network: Optional[str] = None,
        timeout: Optional[int] = None,
        *,
        prover: Optional[Prover] = None,
        generator: Optional[ArtifactGenerator] = None,
        settings: Optional[ZkHoleSettings] = None,
        observer: Optional[Observer] = None,
    ):
        if ledger is None:
            raise ValidationError("Ledger connection is required")
        if wallet is None:
            raise ValidationError("Wallet is required")

        self.settings = settings or get_settings()
        self.network = validate_network(network if network is not None else self.settings.network)

        if timeout is None:
            timeout = self.settings.timeout_ms
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
            raise ValidationError("Timeout must be a positive number of milliseconds")
        self.timeout = timeout

        self.ledger = ledger
        self.wallet = wallet
        self.generator = generator or get_artifact_generator()
        self.prover = prover or PlaceholderProver(self.generator)
        self.executor = OperationExecutor(
            ledger=self.ledger,
            prover=self.prover,
            generator=self.generator,
            wallet=self.wallet,
            observer=observer,
        )
        logger.debug(f"{type(self).__name__} ready on {self.network.value}")

    @classmethod
    def from_settings(cls, wallet: Any, settings: Optional[ZkHoleSettings] = None, **kwargs):
        """Build a client backed by a LocalLedger configured from settings."""
        from zkhole.storage.database import LocalLedger

        settings = settings or get_settings()
        ledger = LocalLedger(settings.database_url, timeout_ms=settings.timeout_ms)
        ledger.create_tables()
        return cls(ledger, wallet, settings=settings, **kwargs)

    def get_network(self) -> str:
        return self.network.value

    def get_wallet_address(self) -> str:
        address = wallet_address(self.wallet)
        if address is None:
            raise WalletError("Wallet not connected")
        return address
