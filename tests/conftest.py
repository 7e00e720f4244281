"""Pytest configuration and fixtures."""

import pytest
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from zkhole.config import ZkHoleSettings
from zkhole.core.identity import HoleIDClient
from zkhole.core.interfaces import Ledger
from zkhole.core.mail import HoleMailClient
from zkhole.core.swap import HoleSwapClient
from zkhole.core.transfer import ZkHoleClient
from zkhole.crypto.artifacts import ArtifactGenerator
from zkhole.crypto.prover import Prover
from zkhole.security.wallet import KeypairWallet, WatchOnlyWallet
from zkhole.storage.database import LocalLedger


class RecordingProver(Prover):
    """Prover spy: remembers every context it was asked to prove."""

    def __init__(self, generator: ArtifactGenerator, fail: bool = False, valid: bool = True):
        self.generator = generator
        self.fail = fail
        self.valid = valid
        self.contexts = []
        self.verified = []

    async def generate(self, context):
        self.contexts.append(context)
        if self.fail:
            raise RuntimeError("prover offline")
        return self.generator.random_hash()

    async def verify(self, artifact):
        self.verified.append(artifact)
        if self.fail:
            raise RuntimeError("prover offline")
        return self.valid and isinstance(artifact, str) and len(artifact) == 64


class SpyLedger(Ledger):
    """Ledger spy delegating to a real ledger; ``fail_on`` names methods that raise."""

    def __init__(self, inner: Ledger, fail_on=()):
        self.inner = inner
        self.fail_on = set(fail_on)
        self.calls = []

    async def _call(self, name, *args, **kwargs):
        self.calls.append(name)
        if name in self.fail_on:
            raise RuntimeError(f"{name} unavailable")
        return await getattr(self.inner, name)(*args, **kwargs)

    async def get_balance(self, address, token="SOL"):
        return await self._call("get_balance", address, token)

    async def submit(self, operation):
        return await self._call("submit", operation)

    async def get_status(self, reference):
        return await self._call("get_status", reference)

    async def confirm(self, signature):
        return await self._call("confirm", signature)

    async def fetch(self, operation_id):
        return await self._call("fetch", operation_id)

    async def list_records(self, kind, owner=None, recipient=None, statuses=None, limit=20, offset=0):
        return await self._call(
            "list_records", kind, owner=owner, recipient=recipient,
            statuses=statuses, limit=limit, offset=offset,
        )


@pytest.fixture
def settings():
    """Settings isolated from the environment's .env file."""
    return ZkHoleSettings(_env_file=None)


@pytest.fixture
def generator():
    return ArtifactGenerator()


@pytest.fixture
def local_ledger(generator):
    """Fresh in-memory ledger."""
    ledger = LocalLedger("sqlite://", generator=generator)
    ledger.create_tables()
    yield ledger
    ledger.drop_tables()


@pytest.fixture
def ledger(local_ledger):
    return SpyLedger(local_ledger)


@pytest.fixture
def prover(generator):
    return RecordingProver(generator)


@pytest.fixture
def wallet():
    return KeypairWallet()


@pytest.fixture
def watch_only_wallet():
    return WatchOnlyWallet(public_key="9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM")


@pytest.fixture
def funded_wallet(wallet, local_ledger):
    """Wallet holding 10 SOL and 500 USDC."""
    local_ledger.credit(wallet.public_key, "SOL", 10.0)
    local_ledger.credit(wallet.public_key, "USDC", 500.0)
    return wallet


@pytest.fixture
def make_client(ledger, prover, generator, settings):
    """Factory building any domain client over the shared fixtures."""
    def make(client_cls, wallet, **kwargs):
        kwargs.setdefault("prover", prover)
        kwargs.setdefault("generator", generator)
        kwargs.setdefault("settings", settings)
        return client_cls(kwargs.pop("ledger", ledger), wallet, **kwargs)
    return make


@pytest.fixture
def transfer_client(make_client, funded_wallet):
    return make_client(ZkHoleClient, funded_wallet)


@pytest.fixture
def identity_client(make_client, wallet):
    return make_client(HoleIDClient, wallet)


@pytest.fixture
def mail_client(make_client, wallet):
    return make_client(HoleMailClient, wallet, hole_id="hole_inbox0000000a")


@pytest.fixture
def swap_client(make_client, funded_wallet):
    return make_client(HoleSwapClient, funded_wallet)
