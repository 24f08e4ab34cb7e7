"""
Tangle Promoter Test Configuration
==================================
Shared fixtures and pytest markers for the test suite.
"""

import time

import pytest

from tangle_promoter.shared.errors import LedgerError
from tangle_promoter.shared.infrastructure.iri_client import LedgerClient
from tangle_promoter.shared.models import Transaction
from tangle_promoter.shared.system.bundle_store import StatePaths
from tangle_promoter.shared.system.logging import Logger


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep Rich console output out of test runs."""
    Logger.set_silent(True)
    yield
    Logger.set_silent(False)


# ============================================================================
# SHARED FIXTURES
# ============================================================================

def now_ms() -> int:
    return int(time.time() * 1000)


@pytest.fixture
def make_tx():
    """Factory for a Transaction attached age_ms ago."""
    def _make(tx_hash: str, bundle: str = "B1", current_index: int = 0, age_ms: int = 60_000) -> Transaction:
        return Transaction(
            hash=tx_hash,
            bundle=bundle,
            current_index=current_index,
            last_index=max(current_index, 1),
            attachment_timestamp=now_ms() - age_ms,
        )
    return _make


class FakeLedger(LedgerClient):
    """
    Scripted ledger collaborator.

    Every call is appended to `calls` so tests can assert on ordering.
    Scripted values may be exceptions, which are raised instead of returned.
    """

    def __init__(self):
        self.calls = []
        self.transactions = {}   # bundle -> list[Transaction] | Exception
        self.inclusion = {}      # bundle -> list[bool] | Exception
        self.promotable = {}     # tail hash -> bool | Exception
        self.promote_result = {}  # tail hash -> Exception
        self.replay_result = {}   # tail hash -> Exception
        self.nodes = []
        self._hash_to_bundle = {}

    def _resolve(self, value):
        if isinstance(value, Exception):
            raise value
        return value

    async def find_transaction_objects(self, bundle_hash):
        self.calls.append(("find", bundle_hash))
        txs = self._resolve(self.transactions.get(bundle_hash, []))
        for tx in txs:
            self._hash_to_bundle[tx.hash] = bundle_hash
        return txs

    async def get_latest_inclusion(self, hashes):
        self.calls.append(("inclusion", tuple(hashes)))
        bundle = self._hash_to_bundle.get(hashes[0]) if hashes else None
        states = self.inclusion.get(bundle, [False] * len(hashes))
        return self._resolve(states)

    async def is_promotable(self, tail_hash):
        self.calls.append(("promotable", tail_hash))
        return self._resolve(self.promotable.get(tail_hash, True))

    async def promote_transaction(self, tail_hash, depth, min_weight_magnitude, transfer, options=None):
        self.calls.append(("promote", tail_hash, depth, min_weight_magnitude))
        self._resolve(self.promote_result.get(tail_hash, ["PROMOTED"]))
        return ["PROMOTED"]

    async def replay_bundle(self, tail_hash, depth, min_weight_magnitude):
        self.calls.append(("replay", tail_hash, depth, min_weight_magnitude))
        self._resolve(self.replay_result.get(tail_hash, ["REPLAYED"]))
        return ["REPLAYED"]

    def change_node(self, provider):
        self.calls.append(("change_node", provider))
        self.nodes.append(provider)

    def methods(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_ledger():
    return FakeLedger()


@pytest.fixture
def state_paths(tmp_path):
    return StatePaths(
        unconfirmed=str(tmp_path / "unconfirmed_bundles.json"),
        failed=str(tmp_path / "failed_reattachments.json"),
        confirmed=str(tmp_path / "confirmed_bundles.json"),
    )


@pytest.fixture
def ledger_error():
    def _make(message="Connection refused"):
        return LedgerError(message)
    return _make
