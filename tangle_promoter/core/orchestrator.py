"""
Promoter Orchestrator
=====================
Drives one promotion pass over the active bundle list.

Per bundle, strictly one at a time:
1. Fetch the bundle's transactions
2. Check inclusion of its tails (any included -> confirmed)
3. Scan for a consistent, recent tail
4. Promote it, or reattach when none qualifies
5. Persist the outcome, rotate node, move to the next index

Only construction errors (InvalidInput) escape; every per-bundle error
ends up in the failed list and the run continues.
"""

from __future__ import annotations

from typing import List, Optional

from tangle_promoter.config.settings import Settings
from tangle_promoter.core.consistency import ConsistencyScanner
from tangle_promoter.core.executors import PromotionExecutor, ReattachmentExecutor
from tangle_promoter.shared.errors import InvalidInput
from tangle_promoter.shared.infrastructure.iri_client import IriClient, LedgerClient
from tangle_promoter.shared.infrastructure.node_pool import NodePool, load_nodes
from tangle_promoter.shared.models import BundleOutcome, RunReport, SpamTransfer, Transaction
from tangle_promoter.shared.system.bundle_store import BundleStore, StatePaths
from tangle_promoter.shared.system.logging import Logger


class Promoter:
    """
    Promotes or reattaches every bundle of the active list.

    Usage:
        promoter = Promoter(provider, unconfirmed, failed, confirmed, promote_all=True)
        report = await promoter.initialize()
    """

    def __init__(
        self,
        provider: str,
        bundles: List[str],
        failed: Optional[List[str]],
        confirmed: Optional[List[str]],
        promote_all: bool,
        client: Optional[LedgerClient] = None,
        node_pool: Optional[NodePool] = None,
        paths: Optional[StatePaths] = None,
        scanner: Optional[ConsistencyScanner] = None,
    ):
        if not provider:
            raise InvalidInput("Missing provider for iota node.")

        if not isinstance(bundles, list):
            raise InvalidInput("Incorrect bundles provided.")

        if not bundles:
            raise InvalidInput("No bundles to process.")

        if not promote_all and not failed:
            raise InvalidInput("No failed bundles to process.")

        self.provider = provider
        self.should_promote_all_unconfirmed = promote_all
        self.client = client or IriClient(provider, timeout=Settings.REQUEST_TIMEOUT)
        self.node_pool = node_pool or NodePool(load_nodes(Settings.IOTA_NODES), Settings.NODE_STRATEGY)
        self.store = BundleStore(paths or StatePaths.from_settings(), bundles, failed, confirmed)

        self.scanner = scanner or ConsistencyScanner(self.client, window_ms=Settings.MAX_DEPTH_WINDOW_MS)
        self.reattacher = ReattachmentExecutor(
            self.client, self.store, Settings.REATTACH_DEPTH, Settings.MIN_WEIGHT_MAGNITUDE
        )
        self.promoter = PromotionExecutor(
            self.client,
            self.store,
            self.reattacher,
            SpamTransfer(address=Settings.SPAM_ADDRESS, trytes=list(Settings.SPAM_BUNDLE_TRYTES)),
            Settings.PROMOTE_DEPTH,
            Settings.MIN_WEIGHT_MAGNITUDE,
        )

    # Bookkeeping accessors
    @property
    def bundles(self) -> List[str]:
        return self.store.unconfirmed

    @property
    def failed(self) -> List[str]:
        return self.store.failed

    @property
    def confirmed(self) -> List[str]:
        return self.store.confirmed

    def update_failed_bundles(self, bundle: str) -> None:
        self.store.mark_failed(bundle)

    def update_confirmed_bundles(self, bundle: str) -> None:
        self.store.mark_confirmed(bundle)

    def filter_and_update_unconfirmed_bundles(self, bundle: str) -> None:
        self.store.remove_from_unconfirmed(bundle)

    # ═══════════════════════════════════════════════════════════════════════
    # RUN LOOP
    # ═══════════════════════════════════════════════════════════════════════

    async def initialize(self) -> RunReport:
        # Snapshot: confirmed bundles leave unconfirmed mid-run
        active = list(self.store.unconfirmed if self.should_promote_all_unconfirmed else self.store.failed)
        report = RunReport()

        mode = "all unconfirmed" if self.should_promote_all_unconfirmed else "previously failed"
        Logger.section(f"Promotion Run ({mode}, {len(active)} bundles)")

        index = 0
        while True:
            bundle = active[index]
            outcome = await self._prepare(bundle, index)
            report.record(bundle, outcome)

            if self._should_not_process_next(index, active):
                Logger.info("[PROMOTER] Processed last bundle. Will quit.")
                return report

            # Don't bombard a single node
            self.client.change_node(self.node_pool.select_endpoint())
            index += 1
            Logger.info(f"[PROMOTER] About to start processing bundle with index {index}")

    @staticmethod
    def _should_not_process_next(index: int, active: List[str]) -> bool:
        return not active or index == len(active) - 1

    async def _prepare(self, bundle: str, index: int) -> BundleOutcome:
        Logger.info(f"[PROMOTER] Fetching transaction objects for bundle {bundle} at index {index}")

        try:
            txs = await self.client.find_transaction_objects(bundle)
        except Exception as e:
            Logger.error(f"[PROMOTER] Error fetching transaction objects for bundle {bundle} at index {index}")
            Logger.debug(f"[PROMOTER] {e}")
            self.update_failed_bundles(bundle)
            return BundleOutcome.FAILED

        tails: List[Transaction] = [tx for tx in txs if tx.current_index == 0]

        try:
            states = await self.client.get_latest_inclusion([t.hash for t in tails])
        except Exception as e:
            Logger.error(f"[PROMOTER] Error fetching inclusion states for bundle {bundle} at index {index}")
            Logger.debug(f"[PROMOTER] {e}")
            self.update_failed_bundles(bundle)
            return BundleOutcome.FAILED

        if any(states[:len(tails)]):
            Logger.info(f"[PROMOTER] Found transaction already confirmed for bundle {bundle} at index {index}")
            self.update_confirmed_bundles(bundle)
            self.filter_and_update_unconfirmed_bundles(bundle)
            return BundleOutcome.CONFIRMED

        consistent_tail = await self.scanner.find_consistent_tail(tails)
        if consistent_tail is None:
            Logger.warning(f"[PROMOTER] Could not find any consistent tail for bundle {bundle} at index {index}")
            return await self.reattacher.reattach_head(bundle, index, tails)

        return await self.promoter.promote(bundle, index, consistent_tail)
