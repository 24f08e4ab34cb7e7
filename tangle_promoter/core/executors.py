"""
Promotion & Reattachment Executors
==================================
The two ways the promoter nudges an unconfirmed bundle:

- promote: attach a zero-value spam transaction on top of a tail
- reattach: replay the whole bundle as a fresh attachment

Remote errors never escape: they become a FAILED outcome recorded in the
BundleStore; successes leave the bookkeeping untouched.
"""

from typing import List, Optional

from tangle_promoter.config.settings import Settings
from tangle_promoter.shared.errors import is_inconsistent_subtangle
from tangle_promoter.shared.infrastructure.iri_client import LedgerClient
from tangle_promoter.shared.models import BundleOutcome, SpamTransfer, Transaction
from tangle_promoter.shared.system.bundle_store import BundleStore
from tangle_promoter.shared.system.logging import Logger


class ReattachmentExecutor:
    def __init__(self, client: LedgerClient, store: BundleStore,
                 depth: int = Settings.REATTACH_DEPTH,
                 min_weight_magnitude: int = Settings.MIN_WEIGHT_MAGNITUDE):
        self.client = client
        self.store = store
        self.depth = depth
        self.min_weight_magnitude = min_weight_magnitude

    async def reattach(self, bundle: str, index: int, tail_hash: str) -> BundleOutcome:
        try:
            await self.client.replay_bundle(tail_hash, self.depth, self.min_weight_magnitude)
        except Exception as e:
            Logger.error(f"[PROMOTER] Reattachment error for bundle {bundle} at index {index}")
            Logger.error(f"[PROMOTER] Error message for reattachment failure, {e}")
            self.store.mark_failed(bundle)
            return BundleOutcome.FAILED

        Logger.success(f"[PROMOTER] Successfully made a reattachment for bundle {bundle} at index {index}")
        return BundleOutcome.REATTACHED

    async def reattach_head(self, bundle: str, index: int, tails: List[Transaction]) -> BundleOutcome:
        """Fallback when no tail is consistent: replay from the first tail, if any."""
        head: Optional[Transaction] = tails[0] if tails else None
        if head is None:
            Logger.error(f"[PROMOTER] No tail found for bundle {bundle} at index {index}")
            self.store.mark_failed(bundle)
            return BundleOutcome.FAILED

        Logger.info(f"[PROMOTER] Will replay for bundle {bundle} at index {index}")
        return await self.reattach(bundle, index, head.hash)


class PromotionExecutor:
    def __init__(self, client: LedgerClient, store: BundleStore, reattacher: ReattachmentExecutor,
                 spam_transfer: SpamTransfer, depth: int = Settings.PROMOTE_DEPTH,
                 min_weight_magnitude: int = Settings.MIN_WEIGHT_MAGNITUDE):
        self.client = client
        self.store = store
        self.reattacher = reattacher
        self.spam_transfer = spam_transfer
        self.depth = depth
        self.min_weight_magnitude = min_weight_magnitude

    async def promote(self, bundle: str, index: int, tail: Transaction) -> BundleOutcome:
        Logger.info(f"[PROMOTER] Starting promotion for bundle {bundle} at index {index}")
        try:
            await self.client.promote_transaction(
                tail.hash,
                self.depth,
                self.min_weight_magnitude,
                self.spam_transfer,
                {"interrupt": False, "delay": 0},
            )
        except Exception as e:
            if is_inconsistent_subtangle(e):
                Logger.error(f"[PROMOTER] Failed to promote {bundle} at index {index}. Will reattach")
                return await self.reattacher.reattach(bundle, index, tail.hash)

            Logger.error(f"[PROMOTER] Unknown error while promoting {bundle} at index {index}. Will not reattach")
            Logger.debug(f"[PROMOTER] Promotion error: {e}")
            self.store.mark_failed(bundle)
            return BundleOutcome.FAILED

        Logger.success(f"[PROMOTER] Promoted bundle {bundle} at index {index}")
        return BundleOutcome.PROMOTED
