"""
Consistency Scanner
===================
Picks the tail a promotion can safely reference.

A tail qualifies only when the node reports it consistent AND it was
attached recently enough to still be above max depth; the node would
reject a promotion that references an older transaction.
"""

import time
from typing import List, Optional

from tangle_promoter.shared.infrastructure.iri_client import LedgerClient
from tangle_promoter.shared.models import Transaction
from tangle_promoter.shared.system.logging import Logger

DEFAULT_MAX_DEPTH_WINDOW_MS = 11 * 60 * 1000


def is_above_max_depth(attachment_timestamp: int, now_ms: Optional[int] = None,
                       window_ms: int = DEFAULT_MAX_DEPTH_WINDOW_MS) -> bool:
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    return attachment_timestamp < now_ms and now_ms - attachment_timestamp < window_ms


class ConsistencyScanner:
    def __init__(self, client: LedgerClient, window_ms: int = DEFAULT_MAX_DEPTH_WINDOW_MS, clock=None):
        self.client = client
        self.window_ms = window_ms
        self._clock = clock or (lambda: int(time.time() * 1000))

    async def find_consistent_tail(self, tails: List[Transaction]) -> Optional[Transaction]:
        """First promotable and recent tail in list order, or None."""
        for tail in tails:
            try:
                promotable = await self.client.is_promotable(tail.hash)
            except Exception as e:
                # Treated as "no candidate" so the caller reattaches
                Logger.debug(f"[SCANNER] Consistency check failed for {tail.hash}: {e}")
                return None

            if promotable and is_above_max_depth(tail.attachment_timestamp, self._clock(), self.window_ms):
                return tail
        return None
