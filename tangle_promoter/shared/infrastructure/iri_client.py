"""
IRI Node Client (Async)
=======================
Non-blocking access to an IOTA IRI node's JSON command API.

Features:
- Async HTTP (httpx) so the promotion loop never blocks the event loop
- Node switching between bundles (see NodePool)
- Transaction objects decoded from raw trytes
- Replay (reattach) of an existing bundle via remote proof of work

Every failure surfaces as LedgerError; callers decide what it means.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from tangle_promoter.shared.errors import LedgerError
from tangle_promoter.shared.infrastructure.trytes import transaction_from_trytes
from tangle_promoter.shared.models import SpamTransfer, Transaction
from tangle_promoter.shared.system.logging import Logger


class LedgerClient(ABC):
    """Remote ledger capability set consumed by the promoter."""

    @abstractmethod
    async def find_transaction_objects(self, bundle_hash: str) -> List[Transaction]:
        ...

    @abstractmethod
    async def get_latest_inclusion(self, hashes: List[str]) -> List[bool]:
        """Inclusion states aligned by position with hashes."""

    @abstractmethod
    async def is_promotable(self, tail_hash: str) -> bool:
        ...

    @abstractmethod
    async def promote_transaction(
        self,
        tail_hash: str,
        depth: int,
        min_weight_magnitude: int,
        transfer: SpamTransfer,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[str]:
        ...

    @abstractmethod
    async def replay_bundle(self, tail_hash: str, depth: int, min_weight_magnitude: int) -> List[str]:
        ...

    @abstractmethod
    def change_node(self, provider: str) -> None:
        ...

    async def close(self) -> None:
        return None


class IriClient(LedgerClient):
    API_VERSION = "1"
    REQUEST_TIMEOUT = 30

    def __init__(self, provider: str, timeout: float = None, transport: httpx.AsyncBaseTransport = None):
        if not provider:
            raise LedgerError("Missing provider for iota node.")
        self.provider = provider
        self._client = httpx.AsyncClient(
            timeout=timeout or self.REQUEST_TIMEOUT,
            headers={"X-IOTA-API-Version": self.API_VERSION, "Content-Type": "application/json"},
            transport=transport,
        )

    def change_node(self, provider: str) -> None:
        self.provider = provider
        Logger.debug(f"[IRI] Switched node to {provider}")

    async def close(self) -> None:
        await self._client.aclose()

    async def _command(self, command: str, **params) -> Dict[str, Any]:
        payload = {"command": command, **params}
        try:
            response = await self._client.post(self.provider, json=payload)
        except httpx.TimeoutException:
            raise LedgerError(f"{command} timed out on {self.provider}", method=command)
        except httpx.HTTPError as e:
            raise LedgerError(f"{command} failed on {self.provider}: {e}", method=command)

        try:
            data = response.json()
        except ValueError:
            raise LedgerError(
                f"{command} returned non-JSON body (HTTP {response.status_code})", method=command
            )

        if response.status_code != 200 or not isinstance(data, dict):
            detail = data.get("error") or data.get("exception") if isinstance(data, dict) else data
            raise LedgerError(f"{command} HTTP {response.status_code}: {detail}", method=command)

        error = data.get("error") or data.get("exception")
        if error:
            raise LedgerError(f"{command}: {error}", method=command)
        return data

    # ═══════════════════════════════════════════════════════════════════════
    # READ PATH
    # ═══════════════════════════════════════════════════════════════════════

    async def get_trytes(self, hashes: List[str]) -> List[str]:
        data = await self._command("getTrytes", hashes=hashes)
        return data.get("trytes", [])

    async def find_transaction_objects(self, bundle_hash: str) -> List[Transaction]:
        data = await self._command("findTransactions", bundles=[bundle_hash])
        hashes = data.get("hashes", [])
        if not hashes:
            return []

        trytes = await self.get_trytes(hashes)
        if len(trytes) != len(hashes):
            raise LedgerError(
                f"getTrytes returned {len(trytes)} entries for {len(hashes)} hashes", method="getTrytes"
            )
        try:
            return [transaction_from_trytes(t, h) for h, t in zip(hashes, trytes)]
        except ValueError as e:
            raise LedgerError(f"Malformed transaction trytes: {e}", method="getTrytes")

    async def get_latest_inclusion(self, hashes: List[str]) -> List[bool]:
        if not hashes:
            return []
        info = await self._command("getNodeInfo")
        milestone = info.get("latestSolidSubtangleMilestone")
        if not milestone:
            raise LedgerError("Node reported no solid milestone", method="getNodeInfo")

        data = await self._command("getInclusionStates", transactions=hashes, tips=[milestone])
        states = data.get("states", [])
        if len(states) != len(hashes):
            raise LedgerError("Inclusion states do not match requested hashes", method="getInclusionStates")
        return [bool(s) for s in states]

    async def is_promotable(self, tail_hash: str) -> bool:
        data = await self._command("checkConsistency", tails=[tail_hash])
        return bool(data.get("state"))

    # ═══════════════════════════════════════════════════════════════════════
    # WRITE PATH
    # ═══════════════════════════════════════════════════════════════════════

    async def _get_transaction(self, tx_hash: str) -> Transaction:
        trytes = await self.get_trytes([tx_hash])
        if not trytes or not trytes[0] or set(trytes[0]) == {"9"}:
            raise LedgerError(f"Transaction {tx_hash} not found on node", method="getTrytes")
        try:
            return transaction_from_trytes(trytes[0], tx_hash)
        except ValueError as e:
            raise LedgerError(f"Malformed transaction trytes: {e}", method="getTrytes")

    async def get_bundle_trytes(self, tail_hash: str) -> List[str]:
        """
        Walk a bundle from its tail along trunk references.

        Each step must stay in the tail's bundle and advance current_index
        by one, so the walk takes at most last_index + 1 fetches.
        """
        tail = await self._get_transaction(tail_hash)
        if not tail.is_tail:
            raise LedgerError(f"{tail_hash} is not a tail transaction", method="getTrytes")

        bundle = [tail.trytes]
        current = tail
        for expected_index in range(1, tail.last_index + 1):
            tx = await self._get_transaction(current.trunk_transaction)
            if tx.bundle != tail.bundle:
                raise LedgerError(
                    f"Trunk {tx.hash} of bundle {tail.bundle} belongs to bundle {tx.bundle}",
                    method="getTrytes",
                )
            if tx.current_index != expected_index or tx.last_index != tail.last_index:
                raise LedgerError(
                    f"Trunk {tx.hash} has index {tx.current_index}/{tx.last_index}, "
                    f"expected {expected_index}/{tail.last_index}",
                    method="getTrytes",
                )
            bundle.append(tx.trytes)
            current = tx
        return bundle

    async def send_trytes(
        self, trytes: List[str], depth: int, min_weight_magnitude: int, reference: str = None
    ) -> List[str]:
        params: Dict[str, Any] = {"depth": depth}
        if reference:
            params["reference"] = reference
        to_approve = await self._command("getTransactionsToApprove", **params)
        trunk = to_approve.get("trunkTransaction")
        branch = to_approve.get("branchTransaction")
        if not trunk or not branch:
            raise LedgerError("Node returned no tips to approve", method="getTransactionsToApprove")

        attached = await self._command(
            "attachToTangle",
            trunkTransaction=trunk,
            branchTransaction=branch,
            minWeightMagnitude=min_weight_magnitude,
            trytes=trytes,
        )
        attached_trytes = attached.get("trytes", [])
        await self._command("storeTransactions", trytes=attached_trytes)
        await self._command("broadcastTransactions", trytes=attached_trytes)
        return attached_trytes

    async def replay_bundle(self, tail_hash: str, depth: int, min_weight_magnitude: int) -> List[str]:
        bundle = await self.get_bundle_trytes(tail_hash)
        # attachToTangle expects the last index first
        return await self.send_trytes(list(reversed(bundle)), depth, min_weight_magnitude)

    async def promote_transaction(
        self,
        tail_hash: str,
        depth: int,
        min_weight_magnitude: int,
        transfer: SpamTransfer,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[str]:
        options = options or {}
        if not await self.is_promotable(tail_hash):
            raise LedgerError(f"Inconsistent subtangle: {tail_hash}", method="checkConsistency")

        if not transfer.trytes:
            raise LedgerError("No pre-finalised spam bundle configured for promotion")

        if options.get("interrupt"):
            return []
        delay = options.get("delay", 0)
        if delay:
            await asyncio.sleep(delay / 1000)

        return await self.send_trytes(
            list(reversed(transfer.trytes)), depth, min_weight_magnitude, reference=tail_hash
        )
