"""
NodePool - IRI Node Rotation
============================
Spreads promotion traffic over the configured nodes so no single node
receives every request.

Strategies:
- round-robin: cycle through the pool in order
- random: uniform pick, never repeating the previous node when the pool
  holds more than one entry
"""

from __future__ import annotations

import json
import os
import random
from enum import Enum
from typing import Iterable, List, Optional, Union
from urllib.parse import urlparse

from tangle_promoter.shared.errors import InvalidInput
from tangle_promoter.shared.system.logging import Logger


class RotationStrategy(Enum):
    ROUND_ROBIN = "round-robin"
    RANDOM = "random"

    @classmethod
    def parse(cls, value: Union[str, "RotationStrategy"]) -> "RotationStrategy":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        for strategy in cls:
            if strategy.value == normalized:
                return strategy
        raise InvalidInput(f"Unknown node rotation strategy: {value!r}")


def is_valid_node_url(url: str) -> bool:
    """Accepts http(s)://host[:port] with an optional path."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
        port = parsed.port  # raises on a non-numeric port
    except ValueError:
        return False
    if port is not None and not (0 < port < 65536):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def load_nodes(raw: Union[str, Iterable[str], None]) -> List[str]:
    """
    Load and validate the node list.

    Args:
        raw: comma separated URLs, an iterable of URLs, or a path to a
            JSON file containing an array of URLs.

    Returns:
        Valid, de-duplicated URLs in their original order.
    """
    if raw is None:
        raise InvalidInput("No ledger nodes configured.")

    if isinstance(raw, str):
        candidate = raw.strip()
        if candidate.endswith(".json") and os.path.exists(candidate):
            try:
                with open(candidate, "r") as f:
                    entries = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise InvalidInput(f"Could not read node list {candidate}: {e}")
            if not isinstance(entries, list):
                raise InvalidInput(f"Node list {candidate} must be a JSON array")
        else:
            entries = candidate.split(",")
    else:
        entries = list(raw)

    nodes: List[str] = []
    for entry in entries:
        url = entry.strip().rstrip("/") if isinstance(entry, str) else entry
        if not is_valid_node_url(url):
            Logger.warning(f"[NODES] Ignoring invalid node entry: {entry!r}")
            continue
        if url not in nodes:
            nodes.append(url)

    if not nodes:
        raise InvalidInput("No valid ledger nodes configured.")
    return nodes


class NodePool:
    """
    Endpoint selector for the promoter.

    Usage:
        pool = NodePool(load_nodes(Settings.IOTA_NODES), strategy="random")
        provider = pool.select_endpoint()
    """

    def __init__(self, nodes: List[str], strategy: Union[str, RotationStrategy] = RotationStrategy.ROUND_ROBIN,
                 rng: Optional[random.Random] = None):
        if not nodes:
            raise InvalidInput("Node pool cannot be empty.")
        self._nodes = list(nodes)
        self.strategy = RotationStrategy.parse(strategy)
        self._rng = rng or random.Random()
        self._round_robin_index = 0
        self._last: Optional[str] = None
        self.request_counts = {node: 0 for node in self._nodes}

    @property
    def nodes(self) -> List[str]:
        return list(self._nodes)

    @property
    def last_selected(self) -> Optional[str]:
        return self._last

    def select_endpoint(self) -> str:
        if self.strategy is RotationStrategy.ROUND_ROBIN:
            node = self._nodes[self._round_robin_index % len(self._nodes)]
            self._round_robin_index += 1
        else:
            candidates = [n for n in self._nodes if n != self._last] or self._nodes
            node = self._rng.choice(candidates)

        self._last = node
        self.request_counts[node] += 1
        return node
