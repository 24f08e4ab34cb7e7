"""
Promoter Data Model
===================
Transactions as returned by the ledger, the zero-value spam transfer
used for promotion, and the per-bundle / per-run outcome records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Transaction:
    """Single ledger transaction. current_index 0 marks the bundle tail."""

    hash: str
    bundle: str
    current_index: int
    last_index: int = 0
    attachment_timestamp: int = 0  # milliseconds since epoch
    trunk_transaction: str = ""
    branch_transaction: str = ""
    address: str = ""
    value: int = 0
    tag: str = ""
    trytes: str = ""

    @property
    def is_tail(self) -> bool:
        return self.current_index == 0


@dataclass
class SpamTransfer:
    """Zero-value, empty-payload transfer attached on top of a tail."""

    address: str
    value: int = 0
    message: str = ""
    tag: str = ""
    trytes: List[str] = field(default_factory=list)  # pre-finalised bundle


class BundleOutcome(Enum):
    """How a single bundle resolved within a run."""

    CONFIRMED = "CONFIRMED"
    PROMOTED = "PROMOTED"
    REATTACHED = "REATTACHED"
    FAILED = "FAILED"


@dataclass
class RunReport:
    """Summary of a whole promotion pass."""

    processed: List[str] = field(default_factory=list)
    outcomes: Dict[str, BundleOutcome] = field(default_factory=dict)

    def record(self, bundle: str, outcome: BundleOutcome) -> None:
        self.processed.append(bundle)
        self.outcomes[bundle] = outcome

    def count(self, outcome: BundleOutcome) -> int:
        return sum(1 for o in self.outcomes.values() if o is outcome)

    def outcome_for(self, bundle: str) -> Optional[BundleOutcome]:
        return self.outcomes.get(bundle)

    def to_dict(self) -> Dict[str, int]:
        summary = {o.value.lower(): self.count(o) for o in BundleOutcome}
        summary["processed"] = len(self.processed)
        return summary
