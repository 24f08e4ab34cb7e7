"""
Bundle Store
============
In-memory bundle-hash sets mirrored to JSON files.

Sets:
- unconfirmed: working set, bundles still awaiting confirmation
- failed: retry queue; membership does NOT remove a bundle from unconfirmed
- confirmed: terminal; confirmed bundles are also dropped from unconfirmed

Every mutation rewrites the full file (temp file + os.replace) before
returning, so an interrupted run loses at most the in-flight bundle.
"""

import json
import os
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from tangle_promoter.shared.errors import StateFileError
from tangle_promoter.shared.system.logging import Logger


@dataclass(frozen=True)
class StatePaths:
    unconfirmed: str
    failed: str
    confirmed: str

    @classmethod
    def from_settings(cls) -> "StatePaths":
        from tangle_promoter.config.settings import Settings
        return cls(
            unconfirmed=Settings.UNCONFIRMED_BUNDLES_PATH,
            failed=Settings.FAILED_REATTACHMENTS_PATH,
            confirmed=Settings.CONFIRMED_BUNDLES_PATH,
        )


def union(items: List[str], extra: List[str]) -> List[str]:
    """Ordered union; existing order is kept and duplicates are dropped."""
    result = list(dict.fromkeys(items))
    for item in extra:
        if item not in result:
            result.append(item)
    return result


def read_bundle_list(path: str) -> List[str]:
    if not os.path.exists(path):
        return []
    try:
        with open(path, "r") as f:
            content = json.load(f)
    except json.JSONDecodeError as e:
        raise StateFileError(path, f"invalid JSON ({e})")
    except OSError as e:
        raise StateFileError(path, str(e))

    if not isinstance(content, list) or not all(isinstance(h, str) for h in content):
        raise StateFileError(path, "expected a JSON array of bundle hashes")
    return content


def write_bundle_list(path: str, bundles: List[str]) -> None:
    """Atomic write with retry logic."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    temp_file = path + ".tmp"

    max_retries = 3
    for attempt in range(max_retries):
        try:
            with open(temp_file, "w") as f:
                json.dump(bundles, f, indent=2)
                f.flush()
                os.fsync(f.fileno())

            # Atomic swap
            os.replace(temp_file, path)
            return
        except PermissionError:
            if attempt == max_retries - 1:
                _discard(temp_file)
                raise
            time.sleep(0.05)
        except OSError:
            _discard(temp_file)
            raise


def _discard(temp_file: str) -> None:
    if os.path.exists(temp_file):
        os.remove(temp_file)


class BundleStore:
    """
    The three bookkeeping sets plus their durable copies.

    Usage:
        store = BundleStore.load(StatePaths.from_settings())
        store.mark_failed(bundle)
    """

    def __init__(self, paths: StatePaths, unconfirmed: Optional[List[str]] = None,
                 failed: Optional[List[str]] = None, confirmed: Optional[List[str]] = None):
        self.paths = paths
        self.unconfirmed = list(unconfirmed or [])
        self.failed = list(failed or [])
        self.confirmed = list(confirmed or [])

    @classmethod
    def load(cls, paths: StatePaths) -> "BundleStore":
        store = cls(
            paths,
            unconfirmed=read_bundle_list(paths.unconfirmed),
            failed=read_bundle_list(paths.failed),
            confirmed=read_bundle_list(paths.confirmed),
        )
        Logger.debug(f"[STATE] Loaded state {store.counts()}")
        return store

    def mark_failed(self, bundle: str) -> None:
        self.failed = union(self.failed, [bundle])
        write_bundle_list(self.paths.failed, self.failed)

    def mark_confirmed(self, bundle: str) -> None:
        self.confirmed = union(self.confirmed, [bundle])
        write_bundle_list(self.paths.confirmed, self.confirmed)

    def remove_from_unconfirmed(self, bundle: str) -> None:
        self.unconfirmed = [item for item in self.unconfirmed if item != bundle]
        write_bundle_list(self.paths.unconfirmed, self.unconfirmed)

    def counts(self) -> Dict[str, int]:
        return {
            "unconfirmed": len(self.unconfirmed),
            "failed": len(self.failed),
            "confirmed": len(self.confirmed),
        }
