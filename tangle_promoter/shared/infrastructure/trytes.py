"""
Tryte Field Codec
=================
Decodes the fixed-layout fields of a 2673-tryte transaction.

Only field extraction lives here; hashing and signing are done by the
node or not at all.
"""

from typing import Dict

from tangle_promoter.shared.models import Transaction

TRYTE_ALPHABET = "9ABCDEFGHIJKLMNOPQRSTUVWXYZ"
TRANSACTION_TRYTES_LENGTH = 2673
HASH_TRYTES_LENGTH = 81

# (start, end) slices in trytes
LAYOUT = {
    "signature_message_fragment": (0, 2187),
    "address": (2187, 2268),
    "value": (2268, 2295),
    "obsolete_tag": (2295, 2322),
    "timestamp": (2322, 2331),
    "current_index": (2331, 2340),
    "last_index": (2340, 2349),
    "bundle": (2349, 2430),
    "trunk_transaction": (2430, 2511),
    "branch_transaction": (2511, 2592),
    "tag": (2592, 2619),
    "attachment_timestamp": (2619, 2628),
    "attachment_timestamp_lower_bound": (2628, 2637),
    "attachment_timestamp_upper_bound": (2637, 2646),
    "nonce": (2646, 2673),
}

_TRYTE_VALUES: Dict[str, int] = {
    ch: (i if i <= 13 else i - 27) for i, ch in enumerate(TRYTE_ALPHABET)
}


def is_trytes(value: str, length: int = None) -> bool:
    if not isinstance(value, str) or not value:
        return False
    if length is not None and len(value) != length:
        return False
    return all(ch in _TRYTE_VALUES for ch in value)


def trytes_to_int(trytes: str) -> int:
    """Balanced ternary, least significant tryte first."""
    result = 0
    for ch in reversed(trytes):
        try:
            result = result * 27 + _TRYTE_VALUES[ch]
        except KeyError:
            raise ValueError(f"Invalid tryte character: {ch!r}")
    return result


def int_to_trytes(value: int, length: int) -> str:
    """Inverse of trytes_to_int, padded with '9' to length."""
    chars = []
    remaining = value
    while remaining != 0:
        digit = remaining % 27
        if digit > 13:
            digit -= 27
        chars.append(TRYTE_ALPHABET[digit % 27])
        remaining = (remaining - digit) // 27
    if len(chars) > length:
        raise ValueError(f"{value} does not fit in {length} trytes")
    return "".join(chars).ljust(length, "9")


def _field(trytes: str, name: str) -> str:
    start, end = LAYOUT[name]
    return trytes[start:end]


def transaction_from_trytes(trytes: str, tx_hash: str) -> Transaction:
    """
    Build a Transaction from raw trytes.

    The hash is not derived from the trytes; it must be supplied by the
    caller (IRI returns hashes and trytes side by side).
    """
    if not is_trytes(trytes, TRANSACTION_TRYTES_LENGTH):
        raise ValueError("Transaction trytes must be 2673 valid trytes")

    return Transaction(
        hash=tx_hash,
        bundle=_field(trytes, "bundle"),
        current_index=trytes_to_int(_field(trytes, "current_index")),
        last_index=trytes_to_int(_field(trytes, "last_index")),
        attachment_timestamp=trytes_to_int(_field(trytes, "attachment_timestamp")),
        trunk_transaction=_field(trytes, "trunk_transaction"),
        branch_transaction=_field(trytes, "branch_transaction"),
        address=_field(trytes, "address"),
        value=trytes_to_int(_field(trytes, "value")),
        tag=_field(trytes, "tag"),
        trytes=trytes,
    )
