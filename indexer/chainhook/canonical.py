"""Canonical JSON serialization and content-addressed event UIDs."""

import hashlib
import json
from typing import Any, Set

# Substituted for any container that is re-entered while it is being visited
CIRCULAR_SENTINEL = "[Circular]"


def _normalize(value: Any, ancestors: Set[int]) -> Any:
    if isinstance(value, dict):
        if id(value) in ancestors:
            return CIRCULAR_SENTINEL
        ancestors.add(id(value))
        try:
            keys = sorted(value, key=str)
            return {str(key): _normalize(value[key], ancestors) for key in keys}
        finally:
            ancestors.discard(id(value))

    if isinstance(value, (list, tuple)):
        if id(value) in ancestors:
            return CIRCULAR_SENTINEL
        ancestors.add(id(value))
        try:
            return [_normalize(item, ancestors) for item in value]
        finally:
            ancestors.discard(id(value))

    return value


def stable_json(value: Any) -> str:
    """Serialize a JSON-like value deterministically.

    Mapping keys are emitted in code-point order at every depth, sequence
    order is preserved, and a container that contains itself is replaced by
    CIRCULAR_SENTINEL instead of recursing forever.

    Args:
        value: Arbitrary tree of None/bool/int/float/str/list/dict

    Returns:
        Compact JSON string
    """
    return json.dumps(
        _normalize(value, set()),
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_event_uid(value: Any) -> str:
    """SHA-256 hex digest of the canonical form of `value`.

    Used both for whole deliveries and for individual print events.

    Args:
        value: Arbitrary JSON-like value

    Returns:
        64-character lowercase hex digest
    """
    return hashlib.sha256(stable_json(value).encode("utf-8")).hexdigest()
