"""Determinism utilities for scoring.

Scores must not depend on float rounding or on the order rows come back
from the store:
1. Decimal arithmetic for proximity comparisons
2. Canonical ordering helpers
3. Deterministic hashing of committed scores
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, TypeVar

from bovenkamer.shared.errors import ValidationError

T = TypeVar("T")


# ─────────────────────────────────────────────────────────────────────────────
# Decimal Arithmetic
# ─────────────────────────────────────────────────────────────────────────────


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Convert a number to Decimal with validation.

    Booleans and strings are rejected: an answer of ``True`` or ``"20"``
    is not a number for scoring purposes.

    Raises:
        ValidationError: If value is not a finite int, float or Decimal
    """
    if value is None:
        raise ValidationError(f"{name} is None")
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"{name}={value!r} is not a number")

    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Cannot convert {name}={value!r} to Decimal: {e}")

    if d.is_nan():
        raise ValidationError(f"{name} is NaN")
    if d.is_infinite():
        raise ValidationError(f"{name} is infinite")
    return d


def as_number(value: Any) -> Optional[Decimal]:
    """Like ``to_decimal`` but returns None instead of raising."""
    try:
        return to_decimal(value)
    except ValidationError:
        return None


def normalize_number(value: Any) -> Any:
    """Collapse integral floats (``20.0``) to int; leave everything else."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Canonical Ordering
# ─────────────────────────────────────────────────────────────────────────────


def sort_by_id(items: Iterable[T], id_key: str = "user_id") -> List[T]:
    """Sort items by an id attribute or mapping key, ascending."""

    def _key(item: Any) -> Any:
        if isinstance(item, dict):
            return item[id_key]
        return getattr(item, id_key)

    return sorted(items, key=_key)


# ─────────────────────────────────────────────────────────────────────────────
# Deterministic Hashing
# ─────────────────────────────────────────────────────────────────────────────


def _serialize_for_hash(obj: Any) -> Any:
    """Recursively serialize an object for hashing."""
    if isinstance(obj, Decimal):
        return str(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, dict):
        return {str(k): _serialize_for_hash(v) for k, v in sorted(obj.items(), key=lambda kv: str(kv[0]))}
    elif isinstance(obj, (list, tuple)):
        return [_serialize_for_hash(v) for v in obj]
    else:
        return obj


def compute_hash(data: dict) -> str:
    """Compute a deterministic SHA256 hash of a dictionary.

    Args:
        data: Dictionary to hash

    Returns:
        Hex-encoded SHA256 hash
    """
    serialized = _serialize_for_hash(data)
    canonical = json.dumps(serialized, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()


def compute_commit_hash(totals: Dict[int, int], outcome: Dict[str, Any]) -> str:
    """Hash of one commit run: per-user totals plus the outcome they were scored against."""
    payload = {
        "totals": {str(user_id): points for user_id, points in sorted(totals.items())},
        "outcome": outcome,
    }
    return compute_hash(payload)


__all__ = [
    "to_decimal",
    "as_number",
    "normalize_number",
    "sort_by_id",
    "compute_hash",
    "compute_commit_hash",
]
