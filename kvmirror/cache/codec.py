"""
JSON codec for collection content.

Backends store opaque text; the cache unit owns encoding and decoding.
Encoded values are compact and never contain newlines.
"""

import json
from typing import Any, Mapping, Optional

from ..errors import DecodeError, EncodeError


def encode(content: Any) -> str:
    """
    Serialize ``content`` to JSON text.

    Raises:
        EncodeError: If ``content`` is not JSON-serializable
    """
    try:
        return json.dumps(content, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise EncodeError(str(exc)) from exc


def decode(raw: Optional[str]) -> Any:
    """
    Parse stored JSON text.

    ``None`` (nothing stored) passes through as ``None``.

    Raises:
        DecodeError: If ``raw`` is not valid JSON
    """
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise DecodeError(str(exc)) from exc


def equal(left: Any, right: Any) -> bool:
    """
    Compare two decoded JSON values.

    Unlike ``==``, booleans never equal numbers (``True != 1``). Integers
    and floats compare by value, objects ignore key order, and lists and
    tuples compare element-wise.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(map(equal, left, right))
    return type(left) is type(right) and left == right
