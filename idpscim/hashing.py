"""Deterministic SHA-256 hashing of model values."""

from __future__ import annotations

import dataclasses
import hashlib
import json
from collections.abc import Mapping
from typing import Any


def _sort_key(item: Any) -> str:
    return json.dumps(item, sort_keys=True, ensure_ascii=False)


def _canonical(value: Any) -> Any:
    """Reduce a value to plain JSON-compatible data in a stable form."""
    payload = getattr(value, "hash_payload", None)
    if callable(payload) and not isinstance(value, type):
        return {"payload": _canonical(payload())}
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            "fields": {
                field.name: _canonical(getattr(value, field.name))
                for field in dataclasses.fields(value)
            }
        }
    if isinstance(value, Mapping):
        pairs = [[_canonical(k), _canonical(v)] for k, v in value.items()]
        pairs.sort(key=lambda pair: _sort_key(pair[0]))
        return {"map": pairs}
    if isinstance(value, (set, frozenset)):
        return {"set": sorted((_canonical(v) for v in value), key=_sort_key)}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    raise TypeError(f"cannot hash value of type {type(value).__name__}")


def hash_value(value: Any) -> str:
    """Return the hex SHA-256 digest of a canonical encoding of ``value``.

    Objects that define ``hash_payload()`` are hashed through that payload
    only, so fields left out of it do not affect the result.
    """
    if value is None:
        raise ValueError("value is nil")
    encoded = json.dumps(
        _canonical(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()