"""Deduplication keys and the per-parse node stash.

Saturation only terminates because the set of distinct node keys reachable
from a finite input and a finite catalog is finite. A node key combines:

- dimension
- span (start, end)
- a structural fingerprint of the value payload
- producing rule name

The fingerprint is a canonical JSON encoding of the value, so equivalent
values built through different internal representations (``2`` vs ``2.0``,
tuples vs lists, a numeral with or without grain bookkeeping) collapse to
the same key.
"""

from __future__ import annotations

import dataclasses
import functools
import math
from collections.abc import Iterable, Iterator
from datetime import date, datetime, time
from enum import Enum
from typing import Any

import orjson

from rulextract.types import Dimension, Node


type NodeKey = tuple[Dimension, int, int, bytes, str]

# orjson only encodes integers in this range.
INT64_MIN = -(2**63)
INT64_MAX = 2**64 - 1


# ---------------------------------------------------------------------------
# Canonical payloads
# ---------------------------------------------------------------------------

@functools.singledispatch
def canonical_payload(value: Any) -> Any:
    """Return a JSON-safe canonical form of ``value``.

    Value types can register a narrower canonical form with
    ``@canonical_payload.register``.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        payload: dict[str, Any] = {"__type__": type(value).__name__}
        for f in dataclasses.fields(value):
            payload[f.name] = canonical_payload(getattr(value, f.name))
        return payload
    if isinstance(value, Enum):
        return canonical_payload(value.value)
    raise TypeError(f"cannot fingerprint value of type {type(value).__name__}")


@canonical_payload.register(type(None))
def _(value: None) -> None:
    return None


@canonical_payload.register(str)
def _(value: str) -> str:
    return str(value)


@canonical_payload.register(bool)
def _(value: bool) -> bool:
    return value


@canonical_payload.register(int)
def _(value: int) -> int | str:
    return canonical_int(int(value))


@canonical_payload.register(float)
def _(value: float) -> int | float | str:
    return canonical_number(value)


@canonical_payload.register(tuple)
@canonical_payload.register(list)
def _(value: tuple[Any, ...] | list[Any]) -> list[Any]:
    return [canonical_payload(item) for item in value]


@canonical_payload.register(frozenset)
@canonical_payload.register(set)
def _(value: frozenset[Any] | set[Any]) -> list[Any]:
    items = [canonical_payload(item) for item in value]
    return sorted(items, key=lambda item: orjson.dumps(item, option=orjson.OPT_SORT_KEYS))


@canonical_payload.register(dict)
def _(value: dict[Any, Any]) -> dict[str, Any]:
    return {str(k): canonical_payload(v) for k, v in value.items()}


@canonical_payload.register(datetime)
@canonical_payload.register(date)
@canonical_payload.register(time)
def _(value: datetime | date | time) -> str:
    return value.isoformat()


def canonical_int(value: int) -> int | str:
    """Integers orjson cannot encode are keyed by their decimal string."""
    if INT64_MIN <= value <= INT64_MAX:
        return value
    return str(value)


def canonical_number(value: float) -> int | float | str:
    """Collapse integral floats to ints and ``-0.0`` to ``0``."""
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        return canonical_int(int(value))
    return value


def fingerprint(value: Any) -> bytes:
    """Structural fingerprint of a node value."""
    return orjson.dumps(canonical_payload(value), option=orjson.OPT_SORT_KEYS)


def node_key(node: Node) -> NodeKey:
    return (
        node.dimension,
        node.span.start,
        node.span.end,
        fingerprint(node.value),
        node.rule_name,
    )


# ---------------------------------------------------------------------------
# Stash
# ---------------------------------------------------------------------------

class Stash:
    """Set of nodes discovered during one parse, keyed by node key.

    Iteration follows discovery order, which keeps output ordering
    deterministic without making it part of set semantics.
    """

    __slots__ = ("_by_key", "_by_start", "_dimensions")

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._by_key: dict[NodeKey, Node] = {}
        self._by_start: dict[int, list[Node]] = {}
        self._dimensions: set[Dimension] = set()
        self.extend(nodes)

    def __len__(self) -> int:
        return len(self._by_key)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._by_key.values())

    def __contains__(self, node: object) -> bool:
        if not isinstance(node, Node):
            return False
        return node_key(node) in self._by_key

    def add(self, node: Node) -> bool:
        """Insert ``node``; returns False (no-op) when its key already exists."""
        key = node_key(node)
        if key in self._by_key:
            return False
        self._by_key[key] = node
        self._by_start.setdefault(node.span.start, []).append(node)
        self._dimensions.add(node.dimension)
        return True

    def extend(self, nodes: Iterable[Node]) -> list[Node]:
        """Insert many nodes; returns the ones that were new, in order."""
        return [node for node in nodes if self.add(node)]

    def dimensions(self) -> frozenset[Dimension]:
        return frozenset(self._dimensions)

    def starting_at(self, position: int) -> tuple[Node, ...]:
        return tuple(self._by_start.get(position, ()))

    def ordered(self) -> list[Node]:
        """Nodes sorted by (start, end), stable on discovery order."""
        return sorted(self._by_key.values(), key=lambda n: (n.span.start, n.span.end))

    def keys(self) -> frozenset[NodeKey]:
        return frozenset(self._by_key)
