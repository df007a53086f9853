"""Tests for rulextract.dedup: fingerprints, node keys and the stash."""
from __future__ import annotations

from datetime import datetime

import pytest

from rulextract.dedup import Stash, canonical_number, fingerprint, node_key
from rulextract.dimensions.numeral import NumeralValue
from rulextract.types import Dimension, Node, Span


def _node(start: int, end: int, value: object = 1, rule: str = "r",
          dimension: Dimension = Dimension.NUMERAL) -> Node:
    return Node(span=Span(start, end), dimension=dimension, value=value, rule_name=rule)


# ───────────────────────────── Fingerprints ─────────────────────────────


class TestFingerprint:
    def test_int_and_float_collapse(self) -> None:
        assert fingerprint(2) == fingerprint(2.0)
        assert fingerprint(-0.0) == fingerprint(0)

    def test_tuple_and_list_collapse(self) -> None:
        assert fingerprint((1, "a")) == fingerprint([1, "a"])

    def test_dict_key_order_irrelevant(self) -> None:
        assert fingerprint({"a": 1, "b": 2}) == fingerprint({"b": 2, "a": 1})

    def test_numeral_bookkeeping_ignored(self) -> None:
        plain = NumeralValue(2000.0, grain=3, multipliable=False)
        other = NumeralValue(2000.0, grain=None, multipliable=True)
        assert fingerprint(plain) == fingerprint(other)

    def test_datetime_iso(self) -> None:
        assert fingerprint(datetime(2013, 2, 12, 4, 30)) == b'"2013-02-12T04:30:00"'

    def test_unsupported_value(self) -> None:
        with pytest.raises(TypeError):
            fingerprint(object())

    def test_canonical_number(self) -> None:
        assert canonical_number(3.0) == 3
        assert canonical_number(0.5) == 0.5
        assert canonical_number(float("inf")) == "inf"

    def test_integers_beyond_int64_keyed_as_strings(self) -> None:
        assert fingerprint(10**20) == b'"100000000000000000000"'
        assert fingerprint(1e20) == fingerprint(10**20)
        assert fingerprint(-(2**63) - 1) == b'"-9223372036854775809"'
        assert fingerprint(NumeralValue(1e24)) == b'{"numeral":"%d"}' % int(1e24)
        assert canonical_number(2.0**63) == 2**63


class TestNodeKey:
    def test_key_ignores_children(self) -> None:
        child = _node(0, 1)
        bare = _node(0, 3, value=5)
        derived = Node(span=Span(0, 3), dimension=Dimension.NUMERAL, value=5.0, rule_name="r", children=(child,))
        assert node_key(bare) == node_key(derived)

    def test_rule_name_is_part_of_key(self) -> None:
        assert node_key(_node(0, 1, rule="a")) != node_key(_node(0, 1, rule="b"))


# ───────────────────────────── Stash ─────────────────────────────


class TestStash:
    def test_add_is_idempotent(self) -> None:
        stash = Stash()
        assert stash.add(_node(0, 1)) is True
        assert stash.add(_node(0, 1)) is False
        assert len(stash) == 1

    def test_extend_returns_only_new(self) -> None:
        stash = Stash([_node(0, 1)])
        added = stash.extend([_node(0, 1), _node(2, 3), _node(2, 3)])
        assert [(n.span.start, n.span.end) for n in added] == [(2, 3)]
        assert len(stash) == 2

    def test_contains_by_key(self) -> None:
        stash = Stash([_node(0, 1, value=2)])
        assert _node(0, 1, value=2.0) in stash
        assert _node(0, 1, value=3) not in stash
        assert "not a node" not in stash

    def test_starting_at_and_dimensions(self) -> None:
        stash = Stash([_node(0, 1), _node(0, 3, rule="wide"), _node(4, 5, dimension=Dimension.ORDINAL)])
        assert [n.rule_name for n in stash.starting_at(0)] == ["r", "wide"]
        assert stash.starting_at(9) == ()
        assert stash.dimensions() == frozenset({Dimension.NUMERAL, Dimension.ORDINAL})

    def test_ordered_by_span_then_discovery(self) -> None:
        stash = Stash([_node(5, 6, rule="late"), _node(0, 4, rule="b"), _node(0, 2, rule="a"), _node(0, 4, rule="c")])
        assert [n.rule_name for n in stash.ordered()] == ["a", "b", "c", "late"]
        assert [n.rule_name for n in stash] == ["late", "b", "a", "c"]
