"""Tests for rulextract.types: spans, nodes and entity projection."""
from __future__ import annotations

import pytest

from rulextract.types import (
    DIMENSION_PRIORITY,
    Dimension,
    Node,
    RegexMatch,
    ResolvedToken,
    Span,
    token_to_entity,
)


def _node(start: int, end: int, rule: str = "r", children: tuple[Node, ...] = ()) -> Node:
    return Node(span=Span(start, end), dimension=Dimension.NUMERAL, value=1, rule_name=rule, children=children)


# ───────────────────────────── Span ─────────────────────────────


class TestSpan:
    def test_length_and_slice(self) -> None:
        span = Span(5, 9)
        assert span.length == 4
        assert span.slice("from 2:30 - 5:50") == "2:30"

    def test_rejects_negative_start(self) -> None:
        with pytest.raises(ValueError):
            Span(-1, 3)

    def test_rejects_end_before_start(self) -> None:
        with pytest.raises(ValueError):
            Span(5, 4)

    def test_empty_span_allowed(self) -> None:
        assert Span(3, 3).length == 0

    def test_containment_is_non_strict(self) -> None:
        assert Span(0, 10).contains(Span(2, 5))
        assert Span(0, 10).contains(Span(0, 10))
        assert not Span(2, 5).contains(Span(0, 10))

    def test_half_open_adjacency_is_disjoint(self) -> None:
        assert Span(0, 3).is_disjoint(Span(3, 6))
        assert not Span(0, 4).is_disjoint(Span(3, 6))

    @pytest.mark.parametrize(
        ("left", "right", "expected"),
        [
            (Span(0, 5), Span(0, 5), "equal"),
            (Span(0, 10), Span(2, 5), "contains"),
            (Span(2, 5), Span(0, 10), "within"),
            (Span(0, 5), Span(3, 8), "overlap"),
            (Span(0, 3), Span(5, 8), "disjoint"),
        ],
    )
    def test_relation(self, left: Span, right: Span, expected: str) -> None:
        assert left.relation(right) == expected


# ───────────────────────────── Node ─────────────────────────────


class TestNode:
    def test_empty_rule_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            _node(0, 1, rule="")

    def test_equality_is_identity(self) -> None:
        assert _node(0, 1) != _node(0, 1)

    def test_evidence_is_preorder(self) -> None:
        a = _node(0, 1, "a")
        b = _node(2, 3, "b")
        ab = _node(0, 3, "ab", (a, b))
        c = _node(4, 5, "c")
        root = _node(0, 5, "root", (ab, c))
        assert root.evidence == ("ab", "a", "b", "c")
        assert [n.rule_name for n in root.iter_descendants()] == ["ab", "a", "b", "c"]

    def test_children_are_shared(self) -> None:
        shared = _node(0, 1, "digit")
        left = _node(0, 3, "left", (shared,))
        right = _node(0, 5, "right", (shared,))
        assert left.children[0] is right.children[0]


class TestRegexMatch:
    def test_groups(self) -> None:
        value = RegexMatch(groups=("5pm", "5", "p"))
        assert value.text == "5pm"
        assert value.group(2) == "p"
        assert value.group(7) is None
        assert value.group(-1) is None
        assert value.dimension is Dimension.REGEX_MATCH


class TestEntity:
    def test_token_projection(self) -> None:
        node = _node(0, 2, "integer digits")
        token = ResolvedToken(
            span=node.span,
            dimension=Dimension.NUMERAL,
            value={"type": "value", "value": 42},
            rule_name=node.rule_name,
            node=node,
            body="42",
        )
        entity = token_to_entity(token)
        assert entity.name == "numeral"
        assert (entity.start, entity.end, entity.body, entity.rule) == (0, 2, "42", "integer digits")
        assert entity.value == {"type": "value", "value": 42}

    def test_dimension_priority_order(self) -> None:
        ranked = sorted(DIMENSION_PRIORITY, key=DIMENSION_PRIORITY.__getitem__)
        assert ranked == [
            Dimension.RANGE,
            Dimension.TIME,
            Dimension.DURATION,
            Dimension.ORDINAL,
            Dimension.NUMERAL,
            Dimension.REGEX_MATCH,
        ]
