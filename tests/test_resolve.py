"""Tests for rulextract.resolve: resolution, ordering and containment."""
from __future__ import annotations

from datetime import datetime

import pytest

from rulextract.context import Context, Options
from rulextract.dimensions.time_expr import Grain, Reference, TimeData
from rulextract.resolve import (
    filter_contained,
    register_resolver,
    resolve_candidates,
    resolve_node,
    resolver_for,
)
from rulextract.types import Dimension, Node, ResolvedToken, Span


CONTEXT = Context(datetime(2013, 2, 12, 4, 30))
TEXT = "tomorrow at 5pm"


def _node(start: int, end: int, value: object = 1, rule: str = "r",
          dimension: Dimension = Dimension.NUMERAL) -> Node:
    return Node(span=Span(start, end), dimension=dimension, value=value, rule_name=rule)


def _token(start: int, end: int) -> ResolvedToken:
    node = _node(start, end)
    return ResolvedToken(
        span=node.span, dimension=node.dimension, value=1, rule_name="r", node=node, body=TEXT[start:end],
    )


def _spans(tokens: list[ResolvedToken]) -> list[tuple[int, int]]:
    return [(t.span.start, t.span.end) for t in tokens]


# ───────────────────────────── Registry ─────────────────────────────


class TestRegistry:
    def test_bundled_resolvers_registered(self) -> None:
        for dimension in (Dimension.NUMERAL, Dimension.ORDINAL, Dimension.DURATION, Dimension.TIME, Dimension.RANGE):
            assert resolver_for(dimension) is not None

    def test_regex_match_cannot_be_resolved(self) -> None:
        with pytest.raises(ValueError):
            register_resolver(Dimension.REGEX_MATCH)
        assert resolver_for(Dimension.REGEX_MATCH) is None


# ───────────────────────────── Resolution ─────────────────────────────


class TestResolveNode:
    def test_resolves_value_and_body(self) -> None:
        token = resolve_node(_node(12, 13, value=5), TEXT, CONTEXT)
        assert token is not None
        assert token.value == {"type": "value", "value": 5}
        assert token.body == "5"

    def test_resolution_error_drops_node(self) -> None:
        assert resolve_node(_node(0, 8, value="not a number"), TEXT, CONTEXT) is None

    def test_regex_nodes_have_no_resolver(self) -> None:
        node = _node(0, 2, dimension=Dimension.REGEX_MATCH, rule="<regex>")
        assert resolve_node(node, TEXT, CONTEXT) is None


class TestResolveCandidates:
    def test_order_start_then_longest(self) -> None:
        nodes = [_node(12, 15), _node(0, 8), _node(0, 15), _node(9, 15)]
        tokens = resolve_candidates(nodes, TEXT, CONTEXT, Options())
        assert _spans(tokens) == [(0, 15), (0, 8), (9, 15), (12, 15)]

    def test_dimension_priority_breaks_span_ties(self) -> None:
        numeral = _node(0, 3, value=3)
        time = _node(0, 3, value=TimeData(Reference(), Grain.SECOND), dimension=Dimension.TIME)
        tokens = resolve_candidates([numeral, time], TEXT, CONTEXT, Options())
        assert [t.dimension for t in tokens] == [Dimension.TIME, Dimension.NUMERAL]

    def test_rule_priority_then_name(self) -> None:
        nodes = [_node(0, 3, rule="zeta"), _node(0, 3, rule="alpha"), _node(0, 3, rule="boosted")]
        priorities = {"boosted": 10}
        tokens = resolve_candidates(nodes, TEXT, CONTEXT, Options(), priority=lambda n: priorities.get(n, 0))
        assert [t.rule_name for t in tokens] == ["boosted", "alpha", "zeta"]

    def test_requested_dimensions_only(self) -> None:
        nodes = [_node(0, 3), _node(0, 3, value=TimeData(Reference(), Grain.SECOND), dimension=Dimension.TIME)]
        tokens = resolve_candidates(nodes, TEXT, CONTEXT, Options(dimensions=frozenset({Dimension.TIME})))
        assert [t.dimension for t in tokens] == [Dimension.TIME]

    def test_unresolvable_node_does_not_suppress(self) -> None:
        nodes = [_node(0, 15, value="broken"), _node(0, 8, value=1)]
        tokens = filter_contained(resolve_candidates(nodes, TEXT, CONTEXT, Options()))
        assert _spans(tokens) == [(0, 8)]


# ───────────────────────────── Containment ─────────────────────────────


class TestFilterContained:
    def test_contained_spans_dropped(self) -> None:
        tokens = [_token(0, 15), _token(0, 8), _token(9, 15), _token(12, 15)]
        assert _spans(filter_contained(tokens)) == [(0, 15)]

    def test_partial_overlaps_kept(self) -> None:
        tokens = [_token(0, 5), _token(3, 8), _token(6, 10)]
        assert _spans(filter_contained(tokens)) == [(0, 5), (3, 8), (6, 10)]

    def test_identical_span_keeps_first(self) -> None:
        first, second = _token(0, 5), _token(0, 5)
        assert filter_contained([first, second]) == [first]

    def test_no_kept_span_inside_another(self) -> None:
        tokens = [_token(s, e) for s, e in [(0, 3), (0, 2), (1, 6), (2, 4), (5, 9), (7, 8), (9, 12)]]
        kept = filter_contained(tokens)
        for a in kept:
            for b in kept:
                if a is not b:
                    assert not a.span.contains(b.span)
        starts = [t.span.start for t in kept]
        assert starts == sorted(starts)
