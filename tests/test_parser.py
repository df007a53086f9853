"""Tests for rulextract.parser: matching and saturation on small catalogs."""
from __future__ import annotations

import logging
from datetime import datetime

import pytest

from rulextract.catalog import RuleCatalog
from rulextract.config import Settings
from rulextract.context import Context, Options
from rulextract.errors import ResolutionError
from rulextract.parser import REGEX_RULE_NAME, Parser
from rulextract.rules import Match, Production, Rule, dim, regex
from rulextract.types import Dimension


CONTEXT = Context(datetime(2013, 2, 12, 4, 30))
SETTINGS = Settings()


def _digits(m: Match) -> Production:
    return Production(Dimension.NUMERAL, int(m.body))


def _sum(m: Match) -> Production:
    return Production(Dimension.NUMERAL, m.value(0) + m.value(2))


def _percent(m: Match) -> Production:
    return Production(Dimension.NUMERAL, m.value(0) / 100)


def _odd_only(m: Match) -> Production:
    if m.value(0) % 2 == 0:
        raise ResolutionError("even")
    return Production(Dimension.NUMERAL, -m.value(0))


DIGITS = Rule(name="digits", pattern=(regex(r"\d+"),), production=_digits)
SUM = Rule(
    name="sum",
    pattern=(dim(Dimension.NUMERAL), regex(r"\s*\+\s*"), dim(Dimension.NUMERAL)),
    production=_sum,
)
PERCENT = Rule(
    name="percent",
    pattern=(dim(Dimension.NUMERAL), regex(r"\s*"), regex(r"%")),
    production=_percent,
)


def _parser(text: str, rules: list[Rule], *, settings: Settings = SETTINGS, **kwargs: object) -> Parser:
    return Parser(text, RuleCatalog(rules), CONTEXT, Options(**kwargs), settings=settings)


def _stash_summary(parser: Parser) -> list[tuple[int, int, str, object]]:
    return sorted((n.span.start, n.span.end, n.rule_name, n.value) for n in parser.stash)


# ───────────────────────────── Seed pass ─────────────────────────────


class TestSeedPass:
    def test_regex_rules_seed_the_stash(self) -> None:
        parser = _parser("12 and 7", [DIGITS])
        metrics = parser.saturate()
        assert _stash_summary(parser) == [(0, 2, "digits", 12), (7, 8, "digits", 7)]
        assert metrics.seed.produced == 2
        assert metrics.seed.first_item_hits == 2

    def test_regex_nodes_are_never_stashed(self) -> None:
        parser = _parser("3 + 4", [DIGITS, SUM])
        parser.saturate()
        assert all(n.rule_name != REGEX_RULE_NAME for n in parser.stash)
        [total] = [n for n in parser.stash if n.rule_name == "sum"]
        assert [c.rule_name for c in total.children] == ["digits", REGEX_RULE_NAME, "digits"]
        assert total.children[1].value.text == " + "

    def test_empty_first_item_matches_are_dropped(self) -> None:
        zero = Rule(name="zero", pattern=(regex(r"z*"),), production=lambda m: Production(Dimension.NUMERAL, 0))
        parser = _parser("abc", [zero])
        parser.saturate()
        assert len(parser.stash) == 0

    def test_later_regex_items_may_be_empty(self) -> None:
        parser = _parser("5% and 6 %", [DIGITS, PERCENT])
        tokens = parser.run()
        assert [(t.body, t.value["value"]) for t in tokens] == [("5%", 0.05), ("6 %", 0.06)]

    def test_no_input_no_error(self) -> None:
        parser = _parser("", [DIGITS, SUM])
        assert parser.run() == []


# ───────────────────────────── Saturation ─────────────────────────────


class TestSaturation:
    def test_chained_composition_reaches_fixed_point(self) -> None:
        parser = _parser("1 + 2 + 3", [DIGITS, SUM])
        metrics = parser.saturate()
        sums = sorted((n.span.start, n.span.end, n.value) for n in parser.stash if n.rule_name == "sum")
        # (1+2)+3 and 1+(2+3) collapse to a single node.
        assert sums == [(0, 5, 3), (0, 9, 6), (4, 9, 5)]
        assert [p.produced for p in metrics.iterations] == [2, 1, 0]
        assert not metrics.capped

    def test_rerunning_final_pass_adds_nothing(self) -> None:
        parser = _parser("1 + 2 + 3 + 4", [DIGITS, SUM])
        parser.saturate()
        before = parser.stash.keys()
        rerun = parser._run_pass(99, [DIGITS, SUM])
        assert rerun.produced == 0
        assert parser.stash.keys() == before

    def test_rule_order_does_not_change_stash(self) -> None:
        rules = [DIGITS, SUM, PERCENT]
        text = "1 + 2 + 30% + 4"
        forward = _parser(text, rules)
        backward = _parser(text, list(reversed(rules)))
        forward.saturate()
        backward.saturate()
        assert forward.stash.keys() == backward.stash.keys()

    def test_rules_wait_for_required_dimensions(self) -> None:
        parser = _parser("1 + 2", [DIGITS, SUM])
        metrics = parser.saturate()
        assert metrics.seed.rules_considered == 1
        assert metrics.iterations[0].rules_considered == 1

    def test_production_resolution_error_drops_route(self) -> None:
        negate = Rule(name="negate", pattern=(dim(Dimension.NUMERAL), regex(r"!")), production=_odd_only)
        parser = _parser("3! 4!", [DIGITS, negate])
        parser.saturate()
        assert [n.value for n in parser.stash if n.rule_name == "negate"] == [-3]

    def test_production_none_is_no_node(self) -> None:
        nothing = Rule(name="nothing", pattern=(regex(r"\w+"),), production=lambda m: None)
        parser = _parser("hello world", [nothing])
        parser.saturate()
        assert len(parser.stash) == 0

    def test_multiple_productions(self) -> None:
        both = Rule(
            name="both",
            pattern=(regex(r"\d+"),),
            production=lambda m: [Production(Dimension.NUMERAL, 1), Production(Dimension.ORDINAL, 1)],
        )
        parser = _parser("9", [both])
        parser.saturate()
        assert sorted(str(n.dimension) for n in parser.stash) == ["numeral", "ordinal"]

    def test_pass_cap(self, caplog: pytest.LogCaptureFixture) -> None:
        parser = _parser("1 + 2 + 3", [DIGITS, SUM], settings=Settings(max_passes=1))
        with caplog.at_level(logging.WARNING, logger="rulextract.parser"):
            metrics = parser.saturate()
        assert metrics.capped
        assert len(metrics.iterations) == 1
        assert "saturation stopped after 1 passes" in caplog.text


# ───────────────────────────── Run ─────────────────────────────


class TestRun:
    def test_containment_filter_applies(self) -> None:
        parser = _parser("1 + 2 + 3", [DIGITS, SUM])
        result = parser.run_with_metrics()
        assert [(t.span.start, t.span.end, t.value["value"]) for t in result.tokens] == [(0, 9, 6)]
        assert len(result.all_tokens) == len(parser.stash)
        assert result.node_count == len(parser.stash)

    def test_partial_overlaps_are_kept(self) -> None:
        parser = _parser("1 + 2 + 3", [DIGITS, SUM], settings=Settings(max_passes=1))
        tokens = parser.run()
        assert [(t.span.start, t.span.end) for t in tokens] == [(0, 5), (4, 9)]

    def test_dimension_filter(self) -> None:
        parser = _parser("5% 7", [DIGITS, PERCENT], dimensions=frozenset({Dimension.ORDINAL}))
        assert parser.run() == []

    def test_repeatable(self) -> None:
        first = _parser("1 + 2 + 3 and 40%", [DIGITS, SUM, PERCENT]).run()
        second = _parser("1 + 2 + 3 and 40%", [DIGITS, SUM, PERCENT]).run()
        assert [(t.span, t.value, t.rule_name) for t in first] == [(t.span, t.value, t.rule_name) for t in second]
