"""Tests for rulextract.profiling and profiling neutrality."""
from __future__ import annotations

import pytest

from rulextract.api import parse_with
from rulextract.config import Settings
from rulextract.context import Context, Options
from rulextract.profiling import RegexProfiler, RuleProfile


CONTEXT = Context.create("2013-02-12T04:30:00")

TEXTS = [
    "tomorrow at 5pm",
    "from 2:30 - 5:50",
    "two thousand three hundred and 3rd of march",
    "xyzzy plugh",
]


class TestRegexProfiler:
    def test_counters_accumulate(self) -> None:
        profiler = RegexProfiler()
        profiler.record("a", 0.5, 3, 1)
        profiler.record("a", 0.25, 2, 0)
        profiler.record("b", 1.0, 1, 1)
        assert len(profiler) == 2
        report = profiler.report()
        assert [row.rule for row in report] == ["b", "a"]
        assert report[1] == RuleProfile(rule="a", total_seconds=0.75, evals=5, matches=1)

    def test_ties_sorted_by_name(self) -> None:
        profiler = RegexProfiler()
        profiler.record("zeta", 0.0, 1, 0)
        profiler.record("alpha", 0.0, 1, 0)
        assert [row.rule for row in profiler.report()] == ["alpha", "zeta"]

    def test_to_dict(self) -> None:
        row = RuleProfile(rule="hh:mm", total_seconds=0.001, evals=4, matches=2)
        assert row.to_dict() == {"rule": "hh:mm", "total_seconds": 0.001, "evals": 4, "matches": 2}


class TestNeutrality:
    @pytest.mark.parametrize("text", TEXTS)
    def test_profiling_never_changes_results(self, text: str) -> None:
        plain = parse_with(text, CONTEXT, Options(), settings=Settings())
        profiled = parse_with(text, CONTEXT, Options(profiling=True), settings=Settings())
        assert plain.entities == profiled.entities
        assert plain.profile is None
        assert profiled.profile is not None

    def test_profile_covers_active_rules(self) -> None:
        result = parse_with("tomorrow at 5pm", CONTEXT, Options(profiling=True), settings=Settings())
        rows = {row.rule: row for row in result.profile}
        assert rows["today / tomorrow / yesterday"].matches == 1
        assert rows["<date> at <time-of-day>"].matches >= 1
        assert all(row.evals >= 1 for row in rows.values())
        seconds = [row.total_seconds for row in result.profile]
        assert seconds == sorted(seconds, reverse=True)
