"""Optional per-rule cost accounting.

Counters are additive across passes. Disabled profiling is a ``None``
profiler; the parser never calls into this module in that case.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RuleProfile:
    rule: str
    total_seconds: float
    evals: int
    matches: int

    def to_dict(self) -> dict[str, object]:
        return {
            "rule": self.rule,
            "total_seconds": round(self.total_seconds, 9),
            "evals": self.evals,
            "matches": self.matches,
        }


@dataclass(slots=True)
class _Counter:
    seconds: float = 0.0
    evals: int = 0
    matches: int = 0


class RegexProfiler:
    """Accumulates wall time, pattern-item evaluations and completed routes."""

    __slots__ = ("_counters",)

    def __init__(self) -> None:
        self._counters: dict[str, _Counter] = {}

    def _counter(self, rule: str) -> _Counter:
        counter = self._counters.get(rule)
        if counter is None:
            counter = self._counters[rule] = _Counter()
        return counter

    def record(self, rule: str, seconds: float, evals: int, matches: int) -> None:
        counter = self._counter(rule)
        counter.seconds += seconds
        counter.evals += evals
        counter.matches += matches

    def __len__(self) -> int:
        return len(self._counters)

    def report(self) -> tuple[RuleProfile, ...]:
        """Rows sorted by total time descending, then rule name."""
        rows = [
            RuleProfile(rule=name, total_seconds=c.seconds, evals=c.evals, matches=c.matches)
            for name, c in self._counters.items()
        ]
        rows.sort(key=lambda row: (-row.total_seconds, row.rule))
        return tuple(rows)
