"""Run metrics collected for every parse.

Counters are always collected; ``PassMetrics.nodes`` is filled only when
rule tracing is enabled or the caller asks for nodes (verbose parses).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rulextract.types import Node, ResolvedToken


@dataclass(slots=True)
class PassMetrics:
    """Timing and discovery counts for one pass."""

    pass_index: int = 0
    duration: float = 0.0
    produced: int = 0
    rules_considered: int = 0
    rules_seeded: int = 0
    first_item_hits: int = 0
    nodes: list[Node] = field(default_factory=list)


@dataclass(slots=True)
class SaturationMetrics:
    total: float = 0.0
    seed: PassMetrics = field(default_factory=PassMetrics)
    iterations: list[PassMetrics] = field(default_factory=list)
    capped: bool = False

    @property
    def passes(self) -> list[PassMetrics]:
        return [self.seed, *self.iterations]

    @property
    def produced(self) -> int:
        return sum(p.produced for p in self.passes)


@dataclass(slots=True)
class RunMetrics:
    total: float = 0.0
    saturation: SaturationMetrics = field(default_factory=SaturationMetrics)
    resolve: float = 0.0


@dataclass(slots=True)
class RunResult:
    """Parser output bundled with timing information."""

    all_tokens: list[ResolvedToken]
    tokens: list[ResolvedToken]
    metrics: RunMetrics
    node_count: int = 0
