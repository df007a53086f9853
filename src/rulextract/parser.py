"""Matching and saturation.

One ``Parser`` owns one parse::

    trigger scan      -> active rules (regex-first / predicate-first)
    seed pass         -> regex rules over the raw text
    saturation passes -> predicate rules + regex rules that read the stash,
                         until a pass adds no new node
    resolution        -> see rulextract.resolve

Each pass reads the stash as it stood when the pass began; nodes discovered
during a pass become visible to the next one. Combined with dedup by node
key, the final stash does not depend on rule order.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from time import perf_counter

from rulextract.catalog import RuleCatalog
from rulextract.config import Settings, get_settings
from rulextract.context import Context, Options
from rulextract.dedup import Stash
from rulextract.errors import ResolutionError
from rulextract.metrics import PassMetrics, RunMetrics, RunResult, SaturationMetrics
from rulextract.profiling import RegexProfiler
from rulextract.resolve import filter_contained, resolve_candidates
from rulextract.rules import Match, PatternItem, RegexItem, Rule, normalize_productions
from rulextract.trigger import ActiveRules
from rulextract.types import Dimension, Node, RegexMatch, ResolvedToken, Span


log = logging.getLogger(__name__)

REGEX_RULE_NAME = "<regex>"


@dataclass(frozen=True, slots=True)
class _Partial:
    """A rule matched up to ``next_idx``; ``position`` is the last route end."""

    next_idx: int
    position: int
    route: tuple[Node, ...]


@dataclass(slots=True)
class _RuleOutcome:
    nodes: list[Node]
    seeds: int
    evals: int
    matches: int


def _regex_node(m: re.Match[str]) -> Node:
    groups = tuple(g.lower() if g is not None else None for g in m.groups(default=None))
    return Node(
        span=Span(m.start(), m.end()),
        dimension=Dimension.REGEX_MATCH,
        value=RegexMatch(groups=(m.group(0).lower(), *groups)),
        rule_name=REGEX_RULE_NAME,
    )


class Parser:
    """Saturation engine for a single input."""

    def __init__(
        self,
        text: str,
        catalog: RuleCatalog,
        context: Context,
        options: Options | None = None,
        *,
        settings: Settings | None = None,
        collect_nodes: bool = False,
    ) -> None:
        self.text = text
        self.catalog = catalog
        self.context = context
        self.options = options or Options()
        self.settings = settings or get_settings()
        self.trace = self.options.tracing(self.settings)
        self.collect_nodes = collect_nodes or self.trace
        self.profiler: RegexProfiler | None = RegexProfiler() if self.options.profiling else None
        self.stash = Stash()
        self._ordered: list[Node] = []

        self.active: ActiveRules = catalog.trigger_info.activate(text)
        if self.trace:
            log.debug(
                "[trigger_scan] buckets=%s phrases=%s",
                sorted(self.active.scan.buckets),
                sorted(self.active.scan.phrases),
            )
            log.debug(
                "[active_rules] %d/%d rules active (%d regex, %d predicate)",
                len(self.active),
                self.active.total_rules,
                len(self.active.regex_rules),
                len(self.active.predicate_rules),
            )

    # ------------------------------------------------------------------
    # Item lookup
    # ------------------------------------------------------------------

    def _lookup_at(self, item: PatternItem, position: int) -> list[Node]:
        """Nodes matching ``item`` that start exactly at ``position``."""
        if isinstance(item, RegexItem):
            m = item.compiled.match(self.text, position)
            if m is None:
                return []
            return [_regex_node(m)]
        return [n for n in self.stash.starting_at(position) if item.accepts(n)]

    def _lookup_anywhere(self, item: PatternItem) -> list[Node]:
        if isinstance(item, RegexItem):
            return [_regex_node(m) for m in item.compiled.finditer(self.text) if m.end() > m.start()]
        return [n for n in self._ordered if item.accepts(n)]

    # ------------------------------------------------------------------
    # Rule application
    # ------------------------------------------------------------------

    def _match_routes(self, rule: Rule, seeds: Sequence[Node]) -> tuple[list[tuple[Node, ...]], int]:
        """Depth-first extension of seeded partial matches (explicit stack)."""
        pattern = rule.pattern
        evals = 0
        complete: list[tuple[Node, ...]] = []
        stack = [_Partial(1, node.span.end, (node,)) for node in reversed(seeds)]
        while stack:
            partial = stack.pop()
            if partial.next_idx >= len(pattern):
                complete.append(partial.route)
                continue
            evals += 1
            found = self._lookup_at(pattern[partial.next_idx], partial.position)
            for node in reversed(found):
                stack.append(_Partial(partial.next_idx + 1, node.span.end, (*partial.route, node)))
        return complete, evals

    def _produce(self, rule: Rule, route: tuple[Node, ...]) -> list[Node]:
        match = Match(nodes=route, text=self.text, context=self.context)
        try:
            productions = normalize_productions(rule.production(match))
        except ResolutionError as exc:
            if self.trace:
                log.debug("[rule:production_none] name=%r span=%s reason=%s", rule.name, match.span, exc)
            return []
        if not productions:
            if self.trace:
                log.debug("[rule:production_none] name=%r span=%s", rule.name, match.span)
            return []

        span = match.span
        nodes = [
            Node(span=span, dimension=p.dimension, value=p.value, rule_name=rule.name, children=route)
            for p in productions
        ]
        if self.trace:
            for node in nodes:
                log.debug(
                    "[rule:production_ok] name=%r span=%d..%d text=%r value=%r",
                    rule.name, span.start, span.end, match.body, node.value,
                )
        return nodes

    def _apply_rule(self, rule: Rule) -> _RuleOutcome:
        seeds = self._lookup_anywhere(rule.pattern[0])
        if not seeds:
            return _RuleOutcome(nodes=[], seeds=0, evals=1, matches=0)
        if self.trace:
            log.debug("[rule:seed] name=%r initial_matches=%d", rule.name, len(seeds))
        routes, evals = self._match_routes(rule, seeds)
        if self.trace and routes:
            log.debug("[rule:full_matches] name=%r count=%d", rule.name, len(routes))
        nodes: list[Node] = []
        for route in routes:
            nodes.extend(self._produce(rule, route))
        return _RuleOutcome(nodes=nodes, seeds=len(seeds), evals=evals + 1, matches=len(routes))

    def _run_pass(self, pass_index: int, rules: Sequence[Rule]) -> PassMetrics:
        started = perf_counter()
        self._ordered = self.stash.ordered()
        metrics = PassMetrics(pass_index=pass_index, rules_considered=len(rules))
        discovered: list[Node] = []

        for rule in rules:
            if self.profiler is None:
                outcome = self._apply_rule(rule)
            else:
                t0 = perf_counter()
                outcome = self._apply_rule(rule)
                self.profiler.record(rule.name, perf_counter() - t0, outcome.evals, outcome.matches)
            if outcome.seeds:
                metrics.rules_seeded += 1
                if isinstance(rule.pattern[0], RegexItem):
                    metrics.first_item_hits += outcome.seeds
            discovered.extend(outcome.nodes)

        added = self.stash.extend(discovered)
        metrics.produced = len(added)
        if self.collect_nodes:
            metrics.nodes = added
        if self.trace:
            log.debug(
                "[pass] index=%d rules=%d produced=%d stash=%d",
                pass_index, len(rules), len(added), len(self.stash),
            )
        metrics.duration = perf_counter() - started
        return metrics

    # ------------------------------------------------------------------
    # Saturation
    # ------------------------------------------------------------------

    def saturate(self) -> SaturationMetrics:
        """Grow the stash to a fixed point."""
        metrics = SaturationMetrics()
        started = perf_counter()

        metrics.seed = self._run_pass(0, self.active.regex_rules)
        if metrics.seed.produced:
            loop_rules = (
                *self.active.predicate_rules,
                *(r for r in self.active.regex_rules if not r.text_only),
            )
            pass_index = 1
            while True:
                if pass_index > self.settings.max_passes:
                    log.warning(
                        "saturation stopped after %d passes (stash=%d); raise RULEXTRACT_MAX_PASSES if the catalog needs more",
                        self.settings.max_passes,
                        len(self.stash),
                    )
                    metrics.capped = True
                    break
                present = self.stash.dimensions()
                eligible = [r for r in loop_rules if r.required_dimensions <= present]
                current = self._run_pass(pass_index, eligible)
                metrics.iterations.append(current)
                if not current.produced:
                    break
                pass_index += 1

        metrics.total = perf_counter() - started
        return metrics

    def run_with_metrics(self) -> RunResult:
        started = perf_counter()
        saturation = self.saturate()

        resolve_started = perf_counter()
        candidates = resolve_candidates(
            self.stash,
            self.text,
            self.context,
            self.options,
            priority=self.catalog.priority,
            trace=self.trace,
        )
        tokens = filter_contained(candidates, trace=self.trace)
        resolve = perf_counter() - resolve_started

        metrics = RunMetrics(total=perf_counter() - started, saturation=saturation, resolve=resolve)
        return RunResult(all_tokens=candidates, tokens=tokens, metrics=metrics, node_count=len(self.stash))

    def run(self) -> list[ResolvedToken]:
        return self.run_with_metrics().tokens
