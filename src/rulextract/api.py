"""Public entry points: parse, parse_with and parse_verbose_with."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rulextract.catalog import RuleCatalog, default_catalog
from rulextract.config import Settings
from rulextract.context import Context, Options
from rulextract.metrics import PassMetrics, RunResult
from rulextract.parser import Parser
from rulextract.profiling import RuleProfile
from rulextract.types import Entity, Node, RegexMatch, ResolvedToken, token_to_entity


SAMPLES_PER_PASS = 8
PREVIEW_CHARS = 80


@dataclass(frozen=True, slots=True)
class ParseResult:
    text: str
    tokens: tuple[ResolvedToken, ...]
    entities: tuple[Entity, ...]
    elapsed: float
    profile: tuple[RuleProfile, ...] | None = None

    @property
    def results(self) -> tuple[Entity, ...]:
        return self.entities

    def __len__(self) -> int:
        return len(self.entities)


@dataclass(frozen=True, slots=True)
class NodeSummary:
    start: int
    end: int
    rule: str
    preview: str


@dataclass(frozen=True, slots=True)
class SaturationPass:
    """Compact per-pass trace (pass 0 is the regex seed pass)."""

    pass_index: int
    duration: float
    produced: int
    rules_considered: int
    rules_seeded: int
    samples: tuple[NodeSummary, ...]


@dataclass(frozen=True, slots=True)
class ParseDetails:
    """Debugging and performance details of one verbose parse."""

    total: float
    saturation_total: float
    saturation: tuple[SaturationPass, ...]
    resolve: float
    active_rules: tuple[str, ...]
    all_candidates: tuple[Entity, ...]
    node_count: int
    capped: bool = False


def parse(text: str) -> ParseResult:
    """Parse ``text`` with the bundled catalog, default context and options."""
    return parse_with(text, Context.default(), Options())


def parse_with(
    text: str,
    context: Context,
    options: Options | None = None,
    catalog: RuleCatalog | None = None,
    *,
    settings: Settings | None = None,
) -> ParseResult:
    """Parse ``text`` with an explicit context (deterministic reference time)."""
    parser = Parser(text, catalog or default_catalog(), context, options, settings=settings)
    run = parser.run_with_metrics()
    return _to_result(text, run, parser)


def parse_verbose_with(
    text: str,
    context: Context,
    options: Options | None = None,
    catalog: RuleCatalog | None = None,
    *,
    settings: Settings | None = None,
) -> tuple[ParseResult, ParseDetails]:
    """Like ``parse_with`` plus per-pass traces and pre-filter candidates."""
    parser = Parser(
        text,
        catalog or default_catalog(),
        context,
        options,
        settings=settings,
        collect_nodes=True,
    )
    run = parser.run_with_metrics()
    saturation = run.metrics.saturation
    details = ParseDetails(
        total=run.metrics.total,
        saturation_total=saturation.total,
        saturation=tuple(_pass_trace(p) for p in saturation.passes),
        resolve=run.metrics.resolve,
        active_rules=parser.active.names,
        all_candidates=tuple(token_to_entity(t) for t in run.all_tokens),
        node_count=run.node_count,
        capped=saturation.capped,
    )
    return _to_result(text, run, parser), details


def _to_result(text: str, run: RunResult, parser: Parser) -> ParseResult:
    return ParseResult(
        text=text,
        tokens=tuple(run.tokens),
        entities=tuple(token_to_entity(t) for t in run.tokens),
        elapsed=run.metrics.total,
        profile=parser.profiler.report() if parser.profiler is not None else None,
    )


def _pass_trace(metrics: PassMetrics) -> SaturationPass:
    return SaturationPass(
        pass_index=metrics.pass_index,
        duration=metrics.duration,
        produced=metrics.produced,
        rules_considered=metrics.rules_considered,
        rules_seeded=metrics.rules_seeded,
        samples=tuple(_summarize(n) for n in metrics.nodes[:SAMPLES_PER_PASS]),
    )


def _summarize(node: Node) -> NodeSummary:
    if isinstance(node.value, RegexMatch):
        preview = node.value.text
    else:
        preview = repr(node.value)
    return NodeSummary(
        start=node.span.start,
        end=node.span.end,
        rule=node.rule_name,
        preview=preview[:PREVIEW_CHARS],
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def entity_to_dict(entity: Entity) -> dict[str, Any]:
    return {
        "name": entity.name,
        "body": entity.body,
        "value": entity.value,
        "start": entity.start,
        "end": entity.end,
        "rule": entity.rule,
    }


def parse_result_to_dict(result: ParseResult, *, include_timing: bool = False) -> dict[str, Any]:
    """JSON-safe projection; deterministic unless ``include_timing`` is set."""
    payload: dict[str, Any] = {
        "text": result.text,
        "results": [entity_to_dict(e) for e in result.entities],
    }
    if include_timing:
        payload["elapsed"] = result.elapsed
    if result.profile is not None:
        if include_timing:
            payload["profile"] = [row.to_dict() for row in result.profile]
        else:
            payload["profile"] = [
                {"rule": row.rule, "evals": row.evals, "matches": row.matches}
                for row in sorted(result.profile, key=lambda row: row.rule)
            ]
    return payload
