"""Rule contract: pattern items, productions and catalog-time validation.

A rule is data, not a subclass: a name, a positional pattern (a sequence of
items that must match back-to-back) and a production callable. Items are
either a regex matched against the raw text at an exact offset, or a
predicate over nodes already in the stash::

    Rule(
        name="<numeral> <unit>",
        pattern=(dim(Dimension.NUMERAL, is_positive), regex(r"\\s*"), regex(UNIT_RE)),
        production=produce_duration,
        trigger_phrases=("hour", "hours", "minute", "minutes"),
    )

The rule kind (``"regex"`` or ``"predicate"``) is taken from the first item.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

from rulextract.errors import ResolutionError, RuleDefinitionError
from rulextract.types import Dimension, Node, RegexMatch, Span

if TYPE_CHECKING:
    from rulextract.context import Context


type RuleKind = Literal["regex", "predicate"]
type NodePredicate = Callable[[Node], bool]


class Bucket(StrEnum):
    """Coarse input features used to gate rules before phrase checks."""

    DIGITS = "digits"
    COLON = "colon"
    AMPM = "ampm"
    WEEKDAY = "weekday"
    MONTH = "month"
    ORDINAL = "ordinal"


# ---------------------------------------------------------------------------
# Pattern items
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RegexItem:
    """Regex matched against the input at an exact offset."""

    compiled: re.Pattern[str]

    @property
    def source(self) -> str:
        return self.compiled.pattern

    def describe(self) -> str:
        return f"regex({self.source!r})"


@dataclass(frozen=True, slots=True)
class PredicateItem:
    """Predicate over stash nodes; ``dimension`` narrows the candidates."""

    test: NodePredicate | None = None
    dimension: Dimension | None = None
    label: str = ""

    def accepts(self, node: Node) -> bool:
        if self.dimension is not None and node.dimension != self.dimension:
            return False
        if self.test is None:
            return True
        return bool(self.test(node))

    def describe(self) -> str:
        name = self.label or getattr(self.test, "__name__", "") or "any"
        return f"predicate({self.dimension or '*'}:{name})"


type PatternItem = RegexItem | PredicateItem


def regex(pattern: str | re.Pattern[str], flags: int = re.IGNORECASE) -> RegexItem:
    """Compile a regex item (case-insensitive unless a compiled pattern is given)."""
    if isinstance(pattern, re.Pattern):
        return RegexItem(compiled=pattern)
    try:
        return RegexItem(compiled=re.compile(pattern, flags))
    except re.error as exc:
        raise RuleDefinitionError(f"invalid regex {pattern!r}: {exc}") from exc


def predicate(test: NodePredicate, *, label: str = "") -> PredicateItem:
    return PredicateItem(test=test, label=label)


def dim(dimension: Dimension, test: NodePredicate | None = None, *, label: str = "") -> PredicateItem:
    """Predicate item restricted to one dimension."""
    return PredicateItem(test=test, dimension=dimension, label=label)


# ---------------------------------------------------------------------------
# Productions
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Production:
    """One candidate produced by a rule."""

    dimension: Dimension
    value: Any


type ProductionResult = Production | Any | Iterable[Production | Any] | None
type ProductionFn = Callable[["Match"], ProductionResult]


@dataclass(frozen=True, slots=True)
class Match:
    """What a production sees: the matched route plus the parse context."""

    nodes: tuple[Node, ...]
    text: str
    context: Context

    @property
    def span(self) -> Span:
        return Span(self.nodes[0].span.start, self.nodes[-1].span.end)

    @property
    def body(self) -> str:
        return self.span.slice(self.text)

    def value(self, index: int) -> Any:
        return self.nodes[index].value

    def group(self, index: int, group: int = 1) -> str | None:
        """Capture ``group`` of the regex node at route position ``index``."""
        value = self.nodes[index].value
        if not isinstance(value, RegexMatch):
            return None
        return value.group(group)

    def require_group(self, index: int, group: int = 1) -> str:
        found = self.group(index, group)
        if found is None:
            raise ResolutionError(f"missing capture group {group} at route position {index}")
        return found


def normalize_productions(result: ProductionResult) -> list[Production]:
    """Flatten a production return value into ``Production`` objects."""
    if result is None:
        return []
    if isinstance(result, Production):
        return [result]
    dimension = getattr(result, "dimension", None)
    if isinstance(dimension, Dimension):
        return [Production(dimension=dimension, value=result)]
    if isinstance(result, (list, tuple)) or _is_generator(result):
        out: list[Production] = []
        for item in result:
            out.extend(normalize_productions(item))
        return out
    raise TypeError(
        f"production returned {type(result).__name__}; expected a value with a dimension",
    )


def _is_generator(value: object) -> bool:
    return hasattr(value, "__next__") and hasattr(value, "__iter__")


# ---------------------------------------------------------------------------
# Rule
# ---------------------------------------------------------------------------

def normalize_phrase(phrase: str) -> str:
    return " ".join(phrase.casefold().split())


@dataclass(frozen=True, slots=True)
class Rule:
    """A named pattern + production.

    Activation metadata:
    - ``trigger_phrases``: ANY must occur in the input (OR gating)
    - ``required_phrases``: ALL must occur in the input (AND gating)
    - ``buckets``: coarse input features; ANY must be present
    - ``deps``: dimensions that must already exist in the stash
    - ``priority``: higher wins ties at identical spans during resolution
    """

    name: str
    pattern: tuple[PatternItem, ...]
    production: ProductionFn
    trigger_phrases: tuple[str, ...] = ()
    required_phrases: tuple[str, ...] = ()
    buckets: frozenset[Bucket] = field(default_factory=frozenset)
    deps: frozenset[Dimension] = field(default_factory=frozenset)
    priority: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", tuple(self.pattern))
        object.__setattr__(self, "trigger_phrases", tuple(self.trigger_phrases))
        object.__setattr__(self, "required_phrases", tuple(self.required_phrases))
        object.__setattr__(self, "buckets", frozenset(self.buckets))
        object.__setattr__(self, "deps", frozenset(self.deps))

    @property
    def kind(self) -> RuleKind:
        return "regex" if self.pattern and isinstance(self.pattern[0], RegexItem) else "predicate"

    @property
    def text_only(self) -> bool:
        """True when every item reads the raw text (seed pass suffices)."""
        return all(isinstance(item, RegexItem) for item in self.pattern)

    @property
    def required_dimensions(self) -> frozenset[Dimension]:
        dims = set(self.deps)
        for item in self.pattern:
            if isinstance(item, PredicateItem) and item.dimension is not None:
                dims.add(item.dimension)
        return frozenset(dims)

    @property
    def phrases(self) -> tuple[str, ...]:
        return tuple(normalize_phrase(p) for p in self.trigger_phrases)

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(normalize_phrase(p) for p in self.required_phrases)

    def validate(self) -> None:
        """Raise ``RuleDefinitionError`` if the rule cannot be compiled."""
        if not self.name or not self.name.strip():
            raise RuleDefinitionError("rule name cannot be empty")
        if not self.pattern:
            raise RuleDefinitionError("pattern cannot be empty", rule_name=self.name)
        for idx, item in enumerate(self.pattern):
            if isinstance(item, RegexItem):
                if not isinstance(item.compiled, re.Pattern):
                    raise RuleDefinitionError(f"item {idx} is not a compiled regex", rule_name=self.name)
            elif isinstance(item, PredicateItem):
                if item.test is not None and not callable(item.test):
                    raise RuleDefinitionError(f"item {idx} predicate is not callable", rule_name=self.name)
                if item.test is None and item.dimension is None:
                    raise RuleDefinitionError(
                        f"item {idx} predicate needs a test or a dimension", rule_name=self.name,
                    )
            else:
                raise RuleDefinitionError(
                    f"item {idx} has unsupported type {type(item).__name__}", rule_name=self.name,
                )
        if not callable(self.production):
            raise RuleDefinitionError("production is not callable", rule_name=self.name)
        for phrase in (*self.trigger_phrases, *self.required_phrases):
            if not isinstance(phrase, str) or not normalize_phrase(phrase):
                raise RuleDefinitionError(f"invalid trigger phrase {phrase!r}", rule_name=self.name)
        for bucket in self.buckets:
            if not isinstance(bucket, Bucket):
                raise RuleDefinitionError(f"unknown bucket {bucket!r}", rule_name=self.name)
        for dep in self.deps:
            if not isinstance(dep, Dimension):
                raise RuleDefinitionError(f"unknown dependency {dep!r}", rule_name=self.name)
