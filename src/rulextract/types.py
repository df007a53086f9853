"""Core types shared by the engine, the resolver and rule catalogs.

All spans are half-open ``[start, end)`` character offsets into the original
input string; text is never copied or re-encoded before matching.

Type hierarchy:
  Span:          offset range, the unit of positional comparison
  Dimension:     semantic category of a node (time, numeral, ...)
  RegexMatch:    payload of the intermediate nodes produced by regex items
  Node:          immutable result of one rule application, with evidence
  ResolvedToken: resolved, filtered output candidate with provenance
  Entity:        public projection of a ResolvedToken
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal


type SpanRelation = Literal["disjoint", "overlap", "contains", "within", "equal"]


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open character range over the input text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"end must be >= start, got {self.end} < {self.start}")

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, other: Span) -> bool:
        """Non-strict containment: equal spans contain each other."""
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: Span) -> bool:
        return self.start < other.end and other.start < self.end

    def is_disjoint(self, other: Span) -> bool:
        return not self.overlaps(other)

    def relation(self, other: Span) -> SpanRelation:
        if self == other:
            return "equal"
        if self.contains(other):
            return "contains"
        if other.contains(self):
            return "within"
        if self.overlaps(other):
            return "overlap"
        return "disjoint"

    def slice(self, text: str) -> str:
        return text[self.start:self.end]


class Dimension(StrEnum):
    """Semantic category of a node."""

    REGEX_MATCH = "regex_match"
    NUMERAL = "numeral"
    ORDINAL = "ordinal"
    DURATION = "duration"
    TIME = "time"
    RANGE = "range"


# Lower rank wins ties between candidates with identical spans.
DIMENSION_PRIORITY: dict[Dimension, int] = {
    Dimension.RANGE: 0,
    Dimension.TIME: 1,
    Dimension.DURATION: 2,
    Dimension.ORDINAL: 3,
    Dimension.NUMERAL: 4,
    Dimension.REGEX_MATCH: 5,
}


@dataclass(frozen=True, slots=True)
class RegexMatch:
    """Lowercased capture groups of a regex item match (group 0 first)."""

    groups: tuple[str | None, ...]

    dimension = Dimension.REGEX_MATCH

    @property
    def text(self) -> str:
        return self.groups[0] or ""

    def group(self, index: int) -> str | None:
        if index < 0 or index >= len(self.groups):
            return None
        return self.groups[index]


@dataclass(frozen=True, slots=True, eq=False)
class Node:
    """Immutable result of applying one rule.

    ``children`` is the route the rule consumed. Child objects are shared
    read-only between every parent derived from them, so the evidence forms
    a DAG rather than a tree. Equality is identity; structural identity is
    the dedup key (see ``rulextract.dedup``).
    """

    span: Span
    dimension: Dimension
    value: Any
    rule_name: str
    children: tuple[Node, ...] = ()

    def __post_init__(self) -> None:
        if not self.rule_name:
            raise ValueError("rule_name cannot be empty")
        for child in self.children:
            if child is self:
                raise ValueError("a node cannot be its own child")

    @property
    def evidence(self) -> tuple[str, ...]:
        """Rule names of the full evidence DAG in pre-order."""
        return tuple(_walk_evidence(self.children))

    def iter_descendants(self) -> Iterator[Node]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()


def _walk_evidence(children: tuple[Node, ...]) -> Iterator[str]:
    for child in children:
        yield child.rule_name
        yield from _walk_evidence(child.children)


@dataclass(frozen=True, slots=True)
class ResolvedToken:
    """A resolved candidate: typed value plus provenance."""

    span: Span
    dimension: Dimension
    value: Any
    rule_name: str
    node: Node
    body: str

    @property
    def evidence(self) -> tuple[str, ...]:
        return self.node.evidence


@dataclass(frozen=True, slots=True)
class Entity:
    """Public, simplified projection of a ResolvedToken."""

    name: str
    body: str
    value: Any
    start: int
    end: int
    rule: str


def token_to_entity(token: ResolvedToken) -> Entity:
    return Entity(
        name=str(token.dimension),
        body=token.body,
        value=token.value,
        start=token.span.start,
        end=token.span.end,
        rule=token.rule_name,
    )
