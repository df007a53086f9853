"""Time range rules ("from 2:30 - 5:50", "between monday and friday").

The end of a range is evaluated against the resolved start rather than the
reference time, so "from 11pm to 2am" ends on the following day.
"""

from __future__ import annotations

from dataclasses import dataclass

from rulextract.context import Context
from rulextract.dimensions.time import time_of
from rulextract.dimensions.time_expr import TimeData, format_time, normalize
from rulextract.errors import ResolutionError
from rulextract.resolve import register_resolver
from rulextract.rules import Match, Rule, dim, regex
from rulextract.types import Dimension, Node


_DASH = "-\u2013"


@dataclass(frozen=True, slots=True)
class RangeValue:
    start: TimeData
    end: TimeData

    dimension = Dimension.RANGE


def _from_to(m: Match) -> RangeValue:
    return RangeValue(time_of(m.nodes[1]), time_of(m.nodes[3]))


def _dash(m: Match) -> RangeValue:
    return RangeValue(time_of(m.nodes[0]), time_of(m.nodes[2]))


def rules() -> list[Rule]:
    return [
        Rule(
            name="from <time> to <time>",
            pattern=(
                regex(r"\bfrom\s+"),
                dim(Dimension.TIME),
                regex(rf"\s*(?:[{_DASH}]|to|till|until|through|thru)\s*"),
                dim(Dimension.TIME),
            ),
            production=_from_to,
            trigger_phrases=("from",),
        ),
        Rule(
            name="between <time> and <time>",
            pattern=(
                regex(r"\bbetween\s+"),
                dim(Dimension.TIME),
                regex(r"\s+and\s+"),
                dim(Dimension.TIME),
            ),
            production=_from_to,
            required_phrases=("between", "and"),
        ),
        Rule(
            name="<time> - <time>",
            pattern=(dim(Dimension.TIME), regex(rf"\s*[{_DASH}]\s*"), dim(Dimension.TIME)),
            production=_dash,
        ),
        Rule(
            name="<time> until <time>",
            pattern=(
                dim(Dimension.TIME),
                regex(r"\s+(?:until|till|through|thru)\s+"),
                dim(Dimension.TIME),
            ),
            production=_dash,
            trigger_phrases=("until", "till", "through", "thru"),
        ),
    ]


@register_resolver(Dimension.RANGE)
def resolve_range(node: Node, context: Context) -> dict[str, object]:
    value = node.value
    if not isinstance(value, RangeValue):
        raise ResolutionError(f"not a range: {type(value).__name__}")
    start = normalize(value.start.expr, context.reference_time)
    end = normalize(value.end.expr, start)
    if end < start:
        raise ResolutionError("range ends before it starts")
    return {
        "type": "interval",
        "from": {"value": format_time(start), "grain": str(value.start.grain)},
        "to": {"value": format_time(end), "grain": str(value.end.grain)},
    }
