"""Duration rules ("3 hours", "an hour", "half an hour")."""

from __future__ import annotations

import math
from dataclasses import dataclass

from rulextract.context import Context
from rulextract.dimensions.numeral import format_number, is_positive, numeral_of
from rulextract.dimensions.time_expr import Grain
from rulextract.errors import ResolutionError
from rulextract.resolve import register_resolver
from rulextract.rules import Match, Rule, dim, regex
from rulextract.types import Dimension, Node


# Calendar grains use nominal lengths for the normalized value only.
NOMINAL_SECONDS: dict[Grain, int] = {
    Grain.SECOND: 1,
    Grain.MINUTE: 60,
    Grain.HOUR: 3600,
    Grain.DAY: 86400,
    Grain.WEEK: 604800,
    Grain.MONTH: 2592000,
    Grain.QUARTER: 7776000,
    Grain.YEAR: 31536000,
}

UNIT_WORDS: dict[str, Grain] = {
    "sec": Grain.SECOND, "secs": Grain.SECOND, "second": Grain.SECOND, "seconds": Grain.SECOND,
    "min": Grain.MINUTE, "mins": Grain.MINUTE, "minute": Grain.MINUTE, "minutes": Grain.MINUTE,
    "hr": Grain.HOUR, "hrs": Grain.HOUR, "hour": Grain.HOUR, "hours": Grain.HOUR,
    "day": Grain.DAY, "days": Grain.DAY,
    "wk": Grain.WEEK, "wks": Grain.WEEK, "week": Grain.WEEK, "weeks": Grain.WEEK,
    "month": Grain.MONTH, "months": Grain.MONTH,
    "quarter": Grain.QUARTER, "quarters": Grain.QUARTER,
    "yr": Grain.YEAR, "yrs": Grain.YEAR, "year": Grain.YEAR, "years": Grain.YEAR,
}

UNIT_RE = "|".join(sorted(UNIT_WORDS, key=len, reverse=True))


@dataclass(frozen=True, slots=True)
class DurationValue:
    value: float
    unit: Grain

    dimension = Dimension.DURATION

    @property
    def seconds(self) -> float:
        return self.value * NOMINAL_SECONDS[self.unit]

    def as_shift(self) -> tuple[int, Grain]:
        """Whole amount and grain usable by ``time_expr.Shift``.

        Fractional values fall back to seconds for fixed-length units;
        "1.5 months" has no exact calendar meaning and is rejected.
        """
        if not math.isfinite(self.value):
            raise ResolutionError(f"non-finite duration {self.value!r}")
        if float(self.value).is_integer():
            return int(self.value), self.unit
        if self.unit.fixed_seconds is None:
            raise ResolutionError(f"fractional {self.unit} duration")
        return round(self.value * self.unit.fixed_seconds), Grain.SECOND


def duration_of(node: Node) -> DurationValue:
    if not isinstance(node.value, DurationValue):
        raise ResolutionError(f"not a duration: {type(node.value).__name__}")
    return node.value


def _unit(word: str) -> Grain:
    try:
        return UNIT_WORDS[word]
    except KeyError as exc:
        raise ResolutionError(f"unknown unit {word!r}") from exc


def _numeral_unit(m: Match) -> DurationValue:
    return DurationValue(numeral_of(m.nodes[0]).value, _unit(m.require_group(1, 1)))


def _article_unit(m: Match) -> DurationValue:
    return DurationValue(1.0, _unit(m.require_group(0, 1)))


def _half_hour(m: Match) -> DurationValue:
    return DurationValue(30.0, Grain.MINUTE)


def rules() -> list[Rule]:
    return [
        Rule(
            name="<integer> <unit-of-duration>",
            pattern=(dim(Dimension.NUMERAL, is_positive), regex(rf"\s*({UNIT_RE})\b")),
            production=_numeral_unit,
            trigger_phrases=tuple(UNIT_WORDS),
        ),
        Rule(
            name="a <unit-of-duration>",
            pattern=(regex(r"\ban?\s+(second|minute|hour|day|week|month|quarter|year)\b"),),
            production=_article_unit,
            trigger_phrases=("second", "minute", "hour", "day", "week", "month", "quarter", "year"),
        ),
        Rule(
            name="half an hour",
            pattern=(regex(r"\b(?:a\s+)?half\s+(?:an\s+)?hour\b|\b1/2\s*(?:h|hr|hour)\b"),),
            production=_half_hour,
            trigger_phrases=("half", "hour", "hr", "h"),
        ),
    ]


@register_resolver(Dimension.DURATION)
def resolve_duration(node: Node, context: Context) -> dict[str, object]:
    duration = duration_of(node)
    return {
        "type": "value",
        "value": format_number(duration.value),
        "unit": str(duration.unit),
        "normalized": {"value": format_number(duration.seconds), "unit": "second"},
    }
