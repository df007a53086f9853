"""Ordinal rules ("3rd", "first", "twenty-first")."""

from __future__ import annotations

from dataclasses import dataclass

from rulextract.context import Context
from rulextract.dedup import INT64_MAX, INT64_MIN
from rulextract.errors import ResolutionError
from rulextract.resolve import register_resolver
from rulextract.rules import Bucket, Match, Rule, regex
from rulextract.types import Dimension, Node


@dataclass(frozen=True, slots=True)
class OrdinalValue:
    value: int

    dimension = Dimension.ORDINAL


ORDINAL_WORDS: dict[str, int] = {
    "first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5, "sixth": 6,
    "seventh": 7, "eighth": 8, "ninth": 9, "tenth": 10, "eleventh": 11,
    "twelfth": 12, "thirteenth": 13, "fourteenth": 14, "fifteenth": 15,
    "sixteenth": 16, "seventeenth": 17, "eighteenth": 18, "nineteenth": 19,
    "twentieth": 20, "thirtieth": 30,
}

_TENS_PREFIX: dict[str, int] = {"twenty": 20, "thirty": 30}

_WORDS_RE = "|".join(sorted(ORDINAL_WORDS, key=len, reverse=True))


def _ordinal_digits(m: Match) -> OrdinalValue:
    digits = m.require_group(0, 1)
    try:
        return OrdinalValue(int(digits))
    except ValueError as exc:
        raise ResolutionError(f"ordinal too long: {len(digits)} digits") from exc


def _ordinal_words(m: Match) -> OrdinalValue:
    tens = m.group(0, 1)
    word = m.require_group(0, 2)
    value = ORDINAL_WORDS[word]
    if tens:
        if value >= 10:
            raise ResolutionError(f"invalid compound ordinal {m.body!r}")
        value += _TENS_PREFIX[tens]
    return OrdinalValue(value)


def rules() -> list[Rule]:
    return [
        Rule(
            name="ordinal digits",
            pattern=(regex(r"\b(\d+)(?:st|nd|rd|th)\b"),),
            production=_ordinal_digits,
            buckets=frozenset({Bucket.ORDINAL}),
        ),
        Rule(
            name="ordinal words",
            pattern=(regex(rf"\b(?:(twenty|thirty)[\s\-])?({_WORDS_RE})\b"),),
            production=_ordinal_words,
            trigger_phrases=tuple(ORDINAL_WORDS),
        ),
    ]


@register_resolver(Dimension.ORDINAL)
def resolve_ordinal(node: Node, context: Context) -> dict[str, object]:
    value = node.value
    if not isinstance(value, OrdinalValue):
        raise ResolutionError(f"not an ordinal: {type(value).__name__}")
    if not INT64_MIN <= value.value <= INT64_MAX:
        raise ResolutionError(f"ordinal out of range: {value.value}")
    return {"type": "value", "value": value.value}


__all__ = ["ORDINAL_WORDS", "OrdinalValue", "resolve_ordinal", "rules"]
