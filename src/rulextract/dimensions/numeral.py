"""Numeral rules: digits, words, composition and resolution.

Composition follows the usual power-of-ten bookkeeping: every numeral
carries an optional ``grain`` (trailing zeros of an integral value) and a
``multipliable`` flag (exact powers of ten such as "hundred" or "thousand").
"two thousand" multiplies, "two thousand three" sums because 10**3 > 3.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from rulextract.context import Context
from rulextract.dedup import INT64_MAX, INT64_MIN, canonical_number, canonical_payload
from rulextract.errors import ResolutionError
from rulextract.resolve import register_resolver
from rulextract.rules import Bucket, Match, Rule, dim, regex
from rulextract.types import Dimension, Node


@dataclass(frozen=True, slots=True)
class NumeralValue:
    value: float
    grain: int | None = None
    multipliable: bool = False

    dimension = Dimension.NUMERAL

    @property
    def is_integer(self) -> bool:
        return math.isfinite(self.value) and float(self.value).is_integer()


@canonical_payload.register(NumeralValue)
def _(value: NumeralValue) -> dict[str, object]:
    # Same number, same node: grain/multipliable are construction details.
    return {"numeral": canonical_number(float(value.value))}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def infer_grain(value: float) -> int | None:
    """Count of trailing zeros of an integral value, or None."""
    if value == 0 or not float(value).is_integer():
        return None
    n = abs(int(value))
    grain = 0
    while n % 10 == 0:
        grain += 1
        n //= 10
    return grain or None


def make_numeral(value: float) -> NumeralValue:
    grain = infer_grain(value)
    multipliable = grain is not None and abs(value) == 10 ** grain
    return NumeralValue(value=float(value), grain=grain, multipliable=multipliable)


def decimals_to_double(value: float) -> float:
    """12 -> 0.12"""
    if value == 0:
        return 0.0
    if not math.isfinite(value):
        raise ResolutionError(f"non-finite decimals {value!r}")
    digits = len(str(abs(int(value))))
    return value / 10 ** digits


def multiply_numerals(left: NumeralValue, right: NumeralValue) -> NumeralValue:
    return NumeralValue(value=left.value * right.value, grain=right.grain, multipliable=False)


def parse_number(text: str | None) -> float:
    if not text:
        raise ResolutionError("empty number")
    try:
        return float(text.replace(",", ""))
    except ValueError as exc:
        raise ResolutionError(f"not a number: {text!r}") from exc


def numeral_of(node: Node) -> NumeralValue:
    value = node.value
    if isinstance(value, NumeralValue):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return make_numeral(float(value))
    raise ResolutionError(f"not a numeral: {type(value).__name__}")


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_positive(node: Node) -> bool:
    return isinstance(node.value, NumeralValue) and node.value.value > 0


def has_grain(node: Node) -> bool:
    return isinstance(node.value, NumeralValue) and node.value.grain is not None


def is_multipliable(node: Node) -> bool:
    return isinstance(node.value, NumeralValue) and node.value.multipliable


def is_integer(node: Node) -> bool:
    return isinstance(node.value, NumeralValue) and node.value.is_integer


def number_between(low: float, high: float) -> Callable[[Node], bool]:
    """Predicate for ``low <= value < high``."""

    def test(node: Node) -> bool:
        return isinstance(node.value, NumeralValue) and low <= node.value.value < high

    test.__name__ = f"number_between_{low:g}_{high:g}"
    return test


def is_tens(node: Node) -> bool:
    if not isinstance(node.value, NumeralValue):
        return False
    v = node.value.value
    return 20 <= v <= 90 and v % 10 == 0


# ---------------------------------------------------------------------------
# Word tables
# ---------------------------------------------------------------------------

ZERO_NINETEEN: dict[str, int] = {
    "naught": 0, "nil": 0, "nought": 0, "none": 0, "zero": 0, "zilch": 0,
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6, "seven": 7,
    "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13,
    "fourteen": 14, "fifteen": 15, "sixteen": 16, "seventeen": 17,
    "eighteen": 18, "nineteen": 19,
}

INFORMAL: dict[str, int] = {
    "single": 1,
    "a couple": 2, "a couple of": 2, "couple": 2, "couples": 2, "couple of": 2, "couples of": 2,
    "a pair": 2, "a pair of": 2, "pair": 2, "pairs": 2, "pair of": 2, "pairs of": 2,
    "a few": 3, "few": 3,
}

TENS: dict[str, int] = {
    "twenty": 20, "thirty": 30, "forty": 40, "fourty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

POWERS_OF_TEN: dict[str, int] = {
    "hundred": 2, "thousand": 3,
    "lac": 5, "lakh": 5, "lk": 5, "lkh": 5,
    "million": 6,
    "cr": 7, "crore": 7, "koti": 7,
    "billion": 9, "trillion": 12,
}

SUFFIX_FACTORS: dict[str, float] = {"k": 1e3, "m": 1e6, "g": 1e9}

_WORD_PHRASES = (*ZERO_NINETEEN, "single", "couple", "couples", "pair", "pairs", "few")
_POWER_PHRASES = (*POWERS_OF_TEN, *(f"{w}s" for w in POWERS_OF_TEN))


# ---------------------------------------------------------------------------
# Productions
# ---------------------------------------------------------------------------

def _lookup_word(word: str | None) -> int:
    word = " ".join((word or "").split())
    if word in ZERO_NINETEEN:
        return ZERO_NINETEEN[word]
    if word in INFORMAL:
        return INFORMAL[word]
    if word in TENS:
        return TENS[word]
    raise ResolutionError(f"unknown number word {word!r}")


def _integer_digits(m: Match) -> NumeralValue:
    return make_numeral(parse_number(m.group(0, 1)))


def _decimal(m: Match) -> NumeralValue:
    return make_numeral(parse_number(m.group(0, 1)))


def _comma_grouped(m: Match) -> NumeralValue:
    return make_numeral(parse_number(m.group(0, 1)))


def _fraction(m: Match) -> NumeralValue:
    numerator = parse_number(m.group(0, 1))
    denominator = parse_number(m.group(0, 2))
    if denominator == 0:
        raise ResolutionError("division by zero")
    return make_numeral(numerator / denominator)


def _suffixed(m: Match) -> NumeralValue:
    base = parse_number(m.group(0, 1))
    return make_numeral(base * SUFFIX_FACTORS[m.require_group(0, 2)])


def _zero_to_nineteen(m: Match) -> NumeralValue:
    return make_numeral(_lookup_word(m.group(0, 1)))


def _tens(m: Match) -> NumeralValue:
    return make_numeral(_lookup_word(m.group(0, 1)))


def _power_of_ten(m: Match) -> NumeralValue:
    word = m.require_group(0, 1)
    exponent = POWERS_OF_TEN.get(word) or POWERS_OF_TEN.get(word.removesuffix("s"))
    if exponent is None:
        raise ResolutionError(f"unknown power of ten {word!r}")
    return make_numeral(10 ** exponent)


def _composite_tens(m: Match) -> NumeralValue:
    return make_numeral(m.value(0).value + m.value(2).value)


def _skip_hundreds(m: Match) -> NumeralValue:
    hundreds = ZERO_NINETEEN[m.require_group(0, 1)]
    return make_numeral(hundreds * 100 + _lookup_word(m.group(2, 1)))


def _skip_hundreds_tens_units(m: Match) -> NumeralValue:
    hundreds = ZERO_NINETEEN[m.require_group(0, 1)]
    tens = TENS[m.require_group(2, 1)]
    units = ZERO_NINETEEN[m.require_group(4, 1)]
    return make_numeral(hundreds * 100 + tens + units)


def _point_spelled_out(m: Match) -> NumeralValue:
    return make_numeral(m.value(0).value + decimals_to_double(m.value(2).value))


def _leading_point(m: Match) -> NumeralValue:
    return make_numeral(decimals_to_double(m.value(1).value))


def _sum(m: Match) -> NumeralValue | None:
    left, right = m.value(0), m.value(-1)
    if left.grain is None or 10 ** left.grain <= right.value:
        return None
    return make_numeral(left.value + right.value)


def _thousand_and_remainder(m: Match) -> NumeralValue | None:
    left, right = m.value(0).value, m.value(2).value
    if not (1 <= left < 1000 and 0 <= right < 1000):
        return None
    return make_numeral(left * 1000 + right)


def _multiply(m: Match) -> NumeralValue:
    return multiply_numerals(m.value(0), m.value(2))


def _parenthesized(m: Match) -> NumeralValue | None:
    if m.value(0).value != m.value(2).value:
        return None
    return make_numeral(m.value(0).value)


def _negative_prefixed(m: Match) -> NumeralValue:
    return make_numeral(-parse_number(m.group(0, 1)))


def _negate_last(m: Match) -> NumeralValue:
    return make_numeral(-m.value(-1).value)


def _dozen(m: Match) -> NumeralValue:
    return make_numeral(12)


def _dozens_of(m: Match) -> NumeralValue:
    return make_numeral(m.value(0).value * 12)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

_UNITS_RE = r"(one|two|three|four|five|six|seven|eight|nine)"
_TEENS_OR_TENS_RE = (
    r"(ten|eleven|twelve|thirteen|fourteen|fifteen|sixteen|seventeen|eighteen|nineteen"
    r"|twenty|thirty|fou?rty|fifty|sixty|seventy|eighty|ninety)\b"
)
_TENS_RE = r"(twenty|thirty|fou?rty|fifty|sixty|seventy|eighty|ninety)"


def rules() -> list[Rule]:
    digits = frozenset({Bucket.DIGITS})
    return [
        Rule(
            name="integer digits",
            pattern=(regex(r"(\d+)"),),
            production=_integer_digits,
            buckets=digits,
        ),
        Rule(
            name="decimal number",
            pattern=(regex(r"(\d*\.\d+)"),),
            production=_decimal,
            buckets=digits,
        ),
        Rule(
            name="comma-separated numbers",
            pattern=(regex(r"(\d+(?:,\d\d\d)+(?:\.\d+)?)"),),
            production=_comma_grouped,
            buckets=digits,
        ),
        Rule(
            name="fractional number",
            pattern=(regex(r"(\d+)/(\d+)"),),
            production=_fraction,
            buckets=digits,
        ),
        Rule(
            name="suffixes (K,M,G)",
            pattern=(regex(r"(\d+\.\d+|\d+|\.\d+)\s*([kmg])\b"),),
            production=_suffixed,
            buckets=digits,
        ),
        Rule(
            name="integer (0..19, informal)",
            pattern=(regex(
                r"\b(none|zilch|naught|nought|nil|zero|one|single|two|(?:a )?(?:pair|couple)s?(?: of)?"
                r"|three|(?:a )?few|fourteen|four|fifteen|five|sixteen|six|seventeen|seven"
                r"|eighteen|eight|nineteen|nine|ten|eleven|twelve|thirteen)\b",
            ),),
            production=_zero_to_nineteen,
            trigger_phrases=_WORD_PHRASES,
        ),
        Rule(
            name="integer (20..90)",
            pattern=(regex(rf"\b{_TENS_RE}\b"),),
            production=_tens,
            trigger_phrases=tuple(TENS),
        ),
        Rule(
            name="powers of tens",
            pattern=(regex(r"\b(hundred|thousand|lakh|lac|lkh?|million|crore|cr|koti|billion|trillion)s?\b"),),
            production=_power_of_ten,
            trigger_phrases=_POWER_PHRASES,
        ),
        Rule(
            name="integer 21..99",
            pattern=(dim(Dimension.NUMERAL, is_tens), regex(r"[\s\-]+"), dim(Dimension.NUMERAL, number_between(1, 10))),
            production=_composite_tens,
            trigger_phrases=tuple(TENS),
        ),
        Rule(
            name="integer 100..999 without hundred (two tokens)",
            pattern=(regex(rf"\b{_UNITS_RE}"), regex(r"[\s\-]+"), regex(_TEENS_OR_TENS_RE)),
            production=_skip_hundreds,
            trigger_phrases=tuple(ZERO_NINETEEN),
        ),
        Rule(
            name="integer 100..999 without hundred (three tokens)",
            pattern=(
                regex(rf"\b{_UNITS_RE}"),
                regex(r"[\s\-]+"),
                regex(_TENS_RE),
                regex(r"[\s\-]+"),
                regex(rf"{_UNITS_RE}\b"),
            ),
            production=_skip_hundreds_tens_units,
            trigger_phrases=tuple(TENS),
        ),
        Rule(
            name="one point 2",
            pattern=(
                dim(Dimension.NUMERAL),
                regex(r"\s*(point|dot)\s*"),
                dim(Dimension.NUMERAL, lambda n: not has_grain(n), label="no_grain"),
            ),
            production=_point_spelled_out,
            trigger_phrases=("point", "dot"),
        ),
        Rule(
            name="point 77",
            pattern=(
                regex(r"\b(point|dot)\s*"),
                dim(Dimension.NUMERAL, lambda n: not has_grain(n), label="no_grain"),
            ),
            production=_leading_point,
            trigger_phrases=("point", "dot"),
        ),
        Rule(
            name="compose by multiplication",
            pattern=(dim(Dimension.NUMERAL, is_positive), regex(r"\s*"), dim(Dimension.NUMERAL, is_multipliable)),
            production=_multiply,
        ),
        Rule(
            name="intersect 2 numbers",
            pattern=(
                dim(Dimension.NUMERAL, lambda n: has_grain(n) and is_positive(n), label="positive_with_grain"),
                regex(r"\s*"),
                dim(Dimension.NUMERAL, lambda n: is_positive(n) and not is_multipliable(n), label="positive_plain"),
            ),
            production=_sum,
        ),
        Rule(
            name="intersect 2 numbers (with and)",
            pattern=(
                dim(Dimension.NUMERAL, lambda n: has_grain(n) and is_positive(n), label="positive_with_grain"),
                regex(r"\s*and\s*"),
                dim(Dimension.NUMERAL, lambda n: is_positive(n) and not is_multipliable(n), label="positive_plain"),
            ),
            production=_sum,
            trigger_phrases=("and",),
        ),
        Rule(
            name="thousand and remainder",
            pattern=(
                dim(Dimension.NUMERAL, lambda n: is_positive(n) and not is_multipliable(n), label="positive_plain"),
                regex(r"\s*thousand\s+and\s+"),
                dim(Dimension.NUMERAL, lambda n: is_positive(n) and not is_multipliable(n), label="positive_plain"),
            ),
            production=_thousand_and_remainder,
            required_phrases=("thousand", "and"),
        ),
        Rule(
            name="negative numbers (prefixed)",
            pattern=(regex(r"\b(?:minus|negative)\s*((?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?)\b"),),
            production=_negative_prefixed,
            trigger_phrases=("minus", "negative"),
            buckets=digits,
        ),
        Rule(
            name="negative numbers",
            pattern=(
                regex(r"(?:-\s*negative|-\s*minus|-)\s*|(?:\bminus\b|\bnegative\b)\s+"),
                dim(Dimension.NUMERAL, is_positive),
            ),
            production=_negate_last,
        ),
        Rule(
            name="<integer> '('<integer>')'",
            pattern=(
                dim(Dimension.NUMERAL, lambda n: is_integer(n) and is_positive(n), label="positive_integer"),
                regex(r"\s*\("),
                dim(Dimension.NUMERAL, lambda n: is_integer(n) and is_positive(n), label="positive_integer"),
                regex(r"\s*\)"),
            ),
            production=_parenthesized,
        ),
        Rule(
            name="a dozen of",
            pattern=(regex(r"\b(?:a\s+)?dozens?(?:\s+of)?\b"),),
            production=_dozen,
            trigger_phrases=("dozen", "dozens"),
        ),
        Rule(
            name="dozen as multiplier",
            pattern=(dim(Dimension.NUMERAL, is_positive), regex(r"\s*dozens?\b")),
            production=_dozens_of,
            trigger_phrases=("dozen", "dozens"),
        ),
    ]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def format_number(value: float) -> int | float:
    """Integral values resolve as ints, unless too large for a JSON int64."""
    if math.isfinite(value) and float(value).is_integer():
        integral = int(value)
        if INT64_MIN <= integral <= INT64_MAX:
            return integral
    return value


@register_resolver(Dimension.NUMERAL)
def resolve_numeral(node: Node, context: Context) -> dict[str, object]:
    numeral = numeral_of(node)
    if not math.isfinite(numeral.value):
        raise ResolutionError(f"non-finite numeral {numeral.value!r}")
    return {"type": "value", "value": format_number(numeral.value)}
