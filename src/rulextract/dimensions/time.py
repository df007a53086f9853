"""Time rules: relative days, weekdays, dates, times of day and their
combinations, and durations anchored on the reference time.

Node values are ``TimeData`` expressions; see ``time_expr`` for how they
are evaluated. A time of day is represented as ``Intersect(Reference(),
tod)`` so the combination rules can re-anchor it on any date.
"""

from __future__ import annotations

from collections.abc import Callable

from rulextract.context import Context
from rulextract.dimensions.duration import duration_of
from rulextract.dimensions.numeral import NumeralValue, number_between
from rulextract.dimensions.ordinal import OrdinalValue
from rulextract.dimensions.time_expr import (
    Absolute,
    Grain,
    Intersect,
    MonthDay,
    Reference,
    RelativeWeekday,
    Shift,
    StartOf,
    TimeData,
    TimeOfDay,
    format_time,
    normalize,
)
from rulextract.errors import ResolutionError
from rulextract.resolve import register_resolver
from rulextract.rules import Bucket, Match, Rule, dim, predicate, regex
from rulextract.types import Dimension, Node


WEEKDAYS: dict[str, int] = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tues": 1, "tue": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thurs": 3, "thu": 3,
    "friday": 4, "fri": 4,
    "saturday": 5,
    "sunday": 6,
}

MONTHS: dict[str, int] = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

_WEEKDAY_RE = "|".join(sorted(WEEKDAYS, key=len, reverse=True))
_MONTH_RE = "|".join(sorted(MONTHS, key=len, reverse=True))
_AMPM_RE = r"\s*([ap])\.?m\.?(?![a-z])"

_RELATIVE_DAYS: dict[str, int] = {
    "today": 0,
    "tomorrow": 1,
    "yesterday": -1,
}


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def time_of(node: Node) -> TimeData:
    if not isinstance(node.value, TimeData):
        raise ResolutionError(f"not a time: {type(node.value).__name__}")
    return node.value


def is_time_of_day(node: Node) -> bool:
    value = node.value
    return (
        isinstance(value, TimeData)
        and isinstance(value.expr, Intersect)
        and isinstance(value.expr.expr, Reference)
    )


def is_ambiguous_tod(node: Node) -> bool:
    return is_time_of_day(node) and node.value.expr.time_of_day.ambiguous


def is_date(node: Node) -> bool:
    value = node.value
    return (
        isinstance(value, TimeData)
        and value.grain is Grain.DAY
        and not isinstance(value.expr, Intersect)
    )


def is_weekday(node: Node) -> bool:
    value = node.value
    return (
        isinstance(value, TimeData)
        and isinstance(value.expr, RelativeWeekday)
        and value.expr.offset == 0
        and not value.expr.inclusive
    )


def is_month_day(node: Node) -> bool:
    value = node.value
    return isinstance(value, TimeData) and isinstance(value.expr, MonthDay)


def is_day_of_month(node: Node) -> bool:
    value = node.value
    if isinstance(value, OrdinalValue):
        return 1 <= value.value <= 31
    if isinstance(value, NumeralValue):
        return value.is_integer and 1 <= value.value <= 31
    return False


def is_clock_hour(node: Node) -> bool:
    value = node.value
    return isinstance(value, NumeralValue) and value.is_integer and 0 <= value.value <= 23


# ---------------------------------------------------------------------------
# Productions
# ---------------------------------------------------------------------------

def time_of_day(tod: TimeOfDay) -> TimeData:
    return TimeData(Intersect(Reference(), tod), tod.precision)


def day_of_month(node: Node) -> int:
    value = node.value
    if isinstance(value, (OrdinalValue, NumeralValue)):
        return int(value.value)
    raise ResolutionError(f"not a day of month: {type(value).__name__}")


def apply_ampm(tod: TimeOfDay, marker: str) -> TimeOfDay:
    """12-hour clock reading: 12am is midnight, 12pm is noon."""
    if not 1 <= tod.hour <= 12:
        raise ResolutionError(f"{tod.hour} is not a 12-hour clock hour")
    hour = tod.hour % 12 + (12 if marker.lower() == "p" else 0)
    return TimeOfDay(hour, tod.minute, tod.precision)


def _now(m: Match) -> TimeData:
    return TimeData(Reference(), Grain.SECOND)


def _relative_day(m: Match) -> TimeData:
    days = _RELATIVE_DAYS[m.require_group(0, 1)]
    return TimeData(StartOf(Shift(Reference(), days, Grain.DAY), Grain.DAY), Grain.DAY)


def _days_from_today(days: int) -> Callable[[Match], TimeData]:
    def production(m: Match) -> TimeData:
        return TimeData(StartOf(Shift(Reference(), days, Grain.DAY), Grain.DAY), Grain.DAY)

    return production


def _weekday(m: Match) -> TimeData:
    return TimeData(RelativeWeekday(WEEKDAYS[m.require_group(0, 1)]), Grain.DAY)


def _relative_weekday(m: Match) -> TimeData:
    modifier = m.require_group(0, 1)
    weekday = time_of(m.nodes[1]).expr.weekday
    match modifier:
        case "this":
            expr = RelativeWeekday(weekday, 0, inclusive=True)
        case "next" | "coming":
            expr = RelativeWeekday(weekday, 1)
        case _:
            expr = RelativeWeekday(weekday, -1)
    return TimeData(expr, Grain.DAY)


def _month_day(m: Match) -> TimeData:
    month = MONTHS[m.require_group(0, 1)]
    return TimeData(MonthDay(month, day_of_month(m.nodes[1])), Grain.DAY)


def _day_month(m: Match) -> TimeData:
    month = MONTHS[m.require_group(1, 1)]
    return TimeData(MonthDay(month, day_of_month(m.nodes[0])), Grain.DAY)


def _month_day_year(m: Match) -> TimeData:
    month_day = time_of(m.nodes[0]).expr
    year = int(m.require_group(1, 1))
    return TimeData(Absolute(year, month_day.month, month_day.day), Grain.DAY)


def _iso_date(m: Match) -> TimeData:
    year, month, day = (int(m.require_group(0, g)) for g in (1, 2, 3))
    return TimeData(Absolute(year, month, day), Grain.DAY)


def _us_date(m: Match) -> TimeData:
    month, day, year = (int(m.require_group(0, g)) for g in (1, 2, 3))
    return TimeData(Absolute(year, month, day), Grain.DAY)


def _clock(m: Match) -> TimeData:
    hour = int(m.require_group(0, 1))
    minute = int(m.require_group(0, 2))
    return time_of_day(TimeOfDay(hour, minute, Grain.MINUTE, ambiguous=1 <= hour <= 12))


def _hour_ampm(m: Match) -> TimeData:
    hour = int(m.require_group(0, 1))
    return time_of_day(apply_ampm(TimeOfDay(hour), m.require_group(0, 2)))


def _numeral_ampm(m: Match) -> TimeData:
    numeral = m.value(0)
    if not numeral.is_integer:
        raise ResolutionError(f"fractional hour {numeral.value}")
    return time_of_day(apply_ampm(TimeOfDay(int(numeral.value)), m.require_group(1, 1)))


def _tod_ampm(m: Match) -> TimeData:
    tod = time_of(m.nodes[0]).expr.time_of_day
    return time_of_day(apply_ampm(tod, m.require_group(1, 1)))


def _noon_midnight(m: Match) -> TimeData:
    word = m.require_group(0, 1)
    return time_of_day(TimeOfDay(0 if word == "midnight" else 12))


def _at_tod(m: Match) -> TimeData:
    return time_of(m.nodes[1])


def _at_hour(m: Match) -> TimeData:
    hour = int(m.value(1).value)
    return time_of_day(TimeOfDay(hour, ambiguous=1 <= hour <= 12))


def _date_tod(m: Match) -> TimeData:
    date = time_of(m.nodes[0])
    tod = time_of(m.nodes[2]).expr.time_of_day
    return TimeData(Intersect(date.expr, tod), tod.precision)


def _tod_date(m: Match) -> TimeData:
    tod = time_of(m.nodes[0]).expr.time_of_day
    date = time_of(m.nodes[2])
    return TimeData(Intersect(date.expr, tod), tod.precision)


def _in_duration(m: Match) -> TimeData:
    amount, grain = duration_of(m.nodes[1]).as_shift()
    return TimeData(Shift(Reference(), amount, grain), grain)


def _duration_ago(m: Match) -> TimeData:
    amount, grain = duration_of(m.nodes[0]).as_shift()
    return TimeData(Shift(Reference(), -amount, grain), grain)


def _duration_later(m: Match) -> TimeData:
    amount, grain = duration_of(m.nodes[0]).as_shift()
    return TimeData(Shift(Reference(), amount, grain), grain)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def rules() -> list[Rule]:
    digits = frozenset({Bucket.DIGITS})
    return [
        # Relative days
        Rule(
            name="now",
            pattern=(regex(r"\b(?:right\s+)?now\b"),),
            production=_now,
            trigger_phrases=("now",),
        ),
        Rule(
            name="today / tomorrow / yesterday",
            pattern=(regex(r"\b(today|tomorrow|yesterday)\b"),),
            production=_relative_day,
            trigger_phrases=("today", "tomorrow", "yesterday"),
        ),
        Rule(
            name="day after tomorrow",
            pattern=(regex(r"\b(?:the\s+)?day\s+after\s+tomorrow\b"),),
            production=_days_from_today(2),
            trigger_phrases=("day after tomorrow",),
        ),
        Rule(
            name="day before yesterday",
            pattern=(regex(r"\b(?:the\s+)?day\s+before\s+yesterday\b"),),
            production=_days_from_today(-2),
            trigger_phrases=("day before yesterday",),
        ),
        # Weekdays
        Rule(
            name="<weekday>",
            pattern=(regex(rf"\b({_WEEKDAY_RE})\b"),),
            production=_weekday,
            buckets=frozenset({Bucket.WEEKDAY}),
        ),
        Rule(
            name="this|next|last <weekday>",
            pattern=(regex(r"\b(this|coming|next|last|past|previous)\s+"), dim(Dimension.TIME, is_weekday)),
            production=_relative_weekday,
            trigger_phrases=("this", "coming", "next", "last", "past", "previous"),
            buckets=frozenset({Bucket.WEEKDAY}),
        ),
        # Dates
        Rule(
            name="<month> <day-of-month>",
            pattern=(regex(rf"\b({_MONTH_RE})\.?\s+"), predicate(is_day_of_month)),
            production=_month_day,
            buckets=frozenset({Bucket.MONTH}),
        ),
        Rule(
            name="<day-of-month> <month>",
            pattern=(predicate(is_day_of_month), regex(rf"\s+(?:of\s+)?({_MONTH_RE})\b\.?")),
            production=_day_month,
            buckets=frozenset({Bucket.MONTH}),
        ),
        Rule(
            name="<month> <day> <year>",
            pattern=(dim(Dimension.TIME, is_month_day), regex(r"\s*,?\s*(\d{4})\b")),
            production=_month_day_year,
            buckets=frozenset({Bucket.MONTH}),
        ),
        Rule(
            name="yyyy-mm-dd",
            pattern=(regex(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b"),),
            production=_iso_date,
            buckets=digits,
        ),
        Rule(
            name="mm/dd/yyyy",
            pattern=(regex(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b"),),
            production=_us_date,
            buckets=digits,
        ),
        # Times of day
        Rule(
            name="hh:mm",
            pattern=(regex(r"\b(\d{1,2}):(\d{2})\b"),),
            production=_clock,
            buckets=frozenset({Bucket.COLON}),
        ),
        Rule(
            name="hh(am|pm)",
            pattern=(regex(rf"\b(\d{{1,2}}){_AMPM_RE}"),),
            production=_hour_ampm,
            buckets=frozenset({Bucket.AMPM}),
        ),
        Rule(
            name="<integer> (am|pm)",
            pattern=(dim(Dimension.NUMERAL, number_between(1, 13)), regex(_AMPM_RE)),
            production=_numeral_ampm,
            buckets=frozenset({Bucket.AMPM}),
        ),
        Rule(
            name="<time-of-day> (am|pm)",
            pattern=(dim(Dimension.TIME, is_ambiguous_tod), regex(_AMPM_RE)),
            production=_tod_ampm,
            buckets=frozenset({Bucket.AMPM}),
        ),
        Rule(
            name="noon / midnight",
            pattern=(regex(r"\b(noon|midday|midnight)\b"),),
            production=_noon_midnight,
            trigger_phrases=("noon", "midday", "midnight"),
        ),
        Rule(
            name="at <time-of-day>",
            pattern=(regex(r"\bat\s+"), dim(Dimension.TIME, is_time_of_day)),
            production=_at_tod,
            trigger_phrases=("at",),
        ),
        Rule(
            name="at <hour>",
            pattern=(regex(r"\bat\s+"), dim(Dimension.NUMERAL, is_clock_hour)),
            production=_at_hour,
            trigger_phrases=("at",),
        ),
        # Combinations
        Rule(
            name="<date> at <time-of-day>",
            pattern=(
                dim(Dimension.TIME, is_date),
                regex(r"\s*,\s*|\s+"),
                dim(Dimension.TIME, is_time_of_day),
            ),
            production=_date_tod,
        ),
        Rule(
            name="<time-of-day> <date>",
            pattern=(
                dim(Dimension.TIME, is_time_of_day),
                regex(r"\s+(?:on\s+)?|\s*,\s*"),
                dim(Dimension.TIME, is_date),
            ),
            production=_tod_date,
        ),
        # Anchored durations
        Rule(
            name="in <duration>",
            pattern=(regex(r"\bin\s+"), dim(Dimension.DURATION)),
            production=_in_duration,
            trigger_phrases=("in",),
        ),
        Rule(
            name="<duration> ago",
            pattern=(dim(Dimension.DURATION), regex(r"\s+ago\b")),
            production=_duration_ago,
            trigger_phrases=("ago",),
        ),
        Rule(
            name="<duration> from now",
            pattern=(dim(Dimension.DURATION), regex(r"\s+(?:from\s+now|later|hence)\b")),
            production=_duration_later,
            trigger_phrases=("from now", "later", "hence"),
        ),
    ]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def time_value(data: TimeData, context: Context) -> dict[str, object]:
    value = normalize(data.expr, context.reference_time)
    return {"value": format_time(value), "grain": str(data.grain)}


@register_resolver(Dimension.TIME)
def resolve_time(node: Node, context: Context) -> dict[str, object]:
    return {"type": "value", **time_value(time_of(node), context)}
