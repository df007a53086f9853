"""Time expressions and their normalization against a reference time.

Time rules never compute datetimes themselves. They build small immutable
expression trees (``Shift(StartOf(Reference(), DAY), 1, DAY)``) which are
evaluated only at resolution, once the reference time is known. Keeping the
expression in the node value also gives equal parses equal dedup keys.

Evaluation works on naive wall-clock datetimes; week starts on Monday.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from dateutil.relativedelta import relativedelta

from rulextract.errors import ResolutionError
from rulextract.types import Dimension


class Grain(StrEnum):
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def rank(self) -> int:
        return _GRAIN_ORDER.index(self)

    @property
    def fixed_seconds(self) -> int | None:
        """Length in seconds, or None for calendar grains (month and up)."""
        return FIXED_SECONDS.get(self)


_GRAIN_ORDER: tuple[Grain, ...] = tuple(Grain)

FIXED_SECONDS: dict[Grain, int] = {
    Grain.SECOND: 1,
    Grain.MINUTE: 60,
    Grain.HOUR: 3600,
    Grain.DAY: 86400,
    Grain.WEEK: 604800,
}

_MONTHS_PER: dict[Grain, int] = {Grain.MONTH: 1, Grain.QUARTER: 3, Grain.YEAR: 12}


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TimeOfDay:
    hour: int
    minute: int = 0
    precision: Grain = Grain.HOUR
    ambiguous: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ResolutionError(f"hour out of range: {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ResolutionError(f"minute out of range: {self.minute}")


@dataclass(frozen=True, slots=True)
class Reference:
    """The reference time itself."""


@dataclass(frozen=True, slots=True)
class StartOf:
    expr: TimeExpr
    grain: Grain


@dataclass(frozen=True, slots=True)
class Shift:
    expr: TimeExpr
    amount: int
    grain: Grain


@dataclass(frozen=True, slots=True)
class Intersect:
    """A day-level expression narrowed to a time of day.

    When the base is the bare reference and the time of day has already
    passed, the next day is used ("at 3am" said at 4:30).
    """

    expr: TimeExpr
    time_of_day: TimeOfDay


@dataclass(frozen=True, slots=True)
class RelativeWeekday:
    """Weekday (0 = Monday) relative to the reference day.

    offset 0 is the next occurrence after today (today itself only when
    ``inclusive``), +1 is that weekday in the following calendar week and
    -1 is the previous occurrence.
    """

    weekday: int
    offset: int = 0
    inclusive: bool = False


@dataclass(frozen=True, slots=True)
class MonthDay:
    """Month and day without a year: the next occurrence from today."""

    month: int
    day: int


@dataclass(frozen=True, slots=True)
class Absolute:
    year: int
    month: int
    day: int


type TimeExpr = Reference | StartOf | Shift | Intersect | RelativeWeekday | MonthDay | Absolute


@dataclass(frozen=True, slots=True)
class TimeData:
    """Node value of the time dimension: an expression plus its grain."""

    expr: TimeExpr
    grain: Grain

    dimension = Dimension.TIME


# ---------------------------------------------------------------------------
# Calendar arithmetic
# ---------------------------------------------------------------------------

def make_date(year: int, month: int, day: int) -> datetime:
    try:
        return datetime(year, month, day)
    except ValueError as exc:
        raise ResolutionError(f"invalid date {year:04d}-{month:02d}-{day:02d}") from exc


def start_of(value: datetime, grain: Grain) -> datetime:
    match grain:
        case Grain.SECOND:
            return value.replace(microsecond=0)
        case Grain.MINUTE:
            return value.replace(second=0, microsecond=0)
        case Grain.HOUR:
            return value.replace(minute=0, second=0, microsecond=0)
        case Grain.DAY:
            return value.replace(hour=0, minute=0, second=0, microsecond=0)
        case Grain.WEEK:
            day = start_of(value, Grain.DAY)
            return day - timedelta(days=day.weekday())
        case Grain.MONTH:
            return start_of(value, Grain.DAY).replace(day=1)
        case Grain.QUARTER:
            first = 3 * ((value.month - 1) // 3) + 1
            return start_of(value, Grain.DAY).replace(month=first, day=1)
        case Grain.YEAR:
            return start_of(value, Grain.DAY).replace(month=1, day=1)
    raise ValueError(f"unknown grain {grain!r}")


def add_months(value: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day (Jan 31 + 1 month = Feb 28)."""
    year = value.year + (value.month - 1 + months) // 12
    if not 1 <= year <= 9999:
        raise ResolutionError(f"year out of range: {year}")
    return value + relativedelta(months=months)


def shift(value: datetime, amount: int, grain: Grain) -> datetime:
    if grain in _MONTHS_PER:
        return add_months(value, amount * _MONTHS_PER[grain])
    try:
        return value + timedelta(seconds=amount * FIXED_SECONDS[grain])
    except OverflowError as exc:
        raise ResolutionError(f"shift by {amount} {grain} overflows") from exc


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

@functools.singledispatch
def normalize(expr: object, reference: datetime) -> datetime:
    """Evaluate a time expression against ``reference``."""
    raise TypeError(f"not a time expression: {type(expr).__name__}")


@normalize.register(Reference)
def _(expr: Reference, reference: datetime) -> datetime:
    return reference


@normalize.register(StartOf)
def _(expr: StartOf, reference: datetime) -> datetime:
    return start_of(normalize(expr.expr, reference), expr.grain)


@normalize.register(Shift)
def _(expr: Shift, reference: datetime) -> datetime:
    return shift(normalize(expr.expr, reference), expr.amount, expr.grain)


@normalize.register(Intersect)
def _(expr: Intersect, reference: datetime) -> datetime:
    base = start_of(normalize(expr.expr, reference), Grain.DAY)
    tod = expr.time_of_day
    value = base.replace(hour=tod.hour, minute=tod.minute)
    if isinstance(expr.expr, Reference) and value < reference:
        value += timedelta(days=1)
    return value


@normalize.register(RelativeWeekday)
def _(expr: RelativeWeekday, reference: datetime) -> datetime:
    today = start_of(reference, Grain.DAY)
    ahead = (expr.weekday - today.weekday()) % 7
    if ahead == 0 and expr.inclusive and expr.offset == 0:
        return today
    upcoming = today + timedelta(days=ahead or 7)
    if expr.offset == 0:
        return upcoming
    if expr.offset > 0:
        return start_of(today, Grain.WEEK) + timedelta(days=7 * expr.offset + expr.weekday)
    return today - timedelta(days=7) if ahead == 0 else upcoming - timedelta(days=7)


@normalize.register(MonthDay)
def _(expr: MonthDay, reference: datetime) -> datetime:
    # Feb 29 is a valid month/day; it resolves to the next leap year.
    make_date(2000, expr.month, expr.day)
    today = start_of(reference, Grain.DAY)
    for year in range(today.year, today.year + 9):
        try:
            candidate = datetime(year, expr.month, expr.day)
        except ValueError:
            continue
        if candidate >= today:
            return candidate
    raise ResolutionError(f"no upcoming date for {expr.month}/{expr.day}")


@normalize.register(Absolute)
def _(expr: Absolute, reference: datetime) -> datetime:
    return make_date(expr.year, expr.month, expr.day)


def format_time(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat()
