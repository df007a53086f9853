"""Caller-supplied parse configuration: Context and Options."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from rulextract.config import Settings, get_settings
from rulextract.errors import InvalidContextError
from rulextract.types import Dimension


SUPPORTED_LOCALES: frozenset[str] = frozenset({"en", "en_US", "en_GB", "en_CA", "en_AU"})
DEFAULT_LOCALE = "en_US"


@dataclass(frozen=True, slots=True)
class Context:
    """Environment needed to resolve relative expressions ("tomorrow")."""

    reference_time: datetime
    locale: str = DEFAULT_LOCALE

    def __post_init__(self) -> None:
        if not isinstance(self.reference_time, datetime):
            raise InvalidContextError(
                f"reference_time must be a datetime, got {type(self.reference_time).__name__}",
            )
        if self.reference_time.tzinfo is not None:
            raise InvalidContextError("reference_time must be naive; use Context.create()")
        if self.locale not in SUPPORTED_LOCALES:
            raise InvalidContextError(f"unsupported locale {self.locale!r}")

    @classmethod
    def create(
        cls,
        reference_time: datetime | str | None = None,
        *,
        locale: str = DEFAULT_LOCALE,
        settings: Settings | None = None,
    ) -> Context:
        """Build a validated context.

        ``reference_time`` may be an ISO-8601 string; aware datetimes are
        reduced to their wall-clock time. ``None`` falls back to
        ``RULEXTRACT_REFERENCE_TIME`` and then to the current local time.
        """
        if reference_time is None:
            settings = settings or get_settings()
            reference_time = settings.reference_time or datetime.now()
        elif isinstance(reference_time, str):
            try:
                reference_time = datetime.fromisoformat(reference_time.strip())
            except ValueError as exc:
                raise InvalidContextError(
                    f"malformed reference time {reference_time!r}",
                ) from exc
        elif not isinstance(reference_time, datetime):
            raise InvalidContextError(
                f"reference_time must be a datetime or ISO string, got {type(reference_time).__name__}",
            )
        return cls(reference_time=reference_time.replace(tzinfo=None), locale=locale)

    @classmethod
    def default(cls) -> Context:
        return cls.create()


@dataclass(frozen=True, slots=True)
class Options:
    """Flags that affect one parse.

    ``debug_rules=None`` defers to ``RULEXTRACT_DEBUG_RULES``. ``dimensions``
    restricts the resolved output to the listed dimensions.
    """

    profiling: bool = False
    debug_rules: bool | None = None
    dimensions: frozenset[Dimension] | None = None

    def __post_init__(self) -> None:
        if self.dimensions is not None:
            dims = frozenset(Dimension(d) for d in self.dimensions)
            object.__setattr__(self, "dimensions", dims)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        dimensions: Iterable[Dimension | str] | None = None,
    ) -> Options:
        settings = settings or get_settings()
        return cls(
            profiling=settings.profile_regex,
            debug_rules=settings.debug_rules,
            dimensions=frozenset(Dimension(d) for d in dimensions) if dimensions is not None else None,
        )

    def tracing(self, settings: Settings | None = None) -> bool:
        if self.debug_rules is not None:
            return self.debug_rules
        return (settings or get_settings()).debug_rules
