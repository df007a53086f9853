"""Bundled English catalog: numerals, ordinals, durations, times, ranges.

Importing this package registers a resolver for every dimension.
"""

from rulextract.dimensions import duration, numeral, ordinal, range, time
from rulextract.rules import Rule


def default_rules() -> list[Rule]:
    """Rules of the bundled catalog, in catalog order."""
    return [
        *numeral.rules(),
        *ordinal.rules(),
        *duration.rules(),
        *time.rules(),
        *range.rules(),
    ]


__all__ = ["default_rules", "duration", "numeral", "ordinal", "range", "time"]
