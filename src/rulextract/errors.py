"""Error taxonomy for the extraction engine.

Catalog and context problems are fatal and raised before any parse runs.
Resolution problems are local to one candidate and never escape a parse.
"""

from __future__ import annotations


class RulextractError(Exception):
    """Base class for all engine errors."""


class RuleDefinitionError(RulextractError, ValueError):
    """A rule or catalog is malformed (raised at catalog compile time)."""

    def __init__(self, message: str, *, rule_name: str = "") -> None:
        self.rule_name = rule_name
        prefix = f"rule {rule_name!r}: " if rule_name else ""
        super().__init__(f"{prefix}{message}")


class InvalidContextError(RulextractError, ValueError):
    """The parse context or engine settings cannot be used."""


class ResolutionError(RulextractError):
    """One candidate node cannot be turned into a supported value.

    Raised by productions and resolvers; the engine drops the candidate.
    """
