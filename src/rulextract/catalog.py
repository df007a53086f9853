"""Compiled, immutable rule catalogs."""

from __future__ import annotations

import functools
from collections.abc import Iterable, Iterator
from types import MappingProxyType

from rulextract.errors import RuleDefinitionError
from rulextract.rules import Rule
from rulextract.trigger import TriggerInfo


class RuleCatalog:
    """Validated rule set plus its trigger index.

    Construction validates every rule and raises ``RuleDefinitionError``
    before any parse can run. The catalog is read-only afterwards and can be
    shared between threads.
    """

    __slots__ = ("_rules", "_by_name", "_trigger_info", "name")

    def __init__(self, rules: Iterable[Rule], *, name: str = "custom") -> None:
        rules = tuple(rules)
        by_name: dict[str, Rule] = {}
        for rule in rules:
            if not isinstance(rule, Rule):
                raise RuleDefinitionError(f"catalog entries must be Rule, got {type(rule).__name__}")
            rule.validate()
            if rule.name in by_name:
                raise RuleDefinitionError("duplicate rule name in catalog", rule_name=rule.name)
            by_name[rule.name] = rule
        self.name = name
        self._rules = rules
        self._by_name = MappingProxyType(by_name)
        self._trigger_info = TriggerInfo.build(rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"RuleCatalog(name={self.name!r}, rules={len(self._rules)})"

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    @property
    def trigger_info(self) -> TriggerInfo:
        return self._trigger_info

    def get(self, name: str) -> Rule | None:
        return self._by_name.get(name)

    def priority(self, name: str) -> int:
        rule = self._by_name.get(name)
        return rule.priority if rule is not None else 0

    def extend(self, rules: Iterable[Rule], *, name: str | None = None) -> RuleCatalog:
        """Return a new catalog with ``rules`` appended."""
        return RuleCatalog((*self._rules, *rules), name=name or self.name)


@functools.cache
def default_catalog() -> RuleCatalog:
    """Bundled English catalog, built once per process."""
    from rulextract.dimensions import default_rules

    return RuleCatalog(default_rules(), name="en")
