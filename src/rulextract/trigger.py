"""Trigger scanning and rule activation.

``TriggerInfo`` is built once per catalog and indexes every rule by the
literal phrases and coarse buckets it needs. Per input, one cheap scan of the
case-folded text yields the phrases and buckets present, and only rules whose
gates are satisfied take part in matching.

Gates (all must hold):
  buckets:          rule has none, or at least one is present in the input
  trigger_phrases:  rule has none, or at least one occurs in the input
  required_phrases: every one occurs in the input

The scan is heuristic: false positives only cost matching time, since the
full patterns still have to match. Words are runs of letters, so digits
never hide a phrase ("5hours" yields "hours").
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from rulextract.rules import Bucket, Rule


_WORD_RE = re.compile(r"[^\W\d_]+")
_AMPM_RE = re.compile(r"(?<![a-z])[ap]\.?m\b|\d\s*[ap]\b")
_ORDINAL_DIGITS_RE = re.compile(r"\d+(?:st|nd|rd|th)\b")

_WEEKDAY_WORDS = frozenset({
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "mon", "tue", "tues", "wed", "thu", "thurs", "fri",
})
_MONTH_WORDS = frozenset({
    "january", "february", "march", "april", "may", "june", "july", "august",
    "september", "october", "november", "december",
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept", "oct", "nov", "dec",
})
_ORDINAL_WORDS = frozenset({
    "first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth",
    "ninth", "tenth", "eleventh", "twelfth", "twentieth", "thirtieth",
})


@dataclass(frozen=True, slots=True)
class TriggerScan:
    """Phrases and buckets found in one input."""

    phrases: frozenset[str]
    buckets: frozenset[Bucket]


@dataclass(frozen=True, slots=True)
class ActiveRules:
    """Rules selected for one input, partitioned by kind (catalog order)."""

    regex_rules: tuple[Rule, ...]
    predicate_rules: tuple[Rule, ...]
    scan: TriggerScan
    total_rules: int

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(sorted(r.name for r in (*self.regex_rules, *self.predicate_rules)))

    def __len__(self) -> int:
        return len(self.regex_rules) + len(self.predicate_rules)


def _freeze_index(index: dict[str, set[str]] | dict[Bucket, set[str]]) -> Mapping:
    return MappingProxyType({k: frozenset(v) for k, v in sorted(index.items())})


@dataclass(frozen=True, slots=True)
class TriggerInfo:
    """Immutable per-catalog activation index, shareable across parses."""

    rules: tuple[Rule, ...]
    phrase_index: Mapping[str, frozenset[str]]
    bucket_index: Mapping[Bucket, frozenset[str]]
    required_index: Mapping[str, frozenset[str]]
    always_on: frozenset[str]

    @classmethod
    def build(cls, rules: Iterable[Rule]) -> TriggerInfo:
        rules = tuple(rules)
        phrase_index: dict[str, set[str]] = {}
        bucket_index: dict[Bucket, set[str]] = {}
        required_index: dict[str, set[str]] = {}
        always_on: set[str] = set()
        for rule in rules:
            for phrase in rule.phrases:
                phrase_index.setdefault(phrase, set()).add(rule.name)
            for phrase in rule.required:
                required_index.setdefault(phrase, set()).add(rule.name)
            for bucket in rule.buckets:
                bucket_index.setdefault(bucket, set()).add(rule.name)
            if not rule.phrases and not rule.buckets and not rule.required:
                always_on.add(rule.name)
        return cls(
            rules=rules,
            phrase_index=_freeze_index(phrase_index),
            bucket_index=_freeze_index(bucket_index),
            required_index=_freeze_index(required_index),
            always_on=frozenset(always_on),
        )

    @property
    def known_phrases(self) -> frozenset[str]:
        return frozenset(self.phrase_index) | frozenset(self.required_index)

    def scan(self, text: str) -> TriggerScan:
        """Find registered phrases and coarse buckets in ``text``."""
        lower = text.casefold()
        words = _WORD_RE.findall(lower)
        word_set = frozenset(words)
        joined = f" {' '.join(words)} "

        found: set[str] = set()
        for phrase in self.known_phrases:
            if " " in phrase:
                if f" {phrase} " in joined:
                    found.add(phrase)
            elif phrase in word_set:
                found.add(phrase)

        return TriggerScan(phrases=frozenset(found), buckets=detect_buckets(lower, word_set))

    def activate(self, text: str) -> ActiveRules:
        """Select the rules whose gates are satisfied by ``text``."""
        scan = self.scan(text)
        phrase_hits: set[str] = set()
        for phrase in scan.phrases:
            phrase_hits.update(self.phrase_index.get(phrase, ()))
        bucket_hits: set[str] = set()
        for bucket in scan.buckets:
            bucket_hits.update(self.bucket_index.get(bucket, ()))

        regex_rules: list[Rule] = []
        predicate_rules: list[Rule] = []
        for rule in self.rules:
            if rule.name not in self.always_on:
                if rule.buckets and rule.name not in bucket_hits:
                    continue
                if rule.phrases and rule.name not in phrase_hits:
                    continue
                if not all(p in scan.phrases for p in rule.required):
                    continue
            if rule.kind == "regex":
                regex_rules.append(rule)
            else:
                predicate_rules.append(rule)

        return ActiveRules(
            regex_rules=tuple(regex_rules),
            predicate_rules=tuple(predicate_rules),
            scan=scan,
            total_rules=len(self.rules),
        )


def detect_buckets(lower: str, words: frozenset[str]) -> frozenset[Bucket]:
    """Coarse features of already case-folded text."""
    buckets: set[Bucket] = set()
    if any(ch.isdigit() for ch in lower):
        buckets.add(Bucket.DIGITS)
        if _ORDINAL_DIGITS_RE.search(lower):
            buckets.add(Bucket.ORDINAL)
    if ":" in lower:
        buckets.add(Bucket.COLON)
    if _AMPM_RE.search(lower):
        buckets.add(Bucket.AMPM)
    if words & _WEEKDAY_WORDS:
        buckets.add(Bucket.WEEKDAY)
    if words & _MONTH_WORDS:
        buckets.add(Bucket.MONTH)
    if words & _ORDINAL_WORDS:
        buckets.add(Bucket.ORDINAL)
    return frozenset(buckets)
