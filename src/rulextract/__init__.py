"""Rule-based entity extraction by saturation.

Text is matched against a catalog of rules until no rule produces anything
new; the resulting candidates are resolved against a Context and filtered
so that no kept entity lies inside another.
"""

import logging
import sys

# Registers the resolvers of the bundled dimensions.
import rulextract.dimensions  # noqa: F401
from rulextract.api import (
    NodeSummary,
    ParseDetails,
    ParseResult,
    SaturationPass,
    entity_to_dict,
    parse,
    parse_result_to_dict,
    parse_verbose_with,
    parse_with,
)
from rulextract.catalog import RuleCatalog, default_catalog
from rulextract.config import Settings, get_settings
from rulextract.context import Context, Options
from rulextract.errors import (
    InvalidContextError,
    ResolutionError,
    RuleDefinitionError,
    RulextractError,
)
from rulextract.parser import Parser
from rulextract.profiling import RegexProfiler, RuleProfile
from rulextract.resolve import register_resolver
from rulextract.rules import Bucket, Match, Production, Rule, dim, predicate, regex
from rulextract.trigger import TriggerInfo
from rulextract.types import Dimension, Entity, Node, ResolvedToken, Span


def configure_logging(verbose: bool = False) -> None:
    """Send ``rulextract`` logs to stderr (DEBUG when ``verbose``)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


__all__ = [
    "Bucket",
    "Context",
    "Dimension",
    "Entity",
    "InvalidContextError",
    "Match",
    "Node",
    "NodeSummary",
    "Options",
    "ParseDetails",
    "ParseResult",
    "Parser",
    "Production",
    "RegexProfiler",
    "ResolutionError",
    "ResolvedToken",
    "Rule",
    "RuleCatalog",
    "RuleDefinitionError",
    "RuleProfile",
    "RulextractError",
    "SaturationPass",
    "Settings",
    "Span",
    "TriggerInfo",
    "configure_logging",
    "default_catalog",
    "dim",
    "entity_to_dict",
    "get_settings",
    "parse",
    "parse_result_to_dict",
    "parse_verbose_with",
    "parse_with",
    "predicate",
    "register_resolver",
    "regex",
]
