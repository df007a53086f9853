"""Resolution of stash nodes and span containment filtering.

Resolution is per dimension: each dimension registers a resolver that turns
a node value into a JSON-friendly value. Filtering happens after resolution,
so unresolvable nodes can never suppress a resolvable, more specific parse.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from rulextract.context import Context, Options
from rulextract.errors import ResolutionError
from rulextract.types import DIMENSION_PRIORITY, Dimension, Node, ResolvedToken


log = logging.getLogger(__name__)

type Resolver = Callable[[Node, Context], Any]

_RESOLVERS: dict[Dimension, Resolver] = {}


def register_resolver(dimension: Dimension) -> Callable[[Resolver], Resolver]:
    """Register the resolver for ``dimension`` (replaces an earlier one)."""
    if dimension is Dimension.REGEX_MATCH:
        raise ValueError("regex_match nodes are intermediate and cannot be resolved")

    def decorator(fn: Resolver) -> Resolver:
        _RESOLVERS[dimension] = fn
        return fn

    return decorator


def resolver_for(dimension: Dimension) -> Resolver | None:
    return _RESOLVERS.get(dimension)


def resolve_node(node: Node, text: str, context: Context, *, trace: bool = False) -> ResolvedToken | None:
    """Resolve one node, or ``None`` when it has no supported value."""
    resolver = _RESOLVERS.get(node.dimension)
    if resolver is None:
        return None
    try:
        value = resolver(node, context)
    except ResolutionError as exc:
        log.debug("dropping %s node %s from %r: %s", node.dimension, node.span, node.rule_name, exc)
        return None
    if value is None:
        return None
    token = ResolvedToken(
        span=node.span,
        dimension=node.dimension,
        value=value,
        rule_name=node.rule_name,
        node=node,
        body=node.span.slice(text),
    )
    if trace:
        log.debug(
            "[resolve] dim=%s span=%d..%d rule=%r value=%r",
            node.dimension, node.span.start, node.span.end, node.rule_name, value,
        )
    return token


def resolve_candidates(
    nodes: Iterable[Node],
    text: str,
    context: Context,
    options: Options,
    *,
    priority: Callable[[str], int] = lambda name: 0,
    trace: bool = False,
) -> list[ResolvedToken]:
    """Resolve, filter by requested dimensions and sort.

    Order: start asc, length desc, dimension priority, rule priority desc,
    rule name, discovery order.
    """
    keyed: list[tuple[tuple[int, int, int, int, str, int], ResolvedToken]] = []
    for discovery, node in enumerate(nodes):
        if options.dimensions is not None and node.dimension not in options.dimensions:
            continue
        token = resolve_node(node, text, context, trace=trace)
        if token is None:
            continue
        sort_key = (
            token.span.start,
            -token.span.length,
            DIMENSION_PRIORITY[token.dimension],
            -priority(token.rule_name),
            token.rule_name,
            discovery,
        )
        keyed.append((sort_key, token))
    keyed.sort(key=lambda pair: pair[0])
    return [token for _, token in keyed]


def filter_contained(tokens: Iterable[ResolvedToken], *, trace: bool = False) -> list[ResolvedToken]:
    """Drop every candidate whose span lies within an already-kept span.

    Input must be in ``resolve_candidates`` order: every kept span starts at
    or before the current one, so containment reduces to comparing against
    the largest kept end. Partial overlaps keep both candidates.
    """
    kept: list[ResolvedToken] = []
    max_end = -1
    for token in tokens:
        if token.span.end <= max_end:
            if trace:
                log.debug(
                    "[filter] dropped dim=%s span=%d..%d rule=%r (contained)",
                    token.dimension, token.span.start, token.span.end, token.rule_name,
                )
            continue
        kept.append(token)
        max_end = token.span.end
    return kept
