"""Command-line entry point: parse text and print the entities as JSON.

Usage:
    rulextract "tomorrow at 5pm" --reference 2013-02-12T04:30:00
    rulextract --input phrases.txt --dim time --dim range
    rulextract "from 2:30 - 5:50" --details --debug-rules

Structured JSON output goes to stdout; human messages and logs go to stderr.
Input files hold one text per line, or one {"text": ...} object per line
when they end in ``.jsonl``.
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from rulextract import configure_logging
from rulextract.api import ParseDetails, parse_result_to_dict, parse_verbose_with, parse_with
from rulextract.config import get_settings
from rulextract.context import Context, Options
from rulextract.errors import RulextractError
from rulextract.io_utils import dumps, load_jsonl
from rulextract.types import Dimension


log = logging.getLogger(__name__)


def _read_texts(path: Path) -> list[str]:
    if path.suffix == ".jsonl":
        return [str(record["text"]) for record in load_jsonl(path)]
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def _details_to_dict(details: ParseDetails) -> dict[str, Any]:
    return {
        "total": details.total,
        "saturation_total": details.saturation_total,
        "resolve": details.resolve,
        "node_count": details.node_count,
        "capped": details.capped,
        "active_rules": list(details.active_rules),
        "passes": [
            {
                "index": p.pass_index,
                "produced": p.produced,
                "rules_considered": p.rules_considered,
                "rules_seeded": p.rules_seeded,
                "duration": p.duration,
            }
            for p in details.saturation
        ],
        "candidates": [
            {"name": c.name, "body": c.body, "start": c.start, "end": c.end, "rule": c.rule}
            for c in details.all_candidates
        ],
    }


def run(args: argparse.Namespace) -> list[dict[str, Any]]:
    settings = get_settings()
    context = Context.create(args.reference, locale=args.locale, settings=settings)
    options = Options(
        profiling=args.profile or settings.profile_regex,
        debug_rules=True if args.debug_rules else None,
        dimensions=frozenset(Dimension(d) for d in args.dim) if args.dim else None,
    )

    texts: list[str] = []
    if args.text is not None:
        texts.append(args.text)
    if args.input is not None:
        loaded = _read_texts(Path(args.input))
        print(f"Loaded {len(loaded)} texts from {args.input}", file=sys.stderr)
        texts.extend(loaded)

    payloads: list[dict[str, Any]] = []
    for text in texts:
        if args.details:
            result, details = parse_verbose_with(text, context, options, settings=settings)
            payload = parse_result_to_dict(result, include_timing=args.timing)
            payload["details"] = _details_to_dict(details)
        else:
            result = parse_with(text, context, options, settings=settings)
            payload = parse_result_to_dict(result, include_timing=args.timing)
        payloads.append(payload)
    return payloads


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulextract",
        description="Extract numerals, ordinals, durations, times and ranges from text.",
    )
    parser.add_argument("text", nargs="?", default=None, help="Text to parse")
    parser.add_argument("--input", default=None, help="File of texts (one per line, or .jsonl with a text field)")
    parser.add_argument(
        "--reference",
        default=None,
        help="Reference time (ISO-8601); defaults to RULEXTRACT_REFERENCE_TIME, then now",
    )
    parser.add_argument("--locale", default="en_US", help="Locale (default en_US)")
    parser.add_argument(
        "--dim",
        action="append",
        choices=[str(d) for d in Dimension if d is not Dimension.REGEX_MATCH],
        help="Only report this dimension (repeatable)",
    )
    parser.add_argument("--details", action="store_true", help="Include passes and pre-filter candidates")
    parser.add_argument("--profile", action="store_true", help="Include per-rule regex profile")
    parser.add_argument("--timing", action="store_true", help="Include wall-clock timings")
    parser.add_argument("--debug-rules", action="store_true", help="Log rule traces to stderr")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.text is None and args.input is None:
        parser.error("give a text or --input")
    configure_logging(verbose=args.verbose or args.debug_rules)

    try:
        payloads = run(args)
    except RulextractError as exc:
        log.error("%s", exc)
        return 2

    out = payloads[0] if args.text is not None and args.input is None else payloads
    sys.stdout.buffer.write(dumps(out, pretty=True))
    sys.stdout.buffer.write(b"\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
