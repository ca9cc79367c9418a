#!/usr/bin/env python3
"""Entry point to search stored listings by skills or by a free-text skill sheet."""
from __future__ import annotations

import argparse
import json
import sys

from skillmatch.errors import AnalysisQuotaExceeded, SkillMatchError
from skillmatch.log import configure_logging, get_logger
from skillmatch.search import STRATEGIES

log = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--skills", nargs="+", metavar="SKILL", help="key skills, most important first")
    group.add_argument("--message", help="free-text skill sheet, analysed before searching")
    parser.add_argument("--strategy", choices=sorted(STRATEGIES), default="priority")
    parser.add_argument("--json", action="store_true", help="print results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        configure_logging("DEBUG")

    from skillmatch.service import build_service

    try:
        service = build_service(args.strategy)
        if args.message:
            result = service.chat(args.message)
            analysis, listings = result.analysis, result.listings
        else:
            analysis, listings = None, service.search(args.skills)
    except AnalysisQuotaExceeded as exc:
        log.error("Analysis quota reached, try again later: %s", exc)
        return 1
    except SkillMatchError as exc:
        log.error("Search failed: %s", exc)
        return 1

    if args.json:
        payload = {"projects": [r.to_dict() for r in listings]}
        if analysis is not None:
            payload["ai_analysis"] = analysis.to_dict()
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    if analysis is not None:
        print(f"Key skills: {', '.join(analysis.key_skills) or '-'}")
        print(f"Role: {analysis.preferred_role or '-'}  Level: {analysis.experience_level or '-'}")
        print()
    if not listings:
        print("No matching listings.")
    for i, r in enumerate(listings, 1):
        print(f"{i:2d}. [{r.source}] {r.title}")
        print(f"    {r.url}  ({r.posted_at:%Y-%m-%d})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
