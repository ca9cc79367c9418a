"""Source diversification and final ordering of scored candidates.

Ordering everywhere is ``(score desc, match_count desc, posted_at desc)``
with ``url`` ascending as the last tie-break, the same rule the SQL ranking
query applies, so both implementations agree row for row.
"""
from __future__ import annotations

from typing import Callable, Iterable, TypeVar

from skillmatch.config import SearchSettings
from skillmatch.log import get_logger
from skillmatch.models import ListingRecord, ScoredCandidate

log = get_logger(__name__)

DEFAULT_SETTINGS = SearchSettings()

T = TypeVar("T")


def rank_candidates(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    # Two stable passes: url ascending first, then the descending keys.
    by_url = sorted(candidates, key=lambda c: c.record.url)
    return sorted(
        by_url,
        key=lambda c: (c.score, c.match_count, c.record.posted_at),
        reverse=True,
    )


def rank_by_recency(records: Iterable[ListingRecord]) -> list[ListingRecord]:
    by_url = sorted(records, key=lambda r: r.url)
    return sorted(by_url, key=lambda r: r.posted_at, reverse=True)


def cap_per_source(
    items: Iterable[T],
    cap: int,
    ranker: Callable[[Iterable[T]], list[T]],
    source_of: Callable[[T], str],
) -> list[T]:
    """Keep the top ``cap`` items of every source under ``ranker``'s order."""
    partitions: dict[str, list[T]] = {}
    for item in items:
        partitions.setdefault(source_of(item), []).append(item)

    kept: list[T] = []
    for source, members in partitions.items():
        ranked = ranker(members)
        if len(ranked) > cap:
            log.debug("Source %r capped: %d → %d", source, len(ranked), cap)
        kept.extend(ranked[:cap])
    return kept


def diversify_by_source(
    candidates: Iterable[ScoredCandidate],
    cap: int = DEFAULT_SETTINGS.per_source_cap,
) -> list[ScoredCandidate]:
    return cap_per_source(candidates, cap, rank_candidates, lambda c: c.record.source)


def assemble_results(
    candidates: Iterable[ScoredCandidate],
    limit: int = DEFAULT_SETTINGS.result_cap,
) -> list[ListingRecord]:
    """Global order over the diversified survivors, truncated to ``limit``."""
    ranked = rank_candidates(candidates)
    return [c.record for c in ranked[:limit]]
