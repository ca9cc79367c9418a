"""Search strategies over the listing store.

``PrioritySearch`` retrieves candidates and ranks them in-process,
``SqlPrioritySearch`` pushes the same ranking into a single statement, and
``LegacySearch`` is the older unweighted search kept for compatibility.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from skillmatch.config import SearchSettings
from skillmatch.log import get_logger
from skillmatch.models import ListingRecord, Skill
from skillmatch.queries import scored_ranking_query
from skillmatch.ranking import assemble_results, cap_per_source, diversify_by_source, rank_by_recency
from skillmatch.scorer import prioritize_skills, score_and_filter
from skillmatch.store import ListingStore

log = get_logger(__name__)


class SearchStrategy(ABC):
    name: str

    def __init__(self, store: ListingStore, settings: SearchSettings | None = None) -> None:
        self.store = store
        self.settings = settings or SearchSettings()

    @abstractmethod
    def search(
        self, key_skills: Sequence[str], auxiliary: Sequence[Skill] | None = None,
    ) -> list[ListingRecord]:
        pass


class PrioritySearch(SearchStrategy):
    name = "priority"

    def search(
        self, key_skills: Sequence[str], auxiliary: Sequence[Skill] | None = None,
    ) -> list[ListingRecord]:
        skills = prioritize_skills(key_skills, auxiliary, self.settings.max_priority_skills)
        if not skills:
            log.info("No key skills given, skipping search")
            return []

        candidates = self.store.find_candidates(skills)
        relevant = score_and_filter(candidates, skills, self.settings)
        diversified = diversify_by_source(relevant, self.settings.per_source_cap)
        results = assemble_results(diversified, self.settings.result_cap)
        log.info(
            "Priority search %s: candidates=%d, relevant=%d, diversified=%d, returned=%d",
            skills, len(candidates), len(relevant), len(diversified), len(results),
        )
        return results


class SqlPrioritySearch(SearchStrategy):
    name = "priority-sql"

    def search(
        self, key_skills: Sequence[str], auxiliary: Sequence[Skill] | None = None,
    ) -> list[ListingRecord]:
        skills = prioritize_skills(key_skills, auxiliary, self.settings.max_priority_skills)
        if not skills:
            log.info("No key skills given, skipping search")
            return []

        results = self.store.fetch(scored_ranking_query(skills, self.settings))
        log.info("Priority search (sql) %s: returned=%d", skills, len(results))
        return results


class LegacySearch(SearchStrategy):
    """Unweighted OR search: newest first, 4 per source, 12 in total."""

    name = "legacy"

    def search(
        self, key_skills: Sequence[str], auxiliary: Sequence[Skill] | None = None,
    ) -> list[ListingRecord]:
        terms = [s.name for s in auxiliary or [] if s.name]
        if not terms:
            terms = [s for s in key_skills or [] if s]
        if not terms:
            return []

        candidates = self.store.find_candidates(terms)
        capped = cap_per_source(
            candidates, self.settings.legacy_per_source_cap, rank_by_recency, lambda r: r.source,
        )
        results = rank_by_recency(capped)[: self.settings.legacy_result_cap]
        log.info("Legacy search over %d term(s): candidates=%d, returned=%d", len(terms), len(candidates), len(results))
        return results


STRATEGIES: dict[str, type[SearchStrategy]] = {
    PrioritySearch.name: PrioritySearch,
    SqlPrioritySearch.name: SqlPrioritySearch,
    LegacySearch.name: LegacySearch,
}


def get_strategy(
    name: str, store: ListingStore, settings: SearchSettings | None = None,
) -> SearchStrategy:
    try:
        cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown search strategy {name!r}; choose from {', '.join(STRATEGIES)}") from None
    return cls(store, settings)
