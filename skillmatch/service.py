"""
Skill matching service.

Runs: analyze free text → prioritised key skills → search store → matched listings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from skillmatch.analyzer import analyze_skills
from skillmatch.config import load_database_settings, load_search_settings
from skillmatch.errors import QueryFailed
from skillmatch.log import get_logger
from skillmatch.models import AIAnalysis, ListingRecord, Skill
from skillmatch.search import PrioritySearch, SearchStrategy, get_strategy
from skillmatch.store import ListingStore, build_store

log = get_logger(__name__)


@dataclass
class ChatResult:
    analysis: AIAnalysis
    listings: list[ListingRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ai_analysis": self.analysis.to_dict(),
            "projects": [r.to_dict() for r in self.listings],
        }


class MatchService:
    def __init__(
        self,
        store: ListingStore,
        analyzer: Callable[[str], AIAnalysis] = analyze_skills,
        strategy: SearchStrategy | None = None,
    ) -> None:
        self.store = store
        self.analyzer = analyzer
        self.strategy = strategy or PrioritySearch(store)

    def chat(self, message: str) -> ChatResult:
        """Analyse a skill sheet and return the listings it matches.

        Analysis and storage errors propagate; nothing is partially returned.
        """
        analysis = self.analyzer(message)
        listings = self.search(analysis.key_skills, analysis.structured_skills)
        log.info("Chat matched %d listing(s) for key_skills=%s", len(listings), analysis.key_skills)
        return ChatResult(analysis=analysis, listings=listings)

    def search(
        self, key_skills: Sequence[str], auxiliary: Sequence[Skill] | None = None,
    ) -> list[ListingRecord]:
        return self.strategy.search(key_skills, auxiliary)

    def all_listings(self) -> list[ListingRecord]:
        records = self.store.all_listings()
        log.info("Fetched %d listing(s) for overview", len(records))
        return records

    def health(self) -> dict[str, Any]:
        ok = self.store.ping()
        count: int | None = None
        if ok:
            try:
                count = self.store.count()
            except QueryFailed as exc:
                log.warning("Listing count unavailable: %s", exc)
        return {"database": "ok" if ok else "unreachable", "listings": count}


def build_service(strategy_name: str = "priority") -> MatchService:
    store = build_store(load_database_settings())
    strategy = get_strategy(strategy_name, store, load_search_settings())
    log.info("Match service ready (strategy=%s)", strategy.name)
    return MatchService(store, strategy=strategy)
