"""Score listings against a user's prioritized key skills."""
from __future__ import annotations

from typing import Iterable, Sequence

from skillmatch.config import SearchSettings
from skillmatch.log import get_logger
from skillmatch.models import ListingRecord, ScoredCandidate, Skill

log = get_logger(__name__)

DEFAULT_SETTINGS = SearchSettings()


def _normalize(s: str) -> str:
    return (s or "").lower()


def contains_term(text: str, term: str) -> bool:
    """Case-insensitive substring test; not word-boundary aware ("java" hits "JavaScript")."""
    return _normalize(term) in _normalize(text)


def prioritize_skills(
    key_skills: Sequence[str],
    auxiliary: Sequence[Skill] | None = None,
    limit: int = DEFAULT_SETTINGS.max_priority_skills,
) -> list[str]:
    """Head of the caller's priority list.

    ``auxiliary`` is accepted for future weighting and never substitutes for
    an empty primary list.
    """
    return list(key_skills or [])[:limit]


def _field_hits(record: ListingRecord, term: str) -> tuple[bool, bool, bool]:
    return (
        contains_term(record.title, term),
        contains_term(record.skills, term),
        contains_term(record.detail, term),
    )


def score_listing(
    record: ListingRecord,
    skills: Sequence[str],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> ScoredCandidate:
    """Weighted field score plus a bonus per distinct matched skill.

    Per skill: title +5, skills field +3, detail +1 (all that apply).
    Each skill hitting any field adds one to ``match_count``; the final score
    adds ``match_count * 2`` on top of the field weights.
    """
    base = 0
    match_count = 0
    for term in skills:
        in_title, in_skills, in_detail = _field_hits(record, term)
        if in_title:
            base += settings.title_weight
        if in_skills:
            base += settings.skills_weight
        if in_detail:
            base += settings.detail_weight
        if in_title or in_skills or in_detail:
            match_count += 1
    return ScoredCandidate(
        record=record,
        score=base + match_count * settings.breadth_bonus,
        match_count=match_count,
    )


def is_relevant(candidate: ScoredCandidate, settings: SearchSettings = DEFAULT_SETTINGS) -> bool:
    return candidate.score >= settings.min_score


def filter_relevant(
    candidates: Iterable[ScoredCandidate],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> list[ScoredCandidate]:
    return [c for c in candidates if is_relevant(c, settings)]


def score_and_filter(
    records: Sequence[ListingRecord],
    skills: Sequence[str],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> list[ScoredCandidate]:
    scored = [score_listing(r, skills, settings) for r in records]
    kept = filter_relevant(scored, settings)
    log.info("Scored %d listings → %d at or above score %d", len(records), len(kept), settings.min_score)
    return kept
