"""Listing table definition and the SQL statements the search strategies run.

The physical table keeps the column names of the shared ``tbl_project``
schema; every column is exposed under a readable key (``listings.c.title``
for ``prottl`` and so on).
"""
from __future__ import annotations

import operator
from functools import reduce
from typing import Sequence

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    MetaData,
    Table,
    Text,
    case,
    func,
    or_,
    select,
    type_coerce,
)
from sqlalchemy.sql import Select

from skillmatch.config import SearchSettings

metadata = MetaData()

listings = Table(
    "tbl_project",
    metadata,
    Column("prourl", Text, primary_key=True, key="url"),
    Column("prottl", Text, key="title"),
    Column("prodtl", Text, key="detail"),
    Column("proprc", Text, key="price"),
    Column("proprd", Text, nullable=True, key="period"),
    Column("proot1", Text, key="skills"),
    Column("proot2", Text, nullable=True, key="other"),
    Column("prostn", Text, key="source"),
    Column("procrt", DateTime(timezone=True), nullable=False, server_default=func.now(), key="posted_at"),
)

Index("ix_tbl_project_prostn_procrt", listings.c.source, listings.c.posted_at)

RECORD_KEYS: tuple[str, ...] = (
    "url", "title", "detail", "price", "period", "skills", "other", "source", "posted_at",
)


def record_columns(source) -> list:
    """Labelled record columns of ``source`` (the table or a CTE built from it).

    ``posted_at`` is selected without the DateTime result processor; the
    store parses it per row in ``decode_row``.
    """
    columns = []
    for key in RECORD_KEYS:
        column = source.c[key]
        if key == "posted_at":
            column = type_coerce(column, Text)
        columns.append(column.label(key))
    return columns


def _term_hits(term: str) -> tuple:
    return (
        listings.c.title.icontains(term, autoescape=True),
        listings.c.skills.icontains(term, autoescape=True),
        listings.c.detail.icontains(term, autoescape=True),
    )


def candidate_filter(terms: Sequence[str]):
    """OR over every term and every scored field."""
    return or_(*[hit for term in terms for hit in _term_hits(term)])


def candidate_query(terms: Sequence[str]) -> Select:
    return select(*record_columns(listings)).where(candidate_filter(terms))


def all_listings_query() -> Select:
    return select(*record_columns(listings)).order_by(
        listings.c.posted_at.desc(), listings.c.url.asc(),
    )


def _ranking_order(source) -> tuple:
    return (
        source.c.match_score.desc(),
        source.c.match_count.desc(),
        source.c.posted_at.desc(),
        source.c.url.asc(),
    )


def scored_ranking_query(terms: Sequence[str], settings: SearchSettings) -> Select:
    """Scoring, threshold, per-source cap and global cap as one statement.

    Mirrors ``scorer.score_listing`` + ``ranking`` exactly; both must change
    together.
    """
    field_scores = []
    matches = []
    for title_hit, skills_hit, detail_hit in (_term_hits(t) for t in terms):
        field_scores.append(
            case((title_hit, settings.title_weight), else_=0)
            + case((skills_hit, settings.skills_weight), else_=0)
            + case((detail_hit, settings.detail_weight), else_=0)
        )
        matches.append(case((or_(title_hit, skills_hit, detail_hit), 1), else_=0))

    base_score = reduce(operator.add, field_scores)
    match_count = reduce(operator.add, matches)

    scored = (
        select(
            *record_columns(listings),
            (base_score + match_count * settings.breadth_bonus).label("match_score"),
            match_count.label("match_count"),
        )
        .where(candidate_filter(terms))
        .cte("scored_projects")
    )

    ranked = (
        select(
            *scored.c,
            func.row_number()
            .over(partition_by=scored.c.source, order_by=_ranking_order(scored))
            .label("rn"),
        )
        .where(scored.c.match_score >= settings.min_score)
        .cte("ranked_projects")
    )

    return (
        select(*record_columns(ranked))
        .where(ranked.c.rn <= settings.per_source_cap)
        .order_by(*_ranking_order(ranked))
        .limit(settings.result_cap)
    )
