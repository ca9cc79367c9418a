"""Shared builders for listing records and an in-memory store."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from skillmatch.models import ListingRecord
from skillmatch.store import ListingStore, use_unicode_lower

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_record(
    url: str,
    title: str = "",
    *,
    detail: str = "",
    skills: str = "",
    source: str = "siteA",
    hours_ago: int = 0,
    price: str = "",
    period: str = "",
    other: str = "",
) -> ListingRecord:
    return ListingRecord(
        url=url,
        title=title,
        detail=detail,
        price=price,
        period=period,
        skills=skills,
        source=source,
        posted_at=BASE_TIME - timedelta(hours=hours_ago),
        other=other,
    )


def memory_store() -> ListingStore:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    use_unicode_lower(engine)
    store = ListingStore(engine)
    store.create_schema()
    return store
