"""Collect listings from sources, normalise them, and keep the store fresh.

Runs: fetch sources in parallel → dedupe by URL → upsert → purge stale rows.
"""
from __future__ import annotations

import html
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Sequence
from urllib.parse import urlsplit

from skillmatch.config import IngestSettings
from skillmatch.log import get_logger
from skillmatch.models import ListingRecord

if TYPE_CHECKING:
    from skillmatch.sources.base import ListingSource
    from skillmatch.store import ListingStore, PurgeResult

log = get_logger(__name__)

# Section heading keywords per target field; first matching field wins.
SECTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "price": ("単価", "予算", "報酬", "salary", "budget", "compensation", "rate"),
    "period": ("期間", "納期", "稼働時間", "period", "duration", "schedule"),
    "skills": ("スキル", "経験", "条件", "skill", "requirement", "qualification", "experience"),
    "detail": ("内容", "詳細", "概要", "職務", "description", "overview", "detail", "responsibilit"),
}

_HEADING_RE = re.compile(r"---(.*?)---")
_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_TAG_RE = re.compile(r"</?(?:p|div|br|li|ul|ol|h[1-6]|tr)\b[^>]*>", re.IGNORECASE)


@dataclass
class IngestResult:
    collected: int
    written: int


def strip_html(markup: str) -> str:
    text = _BLOCK_TAG_RE.sub("\n", markup or "")
    text = html.unescape(_TAG_RE.sub(" ", text))
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def host_name(url: str) -> str:
    host = urlsplit(url).hostname or url
    return host[4:] if host.startswith("www.") else host


def normalize_url_key(url: str) -> str:
    """scheme://host/path without query or trailing slash, for dedupe."""
    if not url or not isinstance(url, str):
        return ""
    raw = url.strip()
    parts = urlsplit(raw)
    if not parts.scheme or not parts.netloc:
        return raw.rstrip("/")
    return f"{parts.scheme}://{parts.netloc}{parts.path}".rstrip("/")


def _field_for_heading(heading: str) -> str:
    low = heading.lower()
    for field, keywords in SECTION_KEYWORDS.items():
        if any(kw.lower() in low for kw in keywords):
            return field
    return "other"


def structure_description(text: str, settings: IngestSettings | None = None) -> dict[str, str]:
    """Split ``--- heading ---`` sections into detail/price/period/skills/other."""
    settings = settings or IngestSettings()
    result = {"detail": "", "price": "", "period": "", "skills": "", "other": ""}
    if not text:
        return result

    sections = _HEADING_RE.split(text)
    # re.split keeps captured headings at odd indexes.
    initial = sections[0].strip()
    headings = sections[1::2]
    bodies = sections[2::2]

    if not headings:
        result["detail"] = initial
    else:
        for heading, body in zip(headings, bodies):
            heading, body = heading.strip(), body.strip()
            if not body:
                continue
            field = _field_for_heading(heading)
            section_text = f"{heading}\n{body}"
            result[field] = f"{result[field]}\n\n{section_text}" if result[field] else section_text

        if initial:
            if not result["detail"]:
                result["detail"] = initial
            else:
                result["other"] = f"{initial}\n\n{result['other']}".strip()

    limits = {
        "detail": settings.detail_max_chars,
        "price": settings.price_max_chars,
        "period": settings.period_max_chars,
        "skills": settings.skills_max_chars,
        "other": settings.other_max_chars,
    }
    return {k: v[: limits[k]].strip() for k, v in result.items()}


def dedupe_by_url(records: Sequence[ListingRecord]) -> list[ListingRecord]:
    """Normalise URLs and keep the last record seen for each."""
    by_key: dict[str, ListingRecord] = {}
    for record in records:
        key = normalize_url_key(record.url)
        if not key:
            continue
        by_key[key] = replace(record, url=key)
    log.info("Deduped listings: original=%d, deduped=%d", len(records), len(by_key))
    return list(by_key.values())


def _fetch_source(source: "ListingSource", limit: int) -> list[ListingRecord]:
    name = source.__class__.__name__
    try:
        results = source.fetch(limit=limit)
        log.info("[%s] returned %d listings", name, len(results))
        return results
    except Exception as exc:
        log.error("[%s] FAILED: %s", name, exc)
        return []


def collect_listings(
    sources: Sequence["ListingSource"], settings: IngestSettings | None = None,
) -> list[ListingRecord]:
    settings = settings or IngestSettings()
    if not sources:
        return []

    collected: dict[int, list[ListingRecord]] = {}
    log.info("Fetching %d source(s) in parallel...", len(sources))
    with ThreadPoolExecutor(max_workers=len(sources)) as pool:
        futures = {
            pool.submit(_fetch_source, src, settings.per_source_limit): i
            for i, src in enumerate(sources)
        }
        for future in as_completed(futures):
            collected[futures[future]] = future.result()

    # Source registration order decides who fills the total cap first.
    listings: list[ListingRecord] = []
    for i in range(len(sources)):
        listings.extend(collected.get(i, []))
    if len(listings) > settings.max_total_items:
        log.info("Collected %d listings, keeping %d", len(listings), settings.max_total_items)
    return listings[: settings.max_total_items]


def run_ingest(
    store: "ListingStore",
    sources: Sequence["ListingSource"],
    settings: IngestSettings | None = None,
) -> IngestResult:
    settings = settings or IngestSettings()
    collected = collect_listings(sources, settings)
    if not collected:
        log.info("No listings fetched")
        return IngestResult(collected=0, written=0)
    unique = dedupe_by_url(collected)
    written = store.upsert(unique, chunk_size=settings.chunk_size)
    return IngestResult(collected=len(collected), written=written)


def purge_stale(
    store: "ListingStore",
    settings: IngestSettings | None = None,
    now: datetime | None = None,
) -> "PurgeResult":
    settings = settings or IngestSettings()
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=settings.days_to_keep)
    log.info("Deleting listings older than %d days (before %s)", settings.days_to_keep, cutoff.isoformat())
    return store.purge_older_than(cutoff)
