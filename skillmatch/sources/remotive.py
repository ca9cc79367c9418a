"""Remotive: free API for remote tech jobs (no API key required).

Docs: https://remotive.com/api/remote-jobs
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import requests

from skillmatch.config import IngestSettings
from skillmatch.ingest import host_name, strip_html, structure_description
from skillmatch.log import get_logger
from skillmatch.models import ListingRecord
from skillmatch.retry import retry
from skillmatch.sources.base import ListingSource

log = get_logger(__name__)

API_URL = "https://remotive.com/api/remote-jobs"


def _parse_published(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            log.debug("Unparseable Remotive publication_date %r", value)
    return datetime.now(timezone.utc)


class RemotiveSource(ListingSource):
    name = "remotive"

    def __init__(
        self,
        category: str = "software-dev",
        search: str | None = None,
        settings: IngestSettings | None = None,
    ) -> None:
        self.category = category
        self.search = search
        self.settings = settings or IngestSettings()
        self.source = host_name(API_URL)

    @retry(max_attempts=3, base_delay=0.5, retryable=(requests.RequestException, OSError))
    def _fetch(self, limit: int) -> list[dict]:
        params: dict = {"limit": limit}
        if self.category:
            params["category"] = self.category
        if self.search:
            params["search"] = self.search

        r = requests.get(API_URL, params=params, timeout=10)
        r.raise_for_status()
        return r.json().get("jobs", [])

    def _to_record(self, hit: dict) -> ListingRecord | None:
        url = hit.get("url") or ""
        title = " ".join((hit.get("title") or "").split())
        if not url or not title:
            return None

        fields = structure_description(strip_html(hit.get("description", "")), self.settings)
        extras = [
            f"Company: {hit['company_name']}" if hit.get("company_name") else "",
            f"Location: {hit['candidate_required_location']}" if hit.get("candidate_required_location") else "",
            fields["other"],
        ]
        tags = [str(t) for t in hit.get("tags") or []]
        skills = ", ".join(tags) or fields["skills"]
        job_type = (hit.get("job_type") or "").replace("_", " ")

        return ListingRecord(
            url=url,
            title=title,
            detail=fields["detail"],
            price=hit.get("salary") or fields["price"],
            period=job_type or fields["period"],
            skills=skills[: self.settings.skills_max_chars],
            source=self.source,
            posted_at=_parse_published(hit.get("publication_date")),
            other="\n".join(e for e in extras if e)[: self.settings.other_max_chars],
        )

    def fetch(self, limit: int = 15) -> list[ListingRecord]:
        hits = self._fetch(limit)
        records = [r for r in (self._to_record(h) for h in hits[:limit]) if r is not None]
        log.info("Remotive category=%r returned %d listings", self.category, len(records))
        return records
