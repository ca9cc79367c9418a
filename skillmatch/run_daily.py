"""
Refresh the listing store once a day and purge stale listings.

Usage:
  - Cron: 0 6 * * * cd /path/to/project && .venv/bin/python -m skillmatch.run_daily --once
  - Or keep this running in the background: python -m skillmatch.run_daily
"""
from __future__ import annotations

import sys
import time
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from skillmatch.config import get_env, load_database_settings, load_ingest_settings
from skillmatch.errors import SkillMatchError
from skillmatch.ingest import purge_stale, run_ingest
from skillmatch.log import get_logger
from skillmatch.sources import get_sources
from skillmatch.store import ListingStore, build_store

log = get_logger(__name__)

TARGET_TZ = ZoneInfo(get_env("DAILY_RUN_TZ") or "Asia/Tokyo")
TARGET_HOUR = int(get_env("DAILY_RUN_HOUR") or "6")
TARGET_MINUTE = 0


def run_once(store: ListingStore | None = None, sources=None) -> dict[str, Any]:
    settings = load_ingest_settings()
    owns_store = store is None
    store = store or build_store(load_database_settings())
    try:
        store.create_schema()
        if sources is None:
            sources = get_sources(get_env, settings)
        ingested = run_ingest(store, sources, settings)
        purged = purge_stale(store, settings)
    finally:
        if owns_store:
            store.dispose()

    log.info(
        "Daily run complete: collected=%d, written=%d, purged=%d, remaining=%d",
        ingested.collected, ingested.written, purged.deleted, purged.remaining,
    )
    return {
        "collected": ingested.collected,
        "written": ingested.written,
        "deleted": purged.deleted,
        "remaining": purged.remaining,
    }


def next_run(now: datetime | None = None) -> datetime:
    now = now or datetime.now(TARGET_TZ)
    target = now.replace(hour=TARGET_HOUR, minute=TARGET_MINUTE, second=0, microsecond=0)
    if now >= target:
        target = target + timedelta(days=1)
    return target


def main() -> None:
    log.info("Scheduler: run daily at %d:%02d %s", TARGET_HOUR, TARGET_MINUTE, TARGET_TZ.key)
    while True:
        target = next_run()
        wait_secs = (target - datetime.now(TARGET_TZ)).total_seconds()
        log.info("Next run at %s (in %.1f hours)", target, wait_secs / 3600)
        time.sleep(max(wait_secs, 0))
        try:
            run_once()
        except SkillMatchError as exc:
            log.error("Daily run failed: %s", exc)


if __name__ == "__main__":
    if "--once" in sys.argv:
        try:
            run_once()
        except SkillMatchError as exc:
            log.error("Daily run failed: %s", exc)
            sys.exit(1)
        sys.exit(0)
    main()
