from .base import ListingSource
from .mock import MockSource
from .remotive import RemotiveSource

from skillmatch.config import IngestSettings
from skillmatch.log import get_logger

log = get_logger(__name__)

__all__ = ["ListingSource", "MockSource", "RemotiveSource", "get_sources"]


def _enabled(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def get_sources(env_getter, settings: IngestSettings | None = None) -> list[ListingSource]:
    sources: list[ListingSource] = []

    if not _enabled(env_getter("DISABLE_REMOTIVE")):
        category = env_getter("REMOTIVE_CATEGORY") or "software-dev"
        sources.append(RemotiveSource(category=category, settings=settings))
        log.info("Registered source: Remotive (category=%s)", category)

    if _enabled(env_getter("ENABLE_MOCK_SOURCE")) or not sources:
        sources.append(MockSource())
        log.info("Registered source: MockSource")

    return sources
