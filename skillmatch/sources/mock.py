"""Mock listing source for local runs and fallback when no real source is enabled."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from skillmatch.log import get_logger
from skillmatch.models import ListingRecord
from skillmatch.sources.base import ListingSource

log = get_logger(__name__)

_SAMPLES: list[dict[str, str]] = [
    {
        "url": "https://freelance-start.com/jobs/detail/1001",
        "title": "Java backend engineer for a payments platform",
        "detail": "Build and operate Spring Boot microservices on AWS.",
        "price": "700,000 JPY / month",
        "period": "Long term",
        "skills": "Java, Spring Boot, AWS, PostgreSQL",
        "source": "freelance-start.com",
    },
    {
        "url": "https://freelance-start.com/jobs/detail/1002",
        "title": "React frontend developer",
        "detail": "Rebuild an admin console in React and TypeScript.",
        "price": "650,000 JPY / month",
        "period": "",
        "skills": "React, TypeScript, Next.js",
        "source": "freelance-start.com",
    },
    {
        "url": "https://www.lancers.jp/work/detail/2001",
        "title": "Python data pipeline maintenance",
        "detail": "Maintain Airflow DAGs that load data into BigQuery.",
        "price": "Budget 300,000 JPY",
        "period": "3 months",
        "skills": "Python, Airflow, GCP",
        "source": "lancers.jp",
    },
    {
        "url": "https://www.lancers.jp/work/detail/2002",
        "title": "Go API server development",
        "detail": "Design REST APIs in Go; Docker and Kubernetes experience welcome.",
        "price": "Budget 500,000 JPY",
        "period": "6 months",
        "skills": "Go, Docker, Kubernetes",
        "source": "lancers.jp",
    },
    {
        "url": "https://crowdworks.jp/public/jobs/3001",
        "title": "Full-stack engineer (TypeScript / Node.js)",
        "detail": "Own features end to end, from React screens to Node.js APIs on AWS.",
        "price": "Hourly 4,000 JPY",
        "period": "",
        "skills": "TypeScript, Node.js, React, AWS",
        "source": "crowdworks.jp",
    },
    {
        "url": "https://crowdworks.jp/public/jobs/3002",
        "title": "Infrastructure automation with Terraform",
        "detail": "Codify AWS infrastructure; some Java batch jobs to migrate.",
        "price": "Fixed 400,000 JPY",
        "period": "2 months",
        "skills": "Terraform, AWS",
        "source": "crowdworks.jp",
    },
]


class MockSource(ListingSource):
    name = "mock"

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now

    def fetch(self, limit: int = 15) -> list[ListingRecord]:
        now = self.now or datetime.now(timezone.utc)
        log.info("MockSource generating sample listings")
        records = [
            ListingRecord(posted_at=now - timedelta(hours=i), **sample)
            for i, sample in enumerate(_SAMPLES)
        ]
        return records[:limit]
