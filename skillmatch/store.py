"""Listing record store backed by SQLAlchemy.

The store never retries: a failed statement surfaces as ``QueryFailed`` and
a stream that breaks mid-way as ``IterationFailed``. Rows that cannot be
decoded are logged and skipped.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import create_engine, delete, event, func, select, text
from sqlalchemy.engine import Engine, Result
from sqlalchemy.exc import SQLAlchemyError

from skillmatch.config import DatabaseSettings
from skillmatch.errors import ConfigError, IterationFailed, QueryFailed, RowDecodeFailed
from skillmatch.log import get_logger
from skillmatch.models import ListingRecord
from skillmatch.queries import all_listings_query, candidate_query, listings, metadata

log = get_logger(__name__)

_REQUIRED_TEXT = ("url", "title", "detail", "price", "skills", "source")
_NULLABLE_TEXT = ("period", "other")


@dataclass
class PurgeResult:
    deleted: int
    remaining: int
    cutoff: datetime


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _decode_posted_at(value: Any) -> datetime:
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, str):
        try:
            return to_utc(datetime.fromisoformat(value.strip()))
        except ValueError as exc:
            raise RowDecodeFailed(f"posted_at is not a timestamp: {value!r}") from exc
    raise RowDecodeFailed(f"posted_at has unexpected type {type(value).__name__}")


def decode_row(row: Mapping[str, Any]) -> ListingRecord:
    """Turn one result row into a ListingRecord; NULL period becomes ''."""
    values: dict[str, Any] = {}
    for key in _REQUIRED_TEXT:
        value = row.get(key)
        if not isinstance(value, str):
            raise RowDecodeFailed(f"{key} is {'NULL' if value is None else type(value).__name__}", row)
        values[key] = value
    if not values["url"].strip():
        raise RowDecodeFailed("url is empty", row)

    for key in _NULLABLE_TEXT:
        value = row.get(key)
        if value is None:
            value = ""
        elif not isinstance(value, str):
            raise RowDecodeFailed(f"{key} has unexpected type {type(value).__name__}", row)
        values[key] = value

    try:
        values["posted_at"] = _decode_posted_at(row.get("posted_at"))
    except RowDecodeFailed as exc:
        exc.row = row
        raise
    return ListingRecord(**values)


def _decode_all(result: Result) -> list[ListingRecord]:
    records: list[ListingRecord] = []
    rows_read = 0
    rows = iter(result)
    while True:
        try:
            row = next(rows)
        except StopIteration:
            break
        except SQLAlchemyError as exc:
            if rows_read == 0:
                raise QueryFailed(f"listing query failed while reading results: {exc}") from exc
            raise IterationFailed(
                f"result stream failed after {rows_read} row(s): {exc}", rows_read=rows_read,
            ) from exc
        rows_read += 1
        try:
            records.append(decode_row(row._mapping))
        except RowDecodeFailed as exc:
            log.warning("Skipping undecodable listing row (%s): %s", row._mapping.get("url"), exc)
    if rows_read != len(records):
        log.info("Decoded %d of %d listing rows", len(records), rows_read)
    return records


def _to_row(record: ListingRecord) -> dict[str, Any]:
    return {
        "url": record.url,
        "title": record.title,
        "detail": record.detail,
        "price": record.price,
        "period": record.period or None,
        "skills": record.skills,
        "other": record.other or None,
        "source": record.source,
        # SQLite drops tzinfo on write, so store UTC everywhere.
        "posted_at": to_utc(record.posted_at),
    }


class ListingStore:
    """Read/write access to listing records through an injected engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        metadata.create_all(self._engine)

    def fetch(self, statement) -> list[ListingRecord]:
        """Run one SELECT yielding record columns; all-or-nothing."""
        try:
            with self._engine.connect() as conn:
                result = conn.execute(statement)
                return _decode_all(result)
        except SQLAlchemyError as exc:
            log.error("Listing query failed: %s", exc)
            raise QueryFailed(f"database query failed: {exc}") from exc

    def find_candidates(self, terms: Sequence[str]) -> list[ListingRecord]:
        """Every listing whose title, skills or detail contains any term."""
        if not terms:
            return []
        records = self.fetch(candidate_query(terms))
        log.debug("Candidate query for %d term(s) returned %d listings", len(terms), len(records))
        return records

    def all_listings(self) -> list[ListingRecord]:
        return self.fetch(all_listings_query())

    def count(self) -> int:
        try:
            with self._engine.connect() as conn:
                return int(conn.execute(select(func.count()).select_from(listings)).scalar_one())
        except SQLAlchemyError as exc:
            raise QueryFailed(f"count failed: {exc}") from exc

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1")).scalar()
            log.debug("Database ping ok")
            return True
        except SQLAlchemyError as exc:
            log.error("Database ping failed: %s", exc)
            return False

    def _upsert_statement(self):
        dialect = self._engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise ConfigError(f"Upsert is not supported for dialect {dialect!r}")
        stmt = insert(listings)
        # posted_at keeps the first-seen time so purging ages from first ingestion.
        updates = {
            col: stmt.excluded[col.key]
            for col in listings.columns
            if col.key not in ("url", "posted_at")
        }
        return stmt.on_conflict_do_update(index_elements=[listings.c.url], set_=updates)

    def upsert(self, records: Iterable[ListingRecord], chunk_size: int = 100) -> int:
        """Insert or update by URL in chunks; a failed chunk retries row by row."""
        rows = [_to_row(r) for r in records]
        statement = self._upsert_statement()
        written = 0
        for start in range(0, len(rows), chunk_size):
            chunk = rows[start:start + chunk_size]
            try:
                with self._engine.begin() as conn:
                    conn.execute(statement, chunk)
                written += len(chunk)
            except SQLAlchemyError as exc:
                log.warning("Chunk upsert failed, falling back to per-row: %s", exc)
                for row in chunk:
                    try:
                        with self._engine.begin() as conn:
                            conn.execute(statement, [row])
                        written += 1
                    except SQLAlchemyError as row_exc:
                        log.error("Upsert failed for %s: %s", row["url"], row_exc)
        log.info("Upsert finished: %d of %d rows written", written, len(rows))
        return written

    def purge_older_than(self, cutoff: datetime) -> PurgeResult:
        cutoff = to_utc(cutoff)
        try:
            with self._engine.begin() as conn:
                deleted = conn.execute(
                    delete(listings).where(listings.c.posted_at < cutoff)
                ).rowcount
                remaining = conn.execute(select(func.count()).select_from(listings)).scalar_one()
        except SQLAlchemyError as exc:
            log.error("Purge failed: %s", exc)
            raise QueryFailed(f"purge failed: {exc}") from exc
        log.info("Purged %d listings older than %s; %d remain", deleted, cutoff.isoformat(), remaining)
        return PurgeResult(deleted=int(deleted or 0), remaining=int(remaining), cutoff=cutoff)

    def dispose(self) -> None:
        self._engine.dispose()
        log.info("Database connection pool closed")


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def use_unicode_lower(engine: Engine) -> None:
    """Replace SQLite's ASCII-only lower() so candidate matching agrees with str.lower()."""

    @event.listens_for(engine, "connect")
    def _register(dbapi_connection, _record):
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def create_store_engine(settings: DatabaseSettings) -> Engine:
    settings.validate()
    url = settings.url()
    options: dict[str, Any] = {"pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_recycle=settings.pool_recycle,
            pool_timeout=settings.pool_timeout,
        )
    engine = create_engine(url, **options)
    if engine.dialect.name == "sqlite":
        use_unicode_lower(engine)
    log.info("Database engine created (%s)", settings.safe_description())
    return engine


def build_store(settings: DatabaseSettings) -> ListingStore:
    return ListingStore(create_store_engine(settings))
