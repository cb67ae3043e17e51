"""Vacancy repository: keyed writes for ingestion, queries for the read path."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Protocol

from ..errors import PersistenceError
from ..models import JobRecord, SourceName
from .storage import SQLiteManager

_SORT_COLUMNS = {
    "date": "published_at",
    "title": "title",
    "company": "company",
    "city": "city",
}

_INSERT = """
INSERT OR IGNORE INTO vacancies(
    title, company, salary, requirements, city, published_at, source_url, source, ingested_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_COLUMNS = (
    "title, company, salary, requirements, city, published_at, source_url, source, ingested_at"
)


class VacancyStore(Protocol):
    """What the ingestion path needs from storage."""

    def save_all(self, records: Iterable[JobRecord]) -> list[JobRecord]:
        ...

    def count_all(self) -> int:
        ...

    def all_source_urls(self) -> list[str]:
        ...


def _utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VacancyRepository:
    """SQLite-backed vacancy store keyed by ``source_url``."""

    def __init__(
        self,
        manager: SQLiteManager,
        db_path: Path,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.manager = manager
        self.db_path = db_path
        self._clock = clock
        self._conn = manager.connect(db_path)
        self._lock = manager.lock_for(db_path)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------
    def save_all(self, records: Iterable[JobRecord]) -> list[JobRecord]:
        """Insert records in one transaction; return only the newly stored ones.

        Rows whose ``source_url`` already exists are ignored, so concurrent or
        repeated saves of the same vacancy never produce a second row.
        """

        pending = list(records)
        if not pending:
            return []
        ingested_at = self._clock()
        persisted: list[JobRecord] = []
        try:
            with self._lock, self._conn:
                for record in pending:
                    stamped = replace(record, ingested_at=ingested_at)
                    cursor = self._conn.execute(_INSERT, self._to_row(stamped))
                    if cursor.rowcount == 1:
                        persisted.append(stamped)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to save {len(pending)} vacancies: {exc}") from exc
        return persisted

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------
    def count_all(self) -> int:
        return int(self._scalar("SELECT count(*) FROM vacancies"))

    def count_by_source(self) -> dict[str, int]:
        rows = self._query("SELECT source, count(*) AS total FROM vacancies GROUP BY source ORDER BY source")
        return {row["source"]: row["total"] for row in rows}

    def all_source_urls(self) -> list[str]:
        return [row["source_url"] for row in self._query("SELECT source_url FROM vacancies ORDER BY id")]

    def find_all(self, limit: int | None = None) -> list[JobRecord]:
        return self.find_sorted("id", "asc", limit=limit)

    def find_by_source(self, source: SourceName | str) -> list[JobRecord]:
        return self.find_filtered(source=source)

    def find_by_city(self, city: str) -> list[JobRecord]:
        return self.find_filtered(city=city)

    def find_by_company(self, company: str) -> list[JobRecord]:
        return self._records(
            f"SELECT {_COLUMNS} FROM vacancies WHERE company = ? ORDER BY id", (company,)
        )

    def find_recent(self, since: datetime) -> list[JobRecord]:
        return self._records(
            f"SELECT {_COLUMNS} FROM vacancies WHERE published_at >= ? ORDER BY published_at DESC",
            (_utc_iso(since),),
        )

    def find_filtered(
        self,
        source: SourceName | str | None = None,
        city: str | None = None,
        company: str | None = None,
        limit: int | None = None,
        sort_by: str = "id",
        order: str = "asc",
    ) -> list[JobRecord]:
        """Equality on source and city, substring match on company; ``None`` ignores a filter.

        ``sort_by`` accepts date, title, company or city; anything else sorts by id.
        """

        source_value = source.value if isinstance(source, SourceName) else source
        column = _SORT_COLUMNS.get(sort_by.lower(), "id")
        direction = "DESC" if order.lower() == "desc" else "ASC"
        sql = (
            f"SELECT {_COLUMNS} FROM vacancies WHERE "
            "(? IS NULL OR source = ?) AND "
            "(? IS NULL OR city = ?) AND "
            "(? IS NULL OR company LIKE '%' || ? || '%') "
            f"ORDER BY {column} {direction}, id {direction}"
        )
        params: list[object] = [source_value, source_value, city, city, company, company]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return self._records(sql, params)

    def find_sorted(self, sort_by: str, order: str = "asc", limit: int | None = None) -> list[JobRecord]:
        return self.find_filtered(limit=limit, sort_by=sort_by, order=order)

    def distinct_cities(self) -> list[str]:
        return [row["city"] for row in self._query("SELECT DISTINCT city FROM vacancies ORDER BY city")]

    def distinct_sources(self) -> list[str]:
        return [
            row["source"] for row in self._query("SELECT DISTINCT source FROM vacancies ORDER BY source")
        ]

    # ------------------------------------------------------------------
    def _query(self, sql: str, params: Iterable[object] = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, tuple(params)).fetchall()

    def _scalar(self, sql: str) -> object:
        with self._lock:
            return self._conn.execute(sql).fetchone()[0]

    def _records(self, sql: str, params: Iterable[object] = ()) -> list[JobRecord]:
        return [self._from_row(row) for row in self._query(sql, params)]

    @staticmethod
    def _to_row(record: JobRecord) -> tuple[object, ...]:
        published_at = record.published_at or record.ingested_at
        return (
            record.title,
            record.company,
            record.salary_text,
            record.requirements_text,
            record.city,
            _utc_iso(published_at),
            record.source_url,
            record.source_name.value,
            _utc_iso(record.ingested_at),
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> JobRecord:
        return JobRecord(
            title=row["title"],
            company=row["company"],
            salary_text=row["salary"],
            requirements_text=row["requirements"],
            city=row["city"],
            published_at=datetime.fromisoformat(row["published_at"]),
            source_url=row["source_url"],
            source_name=SourceName(row["source"]),
            ingested_at=datetime.fromisoformat(row["ingested_at"]),
        )


__all__ = ["VacancyRepository", "VacancyStore"]
