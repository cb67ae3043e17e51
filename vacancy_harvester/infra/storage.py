"""SQLite connection management for the vacancy store."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock

_SCHEMA = """
CREATE TABLE IF NOT EXISTS vacancies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    company TEXT NOT NULL,
    salary TEXT,
    requirements TEXT,
    city TEXT NOT NULL,
    published_at TEXT NOT NULL,
    source_url TEXT NOT NULL,
    source TEXT NOT NULL,
    ingested_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_source ON vacancies(source);
CREATE INDEX IF NOT EXISTS idx_city ON vacancies(city);
CREATE INDEX IF NOT EXISTS idx_company ON vacancies(company);
CREATE INDEX IF NOT EXISTS idx_published_at ON vacancies(published_at);
CREATE UNIQUE INDEX IF NOT EXISTS idx_source_url ON vacancies(source_url);
"""


@dataclass
class _Database:
    connection: sqlite3.Connection
    lock: Lock = field(default_factory=Lock)


def _open(path: Path) -> sqlite3.Connection:
    path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(path, check_same_thread=False)
    connection.row_factory = sqlite3.Row
    with connection:
        connection.executescript(_SCHEMA)
    return connection


class SQLiteManager:
    """One shared connection per database file, created with the schema in place.

    Connections are used from worker threads, so each file also has a lock that
    callers hold around every statement or transaction.
    """

    def __init__(self) -> None:
        self._databases: dict[Path, _Database] = {}
        self._guard = Lock()

    def _database(self, path: Path) -> _Database:
        with self._guard:
            database = self._databases.get(path)
            if database is None:
                database = _Database(_open(path))
                self._databases[path] = database
            return database

    def connect(self, path: Path) -> sqlite3.Connection:
        return self._database(path).connection

    def lock_for(self, path: Path) -> Lock:
        return self._database(path).lock

    def reset(self, path: Path) -> None:
        """Close the connection to ``path`` and delete the file."""

        with self._guard:
            database = self._databases.pop(path, None)
        if database is not None:
            database.connection.close()
        path.unlink(missing_ok=True)

    def close_all(self) -> None:
        with self._guard:
            databases = list(self._databases.values())
            self._databases.clear()
        for database in databases:
            database.connection.close()


__all__ = ["SQLiteManager"]
