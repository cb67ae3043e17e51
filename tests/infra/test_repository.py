from __future__ import annotations

import sqlite3
import threading
from datetime import timedelta

import pytest

from vacancy_harvester.errors import PersistenceError
from vacancy_harvester.infra import SQLiteManager, VacancyRepository
from vacancy_harvester.models import SourceName


def test_save_all_inserts_and_stamps(repository: VacancyRepository, make_record, fixed_now) -> None:
    saved = repository.save_all([make_record(1), make_record(2)])

    assert [r.source_url for r in saved] == ["https://hh.ru/vacancy/1", "https://hh.ru/vacancy/2"]
    assert all(r.ingested_at == fixed_now for r in saved)
    assert repository.count_all() == 2

    stored = repository.find_all()
    assert stored[0].title == "Java Developer 1"
    assert stored[0].published_at == fixed_now
    assert stored[0].ingested_at == fixed_now
    assert stored[0].source_name is SourceName.HH


def test_save_all_ignores_existing_source_urls(repository: VacancyRepository, make_record) -> None:
    repository.save_all([make_record(1)])

    saved = repository.save_all([make_record(1, title="Changed"), make_record(2)])

    assert [r.source_url for r in saved] == ["https://hh.ru/vacancy/2"]
    assert repository.count_all() == 2
    assert repository.find_all()[0].title == "Java Developer 1"


def test_save_all_empty_is_noop(repository: VacancyRepository) -> None:
    assert repository.save_all([]) == []
    assert repository.count_all() == 0


def test_concurrent_saves_of_same_record_store_one_row(repository: VacancyRepository, make_record) -> None:
    results: list[int] = []
    lock = threading.Lock()

    def worker() -> None:
        saved = repository.save_all([make_record(7)])
        with lock:
            results.append(len(saved))

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(results) == 1
    assert repository.count_all() == 1


def test_storage_errors_become_persistence_errors(repository: VacancyRepository, make_record) -> None:
    with repository._lock:
        repository._conn.execute("DROP TABLE vacancies")
    with pytest.raises(PersistenceError) as excinfo:
        repository.save_all([make_record(1)])
    assert isinstance(excinfo.value.__cause__, sqlite3.Error)
    assert excinfo.value.kind == "persistence"


def test_queries(repository: VacancyRepository, make_record, fixed_now) -> None:
    repository.save_all(
        [
            make_record(1, company="Acme", city="Москва", published_at=fixed_now - timedelta(days=3)),
            make_record(2, company="Acme Labs", city="Казань", published_at=fixed_now - timedelta(days=1)),
            make_record(
                3,
                source_url="https://www.superjob.ru/vakansii/3.html",
                source_name=SourceName.SUPERJOB,
                company="Globex",
                city="Москва",
                published_at=fixed_now,
            ),
        ]
    )

    assert repository.count_by_source() == {"hh": 2, "superjob": 1}
    assert repository.all_source_urls() == [
        "https://hh.ru/vacancy/1",
        "https://hh.ru/vacancy/2",
        "https://www.superjob.ru/vakansii/3.html",
    ]
    assert [r.title for r in repository.find_by_source(SourceName.SUPERJOB)] == ["Java Developer 3"]
    assert len(repository.find_by_city("Москва")) == 2
    assert [r.company for r in repository.find_by_company("Acme")] == ["Acme"]
    assert [r.company for r in repository.find_filtered(company="Acme")] == ["Acme", "Acme Labs"]
    assert [r.company for r in repository.find_filtered(source="hh", city="Казань")] == ["Acme Labs"]
    assert len(repository.find_filtered(limit=2)) == 2
    recent = repository.find_recent(fixed_now - timedelta(days=2))
    assert [r.title for r in recent] == ["Java Developer 3", "Java Developer 2"]
    assert [r.title for r in repository.find_sorted("date", "desc")] == [
        "Java Developer 3",
        "Java Developer 2",
        "Java Developer 1",
    ]
    assert [r.company for r in repository.find_sorted("company", "asc", limit=2)] == ["Acme", "Acme Labs"]
    assert [r.title for r in repository.find_sorted("bogus")][0] == "Java Developer 1"
    assert repository.distinct_cities() == ["Казань", "Москва"]
    assert repository.distinct_sources() == ["hh", "superjob"]


def test_data_survives_reconnect(tmp_path, make_record) -> None:
    db_path = tmp_path / "reopen.db"
    first = SQLiteManager()
    VacancyRepository(first, db_path).save_all([make_record(1)])
    first.close_all()

    second = SQLiteManager()
    try:
        assert VacancyRepository(second, db_path).all_source_urls() == ["https://hh.ru/vacancy/1"]
    finally:
        second.close_all()


def test_reset_removes_database(tmp_path, make_record) -> None:
    manager = SQLiteManager()
    db_path = tmp_path / "reset.db"
    VacancyRepository(manager, db_path).save_all([make_record(1)])
    manager.reset(db_path)
    assert not db_path.exists()
    assert VacancyRepository(manager, db_path).count_all() == 0
    manager.close_all()
