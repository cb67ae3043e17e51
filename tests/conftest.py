"""Shared fixtures: isolated home directory, config, storage and HTML builders."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

import pytest

from vacancy_harvester.config import ConfigLocator, ConfigRepository, GlobalConfig
from vacancy_harvester.engine import ParsedDocument
from vacancy_harvester.infra import SQLiteManager, VacancyRepository
from vacancy_harvester.models import JobRecord, SourceName

FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def harvester_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("VACANCY_HARVESTER_HOME", str(home))
    return home


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def config_repository(harvester_home: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator())


@pytest.fixture
def global_config() -> GlobalConfig:
    return GlobalConfig.model_validate(
        {
            "ingest": {
                "thread_pool_workers": 4,
                "task_deadline_seconds": 5,
                "hydrate_seen_on_start": True,
            },
            "fetch": {"timeout_ms": 2000},
        }
    )


@pytest.fixture
def sqlite_manager() -> Iterable[SQLiteManager]:
    manager = SQLiteManager()
    yield manager
    manager.close_all()


@pytest.fixture
def repository(tmp_path: Path, sqlite_manager: SQLiteManager) -> VacancyRepository:
    return VacancyRepository(
        sqlite_manager,
        tmp_path / "data" / "vacancies.db",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def make_record() -> Callable[..., JobRecord]:
    def _factory(index: int = 1, **overrides) -> JobRecord:
        payload = {
            "title": f"Java Developer {index}",
            "source_url": f"https://hh.ru/vacancy/{index}",
            "source_name": SourceName.HH,
            "company": "Acme",
            "salary_text": "от 200 000 ₽",
            "requirements_text": "Java 17, Spring",
            "city": "Москва",
            "published_at": FIXED_NOW,
        }
        payload.update(overrides)
        return JobRecord(**payload)

    return _factory


def hh_listing(count: int, *, start: int = 1) -> str:
    """Render an hh.ru-like search page with ``count`` vacancy cards."""

    cards = []
    for index in range(start, start + count):
        cards.append(
            f"""
            <div data-qa="vacancy-serp__vacancy">
              <h3><a data-qa="vacancy-serp__vacancy-title" href="/vacancy/{index}">Java Developer {index}</a></h3>
              <a data-qa="vacancy-serp__vacancy-employer" href="/employer/{index}">Company {index}</a>
              <span data-qa="vacancy-serp__vacancy-compensation">от {index}00 000 ₽</span>
              <div data-qa="vacancy-serp__vacancy-address">Москва, метро Арбатская</div>
              <span data-qa="vacancy-serp__vacancy-date">сегодня</span>
              <div data-qa="vacancy-serp__vacancy_snippet_responsibility">Java 17, Spring Boot</div>
            </div>
            """
        )
    return f"<html><head><title>Вакансии</title></head><body>{''.join(cards)}</body></html>"


@pytest.fixture
def hh_page() -> Callable[..., ParsedDocument]:
    def _factory(count: int = 3, *, start: int = 1, url: str = "https://hh.ru/search/vacancy?text=java") -> ParsedDocument:
        return ParsedDocument.from_html(hh_listing(count, start=start), url)

    return _factory


@pytest.fixture
def listing_html() -> Callable[..., str]:
    return hh_listing
