"""Infra layer utilities (SQLite storage, vacancy repository)."""

from .repository import VacancyRepository, VacancyStore
from .storage import SQLiteManager

__all__ = ["SQLiteManager", "VacancyRepository", "VacancyStore"]
