"""Habr Career vacancy list extractor."""

from __future__ import annotations

from typing import Iterator

from ...models import JobRecord, SourceName
from ..fetcher import ParsedDocument
from ..router import SOURCE_ORIGINS
from .selectors import ListingLayout, css_all, extract_listing, first_anchor, first_text

HABR_LAYOUT = ListingLayout(
    source=SourceName.HABR,
    origin=SOURCE_ORIGINS[SourceName.HABR],
    containers=(
        css_all("div.job-card"),
        css_all("div[class*='job']"),
        css_all("div.vacancy-card"),
    ),
    title=(
        first_anchor("a.job-card__title"),
        first_anchor("a[class*='title']"),
        first_anchor("h3 a, h2 a, h4 a"),
        first_anchor("a[href*='/vacancies/']"),
    ),
    company=(
        first_text("div.job-card__company-name"),
        first_text("div[class*='company']"),
        first_text("span[class*='company']"),
    ),
    salary=(
        first_text("div.job-card__salary"),
        first_text("div[class*='salary']"),
        first_text("span[class*='salary']"),
    ),
    city=(
        first_text("div.job-card__meta-item"),
        first_text("div[class*='meta']"),
        first_text("span[class*='meta']"),
    ),
)


def extract_habr(doc: ParsedDocument) -> Iterator[JobRecord]:
    yield from extract_listing(doc, HABR_LAYOUT)


__all__ = ["HABR_LAYOUT", "extract_habr"]
