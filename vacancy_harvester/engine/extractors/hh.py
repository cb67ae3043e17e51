"""hh.ru search result extractor."""

from __future__ import annotations

from typing import Iterator

from ...models import JobRecord, SourceName
from ..fetcher import ParsedDocument
from ..router import SOURCE_ORIGINS
from .selectors import ListingLayout, css_all, extract_listing, first_anchor, first_text

HH_LAYOUT = ListingLayout(
    source=SourceName.HH,
    origin=SOURCE_ORIGINS[SourceName.HH],
    containers=(
        css_all("div[data-qa='vacancy-serp__vacancy']"),
        css_all("div.vacancy-serp-item"),
        css_all("div[class*='vacancy']"),
    ),
    title=(
        first_anchor("a[data-qa='vacancy-serp__vacancy-title']"),
        first_anchor("a[data-qa*='title']"),
        first_anchor("a.bloko-link"),
        first_anchor("h3 a, h2 a"),
    ),
    company=(
        first_text("a[data-qa='vacancy-serp__vacancy-employer']"),
        first_text("a[data-qa*='employer']"),
        first_text("span[data-qa*='employer']"),
    ),
    salary=(
        first_text("span[data-qa='vacancy-serp__vacancy-compensation']"),
        first_text("span[data-qa*='compensation']"),
        first_text("span[class*='salary']"),
    ),
    city=(
        first_text("div[data-qa='vacancy-serp__vacancy-address']"),
        first_text("span[data-qa*='address']"),
        first_text("div[data-qa*='address']"),
    ),
    published=(
        first_text("span[data-qa='vacancy-serp__vacancy-date']"),
        first_text("span[data-qa*='date']"),
    ),
    requirements=(
        first_text("div[data-qa='vacancy-serp__vacancy_snippet_responsibility']"),
        first_text("div[data-qa*='responsibility']"),
    ),
)


def extract_hh(doc: ParsedDocument) -> Iterator[JobRecord]:
    yield from extract_listing(doc, HH_LAYOUT)


__all__ = ["HH_LAYOUT", "extract_hh"]
