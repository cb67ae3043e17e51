"""SuperJob search result extractor.

SuperJob ships hashed class names that change between deploys, so the layout
ends with looser fallbacks: any ``article``/``item`` block as a container,
any anchor as a title, and text scans for currency markers and city names.
"""

from __future__ import annotations

from typing import Iterator

from ...models import JobRecord, SourceName
from ..fetcher import ParsedDocument
from ..router import SOURCE_ORIGINS
from .selectors import (
    AMOUNT,
    CURRENCY_MARKERS,
    KNOWN_CITIES,
    ListingLayout,
    css_all,
    extract_listing,
    first_anchor,
    first_text,
    own_text_containing,
)

SUPERJOB_LAYOUT = ListingLayout(
    source=SourceName.SUPERJOB,
    origin=SOURCE_ORIGINS[SourceName.SUPERJOB],
    containers=(
        css_all("div.f-test-vacancy-item"),
        css_all("div[class*='vacancy-item']"),
        css_all("div[class*='_1h3Zg']"),
        css_all("div[data-qa*='vacancy']"),
        css_all("article, div[class*='item']"),
    ),
    title=(
        first_anchor("a[href*='/vakansii/']"),
        first_anchor("a[href*='/vacancy/']"),
        first_anchor("a._1IHWd"),
        first_anchor("a[class*='_1IHWd']"),
        first_anchor("h3 a, h2 a, h4 a"),
        first_anchor("a[class*='title']"),
        first_anchor("a"),
    ),
    company=(
        first_text("span[class*='company']"),
        first_text("a[class*='company']"),
        first_text("span._3nMqD"),
        first_text("span[class*='_3nMqD']"),
        first_text("div[class*='company']"),
    ),
    salary=(
        first_text("span[class*='salary']"),
        first_text("div[class*='salary']"),
        first_text("span._1OuF_"),
        first_text("span[class*='_1OuF_']"),
        own_text_containing("span", CURRENCY_MARKERS, enclosing=AMOUNT),
    ),
    city=(
        first_text("span[class*='city']"),
        first_text("div[class*='city']"),
        first_text("span._3mfro"),
        first_text("span[class*='_3mfro']"),
        own_text_containing("span, div", KNOWN_CITIES),
    ),
)


def extract_superjob(doc: ParsedDocument) -> Iterator[JobRecord]:
    yield from extract_listing(doc, SUPERJOB_LAYOUT)


__all__ = ["SUPERJOB_LAYOUT", "extract_superjob"]
