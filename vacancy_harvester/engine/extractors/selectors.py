"""Selector strategies evaluated with "first non-empty wins" fallback.

Listing sites rename classes and attributes without notice, so every field is
located through an ordered list of strategies. Each strategy is a small
closure over one CSS selector; :func:`first_non_empty` runs them in order and
returns the first truthy result. Adding or dropping a fallback is a one-line
edit to a :class:`ListingLayout`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator, Sequence, TypeVar
from urllib.parse import urljoin

import structlog
from selectolax.lexbor import LexborNode

from ...models import JobRecord, SourceName
from ..fetcher import ParsedDocument

T = TypeVar("T")
Strategy = Callable[[Any], T]

CURRENCY_MARKERS = ("руб", "₽", "USD", "EUR")
KNOWN_CITIES = (
    "москва",
    "санкт-петербург",
    "новосибирск",
    "екатеринбург",
    "казань",
    "нижний новгород",
)

_CITY_SEPARATORS = re.compile(r"[,•]")
_TODAY_WORDS = ("сегодня", "today")
_YESTERDAY_WORDS = ("вчера", "yesterday")
# "12 марта", "3 января 2024"
_DAY_MONTH = re.compile(
    r"\b\d{1,2}\s+(января|февраля|марта|апреля|мая|июня|июля|августа|сентября|октября|ноября|декабря)\b",
    re.IGNORECASE,
)
AMOUNT = re.compile(r"\d")


@dataclass(frozen=True, slots=True)
class Anchor:
    text: str
    href: str


def first_non_empty(strategies: Sequence[Strategy[T]], scope: Any) -> T | None:
    """Return the first truthy strategy result, or ``None``."""

    for strategy in strategies:
        result = strategy(scope)
        if result:
            return result
    return None


def clean_text(node: LexborNode) -> str:
    return " ".join(node.text(separator=" ", strip=True).split())


def select_within(scope: Any, selector: str) -> list[LexborNode]:
    """CSS matches strictly inside ``scope`` (the scope node itself excluded)."""

    scope_id = getattr(scope, "mem_id", None)
    return [node for node in scope.css(selector) if scope_id is None or node.mem_id != scope_id]


def css_all(selector: str) -> Strategy[list[LexborNode]]:
    def _strategy(scope: Any) -> list[LexborNode]:
        return select_within(scope, selector)

    return _strategy


def first_text(selector: str) -> Strategy[str]:
    def _strategy(scope: Any) -> str:
        matches = select_within(scope, selector)
        return clean_text(matches[0]) if matches else ""

    return _strategy


def first_anchor(selector: str) -> Strategy[Anchor | None]:
    def _strategy(scope: Any) -> Anchor | None:
        matches = select_within(scope, selector)
        if not matches:
            return None
        node = matches[0]
        text = clean_text(node)
        if not text:
            return None
        return Anchor(text=text, href=(node.attributes.get("href") or "").strip())

    return _strategy


def own_text_containing(
    selector: str, markers: Sequence[str], enclosing: re.Pattern[str] | None = None
) -> Strategy[str]:
    """Scan the direct text of every match for any marker, case-insensitively.

    The first node whose own text carries a marker is picked and its full text
    returned. With ``enclosing`` set, the walk climbs from that node towards the
    scope until the full text also matches ``enclosing``, so a marker kept in a
    child element (``<b>руб.</b>``) still yields the surrounding amount.
    """

    lowered = tuple(marker.lower() for marker in markers)

    def _strategy(scope: Any) -> str:
        scope_id = getattr(scope, "mem_id", None)
        for node in select_within(scope, selector):
            own = " ".join(node.text(deep=False, separator=" ", strip=True).split())
            if not own or not any(marker in own.lower() for marker in lowered):
                continue
            if enclosing is None:
                return clean_text(node)
            current = node
            while current is not None and current.mem_id != scope_id:
                text = clean_text(current)
                if enclosing.search(text):
                    return text
                current = current.parent
            return clean_text(node)
        return ""

    return _strategy


def first_city_token(text: str) -> str:
    """``"Москва, 1 район • метро X"`` -> ``"Москва"``."""

    return _CITY_SEPARATORS.split(text, maxsplit=1)[0].strip()


def approximate_published_at(text: str | None, now: datetime | None = None) -> datetime:
    """Resolve a listing date phrase to a timestamp.

    Only relative phrases are resolved exactly. Day and month phrases
    ("12 марта") are recognised but still approximated as ``now``.
    """

    now = now or datetime.now(timezone.utc)
    if not text:
        return now
    lowered = text.lower()
    if any(word in lowered for word in _TODAY_WORDS):
        return now
    if any(word in lowered for word in _YESTERDAY_WORDS):
        return now - timedelta(days=1)
    if _DAY_MONTH.search(lowered):
        # listings omit the year
        return now
    return now


def absolute_url(origin: str, href: str, fallback: str) -> str:
    if not href:
        return fallback
    return urljoin(origin.rstrip("/") + "/", href)


@dataclass(frozen=True)
class ListingLayout:
    """Ordered selector strategies describing one site's listing page."""

    source: SourceName
    origin: str
    containers: Sequence[Strategy[list[LexborNode]]]
    title: Sequence[Strategy[Anchor | None]]
    company: Sequence[Strategy[str]] = ()
    salary: Sequence[Strategy[str]] = ()
    city: Sequence[Strategy[str]] = ()
    published: Sequence[Strategy[str]] = ()
    requirements: Sequence[Strategy[str]] = ()


def extract_container(
    node: LexborNode, layout: ListingLayout, *, page_url: str, now: datetime
) -> JobRecord | None:
    """Build one candidate from a container, or ``None`` when it has no title."""

    anchor = first_non_empty(layout.title, node)
    if anchor is None:
        return None
    city = first_non_empty(layout.city, node) or ""
    published = first_non_empty(layout.published, node)
    record = JobRecord(
        title=anchor.text,
        source_url=absolute_url(layout.origin, anchor.href, page_url),
        source_name=layout.source,
        company=first_non_empty(layout.company, node) or "",
        salary_text=first_non_empty(layout.salary, node) or None,
        requirements_text=first_non_empty(layout.requirements, node) or None,
        city=first_city_token(city),
        published_at=approximate_published_at(published, now),
    )
    return record.with_defaults(now)


def extract_listing(
    doc: ParsedDocument,
    layout: ListingLayout,
    *,
    logger: structlog.BoundLogger | None = None,
    now: datetime | None = None,
) -> Iterator[JobRecord]:
    """Yield candidates for every container on the page.

    A container that raises is logged and skipped; the rest of the page is
    still processed.
    """

    log = logger or structlog.get_logger("vacancy_harvester.extractors").bind(
        source=layout.source.value
    )
    now = now or datetime.now(timezone.utc)
    containers = first_non_empty(layout.containers, doc.tree) or []
    log.info("containers_found", url=doc.url, count=len(containers))
    if not containers:
        log.warning("no_containers_found", url=doc.url, page_title=doc.title)
        log.debug("page_preview", url=doc.url, preview=doc.body_preview())
        return

    emitted = 0
    for index, node in enumerate(containers):
        try:
            record = extract_container(node, layout, page_url=doc.url, now=now)
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "container_extraction_failed",
                url=doc.url,
                index=index,
                error=str(exc),
                exc_info=True,
            )
            continue
        if record is None:
            log.debug("container_without_title", url=doc.url, index=index)
            continue
        emitted += 1
        yield record
    log.info("containers_processed", url=doc.url, emitted=emitted, total=len(containers))


__all__ = [
    "Anchor",
    "CURRENCY_MARKERS",
    "KNOWN_CITIES",
    "ListingLayout",
    "absolute_url",
    "approximate_published_at",
    "clean_text",
    "css_all",
    "extract_container",
    "extract_listing",
    "first_anchor",
    "first_city_token",
    "first_non_empty",
    "first_text",
    "own_text_containing",
    "select_within",
]
