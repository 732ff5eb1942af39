from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

import trafilatura
from bs4 import BeautifulSoup, NavigableString, Tag
from soupsieve import SelectorSyntaxError

from .logging import log_warning
from .utils import normalize_whitespace

# CSS selector, or a callable that pulls a value straight from the document
Locator = Union[str, Callable[["PageDocument"], str]]

# elements whose edges separate words; inline markup (b, strong, a, span) does not
_BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
        "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
        "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section", "table",
        "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
    }
)  # fmt: skip


def _collect_text(node: Tag, parts: List[str]) -> None:
    for child in node.children:
        if isinstance(child, Tag):
            block = child.name in _BLOCK_TAGS
            if block:
                parts.append(" ")
            _collect_text(child, parts)
            if block:
                parts.append(" ")
        elif type(child) is NavigableString:
            # comments, doctypes and script/style strings are NavigableString subclasses
            parts.append(str(child))


def element_text(node: Optional[Tag]) -> str:
    """Whole text of an element, trimmed; a space is added only at block boundaries."""
    if node is None:
        return ""
    parts: List[str] = []
    _collect_text(node, parts)
    return "".join(parts).strip()


def _iter_jsonld_objects(raw: Any) -> Iterable[Dict[str, Any]]:
    if isinstance(raw, dict):
        if "@graph" in raw and isinstance(raw["@graph"], list):
            for n in raw["@graph"]:
                if isinstance(n, dict):
                    yield n
            return
        yield raw
        return
    if isinstance(raw, list):
        for n in raw:
            if isinstance(n, dict):
                yield n


def _is_jobposting(obj: Dict[str, Any]) -> bool:
    t = obj.get("@type") or obj.get("type")
    if isinstance(t, list):
        return any(str(x).lower() == "jobposting" for x in t)
    return str(t or "").lower() == "jobposting"


@dataclass
class PageDocument:
    """Parsed page plus its URL; the only thing scrapers get to look at."""

    html: str
    url: str = ""
    soup: BeautifulSoup = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.soup = BeautifulSoup(self.html or "", "html.parser")
        self._jsonld: Optional[List[Dict[str, Any]]] = None

    @property
    def title(self) -> str:
        node = self.soup.title
        return node.get_text(" ", strip=True) if node else ""

    def select_one(self, selector: str) -> Optional[Tag]:
        try:
            return self.soup.select_one(selector)
        except (SelectorSyntaxError, NotImplementedError, ValueError) as ex:
            log_warning("locator_skipped", selector=selector, error=str(ex))
            return None

    def select(self, selector: str) -> List[Tag]:
        try:
            return list(self.soup.select(selector))
        except (SelectorSyntaxError, NotImplementedError, ValueError) as ex:
            log_warning("locator_skipped", selector=selector, error=str(ex))
            return []

    def text_of(self, selector: str) -> str:
        node = self.select_one(selector)
        if node is None:
            return ""
        return element_text(node)

    def jsonld_objects(self) -> List[Dict[str, Any]]:
        """All JSON-LD objects on the page; malformed blocks are logged and skipped."""
        if self._jsonld is not None:
            return self._jsonld
        objs: List[Dict[str, Any]] = []
        for s in self.soup.find_all("script", attrs={"type": "application/ld+json"}):
            raw = (s.string or s.get_text() or "").strip()
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except ValueError as ex:
                log_warning("jsonld_parse_failed", url=self.url, error=str(ex))
                continue
            objs.extend(_iter_jsonld_objects(data))
        self._jsonld = objs
        return objs

    def jsonld_jobposting(self, *, strict: bool = True) -> Dict[str, Any]:
        """First JobPosting object; with ``strict=False`` fall back to the first object."""
        objs = self.jsonld_objects()
        for obj in objs:
            if _is_jobposting(obj):
                return obj
        if not strict and objs:
            return objs[0]
        return {}

    def main_text(self, limit: int) -> str:
        main = self.select_one("main")
        if main is not None:
            text = element_text(main)
        else:
            text = trafilatura.extract(
                self.html,
                output_format="txt",
                include_comments=False,
                include_tables=True,
            ) or ""
        return text[:limit] if limit > 0 else text


def resolve_locator(locator: Locator, doc: PageDocument) -> str:
    if callable(locator):
        return (locator(doc) or "").strip()
    return doc.text_of(locator).strip()


def first_match(locators: Sequence[Locator], doc: PageDocument) -> str:
    """Text of the first locator that yields something non-empty, else ""."""
    for locator in locators:
        text = resolve_locator(locator, doc)
        if text:
            return text
    return ""


def jsonld_text(obj: Dict[str, Any], *path: str) -> str:
    cur: Any = obj
    for key in path:
        if isinstance(cur, list) and cur:
            cur = cur[0]
        if not isinstance(cur, dict):
            return ""
        cur = cur.get(key)
    if isinstance(cur, (str, int, float)):
        return normalize_whitespace(str(cur))
    return ""
