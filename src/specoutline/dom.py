"""Read-only document tree adapter over BeautifulSoup.

Everything downstream of the parser sees elements through the small set of
helpers in this module: element children (text and comments skipped), the
identifier of an element, the ``hidden`` flag and ancestor lookup. The tree
is never mutated here.
"""
from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from bs4 import BeautifulSoup
from bs4.element import Tag

DEFAULT_URL = "about:blank"
DEFAULT_PAGE_ATTRIBUTE = "data-reffy-page"

_WS_RE = re.compile(r"\s+")


@dataclass(slots=True)
class SpecDocument:
    """A parsed specification document and the URL it was loaded from."""

    soup: BeautifulSoup
    url: str = DEFAULT_URL
    page_attribute: str = DEFAULT_PAGE_ATTRIBUTE

    @classmethod
    def from_html(
        cls,
        html: str,
        *,
        url: str = DEFAULT_URL,
        parser: str = "html.parser",
        page_attribute: str = DEFAULT_PAGE_ATTRIBUTE,
    ) -> SpecDocument:
        return cls(
            soup=BeautifulSoup(html, parser),
            url=url,
            page_attribute=page_attribute,
        )

    @property
    def body(self) -> Tag:
        """The ``<body>`` element, or the soup root for bare fragments."""
        body = self.soup.body
        return body if body is not None else self.soup

    @property
    def is_single_page(self) -> bool:
        """True unless pages of a multi-page spec were merged into this one."""
        return self.soup.find(attrs={self.page_attribute: True}) is None

    def iter_elements(self) -> list[Tag]:
        """All elements in document order."""
        return list(self.soup.find_all(True))


def child_elements(el: Tag) -> list[Tag]:
    return [c for c in el.children if isinstance(c, Tag)]


def attr_value(el: Tag, name: str) -> str | None:
    """Attribute value as a string; multi-valued attributes are joined."""
    value = el.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def node_identifier(el: Tag) -> str | None:
    """The ``id`` of *el*, else its legacy ``name`` anchor. Empty means none."""
    return attr_value(el, "id") or attr_value(el, "name") or None


def element_id(el: Tag) -> str | None:
    return attr_value(el, "id") or None


def is_hidden(el: Tag) -> bool:
    return el.has_attr("hidden")


def closest(el: Tag, predicate: Callable[[Tag], bool]) -> Tag | None:
    """Nearest ancestor-or-self matching *predicate*."""
    node: Tag | None = el
    while node is not None and not isinstance(node, BeautifulSoup):
        if predicate(node):
            return node
        node = node.parent
    return None


def collapse_text(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()
