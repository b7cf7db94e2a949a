"""Heading attribution and heading extraction.

``map_ids_to_headings`` associates every identified element of a document
with the closest explicit heading under which it appears in the outline.
Nearly every extractor uses that table to report where a term, algorithm or
property is defined. ``extract_headings`` lists the headings themselves.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from bs4.element import Tag

from specoutline.config import DEFAULT_CONFIG, ExtractionConfig
from specoutline.dom import SpecDocument, attr_value, element_id
from specoutline.html_utils import clean_text
from specoutline.metadata import get_title
from specoutline.outline import Section, build_outline
from specoutline.urls import get_absolute_url, page_url

log = logging.getLogger(__name__)

# Numbering prefix of a heading: "1.", "A.", "A.3", "13.3.4.", a bare "2"
# (CSS 2.1) or "Appendix A." / "Appendix A:". Top-level numbers end with "."
# in Bikeshed specs; sublevels may not (ReSpec).
_NUMBER_RE = re.compile(
    r"^(?:Appendix\s+(?P<appendix>[A-Z])[.:]?"
    r"|(?P<number>[A-Z0-9]\.|[A-Z](?:\.[0-9]+)+\.?|[0-9]+(?:\.[0-9]+)*\.?))\s+"
)


@dataclass(frozen=True, slots=True)
class HeadingInfo:
    """Heading under which an element appears.

    ``page_level`` marks the fallback entry of elements that no explicit
    heading covers: ``href`` and ``title`` then describe the page itself.
    """

    id: str
    href: str
    title: str
    number: str | None = None
    page_level: bool = False

    def to_dict(self) -> dict[str, str]:
        data = {"id": self.id, "href": self.href, "title": self.title}
        if self.number:
            data["number"] = self.number
        return data


@dataclass(frozen=True, slots=True)
class HeadingRecord:
    """An entry of the headings list of a spec."""

    id: str
    href: str
    title: str
    level: int | None = None
    number: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "href": self.href}
        if self.level is not None:
            data["level"] = self.level
        data["title"] = self.title
        if self.number:
            data["number"] = self.number
        return data


def split_heading_number(text: str) -> tuple[str, str | None]:
    """Split ``"3.2.1 Parsing"`` into ``("Parsing", "3.2.1")``.

    The number loses its trailing "." or ":". Text without a recognised
    numbering prefix comes back unchanged with a None number.
    """
    text = text.strip()
    match = _NUMBER_RE.match(text)
    if match is None:
        return text, None
    number = match.group("appendix") or match.group("number").rstrip(".:")
    return text[match.end():].strip(), number


def _identified_elements(document: SpecDocument) -> list[tuple[Tag, str]]:
    """Elements with an id, plus ``<a name>`` anchors that have none."""
    found: list[tuple[Tag, str]] = []
    for el in document.iter_elements():
        if element_id(el):
            found.append((el, "id"))
        elif el.name == "a" and attr_value(el, "name"):
            found.append((el, "name"))
    return found


def _explicit_section(section: Section | None) -> Section | None:
    """Climb from *section* to the first ancestor with a real heading."""
    while section is not None and section.heading_element is None:
        section = section.parent
    return section


def _heading_anchor(section: Section) -> tuple[Tag, str] | None:
    """Element and attribute that give the section's link target.

    The sectioning element wins over the heading when both have an id.
    CSS 2.1 headings carry their anchor in an ``<a name>`` child.
    """
    if section.root is not None and element_id(section.root):
        return section.root, "id"
    heading = section.heading_element
    if heading is None:
        return None
    if element_id(heading):
        return heading, "id"
    anchor = heading.find("a", attrs={"name": True})
    if isinstance(anchor, Tag) and attr_value(anchor, "name"):
        return anchor, "name"
    return None


def map_ids_to_headings(
    document: SpecDocument,
    config: ExtractionConfig | None = None,
) -> dict[str, HeadingInfo]:
    """Map the absolute URL of every identified element to its heading.

    Elements that no explicit heading covers (front matter, abstract) map to
    a page-level fallback entry rather than being left out.

    Raises:
        OutlineError: the outline of the body cannot be built.
    """
    config = config or DEFAULT_CONFIG
    noise = config.heading_noise_selector
    single_page = document.is_single_page
    result = build_outline(document.body)
    doc_title = get_title(document)

    def url_of(el: Tag, attribute: str = "id") -> str:
        return get_absolute_url(
            el,
            document.url,
            single_page=single_page,
            attribute=attribute,
            page_attribute=document.page_attribute,
        )

    # Sections are shared by many elements; resolve each one once.
    resolved: dict[int, HeadingInfo] = {}
    table: dict[str, HeadingInfo] = {}
    fallbacks = 0

    for el, attribute in _identified_elements(document):
        node_url = url_of(el, attribute)
        section = _explicit_section(result.node_to_section.get(el))
        heading = section.heading_element if section is not None else None
        if section is None or heading is None:
            fallbacks += 1
            table[node_url] = HeadingInfo(
                id="",
                href=page_url(
                    el,
                    document.url,
                    single_page=single_page,
                    page_attribute=document.page_attribute,
                ),
                title=doc_title,
                page_level=True,
            )
            continue

        info = resolved.get(id(section))
        if info is None:
            anchor = _heading_anchor(section)
            if anchor is not None:
                anchor_el, anchor_attr = anchor
                heading_id = attr_value(anchor_el, anchor_attr) or ""
                href = url_of(anchor_el, anchor_attr)
            else:
                heading_id = ""
                href = url_of(heading)
            title, number = split_heading_number(clean_text(heading, noise))
            info = HeadingInfo(id=heading_id, href=href, title=title, number=number)
            resolved[id(section)] = info
        table[node_url] = info

    if fallbacks:
        log.debug("%d of %d identified elements fall back to page level",
                  fallbacks, len(table))
    return table


# ---------------------------------------------------------------------------
# Headings list
# ---------------------------------------------------------------------------

_HEADINGS_SELECTOR = ",".join([
    ":is(h1,h2,h3,h4,h5,h6)[id]",                  # Regular headings
    ":is(h1,h2,h3,h4,h5,h6):not([id]) > a[name]",  # CSS 2.1 headings
])


def _ecmascript_headings(
    document: SpecDocument,
    config: ExtractionConfig,
    single_page: bool,
) -> list[HeadingRecord]:
    """Headings in the markup of the ECMAScript spec: ``emu-clause > h1``."""
    records: list[HeadingRecord] = []
    for h1 in document.soup.select("emu-clause[id] > h1"):
        clause = h1.parent
        if clause is None:
            continue
        secnum = h1.select_one(".secnum")
        number = secnum.get_text().strip() if secnum is not None else None
        text = clean_text(h1, config.heading_noise_selector)
        if number and text.startswith(number):
            text = text[len(number):]
        records.append(HeadingRecord(
            id=attr_value(clause, "id") or "",
            href=get_absolute_url(
                clause,
                document.url,
                single_page=single_page,
                page_attribute=document.page_attribute,
            ),
            title=text.strip(),
            level=len(number.split(".")) if number else None,
            number=number or None,
        ))
    return records


def extract_headings(
    document: SpecDocument,
    id_to_heading: dict[str, HeadingInfo],
    config: ExtractionConfig | None = None,
) -> list[HeadingRecord]:
    """List the headings of *document* in tree order.

    Titles and numbers come from *id_to_heading*. Headings that the outline
    skipped (sub-headings of an ``hgroup``) keep their own text.
    """
    config = config or DEFAULT_CONFIG
    single_page = document.is_single_page
    records = _ecmascript_headings(document, config, single_page)

    for el in document.soup.select(_HEADINGS_SELECTOR):
        if el.name == "a":
            attribute, heading_el = "name", el.parent
        else:
            attribute, heading_el = "id", el
        ident = attr_value(el, attribute)
        if not ident or heading_el is None:
            continue
        href = get_absolute_url(
            el,
            document.url,
            single_page=single_page,
            attribute=attribute,
            page_attribute=document.page_attribute,
        )
        heading = id_to_heading.get(href)
        if heading is None or heading.page_level:
            heading = HeadingInfo(
                id=ident,
                href=href,
                title=clean_text(el, config.heading_noise_selector),
            )
        records.append(HeadingRecord(
            id=heading.id,
            href=heading.href,
            title=heading.title,
            level=int(heading_el.name[1]),
            number=heading.number,
        ))
    return records
