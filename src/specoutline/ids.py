"""Absolute URLs of all link targets defined in a document."""
from __future__ import annotations

from bs4.element import Tag

from specoutline.config import DEFAULT_CONFIG, ExtractionConfig
from specoutline.dom import SpecDocument, attr_value, element_id
from specoutline.urls import encode_fragment, get_absolute_url


def extract_ids(
    document: SpecDocument,
    config: ExtractionConfig | None = None,
) -> list[str]:
    """Absolute URLs of ``[id]`` elements and ``<a name>`` anchors.

    An anchor whose name repeats its own id is listed once. Ids generated by
    authoring tools (``respec-``, ``dfn-panel-`` by default) are dropped.
    """
    config = config or DEFAULT_CONFIG
    single_page = document.is_single_page
    excluded = tuple(encode_fragment(p) for p in config.excluded_id_prefixes)

    def url_of(el: Tag, attribute: str) -> str:
        return get_absolute_url(
            el,
            document.url,
            single_page=single_page,
            attribute=attribute,
            page_attribute=document.page_attribute,
        )

    urls = [url_of(el, "id") for el in document.iter_elements() if element_id(el)]
    for anchor in document.soup.find_all("a", attrs={"name": True}):
        name = attr_value(anchor, "name")
        if name and element_id(anchor) != name:
            urls.append(url_of(anchor, "name"))

    return [
        url for url in urls
        if not url.partition("#")[2].startswith(excluded)
    ]
