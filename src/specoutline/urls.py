"""Absolute URLs of elements.

The crawler merges the pages of a multi-page spec into the first page before
extraction, tagging each merged page's container with the page attribute.
URLs computed here point back to the page an element came from.
"""
from __future__ import annotations

from urllib.parse import quote, urlsplit, urlunsplit

from bs4.element import Tag

from specoutline.dom import DEFAULT_PAGE_ATTRIBUTE, attr_value, closest

# Characters JavaScript's encodeURIComponent leaves alone, besides
# alphanumerics and "_.-".
_FRAGMENT_SAFE = "!~*'()"
_DEFAULT_PORTS = {"http": "80", "https": "443", "ws": "80", "wss": "443"}


def encode_fragment(value: str) -> str:
    return quote(value, safe=_FRAGMENT_SAFE)


def normalize_url(url: str) -> str:
    """Serialize *url* the way a WHATWG URL parser would, without fragment.

    The scheme and host are lowercased, a default port is dropped and a
    host-only URL gets the root path, so "HTTPS://Example.org:443" becomes
    "https://example.org/".
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc
    if netloc:
        userinfo, at, host = netloc.rpartition("@")
        host = host.lower()
        default_port = _DEFAULT_PORTS.get(scheme)
        if default_port and host.endswith(f":{default_port}"):
            host = host[: -len(default_port) - 1]
        netloc = f"{userinfo}{at}{host}"
    path = parts.path or ("/" if netloc else "")
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def page_url(
    el: Tag,
    base_url: str,
    *,
    single_page: bool = False,
    page_attribute: str = DEFAULT_PAGE_ATTRIBUTE,
) -> str:
    """URL of the page that contains *el*, without fragment."""
    page: str | None = None
    if not single_page:
        marker = closest(el, lambda node: node.has_attr(page_attribute))
        if marker is not None:
            page = attr_value(marker, page_attribute)
    return normalize_url(page or base_url)


def get_absolute_url(
    el: Tag,
    base_url: str,
    *,
    single_page: bool = False,
    attribute: str = "id",
    page_attribute: str = DEFAULT_PAGE_ATTRIBUTE,
) -> str:
    """Absolute URL of *el* with its ``attribute`` value as fragment.

    Args:
        el: Element to resolve.
        base_url: URL of the processed document.
        single_page: Skip the page-attribute lookup when the caller already
            knows no pages were merged.
        attribute: Attribute holding the fragment (``"name"`` for legacy
            ``<a name>`` anchors).
        page_attribute: Attribute that marks merged pages.

    Returns:
        The page URL, followed by ``#fragment`` when *el* has the attribute.
    """
    url = page_url(el, base_url, single_page=single_page, page_attribute=page_attribute)
    fragment = attr_value(el, attribute)
    if fragment:
        return f"{url}#{encode_fragment(fragment)}"
    return url
