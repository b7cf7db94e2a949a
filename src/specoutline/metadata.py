"""Document-level metadata: title and generating tool."""
from __future__ import annotations

import re

from specoutline.dom import SpecDocument, attr_value, collapse_text

_BIKESHED_RE = re.compile(r"bikeshed", re.IGNORECASE)
_RESPEC_RE = re.compile(r"respec", re.IGNORECASE)


def get_title(document: SpecDocument) -> str:
    """Whitespace-collapsed ``<title>``, or a placeholder naming the URL."""
    title = document.soup.find("title")
    if title is not None:
        return collapse_text(title.get_text())
    return f"[No title found for {document.url}]"


def get_generator(document: SpecDocument) -> str | None:
    """Name of the tool that generated the document: "bikeshed", "respec" or None.

    ReSpec documents that were not exported still carry their
    ``respecConfig`` script or the ``respecDocument`` body id.
    """
    meta = document.soup.find("meta", attrs={"name": "generator"})
    content = ""
    if meta is not None:
        content = attr_value(meta, "content") or ""
    if _BIKESHED_RE.search(content):
        return "bikeshed"
    if _RESPEC_RE.search(content):
        return "respec"

    body = document.soup.body
    if body is not None and attr_value(body, "id") == "respecDocument":
        return "respec"
    for script in document.soup.find_all("script"):
        if "respecConfig" in script.get_text():
            return "respec"
    return None
