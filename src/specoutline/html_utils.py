"""HTML text helpers and encoding-safe file reading.

Text extracted from spec markup goes through the same cleanup everywhere:
annotation widgets dropped, zero-width characters removed, whitespace
collapsed to single spaces.
"""
from __future__ import annotations

import copy
import re
from pathlib import Path

from bs4.element import Tag

from specoutline.dom import collapse_text

# U+200B (ZWSP), U+200C (ZWNJ), U+FEFF (BOM): invisible characters that
# silently break prefix matching on heading numbers.
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\ufeff]")
_SPEC_ENCODINGS = ("utf-8", "cp1252")


def strip_zero_width(text: str) -> str:
    """Remove zero-width Unicode characters."""
    return _ZERO_WIDTH_RE.sub("", text)


def clean_text(el: Tag, noise_selector: str = "") -> str:
    """Visible text of *el*, without elements matching *noise_selector*.

    Works on a copy; *el* itself is left untouched.
    """
    if noise_selector and el.select_one(noise_selector) is not None:
        el = copy.copy(el)
        for noise in el.select(noise_selector):
            noise.decompose()
    return collapse_text(strip_zero_width(el.get_text()))


# ---------------------------------------------------------------------------
# Encoding-safe file reading
# ---------------------------------------------------------------------------


def read_file(fpath: Path, *, min_size: int = 0) -> str:
    """Read a saved spec page, tolerating legacy encodings.

    Old W3C drafts were often saved as windows-1252 (smart quotes in
    titles), so UTF-8 is tried first, then CP1252, then UTF-8 with
    replacement characters. An unreadable file, or one smaller than
    *min_size* bytes, reads as ``""``; the CLI reports it as an error.
    """
    try:
        if min_size > 0 and fpath.stat().st_size < min_size:
            return ""
        raw = fpath.read_bytes()
    except OSError:
        return ""
    for encoding in _SPEC_ENCODINGS:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")
