"""Extraction configuration.

Keeps markup conventions that vary between spec generators (page markers,
annotation widgets, generated ids) out of the extraction code. Adding a
convention means editing a JSON file, not the extractors.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

from specoutline.dom import DEFAULT_PAGE_ATTRIBUTE, DEFAULT_URL
from specoutline.io_utils import load_json


@dataclass(frozen=True, slots=True)
class ExtractionConfig:
    base_url: str = DEFAULT_URL
    parser: str = "html.parser"            # bs4 tree builder: "html.parser" | "lxml"
    page_attribute: str = DEFAULT_PAGE_ATTRIBUTE
    # Ids generated by authoring tools, not meant as link targets
    excluded_id_prefixes: tuple[str, ...] = ("respec-", "dfn-panel-")
    # Widgets that tools inject into headings (test counts, MDN panels)
    heading_noise_selectors: tuple[str, ...] = (
        ".annotation",
        ".mdn-anno",
        ".wpt-tests-block",
        "[id^=dfn-panel-]",
        "details.respec-tests-details",
    )

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if not self.page_attribute:
            raise ValueError("page_attribute must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> ExtractionConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        values: dict[str, object] = {}
        for key, value in data.items():
            if key in ("excluded_id_prefixes", "heading_noise_selectors"):
                if not isinstance(value, list):
                    raise ValueError(f"{key} must be a list of strings")
                value = tuple(str(v) for v in value)
            elif not isinstance(value, str):
                raise ValueError(f"{key} must be a string")
            values[key] = value
        return cls(**values)  # type: ignore[arg-type]

    @classmethod
    def from_json(cls, path: Path) -> ExtractionConfig:
        """Load from a JSON file; missing keys keep their defaults."""
        data = load_json(path)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object")
        return cls.from_dict(data)

    @property
    def heading_noise_selector(self) -> str:
        return ",".join(self.heading_noise_selectors)


DEFAULT_CONFIG = ExtractionConfig()
