#!/usr/bin/env python3
"""Extract ids, headings and the id -> heading table from spec HTML files.

Each file is parsed, outlined and reported as one JSON object:

    {"url", "title", "generator", "ids", "headings", "idToHeading",
     "outline" (with --outline)}

Documents whose outline cannot be built are listed under "errors" and
skipped; the exit status is 1 when that happens.

Usage::

    python3 scripts/extract_outline.py spec.html --url https://example.org/spec/
    python3 scripts/extract_outline.py a.html b.html --outline --output report.json
    python3 scripts/extract_outline.py spec.html --config conf/extraction.json -v

Structured JSON output goes to stdout (or --output); human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from specoutline.config import DEFAULT_CONFIG, ExtractionConfig  # noqa: E402
from specoutline.dom import SpecDocument  # noqa: E402
from specoutline.headings import extract_headings, map_ids_to_headings  # noqa: E402
from specoutline.html_utils import read_file  # noqa: E402
from specoutline.ids import extract_ids  # noqa: E402
from specoutline.io_utils import dump_json, save_json  # noqa: E402
from specoutline.metadata import get_generator, get_title  # noqa: E402
from specoutline.outline import (  # noqa: E402
    OutlineError,
    build_outline,
    flatten_all_sections,
    flatten_sections,
    outline_to_text,
)

log = logging.getLogger("extract_outline")


def build_report(
    html: str,
    *,
    url: str,
    config: ExtractionConfig = DEFAULT_CONFIG,
    with_outline: bool = False,
) -> dict[str, Any]:
    """Report for one document.

    Raises:
        OutlineError: the document's outline cannot be built.
    """
    document = SpecDocument.from_html(
        html,
        url=url,
        parser=config.parser,
        page_attribute=config.page_attribute,
    )
    id_to_heading = map_ids_to_headings(document, config)
    report: dict[str, Any] = {
        "url": url,
        "title": get_title(document),
        "generator": get_generator(document),
        "ids": extract_ids(document, config),
        "headings": [h.to_dict() for h in extract_headings(document, id_to_heading, config)],
        "idToHeading": {
            key: info.to_dict()
            for key, info in id_to_heading.items()
            if not info.page_level
        },
    }
    if with_outline:
        outline = build_outline(document.body).outline
        sections = flatten_all_sections(outline)
        report["outline"] = {
            "text": outline_to_text(outline),
            "sections": len(flatten_sections(outline)),
            "sectionsWithNestedOutlines": len(sections),
            "implied": sum(1 for s in sections if s.is_implied),
        }
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract outline-based heading data from spec HTML files.",
    )
    parser.add_argument("files", nargs="+", type=Path, help="HTML files to process")
    parser.add_argument(
        "--url", default=None,
        help="URL of the document (default: config base_url; only with one file)",
    )
    parser.add_argument("--config", type=Path, default=None, help="Extraction config JSON")
    parser.add_argument(
        "--outline", action="store_true",
        help="Include the rendered outline in each report",
    )
    parser.add_argument("--output", type=Path, default=None, help="Write JSON here")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if args.url and len(args.files) > 1:
        parser.error("--url applies to a single file")

    config = ExtractionConfig.from_json(args.config) if args.config else DEFAULT_CONFIG

    reports: list[dict[str, Any]] = []
    errors: list[dict[str, str]] = []
    t0 = time.time()
    for path in args.files:
        html = read_file(path)
        if not html:
            log.warning("Skipping unreadable or empty file: %s", path)
            errors.append({"file": str(path), "error": "unreadable or empty"})
            continue
        url = args.url or (
            config.base_url if len(args.files) == 1 else path.resolve().as_uri()
        )
        try:
            report = build_report(html, url=url, config=config, with_outline=args.outline)
        except OutlineError as exc:
            log.error("Outline failed for %s: %s", path, exc)
            errors.append({"file": str(path), "error": str(exc)})
            continue
        log.info(
            "%s: %d ids, %d headings",
            path, len(report["ids"]), len(report["headings"]),
        )
        reports.append(report)

    log.info("Processed %d file(s) in %.2fs", len(args.files), time.time() - t0)

    output = {"reports": reports, "errors": errors}
    if args.output:
        save_json(output, args.output)
        log.info("Wrote %s", args.output)
    else:
        dump_json(output)
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
