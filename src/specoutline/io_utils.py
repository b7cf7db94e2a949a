"""JSON file helpers built on orjson."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import orjson


def load_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


def dumps_json(obj: Any, *, pretty: bool = True) -> bytes:
    opts = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(obj, option=opts)


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Write *obj* as JSON, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps_json(obj, pretty=pretty) + b"\n")


def dump_json(obj: Any) -> None:
    """Write *obj* as indented JSON to stdout."""
    sys.stdout.buffer.write(dumps_json(obj))
    sys.stdout.buffer.write(b"\n")
