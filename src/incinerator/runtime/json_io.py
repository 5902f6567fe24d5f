from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping


def canonicalize_json(value: object) -> object:
    if isinstance(value, Mapping):
        normalized_items = [
            (str(key), canonicalize_json(item_value))
            for key, item_value in value.items()
        ]
        # Sort key is lexical mapping-key text for canonical JSON shape.
        ordered_items = sorted(normalized_items, key=lambda item: item[0])
        return {
            key: item_value
            for key, item_value in ordered_items
        }
    if isinstance(value, list):
        return [canonicalize_json(item) for item in value]
    return value


def dump_json_pretty(payload: object) -> str:
    return json.dumps(canonicalize_json(payload), indent=2, sort_keys=False)


def write_json_path(path: Path, payload: object, *, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_json_pretty(payload) + "\n", encoding=encoding)
