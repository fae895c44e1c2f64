"""Small helpers shared by the route modules."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any


def to_dict(row: Any) -> dict[str, Any]:
    """
    Convert a row (dict or dataclass) to a dictionary.

    Nested dataclasses (e.g. a track's metadata) are converted recursively.
    """
    if isinstance(row, dict):
        return row
    if is_dataclass(row) and not isinstance(row, type):
        return asdict(row)
    raise TypeError(f"Cannot serialize {type(row).__name__}")
