from __future__ import annotations

import datetime as dt
from collections.abc import Iterable

from .models import DIRECTORY_POLICIES, EPOCH, Breakdown, ChildEntry, Record
from .paths import split_segments


def aggregate(
    records: Iterable[Record],
    base_path: str,
    since: dt.datetime = EPOCH,
    *,
    directory_policy: str = "any",
) -> Breakdown:
    """
    Group records under `base_path` into their immediate children.

    `base_path` is matched as a literal prefix and must be "" or end with "/".
    Records dated before `since`, or whose path is exactly `base_path`, are
    ignored.

    `directory_policy` decides how `is_directory` is derived when a child is
    seen both as a leaf and as a directory:
      - "any": a directory if any contributing record reaches below it.
      - "last": whatever the last contributing record says, which makes the
        result depend on record order.
    """
    if directory_policy not in DIRECTORY_POLICIES:
        raise ValueError(f"Invalid directory policy: {directory_policy!r} (expected one of {', '.join(DIRECTORY_POLICIES)})")

    out: Breakdown = {}
    for r in records:
        if r.date < since or not r.path.startswith(base_path):
            continue
        parts = split_segments(r.path[len(base_path) :])
        if not parts:
            continue
        key = parts[0]
        nested = len(parts) > 1
        entry = out.get(key)
        if entry is None:
            entry = out[key] = ChildEntry(name=key, count=0, is_directory=nested)
        entry.count += 1
        if directory_policy == "last":
            entry.is_directory = nested
        elif nested:
            entry.is_directory = True
    return out


def total_count(breakdown: Breakdown) -> int:
    return sum(e.count for e in breakdown.values())
