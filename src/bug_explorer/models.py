from __future__ import annotations

import dataclasses
import datetime as dt

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

DIRECTORY_POLICIES = ("any", "last")


@dataclasses.dataclass(frozen=True)
class Record:
    path: str
    date: dt.datetime


@dataclasses.dataclass
class ChildEntry:
    name: str
    count: int = 0
    is_directory: bool = True


Breakdown = dict[str, ChildEntry]


@dataclasses.dataclass(frozen=True)
class ShareThresholds:
    high: float = 0.25  # inclusive
    medium: float = 0.10  # inclusive


@dataclasses.dataclass(frozen=True)
class ExplorerConfig:
    csv_path: str = "bugs.csv"
    bug_pattern: str = "BUGS-[0-9]"
    exclude_path_prefixes: tuple[str, ...] = ("test",)
    exclude_path_globs: tuple[str, ...] = ()
    directory_policy: str = "any"
    host: str = "127.0.0.1"
    port: int = 8080
    share_thresholds: ShareThresholds = ShareThresholds()
