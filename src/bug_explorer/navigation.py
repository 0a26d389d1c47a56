from __future__ import annotations

import dataclasses
import datetime as dt

from .models import EPOCH
from .paths import join_base_path, split_segments


@dataclasses.dataclass
class NavigationState:
    base_path: str = ""
    since: dt.datetime = EPOCH

    @classmethod
    def from_path(cls, path: str, since: dt.datetime = EPOCH) -> NavigationState:
        return cls(base_path=join_base_path(split_segments(path or "")), since=since)

    @property
    def segments(self) -> list[str]:
        return split_segments(self.base_path)

    @property
    def at_root(self) -> bool:
        return not self.base_path

    def descend(self, name: str) -> None:
        name = (name or "").strip("/")
        if not name:
            return
        self.base_path = self.base_path + name + "/"

    def ascend(self) -> None:
        parts = self.segments
        if parts:
            parts.pop()
        self.base_path = join_base_path(parts)

    def set_since(self, since: dt.datetime) -> None:
        self.since = since

    def descended(self, name: str) -> NavigationState:
        nav = dataclasses.replace(self)
        nav.descend(name)
        return nav

    def ascended(self) -> NavigationState:
        nav = dataclasses.replace(self)
        nav.ascend()
        return nav
