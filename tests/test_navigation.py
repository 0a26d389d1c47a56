from __future__ import annotations

import datetime as dt

from bug_explorer.models import EPOCH
from bug_explorer.navigation import NavigationState


def test_descend_and_ascend() -> None:
    nav = NavigationState()
    assert nav.base_path == ""
    assert nav.at_root
    nav.descend("src")
    nav.descend("app")
    assert nav.base_path == "src/app/"
    assert nav.segments == ["src", "app"]
    nav.ascend()
    assert nav.base_path == "src/"
    nav.ascend()
    assert nav.base_path == ""


def test_ascend_at_root_is_noop() -> None:
    nav = NavigationState()
    nav.ascend()
    nav.ascend()
    assert nav.base_path == ""


def test_descend_ignores_empty_names() -> None:
    nav = NavigationState(base_path="src/")
    nav.descend("")
    nav.descend("/")
    assert nav.base_path == "src/"
    nav.descend("/lib/")
    assert nav.base_path == "src/lib/"


def test_set_since_keeps_path() -> None:
    nav = NavigationState(base_path="src/")
    t = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    nav.set_since(t)
    assert nav.since == t
    assert nav.base_path == "src/"


def test_from_path_normalizes() -> None:
    assert NavigationState.from_path("").base_path == ""
    assert NavigationState.from_path("/").base_path == ""
    assert NavigationState.from_path("src").base_path == "src/"
    assert NavigationState.from_path("src//app/").base_path == "src/app/"
    assert NavigationState.from_path("src").since == EPOCH


def test_descended_and_ascended_return_copies() -> None:
    nav = NavigationState(base_path="src/")
    assert nav.descended("app").base_path == "src/app/"
    assert nav.ascended().base_path == ""
    assert nav.base_path == "src/"
