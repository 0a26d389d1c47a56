from __future__ import annotations

import json
from pathlib import Path

import pytest

from bug_explorer.config import ensure_config_file, explorer_config_from_dict, load_config
from bug_explorer.models import ExplorerConfig, ShareThresholds


def test_load_config_missing_is_empty(tmp_path: Path) -> None:
    assert load_config(tmp_path / "config.json") == {}


def test_explorer_config_defaults() -> None:
    cfg = explorer_config_from_dict({})
    assert cfg == ExplorerConfig()
    assert cfg.exclude_path_prefixes == ("test",)
    assert cfg.directory_policy == "any"


def test_explorer_config_values() -> None:
    cfg = explorer_config_from_dict(
        {
            "csv_path": "public/bugs.csv",
            "bug_pattern": "fix(es)?",
            "exclude_path_prefixes": [],
            "exclude_path_globs": ["*.lock"],
            "directory_policy": "LAST",
            "port": "9000",
            "share_thresholds": {"high": 0.5},
        }
    )
    assert cfg.csv_path == "public/bugs.csv"
    assert cfg.bug_pattern == "fix(es)?"
    assert cfg.exclude_path_prefixes == ()
    assert cfg.exclude_path_globs == ("*.lock",)
    assert cfg.directory_policy == "last"
    assert cfg.port == 9000
    assert cfg.share_thresholds == ShareThresholds(high=0.5, medium=0.10)


def test_explorer_config_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        explorer_config_from_dict({"directory_policy": "sometimes"})
    with pytest.raises(ValueError):
        explorer_config_from_dict({"share_thresholds": {"high": 0.1, "medium": 0.2}})


def test_ensure_config_file_round_trips_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.json"
    assert ensure_config_file(config_path) is True
    assert ensure_config_file(config_path) is False
    raw = json.loads(config_path.read_text(encoding="utf-8"))
    assert raw["exclude_path_prefixes"] == ["test"]
    assert raw["share_thresholds"] == {"high": 0.25, "medium": 0.1}
    assert explorer_config_from_dict(load_config(config_path)) == ExplorerConfig()
