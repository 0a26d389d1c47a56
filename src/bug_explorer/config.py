from __future__ import annotations

import dataclasses
import json
from pathlib import Path

from .models import DIRECTORY_POLICIES, ExplorerConfig, ShareThresholds


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    return json.loads(config_path.read_text(encoding="utf-8"))


def save_config(config_path: Path, config: dict) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def config_to_dict(cfg: ExplorerConfig) -> dict:
    out = dataclasses.asdict(cfg)
    out["exclude_path_prefixes"] = list(cfg.exclude_path_prefixes)
    out["exclude_path_globs"] = list(cfg.exclude_path_globs)
    return out


def explorer_config_from_dict(config: dict) -> ExplorerConfig:
    defaults = ExplorerConfig()
    policy = str(config.get("directory_policy", defaults.directory_policy) or defaults.directory_policy).strip().lower()
    if policy not in DIRECTORY_POLICIES:
        raise ValueError(f"Invalid directory_policy in config: {policy!r} (expected one of {', '.join(DIRECTORY_POLICIES)})")

    thresholds_cfg = config.get("share_thresholds") or {}
    if not isinstance(thresholds_cfg, dict):
        thresholds_cfg = {}
    thresholds = ShareThresholds(
        high=float(thresholds_cfg.get("high", defaults.share_thresholds.high)),
        medium=float(thresholds_cfg.get("medium", defaults.share_thresholds.medium)),
    )
    if thresholds.medium > thresholds.high:
        raise ValueError(f"share_thresholds.medium ({thresholds.medium}) must not exceed share_thresholds.high ({thresholds.high})")

    prefixes = config.get("exclude_path_prefixes")
    globs = config.get("exclude_path_globs")
    return ExplorerConfig(
        csv_path=str(config.get("csv_path", defaults.csv_path) or defaults.csv_path),
        bug_pattern=str(config.get("bug_pattern", defaults.bug_pattern) or defaults.bug_pattern),
        exclude_path_prefixes=tuple(str(p) for p in prefixes) if isinstance(prefixes, list) else defaults.exclude_path_prefixes,
        exclude_path_globs=tuple(str(g) for g in globs) if isinstance(globs, list) else defaults.exclude_path_globs,
        directory_policy=policy,
        host=str(config.get("host", defaults.host) or defaults.host),
        port=int(config.get("port", defaults.port)),
        share_thresholds=thresholds,
    )


def ensure_config_file(config_path: Path) -> bool:
    """Write a config with default values unless one exists. Returns True if written."""
    if config_path.exists():
        return False
    save_config(config_path, config_to_dict(ExplorerConfig()))
    return True
