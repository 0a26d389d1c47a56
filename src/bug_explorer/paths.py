from __future__ import annotations

import fnmatch


def _norm(path: str) -> str:
    p = (path or "").replace("\\", "/")
    while p.startswith("./"):
        p = p[2:]
    return p


def split_segments(path: str) -> list[str]:
    return [p for p in path.split("/") if p]


def join_base_path(segments: list[str]) -> str:
    """Inverse of `split_segments` for base paths: "" at the root, otherwise a trailing "/"."""
    return "/".join(segments) + "/" if segments else ""


def should_exclude_path(path: str, exclude_prefixes: list[str] | tuple[str, ...], exclude_globs: list[str] | tuple[str, ...]) -> bool:
    p = _norm(path)
    for pref in exclude_prefixes:
        pr = _norm(pref)
        if not pr:
            continue
        if not pr.endswith("/"):
            pr = pr + "/"
        if p.startswith(pr):
            return True
    for pat in exclude_globs:
        if pat and fnmatch.fnmatch(p, pat):
            return True
    return False
