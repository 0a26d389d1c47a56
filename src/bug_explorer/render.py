from __future__ import annotations

from .aggregate import total_count
from .models import Breakdown, ChildEntry, ShareThresholds
from .navigation import NavigationState

DIR_ICON = "📁"
FILE_ICON = "📄"


def fmt_int(n: int) -> str:
    n = int(n)
    sign = "-" if n < 0 else ""
    v = float(abs(n))
    if v < 1000:
        return f"{sign}{int(v)}"
    suffixes = ["K", "M", "B", "T"]
    idx = -1
    while v >= 1000 and idx < len(suffixes) - 1:
        v /= 1000.0
        idx += 1
    digits = max(0, 3 - len(str(int(v))))
    s = f"{v:.{digits}f}"
    if float(s) >= 1000 and idx < len(suffixes) - 1:
        v /= 1000.0
        idx += 1
        s = f"{v:.2f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return f"{sign}{s}{suffixes[idx]}"


def fmt_pct(share: float) -> str:
    pct = share * 100.0
    if pct == 0 or pct >= 10:
        return f"{pct:.0f}%"
    return f"{pct:.1f}%"


def trunc(s: str, max_len: int) -> str:
    if len(s) <= max_len:
        return s
    if max_len <= 1:
        return s[:max_len]
    return s[: max_len - 1] + "…"


def bar(value: int, max_value: int, width: int = 22) -> str:
    if max_value <= 0:
        filled = 0
    else:
        filled = int(round((value / max_value) * width))
    filled = max(0, min(width, filled))
    return "[" + ("#" * filled) + ("-" * (width - filled)) + "]"


def sorted_entries(breakdown: Breakdown) -> list[ChildEntry]:
    return sorted(breakdown.values(), key=lambda e: (-e.count, e.name))


def share_of(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return count / total


def share_bucket(share: float, thresholds: ShareThresholds) -> str:
    if share >= thresholds.high:
        return "high"
    if share >= thresholds.medium:
        return "medium"
    return "low"


def breakdown_rows(breakdown: Breakdown, thresholds: ShareThresholds) -> list[dict]:
    total = total_count(breakdown)
    rows: list[dict] = []
    for e in sorted_entries(breakdown):
        share = share_of(e.count, total)
        rows.append(
            {
                "name": e.name,
                "count": e.count,
                "is_directory": e.is_directory,
                "share": round(share, 4),
                "bucket": share_bucket(share, thresholds),
            }
        )
    return rows


def breakdown_payload(*, state: str, error: str, nav: NavigationState, breakdown: Breakdown, thresholds: ShareThresholds) -> dict:
    parent = None if nav.at_root else nav.ascended().base_path
    return {
        "state": state,
        "error": error,
        "path": nav.base_path,
        "parent": parent,
        "since": nav.since.isoformat(),
        "total": total_count(breakdown),
        "entries": breakdown_rows(breakdown, thresholds),
    }


def render_breakdown_text(
    *,
    nav: NavigationState,
    breakdown: Breakdown,
    thresholds: ShareThresholds,
    since_label: str = "",
    name_width: int = 40,
) -> str:
    rows = sorted_entries(breakdown)
    total = total_count(breakdown)
    max_count = rows[0].count if rows else 0

    lines: list[str] = []
    lines.append(f"Current path: {nav.base_path or '/'}")
    if since_label:
        lines.append(f"Since: {since_label}")
    lines.append(f"Bug fixes: {fmt_int(total)}")
    lines.append("")
    if not rows:
        lines.append("No bug fixes found in this directory")
        return "\n".join(lines)

    for e in rows:
        share = share_of(e.count, total)
        icon = DIR_ICON if e.is_directory else FILE_ICON
        name = trunc(e.name + ("/" if e.is_directory else ""), name_width)
        lines.append(
            f"{icon} {name:<{name_width}} {fmt_int(e.count):>6} bugs  {fmt_pct(share):>6}  "
            f"{bar(e.count, max_count)} {share_bucket(share, thresholds)}"
        )
    return "\n".join(lines)
