from __future__ import annotations

from html import escape
from urllib.parse import urlencode

from .aggregate import total_count
from .models import Breakdown, ShareThresholds
from .navigation import NavigationState
from .render import DIR_ICON, FILE_ICON, fmt_int, fmt_pct, share_bucket, share_of, sorted_entries

_STYLE = """
body { font-family: system-ui, sans-serif; margin: 0; background: #fff; color: #374151; }
main { padding: 1rem; max-width: 60rem; }
h2 { font-size: 1.25rem; margin: 0 0 .5rem; }
pre { color: #fff; background: #000; padding: 1.5rem; border-radius: .75rem; overflow-x: auto; }
.note { background: #bae6fd; color: #0c4a6e; padding: .5rem; border-radius: .5rem; font-size: .875rem; }
.nav { font-size: .875rem; color: #4b5563; margin: 1rem 0; }
.nav a, .nav button { margin-left: .5rem; padding: .25rem .5rem; background: #f3f4f6; border-radius: .25rem; border: 0; color: inherit; text-decoration: none; }
.entries { display: grid; gap: .5rem; }
.entry { display: flex; justify-content: space-between; align-items: center; padding: 1rem; border: 1px solid #e5e7eb; border-radius: .25rem; color: inherit; text-decoration: none; }
a.entry:hover { background: #f9fafb; }
.count { padding: .25rem .5rem; border-radius: .25rem; font-size: .875rem; }
.bucket-high .count { background: #fecaca; }
.bucket-medium .count { background: #fde68a; }
.bucket-low .count { background: #dbeafe; }
.share { color: #6b7280; margin-left: .5rem; font-size: .75rem; }
.empty { color: #6b7280; font-style: italic; }
.error { color: #991b1b; }
""".strip()


def page_url(nav: NavigationState, *, since_param: str = "") -> str:
    params: dict[str, str] = {}
    if nav.base_path:
        params["path"] = nav.base_path
    if since_param:
        params["since"] = since_param
    if not params:
        return "/"
    return "/?" + urlencode(params)


def _wrap(title: str, body: str, *, refresh_s: int = 0) -> str:
    refresh = f'<meta http-equiv="refresh" content="{refresh_s}">' if refresh_s > 0 else ""
    return (
        "<!doctype html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{escape(title)}</title>{refresh}"
        f"<style>{_STYLE}</style></head>"
        f"<body><main>{body}</main></body></html>\n"
    )


def render_loading_page() -> str:
    return _wrap("Bug Analysis by Directory", '<p class="empty">Loading bug data...</p>', refresh_s=1)


def render_breakdown_html(
    *,
    nav: NavigationState,
    breakdown: Breakdown,
    thresholds: ShareThresholds,
    command: str,
    since_param: str = "",
    error: str = "",
) -> str:
    parts: list[str] = []
    parts.append("<h2>Bug Analysis by Directory</h2>")
    parts.append("<p>Run the following command to generate stats</p>")
    parts.append(f"<pre><code>{escape(command)}</code></pre>")
    parts.append(
        '<p class="note">This command lists all the files modified by commits whose message matches the bug pattern, '
        "with the date of each commit.</p>"
    )
    if error:
        parts.append(f'<p class="error">Could not load bug data: {escape(error)}</p>')

    nav_html = f"Current path: {escape(nav.base_path or '/')}"
    if not nav.at_root:
        up = page_url(nav.ascended(), since_param=since_param)
        nav_html += f' <a href="{escape(up)}">Go up</a>'
    nav_html += (
        '<form method="get" action="/" style="display:inline">'
        f'<input type="hidden" name="path" value="{escape(nav.base_path)}">'
        f' Since <input type="date" name="since" value="{escape(since_param[:10])}">'
        "<button type=\"submit\">Apply</button></form>"
    )
    parts.append(f'<div class="nav">{nav_html}</div>')

    total = total_count(breakdown)
    rows: list[str] = []
    for e in sorted_entries(breakdown):
        share = share_of(e.count, total)
        bucket = share_bucket(share, thresholds)
        icon = DIR_ICON if e.is_directory else FILE_ICON
        inner = (
            f"<span>{icon} {escape(e.name)}</span>"
            f'<span><span class="count">{fmt_int(e.count)} bugs</span>'
            f'<span class="share">{fmt_pct(share)}</span></span>'
        )
        if e.is_directory:
            href = page_url(nav.descended(e.name), since_param=since_param)
            rows.append(f'<a class="entry bucket-{bucket}" href="{escape(href)}">{inner}</a>')
        else:
            rows.append(f'<div class="entry bucket-{bucket}">{inner}</div>')
    parts.append('<div class="entries">' + "".join(rows) + "</div>")
    if not rows:
        parts.append('<div class="empty">No bug fixes found in this directory</div>')
    return _wrap("Bug Analysis by Directory", "\n".join(parts))
