from __future__ import annotations

import json
import sys
import threading
import webbrowser
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from .aggregate import aggregate
from .git import shell_command
from .models import EPOCH, ExplorerConfig
from .navigation import NavigationState
from .page import render_breakdown_html, render_loading_page
from .records import RecordStore, parse_timestamp
from .render import breakdown_payload


class BadQuery(ValueError):
    pass


def navigation_from_query(query: str) -> tuple[NavigationState, str]:
    """Build the navigation state for `?path=&since=`. Returns the state and the raw `since` value."""
    params = parse_qs(query, keep_blank_values=True)
    path = (params.get("path") or [""])[-1]
    since_param = (params.get("since") or [""])[-1].strip()
    since = EPOCH
    if since_param:
        try:
            since = parse_timestamp(since_param)
        except ValueError as e:
            raise BadQuery(f"invalid since: {since_param!r} ({e})") from e
    return NavigationState.from_path(path, since=since), since_param


def make_handler(store: RecordStore, cfg: ExplorerConfig, *, verbose: bool = False) -> type[BaseHTTPRequestHandler]:
    command = shell_command(cfg.bug_pattern, cfg.exclude_path_prefixes, output=Path(cfg.csv_path).name or "bugs.csv")

    class Handler(BaseHTTPRequestHandler):
        server_version = "bug-explorer"

        def _send(self, code: int, body: str, content_type: str) -> None:
            data = body.encode("utf-8")
            self.send_response(code)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(data)))
            self.send_header("Cache-Control", "no-store")
            self.end_headers()
            self.wfile.write(data)

        def _send_json(self, code: int, obj: object) -> None:
            self._send(code, json.dumps(obj, indent=2) + "\n", "application/json; charset=utf-8")

        def do_GET(self) -> None:  # noqa: N802
            parts = urlsplit(self.path)
            route = parts.path
            if route == "/api/status":
                self._send_json(200, {"state": store.state, "error": store.error, "records": len(store.records)})
                return
            if route not in ("/", "/api/breakdown"):
                self._send_json(404, {"error": "not_found", "message": f"no route for {route}"})
                return
            try:
                nav, since_param = navigation_from_query(parts.query)
            except BadQuery as e:
                self._send_json(400, {"error": "bad_request", "message": str(e)})
                return

            breakdown = aggregate(store.records, nav.base_path, nav.since, directory_policy=cfg.directory_policy)
            if route == "/api/breakdown":
                payload = breakdown_payload(
                    state=store.state,
                    error=store.error,
                    nav=nav,
                    breakdown=breakdown,
                    thresholds=cfg.share_thresholds,
                )
                self._send_json(200, payload)
                return
            if store.state == "pending":
                self._send(200, render_loading_page(), "text/html; charset=utf-8")
                return
            html = render_breakdown_html(
                nav=nav,
                breakdown=breakdown,
                thresholds=cfg.share_thresholds,
                command=command,
                since_param=since_param,
                error=store.error,
            )
            self._send(200, html, "text/html; charset=utf-8")

        def log_message(self, fmt: str, *args: object) -> None:
            if verbose:
                sys.stderr.write("%s - %s\n" % (self.address_string(), fmt % args))

    return Handler


def make_server(store: RecordStore, cfg: ExplorerConfig, *, host: str | None = None, port: int | None = None, verbose: bool = False) -> ThreadingHTTPServer:
    handler = make_handler(store, cfg, verbose=verbose)
    return ThreadingHTTPServer((host if host is not None else cfg.host, cfg.port if port is None else port), handler)


def serve(server: ThreadingHTTPServer, *, open_browser: bool = False) -> None:
    host, port = server.server_address[:2]
    url = f"http://{host}:{port}/"
    print(f"Serving bug explorer at: {url}")
    print("Press Ctrl+C to stop the server")
    if open_browser:
        threading.Timer(0.5, webbrowser.open, args=(url,)).start()
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        server.server_close()
