from __future__ import annotations

import argparse
import dataclasses
import datetime as dt
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .aggregate import aggregate
from .config import ensure_config_file, explorer_config_from_dict, load_config
from .git import collect_bug_records, shell_command, write_records_csv
from .models import DIRECTORY_POLICIES, EPOCH, ExplorerConfig
from .navigation import NavigationState
from .records import RecordStore, parse_timestamp
from .render import render_breakdown_text


def _since_arg(value: str) -> dt.datetime:
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid timestamp {value!r} (expected ISO-8601, e.g. 2024-01-31)") from e


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json.")


def _add_view_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--csv", type=Path, default=None, help="Path to the bugs CSV (overrides `csv_path`).")
    p.add_argument("--since", type=_since_arg, default=None, help="Only count bug fixes on or after this date.")
    p.add_argument("--policy", choices=list(DIRECTORY_POLICIES), default=None, help="Directory classification policy (overrides `directory_policy`).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bug-explorer", description="Explore bug-fixing commits by directory.")
    sub = parser.add_subparsers(dest="command", metavar="<command>")

    p = sub.add_parser("serve", help="Serve the browser UI.")
    _add_common(p)
    p.add_argument("--csv", type=Path, default=None, help="Path to the bugs CSV (overrides `csv_path`).")
    p.add_argument("--policy", choices=list(DIRECTORY_POLICIES), default=None, help="Directory classification policy (overrides `directory_policy`).")
    p.add_argument("--host", type=str, default=None, help="Bind address (overrides `host`).")
    p.add_argument("--port", type=int, default=None, help="Port (overrides `port`; 0 picks a free one).")
    p.add_argument("--open", action="store_true", help="Open the UI in a web browser.")
    p.add_argument("--verbose", action="store_true", help="Log every HTTP request to stderr.")

    p = sub.add_parser("show", help="Print the breakdown for one directory.")
    _add_common(p)
    _add_view_args(p)
    p.add_argument("--path", type=str, default="", help="Directory to show (default: repository root).")

    p = sub.add_parser("browse", help="Navigate the breakdown interactively in the terminal.")
    _add_common(p)
    _add_view_args(p)

    p = sub.add_parser("collect", help="Write the bugs CSV from a git repository.")
    _add_common(p)
    p.add_argument("--repo", type=Path, default=Path("."), help="Git repository to read.")
    p.add_argument("--output", type=Path, default=None, help="CSV to write (overrides `csv_path`).")
    p.add_argument("--pattern", type=str, default=None, help="Commit message pattern (overrides `bug_pattern`).")
    p.add_argument("--exclude-prefix", action="append", default=None, help="Path prefix to skip (repeatable; overrides `exclude_path_prefixes`).")

    p = sub.add_parser("command", help="Print the shell command that generates the bugs CSV.")
    _add_common(p)
    p.add_argument("--pattern", type=str, default=None, help="Commit message pattern (overrides `bug_pattern`).")

    p = sub.add_parser("init", help="Write a config.json with default values.")
    _add_common(p)
    return parser


def _resolve_config(args: argparse.Namespace) -> ExplorerConfig:
    try:
        cfg = explorer_config_from_dict(load_config(args.config))
    except (TypeError, ValueError) as e:
        raise SystemExit(f"Invalid config {args.config}: {e}") from e
    overrides: dict[str, object] = {}
    csv_path = getattr(args, "csv", None) or getattr(args, "output", None)
    if csv_path is not None:
        overrides["csv_path"] = str(csv_path)
    if getattr(args, "policy", None):
        overrides["directory_policy"] = args.policy
    if getattr(args, "pattern", None):
        overrides["bug_pattern"] = args.pattern
    if getattr(args, "exclude_prefix", None) is not None:
        overrides["exclude_path_prefixes"] = tuple(args.exclude_prefix)
    if getattr(args, "host", None):
        overrides["host"] = args.host
    if getattr(args, "port", None) is not None:
        overrides["port"] = args.port
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def _since_label(since: dt.datetime) -> str:
    return "" if since == EPOCH else since.date().isoformat()


def _print_breakdown(store: RecordStore, nav: NavigationState, cfg: ExplorerConfig) -> None:
    breakdown = aggregate(store.records, nav.base_path, nav.since, directory_policy=cfg.directory_policy)
    print(render_breakdown_text(nav=nav, breakdown=breakdown, thresholds=cfg.share_thresholds, since_label=_since_label(nav.since)))


def _cmd_show(args: argparse.Namespace, cfg: ExplorerConfig) -> int:
    store = RecordStore.load(Path(cfg.csv_path))
    nav = NavigationState.from_path(args.path, since=args.since or EPOCH)
    _print_breakdown(store, nav, cfg)
    return 0 if store.state == "loaded" else 1


def _prompt_str(prompt: str) -> str | None:
    try:
        return input(prompt).strip()
    except EOFError:
        return None


BROWSE_HELP = """commands:
  cd <name>      descend into a directory (`cd ..` goes up)
  up             go up one level
  since <date>   only count bug fixes on or after <date> (`since all` clears it)
  ls             show the current directory again
  q              quit"""


def _cmd_browse(args: argparse.Namespace, cfg: ExplorerConfig) -> int:
    store = RecordStore.load(Path(cfg.csv_path))
    nav = NavigationState(since=args.since or EPOCH)
    print(BROWSE_HELP)
    print("")
    _print_breakdown(store, nav, cfg)
    while True:
        line = _prompt_str("> ")
        if line is None:
            print("")
            break
        cmd, _, arg = line.partition(" ")
        arg = arg.strip()
        if not cmd:
            continue
        if cmd in ("q", "quit", "exit"):
            break
        if cmd == "up" or (cmd == "cd" and arg == ".."):
            nav.ascend()
        elif cmd == "cd":
            breakdown = aggregate(store.records, nav.base_path, nav.since, directory_policy=cfg.directory_policy)
            entry = breakdown.get(arg)
            if entry is None or not entry.is_directory:
                print(f"Not a directory here: {arg!r}", file=sys.stderr)
                continue
            nav.descend(arg)
        elif cmd == "since":
            if arg in ("", "all"):
                nav.set_since(EPOCH)
            else:
                try:
                    nav.set_since(parse_timestamp(arg))
                except ValueError:
                    print(f"Invalid date: {arg!r}", file=sys.stderr)
                    continue
        elif cmd != "ls":
            print(BROWSE_HELP)
            continue
        print("")
        _print_breakdown(store, nav, cfg)
    return 0 if store.state == "loaded" else 1


def _cmd_serve(args: argparse.Namespace, cfg: ExplorerConfig) -> int:
    from .server import make_server, serve

    with ThreadPoolExecutor(max_workers=1) as executor:
        store = RecordStore.load(Path(cfg.csv_path), executor=executor)
        try:
            server = make_server(store, cfg, verbose=bool(args.verbose))
        except OSError as e:
            print(f"Could not listen on {cfg.host}:{cfg.port}: {e}", file=sys.stderr)
            return 1
        serve(server, open_browser=bool(args.open))
    return 0


def _cmd_collect(args: argparse.Namespace, cfg: ExplorerConfig) -> int:
    repo = args.repo.resolve()
    try:
        records = collect_bug_records(
            repo,
            pattern=cfg.bug_pattern,
            exclude_prefixes=cfg.exclude_path_prefixes,
            exclude_globs=cfg.exclude_path_globs,
        )
    except RuntimeError as e:
        print(f"Could not read bug commits from {repo}: {e}", file=sys.stderr)
        return 1
    out = Path(cfg.csv_path)
    written = write_records_csv(out, records)
    print(f"Wrote {written} records to {out}")
    return 0


def _cmd_command(args: argparse.Namespace, cfg: ExplorerConfig) -> int:
    print(shell_command(cfg.bug_pattern, cfg.exclude_path_prefixes, output=Path(cfg.csv_path).name))
    return 0


def _cmd_init(args: argparse.Namespace, cfg: ExplorerConfig) -> int:
    if ensure_config_file(args.config):
        print(f"Wrote new config: {args.config}")
    else:
        print(f"Config already exists: {args.config}")
    return 0


_COMMANDS = {
    "serve": _cmd_serve,
    "show": _cmd_show,
    "browse": _cmd_browse,
    "collect": _cmd_collect,
    "command": _cmd_command,
    "init": _cmd_init,
}


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0
    cfg = _resolve_config(args)
    return _COMMANDS[args.command](args, cfg)


if __name__ == "__main__":
    raise SystemExit(main())
