from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from .models import Record
from .paths import should_exclude_path
from .records import parse_timestamp

_COMMIT_MARK = "\x1e"


def run_git(args: list[str], cwd: Path, timeout_s: int = 300) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def parse_name_only_log(out: str) -> list[tuple[str, list[str]]]:
    """
    Parse `git log --name-only --format=%x1e%aI` output into (author date, files)
    pairs, one per commit.
    """
    commits: list[tuple[str, list[str]]] = []
    for chunk in out.split(_COMMIT_MARK):
        lines = [ln.strip() for ln in chunk.splitlines()]
        lines = [ln for ln in lines if ln]
        if not lines:
            continue
        commits.append((lines[0], lines[1:]))
    return commits


def collect_bug_records(
    repo: Path,
    *,
    pattern: str,
    exclude_prefixes: list[str] | tuple[str, ...] = (),
    exclude_globs: list[str] | tuple[str, ...] = (),
    timeout_s: int = 300,
) -> list[Record]:
    """
    One record per file touched by each commit (on any ref) whose message
    matches `pattern`, dated with the commit's author date.
    """
    args = [
        "-c",
        "core.quotepath=off",
        "log",
        "--all",
        f"--grep={pattern}",
        "--name-only",
        f"--format={_COMMIT_MARK}%aI",
    ]
    code, out, err = run_git(args, cwd=repo, timeout_s=timeout_s)
    if code != 0:
        raise RuntimeError(f"git log exited {code}: {err.strip()[:500]}")

    records: list[Record] = []
    for date_s, files in parse_name_only_log(out):
        date = parse_timestamp(date_s)
        for f in files:
            if should_exclude_path(f, exclude_prefixes, exclude_globs):
                continue
            records.append(Record(path=f, date=date))
    return records


def write_records_csv(path: Path, records: list[Record]) -> int:
    """Write `path,timestamp` lines. Paths containing a comma cannot be represented and are skipped."""
    lines: list[str] = []
    skipped = 0
    for r in records:
        if "," in r.path:
            skipped += 1
            continue
        lines.append(f"{r.path},{r.date.isoformat()}")
    if skipped:
        print(f"Warning: skipped {skipped} path(s) containing ',' (not representable in {path.name})", file=sys.stderr)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return len(lines)


def shell_command(pattern: str, exclude_prefixes: list[str] | tuple[str, ...] = (), output: str = "bugs.csv") -> str:
    """The shell pipeline equivalent to `collect_bug_records` + `write_records_csv`."""
    excl = [p.strip("/") for p in exclude_prefixes if p.strip("/")]
    filt = ""
    if excl:
        filt = " | grep -v " + " ".join(f'-e "^{p}/"' for p in excl)
    return (
        f'git log --all --format="%H" --grep="{pattern}" | while read commit; do\n'
        f'  date=$(git show -s --format=%aI $commit)\n'
        f'  git show --pretty="" --name-only $commit{filt} | sed "s|$|,$date|"\n'
        f"done > {output}"
    )
