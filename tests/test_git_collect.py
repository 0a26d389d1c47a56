from __future__ import annotations

import datetime as dt
import os
import subprocess
from pathlib import Path

import pytest

from bug_explorer.git import collect_bug_records, parse_name_only_log, shell_command, write_records_csv
from bug_explorer.models import Record
from bug_explorer.records import read_records


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _commit(repo: Path, files: dict[str, str], message: str, date: str) -> None:
    for rel, content in files.items():
        p = repo / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        _run(["git", "add", rel], cwd=repo)
    env = os.environ.copy()
    env["GIT_AUTHOR_DATE"] = date
    env["GIT_COMMITTER_DATE"] = date
    _run(["git", "commit", "-m", message], cwd=repo, env=env)


def _init_repo(repo: Path) -> None:
    repo.mkdir(parents=True, exist_ok=True)
    _run(["git", "init"], cwd=repo)
    _run(["git", "config", "user.name", "Repo User"], cwd=repo)
    _run(["git", "config", "user.email", "repo@example.com"], cwd=repo)
    _commit(repo, {"src/app.py": "a\n", "README.md": "r\n"}, "init", "2024-01-01T00:00:00Z")
    _commit(repo, {"src/app.py": "b\n", "test/test_app.py": "t\n"}, "BUGS-12 fix crash", "2024-02-01T10:00:00Z")
    _commit(repo, {"src/lib/util.py": "u\n", "src/app.py": "c\n"}, "Fix BUGS-7 again", "2024-03-01T12:00:00+02:00")
    _commit(repo, {"docs/guide.md": "g\n"}, "BUGS-x not a bug id", "2024-04-01T00:00:00Z")


def test_parse_name_only_log() -> None:
    out = "\x1e2024-02-01T10:00:00Z\n\nsrc/a.py\nsrc/b.py\n\x1e2024-01-01T00:00:00Z\n\x1e2023-12-01T00:00:00Z\n\nc.py\n"
    assert parse_name_only_log(out) == [
        ("2024-02-01T10:00:00Z", ["src/a.py", "src/b.py"]),
        ("2024-01-01T00:00:00Z", []),
        ("2023-12-01T00:00:00Z", ["c.py"]),
    ]


def test_collect_bug_records(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _init_repo(repo)

    records = collect_bug_records(repo, pattern="BUGS-[0-9]", exclude_prefixes=["test"])
    utc = dt.timezone.utc
    assert sorted(records, key=lambda r: (r.date, r.path)) == [
        Record("src/app.py", dt.datetime(2024, 2, 1, 10, 0, tzinfo=utc)),
        Record("src/app.py", dt.datetime(2024, 3, 1, 10, 0, tzinfo=utc)),
        Record("src/lib/util.py", dt.datetime(2024, 3, 1, 10, 0, tzinfo=utc)),
    ]

    with_tests = collect_bug_records(repo, pattern="BUGS-[0-9]")
    assert sorted(r.path for r in with_tests) == ["src/app.py", "src/app.py", "src/lib/util.py", "test/test_app.py"]


def test_collect_bug_records_not_a_repo(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        collect_bug_records(tmp_path, pattern="BUGS-[0-9]")


def test_write_records_csv_round_trip(tmp_path: Path, capsys) -> None:
    utc = dt.timezone.utc
    records = [
        Record("src/a.py", dt.datetime(2024, 1, 1, tzinfo=utc)),
        Record("odd,name.py", dt.datetime(2024, 1, 2, tzinfo=utc)),
    ]
    out = tmp_path / "public" / "bugs.csv"
    assert write_records_csv(out, records) == 1
    assert out.read_text(encoding="utf-8") == "src/a.py,2024-01-01T00:00:00+00:00\n"
    assert read_records(out) == records[:1]
    assert "skipped 1 path" in capsys.readouterr().err


def test_shell_command() -> None:
    cmd = shell_command("BUGS-[0-9]", ["test", "vendor/"])
    assert cmd.startswith('git log --all --format="%H" --grep="BUGS-[0-9]" | while read commit; do')
    assert 'grep -v -e "^test/" -e "^vendor/"' in cmd
    assert cmd.endswith("done > bugs.csv")
    assert "grep -v" not in shell_command("BUGS-[0-9]", [])
