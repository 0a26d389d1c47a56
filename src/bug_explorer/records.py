from __future__ import annotations

import datetime as dt
import sys
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as futures_wait
from pathlib import Path

from .models import EPOCH, Record


class RecordParseError(ValueError):
    def __init__(self, line_no: int, line: str, reason: str) -> None:
        super().__init__(f"line {line_no}: {reason}: {line!r}")
        self.line_no = line_no
        self.line = line
        self.reason = reason


def parse_timestamp(value: str) -> dt.datetime:
    """
    Parse an ISO-8601 date or datetime. Naive values are taken as UTC so that
    every timestamp in the store compares against every other.
    """
    s = (value or "").strip()
    if not s:
        raise ValueError("empty timestamp")
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    ts = dt.datetime.fromisoformat(s)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=dt.timezone.utc)
    return ts


def parse_records(text: str) -> list[Record]:
    """
    Parse `path,timestamp` lines. Blank lines are skipped. A line holding only
    a path (no comma) is dated at the Unix epoch.
    """
    out: list[Record] = []
    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        fields = line.split(",")
        if len(fields) > 2:
            raise RecordParseError(line_no, raw, f"expected 2 fields, got {len(fields)}")
        path = fields[0].strip()
        if len(fields) == 1:
            out.append(Record(path=path, date=EPOCH))
            continue
        try:
            date = parse_timestamp(fields[1])
        except ValueError as e:
            raise RecordParseError(line_no, raw, f"bad timestamp ({e})") from e
        out.append(Record(path=path, date=date))
    return out


def read_records(path: Path) -> list[Record]:
    return parse_records(path.read_text(encoding="utf-8"))


class RecordStore:
    """
    Records loaded once from an external source, exposed as a future with
    three states: "pending", "loaded" and "failed". A failed load is reported
    once on stderr and behaves like an empty store afterwards.
    """

    def __init__(self, future: Future[list[Record]], *, source: str = "") -> None:
        self._future = future
        self.source = source
        self._reported = False
        future.add_done_callback(self._report_failure)

    @classmethod
    def from_records(cls, records: list[Record], *, source: str = "") -> RecordStore:
        fut: Future[list[Record]] = Future()
        fut.set_result(list(records))
        return cls(fut, source=source)

    @classmethod
    def load(cls, path: Path, *, executor: ThreadPoolExecutor | None = None) -> RecordStore:
        if executor is None:
            fut: Future[list[Record]] = Future()
            try:
                fut.set_result(read_records(path))
            except (OSError, UnicodeDecodeError, ValueError) as e:
                fut.set_exception(e)
            return cls(fut, source=str(path))
        return cls(executor.submit(read_records, path), source=str(path))

    def _report_failure(self, fut: Future[list[Record]]) -> None:
        if fut.cancelled() or fut.exception() is None or self._reported:
            return
        self._reported = True
        print(f"Error loading {self.source or 'records'}: {fut.exception()}", file=sys.stderr)

    @property
    def state(self) -> str:
        if not self._future.done():
            return "pending"
        if self._future.cancelled() or self._future.exception() is not None:
            return "failed"
        return "loaded"

    @property
    def error(self) -> str:
        if self.state != "failed":
            return ""
        if self._future.cancelled():
            return "load cancelled"
        return str(self._future.exception())

    @property
    def records(self) -> list[Record]:
        if self.state != "loaded":
            return []
        return self._future.result()

    def wait(self, timeout_s: float | None = None) -> str:
        futures_wait([self._future], timeout=timeout_s)
        return self.state
