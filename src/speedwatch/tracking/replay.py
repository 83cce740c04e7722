"""ReplaySource — serves recorded fixes from a CSV or JSON-lines track file."""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

_logger = logging.getLogger(__name__)


class ReplaySource:
    """Reads a recorded track and returns one raw fix per :meth:`read_fix` call.

    ``.csv`` files need a header row (``latitude,longitude,speed,heading,timestamp``);
    any other suffix is read as JSON lines.  Blank cells become ``None``.
    JSON lines that do not decode to an object are skipped and counted in
    :attr:`skipped`.
    Once exhausted, :meth:`read_fix` returns ``None``.

    Parameters
    ----------
    path:
        Track file to replay.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self.skipped = 0
        self._rows: Iterator[dict] = iter(self._load())

    @property
    def path(self) -> Path:
        return self._path

    def read_fix(self) -> dict | None:
        return next(self._rows, None)

    def __iter__(self) -> Iterator[dict]:
        return self

    def __next__(self) -> dict:
        row = self.read_fix()
        if row is None:
            raise StopIteration
        return row

    def _load(self) -> list[dict]:
        with self._path.open(encoding="utf-8", newline="") as fh:
            if self._path.suffix.lower() == ".csv":
                return [
                    {key: (value if value != "" else None) for key, value in row.items()}
                    for row in csv.DictReader(fh)
                ]
            return self._json_rows(fh)

    def _json_rows(self, lines: Iterable[str]) -> list[dict]:
        rows = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as exc:
                row = None
                reason = exc.msg
            else:
                reason = f"expected an object, got {type(row).__name__}"
            if not isinstance(row, dict):
                self.skipped += 1
                _logger.warning("%s:%d: skipping malformed fix (%s)", self._path.name, lineno, reason)
                continue
            rows.append(row)
        return rows
