"""Output writers and progress logging for the batch jobs."""
from __future__ import annotations

import csv
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, TextIO, Union

PathLike = Union[str, Path]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@contextmanager
def atomic_writer(
    path: PathLike,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    path = str(path)
    dir_path = os.path.dirname(path) or "."
    os.makedirs(dir_path, exist_ok=True)
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_write_text(path: PathLike, text: str) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        f.write(text)


def read_json(path: PathLike) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def write_json(path: PathLike, payload: Any) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def _csv_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "|".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return value


def write_csv(path: PathLike, rows: Iterable[Dict[str, Any]], fieldnames: Sequence[str]) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(fieldnames), extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({key: _csv_cell(row.get(key)) for key in fieldnames})


class ProgressReporter:
    """Logs "Progress: stage=... processed=x/y" every log_every records."""

    def __init__(
        self,
        stage: str,
        total_estimate: Optional[int] = None,
        log_every: int = 25,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.stage = stage
        self.total_estimate = total_estimate
        self.log_every = max(1, int(log_every)) if log_every else 0
        self.logger = logger or logging.getLogger(__name__)
        self.processed_count = 0
        self._next_log = self.log_every

    def advance(self, count: int = 1) -> None:
        if count <= 0:
            return
        self.processed_count += count
        if self.log_every and self.processed_count >= self._next_log:
            self._log()
            self._next_log += self.log_every

    def finish(self) -> None:
        self._log()

    def _log(self) -> None:
        if self.total_estimate is None:
            self.logger.info("Progress: stage=%s processed=%s", self.stage, self.processed_count)
        else:
            self.logger.info(
                "Progress: stage=%s processed=%s/%s",
                self.stage,
                self.processed_count,
                self.total_estimate,
            )


def read_rows(path: PathLike) -> List[Dict[str, Any]]:
    """Read a JSON array of objects; non-object entries are dropped."""
    payload = read_json(path)
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON array in {path}")
    return [dict(item) for item in payload if isinstance(item, dict)]
