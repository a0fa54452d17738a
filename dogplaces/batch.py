"""Sequential best-effort batch runner for the enrichment jobs.

Each record either succeeds with an updated copy or fails with a reason;
a failure never stops the batch. The runner pauses for a fixed interval
after every external call.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .reporting import ProgressReporter

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


@dataclass(frozen=True)
class RecordSuccess:
    record: Record
    called_api: bool = True


@dataclass(frozen=True)
class RecordFailure:
    record: Record
    reason: str


RecordResult = Union[RecordSuccess, RecordFailure]


class SkipRecord(Exception):
    """Raised by a step to pass a record through untouched, with no API call."""


@dataclass
class BatchOutcome:
    results: List[RecordResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if isinstance(r, RecordSuccess))

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if isinstance(r, RecordFailure))

    @property
    def failures(self) -> List[RecordFailure]:
        return [r for r in self.results if isinstance(r, RecordFailure)]

    def records(self, error_field: Optional[str] = None) -> List[Record]:
        """Output records in input order; failures carry their reason in error_field."""
        out: List[Record] = []
        for result in self.results:
            if isinstance(result, RecordFailure) and error_field:
                out.append({**result.record, error_field: result.reason})
            else:
                out.append(result.record)
        return out


def run_batch(
    records: Iterable[Record],
    step: Callable[[Record], Record],
    pause_seconds: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
    progress: Optional[ProgressReporter] = None,
) -> BatchOutcome:
    """Apply step to each record in order.

    step returns the updated record. It raises SkipRecord to keep the
    input unchanged without pacing, or any other Exception to mark the
    record failed.
    """
    outcome = BatchOutcome()
    for record in records:
        try:
            updated = step(dict(record))
        except SkipRecord:
            outcome.results.append(RecordSuccess(dict(record), called_api=False))
        except Exception as exc:
            logger.warning("Record %s failed: %s", record.get("id") or record.get("name"), exc)
            outcome.results.append(RecordFailure(dict(record), str(exc)))
            if pause_seconds > 0:
                sleep(pause_seconds)
        else:
            outcome.results.append(RecordSuccess(updated))
            if pause_seconds > 0:
                sleep(pause_seconds)
        if progress is not None:
            progress.advance()
    if progress is not None:
        progress.finish()
    return outcome
