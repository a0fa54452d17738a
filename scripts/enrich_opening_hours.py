#!/usr/bin/env python3
"""Fill opening hours and open-now from Place Details."""
from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.batch import SkipRecord, run_batch  # noqa: E402
from dogplaces.http import HttpClient  # noqa: E402
from dogplaces.places_client import PlacesClient  # noqa: E402
from dogplaces.reporting import ProgressReporter, read_rows, write_json  # noqa: E402

logger = logging.getLogger("enrich_opening_hours")

DEFAULT_INPUT = config.LISTINGS_PATH
DEFAULT_OUTPUT = config.DATA_DIR / "listings_with_hours.json"
ERROR_FIELD = "hoursEnrichError"


@dataclass(frozen=True)
class HoursSummary:
    updated: int
    missing: int
    errors: int


def format_hours(descriptions: Any) -> str:
    if not isinstance(descriptions, list) or not descriptions:
        return ""
    return " | ".join(str(d) for d in descriptions)


def apply_hours(record: Dict[str, Any], details: Dict[str, Any]) -> Dict[str, Any]:
    current = details.get("currentOpeningHours") or {}
    regular = details.get("openingHours") or {}
    hours = format_hours(current.get("weekdayDescriptions")) or format_hours(regular.get("weekdayDescriptions"))
    if not hours:
        record["hours"] = record.get("hours") or ""
        record["openNow"] = None
        record["hoursNeedsManualCheck"] = True
        return record
    open_now = current.get("openNow")
    if open_now is None:
        open_now = regular.get("openNow")
    record["hours"] = hours
    record["openNow"] = open_now
    record.pop("hoursNeedsManualCheck", None)
    return record


def enrich_opening_hours(
    rows: List[Dict[str, Any]],
    client: PlacesClient,
    pause_seconds: float = config.HOURS_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[List[Dict[str, Any]], HoursSummary]:
    def step(record: Dict[str, Any]) -> Dict[str, Any]:
        if not record.get("id"):
            raise SkipRecord()
        details = client.place_details(str(record["id"]), config.PLACES_DETAILS_FIELD_MASK_HOURS)
        return apply_hours(record, details)

    progress = ProgressReporter("hours", total_estimate=len(rows), log_every=config.PROGRESS_LOG_EVERY, logger=logger)
    outcome = run_batch(rows, step, pause_seconds=pause_seconds, sleep=sleep, progress=progress)
    updated = outcome.records(error_field=ERROR_FIELD)

    called = [r.record for r in outcome.results if getattr(r, "called_api", False)]
    missing = sum(1 for r in called if r.get("hoursNeedsManualCheck"))
    summary = HoursSummary(updated=len(called) - missing, missing=missing, errors=outcome.error_count)
    return updated, summary


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Enrich listings with opening hours")
    parser.add_argument("--in", dest="input_path", type=str, default=str(DEFAULT_INPUT))
    parser.add_argument("--out", dest="output_path", type=str, default=str(DEFAULT_OUTPUT))
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    config.load_env()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    api_key = config.env_value(config.GOOGLE_MAPS_API_KEY_ENV)
    if not api_key:
        print(f"Missing {config.GOOGLE_MAPS_API_KEY_ENV} in environment", file=sys.stderr)
        return 1

    input_path = Path(args.input_path).expanduser().resolve()
    output_path = Path(args.output_path).expanduser().resolve()
    if not input_path.exists():
        print(f"Input JSON not found: {input_path}", file=sys.stderr)
        return 1

    client = PlacesClient(HttpClient(api_key))
    updated, summary = enrich_opening_hours(read_rows(input_path), client)
    write_json(output_path, updated)

    print("Opening hours summary:")
    print(f"- updated: {summary.updated}")
    print(f"- missing_hours: {summary.missing}")
    print(f"- errors: {summary.errors}")
    print(f"- output: {output_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
