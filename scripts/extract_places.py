#!/usr/bin/env python3
"""Grid-scan Singapore with Places Text Search and save well-rated candidates.

Each (grid point, query) pair is one job. A job pages through up to
three result pages; the scan keeps places with coordinates, a rating of
at least FILTER_MIN_RATING and at least FILTER_MIN_REVIEWS reviews, and
merges repeats by place id.
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.batch import run_batch  # noqa: E402
from dogplaces.geo import grid_points  # noqa: E402
from dogplaces.http import HttpClient  # noqa: E402
from dogplaces.models import Point  # noqa: E402
from dogplaces.places_client import PlacesClient  # noqa: E402
from dogplaces.reporting import ProgressReporter, write_csv, write_json  # noqa: E402

logger = logging.getLogger("extract_places")

DEFAULT_OUTPUT = config.DATA_DIR / "listings_google.json"
CSV_FIELDS: Sequence[str] = (
    "id", "name", "categories", "address", "lat", "lng",
    "rating", "userRatingCount", "website", "phone",
)


@dataclass(frozen=True)
class ExtractSummary:
    grid_points: int
    queries: int
    jobs: int
    search_errors: int
    places: int


def passes_filter(place: Dict[str, Any]) -> bool:
    if place.get("lat") is None or place.get("lng") is None:
        return False
    rating = place.get("rating")
    reviews = place.get("userRatingCount")
    if rating is None or reviews is None:
        return False
    return rating >= config.FILTER_MIN_RATING and reviews >= config.FILTER_MIN_REVIEWS


def merge_place(by_id: Dict[str, Dict[str, Any]], place: Dict[str, Any], category: str) -> None:
    """Add a hit to by_id, unioning categories and filling missing fields."""
    existing = by_id.get(place["id"])
    if existing is None:
        by_id[place["id"]] = {**place, "category": category, "categories": [category]}
        return
    if category not in existing["categories"]:
        existing["categories"].append(category)
    for key in ("website", "phone", "address"):
        existing[key] = existing.get(key) or place.get(key) or ""
    for key in ("rating", "userRatingCount"):
        if existing.get(key) is None:
            existing[key] = place.get(key)
    existing["types"] = list(dict.fromkeys(list(existing.get("types") or []) + list(place.get("types") or [])))


def sort_places(places: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(
        places,
        key=lambda p: (-(p.get("userRatingCount") or 0), -(p.get("rating") or 0)),
    )


def extract_places(
    client: PlacesClient,
    points: Sequence[Point],
    queries: Sequence[Dict[str, str]] = config.EXTRACT_QUERIES,
    pause_seconds: float = config.EXTRACT_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[List[Dict[str, Any]], ExtractSummary]:
    by_id: Dict[str, Dict[str, Any]] = {}
    jobs = [
        {"lat": point.lat, "lng": point.lng, "category": q["category"], "q": q["q"]}
        for point in points
        for q in queries
    ]
    logger.info("Grid points: %s, queries: %s, jobs: %s", len(points), len(queries), len(jobs))

    def scan(job: Dict[str, Any]) -> Dict[str, Any]:
        hits = client.search_text_all(job["q"], Point(job["lat"], job["lng"]))
        kept = 0
        for place in hits:
            if passes_filter(place):
                merge_place(by_id, place, job["category"])
                kept += 1
        job["kept"] = kept
        return job

    progress = ProgressReporter("extract", total_estimate=len(jobs), log_every=config.PROGRESS_LOG_EVERY, logger=logger)
    outcome = run_batch(jobs, scan, pause_seconds=pause_seconds, sleep=sleep, progress=progress)

    results = sort_places(by_id.values())
    summary = ExtractSummary(
        grid_points=len(points),
        queries=len(queries),
        jobs=len(jobs),
        search_errors=outcome.error_count,
        places=len(results),
    )
    return results, summary


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Grid-scan Singapore for dog-relevant places")
    parser.add_argument("--out", dest="output_path", type=str, default=str(DEFAULT_OUTPUT))
    parser.add_argument("--step", dest="step", type=float, default=config.GRID_STEP_DEG)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    config.load_env()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    api_key = config.env_value(config.GOOGLE_MAPS_API_KEY_ENV)
    if not api_key:
        print(f"Missing {config.GOOGLE_MAPS_API_KEY_ENV} in environment", file=sys.stderr)
        return 1

    output_path = Path(args.output_path).expanduser().resolve()
    client = PlacesClient(HttpClient(api_key))
    points = list(grid_points(config.SG_SCAN_BOUNDS, args.step))
    results, summary = extract_places(client, points)

    csv_path = output_path.with_suffix(".csv")
    write_json(output_path, results)
    write_csv(csv_path, results, CSV_FIELDS)

    print("Extract summary:")
    print(f"- grid_points: {summary.grid_points}")
    print(f"- queries: {summary.queries}")
    print(f"- jobs: {summary.jobs}")
    print(f"- search_errors: {summary.search_errors}")
    print(f"- places: {summary.places}")
    print(f"- output: {output_path}")
    print(f"- csv: {csv_path}")
    for place in results[:10]:
        print(f"  {place['name']} | {place.get('rating')} | {place.get('userRatingCount')} reviews")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
