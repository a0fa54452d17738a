#!/usr/bin/env python3
"""Upgrade listings to verified when their Google reviews mention dogs.

Only an evidence summary is stored (counts and matched phrases), never
the review text. Records are never downgraded.
"""
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
from dogplaces.heuristics import scan_review_text  # noqa: E402
from dogplaces.http import HttpClient  # noqa: E402
from dogplaces.models import VERIFIED  # noqa: E402
from dogplaces.places_client import PlacesClient  # noqa: E402
from dogplaces.reporting import ProgressReporter, read_rows, write_csv, write_json  # noqa: E402

logger = logging.getLogger("verify_by_reviews")

DEFAULT_INPUTS = (
    config.DATA_DIR / "listings_sg_clean.json",
    config.LISTINGS_PATH,
)
DEFAULT_OUTPUT = config.DATA_DIR / "listings_sg_reviews_verified.json"
ERROR_FIELD = "reviewEvidenceError"
CSV_FIELDS: Sequence[str] = (
    "id", "name", "category", "verificationStatus", "verifiedBy",
    "rating", "userRatingCount",
    "scannedReviews", "dogFriendlyMentions", "keywords",
    "address", "lat", "lng", "website", "phone",
)


@dataclass(frozen=True)
class ReviewSummary:
    checked: int
    upgraded: int
    errors: int


def review_evidence(details: Dict[str, Any]) -> Dict[str, Any]:
    reviews = details.get("reviews")
    if not isinstance(reviews, list):
        reviews = []
    mentions = 0
    keywords: Dict[str, None] = {}
    for review in reviews:
        text = ((review or {}).get("text") or {}).get("text") or ""
        if not text:
            continue
        hits = scan_review_text(text)["strong_hits"]
        mentions += len(hits)
        keywords.update(dict.fromkeys(hits))
    return {
        "scannedReviews": len(reviews),
        "dogFriendlyMentions": mentions,
        "keywords": list(keywords)[: config.REVIEW_KEYWORDS_KEEP],
    }


def apply_evidence(record: Dict[str, Any], evidence: Dict[str, Any]) -> Dict[str, Any]:
    record["reviewEvidence"] = evidence
    if evidence["dogFriendlyMentions"] > 0:
        record["verificationStatus"] = VERIFIED
        record["verifiedBy"] = "reviews"
    else:
        record["verifiedBy"] = record.get("verifiedBy") or ""
    return record


def verify_by_reviews(
    rows: List[Dict[str, Any]],
    client: PlacesClient,
    pause_seconds: float = config.REVIEWS_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[List[Dict[str, Any]], ReviewSummary]:
    def step(record: Dict[str, Any]) -> Dict[str, Any]:
        if not record.get("id"):
            raise SkipRecord()
        details = client.place_details(str(record["id"]), config.PLACES_DETAILS_FIELD_MASK_REVIEWS)
        return apply_evidence(record, review_evidence(details))

    progress = ProgressReporter("reviews", total_estimate=len(rows), log_every=config.PROGRESS_LOG_EVERY, logger=logger)
    outcome = run_batch(rows, step, pause_seconds=pause_seconds, sleep=sleep, progress=progress)
    updated = outcome.records(error_field=ERROR_FIELD)
    upgraded = sum(
        1
        for before, after in zip(rows, updated)
        if before.get("verificationStatus") != VERIFIED and after.get("verificationStatus") == VERIFIED
    )
    return updated, ReviewSummary(checked=len(rows), upgraded=upgraded, errors=outcome.error_count)


def _csv_row(record: Dict[str, Any]) -> Dict[str, Any]:
    evidence = record.get("reviewEvidence") or {}
    return {
        **record,
        "scannedReviews": evidence.get("scannedReviews"),
        "dogFriendlyMentions": evidence.get("dogFriendlyMentions"),
        "keywords": evidence.get("keywords") or [],
    }


def _default_input() -> Path:
    for candidate in DEFAULT_INPUTS:
        if candidate.exists():
            return candidate
    return DEFAULT_INPUTS[0]


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify listings from Google review text")
    parser.add_argument("--in", dest="input_path", type=str, default=None)
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

    input_path = Path(args.input_path).expanduser().resolve() if args.input_path else _default_input()
    output_path = Path(args.output_path).expanduser().resolve()
    if not input_path.exists():
        print(f"Input JSON not found: {input_path}", file=sys.stderr)
        return 1

    client = PlacesClient(HttpClient(api_key))
    updated, summary = verify_by_reviews(read_rows(input_path), client)
    csv_path = output_path.with_suffix(".csv")
    write_json(output_path, updated)
    write_csv(csv_path, [_csv_row(r) for r in updated], CSV_FIELDS)

    print("Review verification summary:")
    print(f"- checked: {summary.checked}")
    print(f"- upgraded: {summary.upgraded}")
    print(f"- errors: {summary.errors}")
    print(f"- output: {output_path}")
    print(f"- csv: {csv_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
