#!/usr/bin/env python3
"""Check each park with a Google search through SerpAPI.

A park is verified only when the top results say dogs are welcome; any
"no dogs" wording keeps it at needs_check. Every park gets a small audit
record and a row in the CSV report.
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.batch import RecordFailure, run_batch  # noqa: E402
from dogplaces.heuristics import decide_park_verdict  # noqa: E402
from dogplaces.models import NEEDS_CHECK, VERIFIED  # noqa: E402
from dogplaces.reporting import ProgressReporter, read_rows, utc_now_iso, write_csv, write_json  # noqa: E402
from dogplaces.serp_client import pick_evidence, search_google, top_link  # noqa: E402

logger = logging.getLogger("verify_parks")

DEFAULT_INPUT = config.LISTINGS_PATH
DEFAULT_OUTPUT = config.DATA_DIR / "listings.parks_verified.json"
DEFAULT_REPORT = config.DATA_DIR / "parks_verification_report.csv"
REPORT_FIELDS: Sequence[str] = (
    "id", "name", "address", "verdict", "confidence",
    "setVerificationStatus", "reason", "query", "topLink",
)

SearchFn = Callable[[str], Dict[str, Any]]


@dataclass(frozen=True)
class ParkSummary:
    parks: int
    verified: int
    not_dog_friendly: int
    unknown: int
    errors: int


def build_query(name: str) -> str:
    return f"is {name} park dog friendly? Singapore"


def verify_parks(
    listings: List[Dict[str, Any]],
    search: SearchFn,
    pause_seconds: float = config.SERP_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    now: Callable[[], str] = utc_now_iso,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]], ParkSummary]:
    """Return (updated listings, report rows, summary); non-parks pass through."""
    parks = [l for l in listings if l.get("category") == "park" and l.get("name")]
    logger.info("Found parks: %s", len(parks))
    links: Dict[str, str] = {}

    def step(park: Dict[str, Any]) -> Dict[str, Any]:
        query = build_query(park["name"])
        serp = search(query)
        evidence_text = "\n".join(part["text"] for part in pick_evidence(serp))
        decision = decide_park_verdict(evidence_text)

        status = park.get("verificationStatus") or NEEDS_CHECK
        verified_by = park.get("verifiedBy") or ""
        if decision["verdict"] == "dog_friendly":
            status = VERIFIED
            verified_by = "google_search_snippet"
        elif decision["verdict"] == "not_dog_friendly":
            status = NEEDS_CHECK

        park["verificationStatus"] = status
        park["verifiedBy"] = verified_by
        park["parkVerification"] = {
            "query": query,
            "verdict": decision["verdict"],
            "confidence": decision["confidence"],
            "reason": decision["reason"],
            "checkedAt": now(),
        }
        links[str(park.get("id"))] = top_link(serp)
        return park

    progress = ProgressReporter("parks", total_estimate=len(parks), log_every=config.PROGRESS_LOG_EVERY, logger=logger)
    outcome = run_batch(parks, step, pause_seconds=pause_seconds, sleep=sleep, progress=progress)

    report: List[Dict[str, Any]] = []
    verdicts: Counter = Counter()
    checked_by_id: Dict[str, Dict[str, Any]] = {}
    for result in outcome.results:
        park = result.record
        base = {"id": park.get("id"), "name": park.get("name"), "address": park.get("address") or ""}
        if isinstance(result, RecordFailure):
            report.append(
                {
                    **base,
                    "verdict": "error",
                    "confidence": "low",
                    "setVerificationStatus": park.get("verificationStatus") or NEEDS_CHECK,
                    "reason": result.reason,
                    "query": build_query(park["name"]),
                    "topLink": "",
                }
            )
            continue
        audit = park["parkVerification"]
        verdicts[audit["verdict"]] += 1
        checked_by_id[str(park.get("id"))] = park
        report.append(
            {
                **base,
                "verdict": audit["verdict"],
                "confidence": audit["confidence"],
                "setVerificationStatus": park["verificationStatus"],
                "reason": audit["reason"],
                "query": audit["query"],
                "topLink": links.get(str(park.get("id")), ""),
            }
        )

    updated = [dict(checked_by_id.get(str(l.get("id")), l)) for l in listings]
    summary = ParkSummary(
        parks=len(parks),
        verified=verdicts["dog_friendly"],
        not_dog_friendly=verdicts["not_dog_friendly"],
        unknown=verdicts["unknown"],
        errors=outcome.error_count,
    )
    return updated, report, summary


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify parks via Google search snippets")
    parser.add_argument("--in", dest="input_path", type=str, default=str(DEFAULT_INPUT))
    parser.add_argument("--out", dest="output_path", type=str, default=str(DEFAULT_OUTPUT))
    parser.add_argument("--report", dest="report_path", type=str, default=str(DEFAULT_REPORT))
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    config.load_env()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    api_key = config.env_value(config.SERPAPI_API_KEY_ENV)
    if not api_key:
        print(f"Missing {config.SERPAPI_API_KEY_ENV} in environment", file=sys.stderr)
        return 1

    input_path = Path(args.input_path).expanduser().resolve()
    output_path = Path(args.output_path).expanduser().resolve()
    report_path = Path(args.report_path).expanduser().resolve()
    if not input_path.exists():
        print(f"Input JSON not found: {input_path}", file=sys.stderr)
        return 1

    updated, report, summary = verify_parks(
        read_rows(input_path), lambda query: search_google(query, api_key)
    )
    write_json(output_path, updated)
    write_csv(report_path, report, REPORT_FIELDS)

    print("Park verification summary:")
    print(f"- parks: {summary.parks}")
    print(f"- verified: {summary.verified}")
    print(f"- not_dog_friendly: {summary.not_dog_friendly}")
    print(f"- unknown: {summary.unknown}")
    print(f"- errors: {summary.errors}")
    print(f"- output: {output_path}")
    print(f"- report: {report_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
