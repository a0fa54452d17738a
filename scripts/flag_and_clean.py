#!/usr/bin/env python3
"""Reject obvious category mismatches and flag what is left for verification.

Statuses come from name/address keywords only: vets, groomers and pet
supply stores are verified outright, everything else needs a strong
"dog/pet friendly" phrase.
"""
from __future__ import annotations

import argparse
import sys
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.heuristics import is_obvious_mismatch, place_types, verification_status  # noqa: E402
from dogplaces.reporting import read_rows, write_csv, write_json  # noqa: E402

DEFAULT_INPUTS = (
    config.DATA_DIR / "listings_google_sg.json",
    config.DATA_DIR / "listings_google.json",
)
DEFAULT_OUTPUT = config.DATA_DIR / "listings_sg_clean.json"
DEFAULT_REJECTS = config.DATA_DIR / "listings_sg_rejected.json"
REJECT_REASON = "obvious_category_mismatch"
CSV_FIELDS: Sequence[str] = (
    "id", "name", "category", "verificationStatus", "address", "lat", "lng",
    "rating", "userRatingCount", "website", "phone",
)


@dataclass
class CleanResult:
    cleaned: List[Dict[str, Any]] = field(default_factory=list)
    rejected: List[Dict[str, Any]] = field(default_factory=list)

    def status_counts(self) -> Dict[str, int]:
        return dict(Counter(row["verificationStatus"] for row in self.cleaned))

    def category_counts(self) -> Dict[str, int]:
        return dict(Counter(row["category"] for row in self.cleaned))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _flagged(place: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": str(place["id"]),
        "name": place["name"],
        "category": place.get("category"),
        "address": place.get("address") or "",
        "lat": place["lat"],
        "lng": place["lng"],
        "website": place.get("website") or "",
        "phone": place.get("phone") or "",
        "hours": place.get("hours") or "",
        "priceRange": place.get("priceRange") or "",
        "petPolicy": place.get("petPolicy") or "",
        "note": place.get("note") or "",
        "images": place.get("images") if isinstance(place.get("images"), list) else [],
        "rating": place.get("rating") if _is_number(place.get("rating")) else None,
        "userRatingCount": place.get("userRatingCount") if _is_number(place.get("userRatingCount")) else None,
        "verificationStatus": verification_status(place),
        "googleTypes": place_types(place),
    }
    if isinstance(place.get("categories"), list):
        out["categories"] = place["categories"]
    if place.get("slug"):
        out["slug"] = place["slug"]
    return out


def flag_and_clean(rows: List[Dict[str, Any]]) -> CleanResult:
    result = CleanResult()
    for place in rows:
        if not place.get("id") or not place.get("name"):
            continue
        if not (_is_number(place.get("lat")) and _is_number(place.get("lng"))):
            continue
        if is_obvious_mismatch(place):
            result.rejected.append({**place, "rejectReason": REJECT_REASON})
            continue
        result.cleaned.append(_flagged(place))
    return result


def _default_input() -> Path:
    for candidate in DEFAULT_INPUTS:
        if candidate.exists():
            return candidate
    return DEFAULT_INPUTS[0]


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reject category mismatches and assign verification status")
    parser.add_argument("--in", dest="input_path", type=str, default=None)
    parser.add_argument("--out", dest="output_path", type=str, default=str(DEFAULT_OUTPUT))
    parser.add_argument("--rejects", dest="rejects_path", type=str, default=str(DEFAULT_REJECTS))
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    input_path = Path(args.input_path).expanduser().resolve() if args.input_path else _default_input()
    output_path = Path(args.output_path).expanduser().resolve()
    rejects_path = Path(args.rejects_path).expanduser().resolve()
    if not input_path.exists():
        print(f"Input JSON not found: {input_path}", file=sys.stderr)
        return 1

    result = flag_and_clean(read_rows(input_path))
    csv_path = output_path.with_suffix(".csv")
    write_json(output_path, result.cleaned)
    write_json(rejects_path, result.rejected)
    write_csv(csv_path, result.cleaned, CSV_FIELDS)

    print("Flag and clean summary:")
    print(f"- input: {input_path}")
    print(f"- kept: {len(result.cleaned)}")
    print(f"- rejected: {len(result.rejected)}")
    for status, count in sorted(result.status_counts().items()):
        print(f"- status.{status}: {count}")
    for category, count in sorted(result.category_counts().items()):
        print(f"- category.{category}: {count}")
    print(f"- output: {output_path}")
    print(f"- csv: {csv_path}")
    print(f"- rejects: {rejects_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
