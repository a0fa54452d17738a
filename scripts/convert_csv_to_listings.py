#!/usr/bin/env python3
"""Convert a hand-verified CSV export back into listings JSON.

The delimiter is sniffed from the header line (tab, then ";", then ",")
and a few header spellings are accepted per column.
"""
from __future__ import annotations

import argparse
import csv
import io
import logging
import math
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.reporting import write_json  # noqa: E402

logger = logging.getLogger("convert_csv_to_listings")

DEFAULT_INPUT = config.DATA_DIR / "listings_sg_reviews_verified_1.csv"
DEFAULT_OUTPUT = config.LISTINGS_PATH

HEADER_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("id",),
    "slug": ("slug", "Slug"),
    "name": ("name", "Name"),
    "category": ("category", "Category"),
    "address": ("address", "Address"),
    "lat": ("lat", "Lat"),
    "lng": ("lng", "Lng", "Long", "Longitude"),
    "website": ("website", "Website"),
    "phone": ("phone", "Phone"),
    "rating": ("rating", "Rating"),
    "userRatingCount": ("userRatingCount", "UserRatingCount", "reviews", "Reviews"),
    "verificationStatus": ("verificationStatus", "VerificationStatus"),
    "verifiedBy": ("verifiedBy", "VerifiedBy"),
    "openNow": ("openNow", "OpenNow"),
    "note": ("note", "Note"),
}


def detect_delimiter(text: str) -> str:
    first = next((line for line in text.splitlines() if line.strip()), "")
    if "\t" in first:
        return "\t"
    if ";" in first:
        return ";"
    return ","


def _get(row: Dict[str, Any], key: str) -> str:
    for alias in HEADER_ALIASES[key]:
        value = row.get(alias)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _number(value: str) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _open_now(value: str) -> Optional[bool]:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


@dataclass
class CsvConversion:
    listings: List[Dict[str, Any]] = field(default_factory=list)
    # 1-based data row numbers dropped for missing or unreadable coordinates.
    skipped_rows: List[int] = field(default_factory=list)


def row_to_listing(row: Dict[str, Any], index: int) -> Optional[Dict[str, Any]]:
    """Map one CSV row to a listing, or None when it has no usable coordinates."""
    lat = _number(_get(row, "lat"))
    lng = _number(_get(row, "lng"))
    if lat is None or lng is None or not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    listing: Dict[str, Any] = {
        "id": _get(row, "id") or str(index + 1),
        "name": _get(row, "name"),
        "category": _get(row, "category").lower(),
        "address": _get(row, "address"),
        "lat": lat,
        "lng": lng,
        "rating": _number(_get(row, "rating")),
        "userRatingCount": _number(_get(row, "userRatingCount")),
        "openNow": _open_now(_get(row, "openNow")),
    }
    count = listing["userRatingCount"]
    if count is not None:
        listing["userRatingCount"] = int(count)
    for key in ("slug", "website", "phone", "verificationStatus", "verifiedBy", "note"):
        value = _get(row, key)
        if value:
            listing[key] = value
    return listing


def convert_csv_text(text: str) -> CsvConversion:
    delimiter = detect_delimiter(text)
    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter, skipinitialspace=True)
    rows = [row for row in reader if any((v or "").strip() for v in row.values() if isinstance(v, str))]
    result = CsvConversion()
    for idx, row in enumerate(rows):
        listing = row_to_listing(row, idx)
        if listing is None:
            logger.warning("Skipping CSV row %s: missing or invalid lat/lng", idx + 1)
            result.skipped_rows.append(idx + 1)
            continue
        result.listings.append(listing)
    return result


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert a verified CSV to listings JSON")
    parser.add_argument("--in", dest="input_path", type=str, default=str(DEFAULT_INPUT))
    parser.add_argument("--out", dest="output_path", type=str, default=str(DEFAULT_OUTPUT))
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    input_path = Path(args.input_path).expanduser().resolve()
    output_path = Path(args.output_path).expanduser().resolve()
    if not input_path.exists():
        print(f"Input CSV not found: {input_path}", file=sys.stderr)
        return 1

    text = input_path.read_text(encoding="utf-8-sig")
    result = convert_csv_text(text)
    write_json(output_path, result.listings)

    print("CSV convert summary:")
    print(f"- delimiter: {detect_delimiter(text)!r}")
    print(f"- listings: {len(result.listings)}")
    print(f"- skipped_missing_coordinates: {len(result.skipped_rows)}")
    print(f"- output: {output_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
