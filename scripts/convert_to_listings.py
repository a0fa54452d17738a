#!/usr/bin/env python3
"""Convert extracted Google rows into the directory's listing format."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.heuristics import pick_category, place_types  # noqa: E402
from dogplaces.reporting import read_rows, write_json  # noqa: E402
from dogplaces.slugs import assign_slugs  # noqa: E402

DEFAULT_INPUT = config.DATA_DIR / "listings_google_sg.json"
DEFAULT_OUTPUT = config.LISTINGS_PATH


def _clean(value: Any) -> str:
    return ("" if value is None else str(value)).strip()


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


def to_listing(place: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(place["id"]),
        "name": _clean(place.get("name")),
        "category": pick_category(place),
        "address": _clean(place.get("address")),
        "lat": float(place["lat"]),
        "lng": float(place["lng"]),
        "website": _clean(place.get("website")),
        "phone": _clean(place.get("phone")),
        "hours": "",
        "priceRange": "",
        "petPolicy": "",
        "note": "",
        "images": [],
        "rating": _number_or_none(place.get("rating")),
        "userRatingCount": _number_or_none(place.get("userRatingCount")),
        "googleTypes": place_types(place),
        "source": "google_places_api",
    }


def _convertible(place: Dict[str, Any]) -> bool:
    return bool(
        place.get("id")
        and place.get("name")
        and _number_or_none(place.get("lat")) is not None
        and _number_or_none(place.get("lng")) is not None
    )


def convert_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    listings = [to_listing(row) for row in rows if _convertible(row)]
    listings.sort(key=lambda l: (-(l["userRatingCount"] or 0), -(l["rating"] or 0)))
    return assign_slugs(listings)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert Google rows to directory listings")
    parser.add_argument("--in", dest="input_path", type=str, default=str(DEFAULT_INPUT))
    parser.add_argument("--out", dest="output_path", type=str, default=str(DEFAULT_OUTPUT))
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    input_path = Path(args.input_path).expanduser().resolve()
    output_path = Path(args.output_path).expanduser().resolve()
    if not input_path.exists():
        print(f"Input JSON not found: {input_path}. Run extract_places first.", file=sys.stderr)
        return 1

    rows = read_rows(input_path)
    listings = convert_rows(rows)
    write_json(output_path, listings)

    print("Convert summary:")
    print(f"- input_rows: {len(rows)}")
    print(f"- listings: {len(listings)}")
    print(f"- output: {output_path}")
    if listings:
        top = listings[0]
        print(f"- top: {top['name']} | {top['rating']} | {top['userRatingCount']} reviews")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
