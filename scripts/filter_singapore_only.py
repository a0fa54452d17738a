#!/usr/bin/env python3
"""Drop extracted places that fall outside Singapore."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.geo import in_bounds  # noqa: E402
from dogplaces.heuristics import address_looks_singapore  # noqa: E402
from dogplaces.reporting import read_rows, write_csv, write_json  # noqa: E402

DEFAULT_INPUT = config.DATA_DIR / "listings_google.json"
DEFAULT_OUTPUT = config.DATA_DIR / "listings_google_sg.json"
CSV_FIELDS: Sequence[str] = (
    "id", "name", "categories", "address", "lat", "lng",
    "rating", "userRatingCount", "website", "phone",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_in_singapore(place: Dict[str, Any]) -> bool:
    lat, lng = place.get("lat"), place.get("lng")
    if not (_is_number(lat) and _is_number(lng)):
        return False
    return in_bounds(lat, lng, config.SG_BOUNDS) and address_looks_singapore(place.get("address"))


def filter_singapore(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [row for row in rows if is_in_singapore(row)]


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keep only places inside Singapore")
    parser.add_argument("--in", dest="input_path", type=str, default=str(DEFAULT_INPUT))
    parser.add_argument("--out", dest="output_path", type=str, default=str(DEFAULT_OUTPUT))
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    input_path = Path(args.input_path).expanduser().resolve()
    output_path = Path(args.output_path).expanduser().resolve()
    if not input_path.exists():
        print(f"Input JSON not found: {input_path}", file=sys.stderr)
        return 1

    rows = read_rows(input_path)
    kept = filter_singapore(rows)
    csv_path = output_path.with_suffix(".csv")
    write_json(output_path, kept)
    write_csv(csv_path, kept, CSV_FIELDS)

    print("Singapore filter summary:")
    print(f"- before: {len(rows)}")
    print(f"- after: {len(kept)}")
    print(f"- output: {output_path}")
    print(f"- csv: {csv_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
