#!/usr/bin/env python3
"""Strip stale hours fields and normalise openNow to true/false/null."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.reporting import read_rows, write_json  # noqa: E402

DEFAULT_OUTPUT = config.DATA_DIR / "listings_clean.json"
DROPPED_FIELDS = ("hours", "priceRange", "hoursEnrichError")


def cleanup_record(record: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in record.items() if k not in DROPPED_FIELDS}
    if not isinstance(out.get("openNow"), bool):
        out["openNow"] = None
    return out


def cleanup_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [cleanup_record(r) for r in rows]


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drop hours fields and normalise openNow")
    parser.add_argument("--in", dest="input_path", type=str, default=str(config.LISTINGS_PATH))
    parser.add_argument("--out", dest="output_path", type=str, default=str(DEFAULT_OUTPUT))
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    input_path = Path(args.input_path).expanduser().resolve()
    output_path = Path(args.output_path).expanduser().resolve()
    if not input_path.exists():
        print(f"Input JSON not found: {input_path}", file=sys.stderr)
        return 1

    cleaned = cleanup_rows(read_rows(input_path))
    write_json(output_path, cleaned)

    print("Cleanup summary:")
    print(f"- listings: {len(cleaned)}")
    print(f"- output: {output_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
