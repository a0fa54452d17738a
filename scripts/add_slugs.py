#!/usr/bin/env python3
"""(Re)assign URL slugs to every listing, in file order."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dogplaces import config  # noqa: E402
from dogplaces.reporting import read_rows, write_json  # noqa: E402
from dogplaces.slugs import assign_slugs  # noqa: E402


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Add unique slugs to listings")
    parser.add_argument("--in", dest="input_path", type=str, default=str(config.LISTINGS_PATH))
    parser.add_argument("--out", dest="output_path", type=str, default=None, help="Defaults to rewriting --in")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    input_path = Path(args.input_path).expanduser().resolve()
    output_path = Path(args.output_path).expanduser().resolve() if args.output_path else input_path
    if not input_path.exists():
        print(f"Input JSON not found: {input_path}", file=sys.stderr)
        return 1

    rows = assign_slugs(read_rows(input_path))
    write_json(output_path, rows)

    print("Slug summary:")
    print(f"- listings: {len(rows)}")
    print(f"- output: {output_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
