"""CLI entrypoint: serve the dog-friendly places directory."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dogplaces import config
from dogplaces.server import App, make_server
from dogplaces.store import ListingDataError, load_listings

logger = logging.getLogger("dogplaces")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the dog-friendly places directory")
    parser.add_argument("--host", default="", help="Interface to bind (default: all)")
    parser.add_argument("--port", type=int, default=config.DEFAULT_PORT)
    parser.add_argument(
        "--data",
        default=None,
        help=f"Listings JSON (default: ${config.DATA_PATH_ENV} or {config.LISTINGS_PATH})",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config.load_env()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    data_path = Path(args.data).expanduser() if args.data else config.listings_path()
    if not data_path.exists():
        print(f"Listings file not found: {data_path}", file=sys.stderr)
        return 1
    try:
        store = load_listings(data_path)
    except ListingDataError as exc:
        print(f"Invalid listings file: {exc}", file=sys.stderr)
        return 1

    token = config.mapbox_token()
    if not token:
        logger.warning("%s is not set; maps will show a setup message", config.MAPBOX_TOKEN_ENV)

    app = App(store=store, token=token, base_url=config.site_base_url())
    server = make_server(app, host=args.host, port=args.port)
    print(f"Directory running at http://localhost:{args.port}")
    print("Press Ctrl+C to stop.\n")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down.")
    server.server_close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
