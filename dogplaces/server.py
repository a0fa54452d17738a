"""HTTP server for the directory site.

Routing is a pure function from (app, path) to a Response so it can be
exercised without sockets; the request handler only writes it out.
"""
from __future__ import annotations

import json
import logging
import posixpath
from dataclasses import dataclass, field
from http.server import HTTPServer, SimpleHTTPRequestHandler
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, unquote, urlparse

from . import config, pages
from .directory import filter_listings, parse_filter_state
from .map_adapter import MapAdapter, MiniMap, to_feature_collection
from .store import ListingStore

logger = logging.getLogger(__name__)

HTML = "text/html; charset=utf-8"
STATIC_PREFIX = "/static/"


@dataclass
class Response:
    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def html(cls, text: str, status: int = 200) -> "Response":
        return cls(status, text.encode("utf-8"), {"Content-Type": HTML})

    @classmethod
    def json(cls, payload: Any, status: int = 200) -> "Response":
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        return cls(status, body, {"Content-Type": "application/json; charset=utf-8"})

    @classmethod
    def redirect(cls, location: str, status: int = 301) -> "Response":
        return cls(status, b"", {"Location": location})


@dataclass
class App:
    store: ListingStore
    token: Optional[str] = None
    base_url: str = config.DEFAULT_SITE_BASE_URL
    images_dir: Path = config.LISTING_IMAGES_DIR
    static_dir: Path = config.STATIC_DIR


def _not_found(message: str = "Page not found") -> Response:
    return Response.html(pages.render_not_found(message), status=404)


def _filtered(app: App, query: str):
    state, notices = parse_filter_state(parse_qs(query, keep_blank_values=True))
    return state, notices, filter_listings(app.store, state)


def _directory(app: App, query: str) -> Response:
    state, notices, ranked = _filtered(app, query)
    return Response.html(pages.render_directory_page(ranked, state, notices, app.token))


def _directory_map(app: App, query: str) -> Response:
    if not app.token:
        return Response.html(pages.render_not_found(pages.MISSING_TOKEN_MESSAGE), status=503)
    state, _notices, ranked = _filtered(app, query)
    with MapAdapter(app.token, pages.DirectoryMapHandler()) as adapter:
        adapter.set_data(to_feature_collection(ranked))
        if state.reference_point is not None:
            adapter.show_reference_point(state.reference_point)
        return Response.html(adapter.render())


def _listings_api(app: App, query: str) -> Response:
    _state, _notices, ranked = _filtered(app, query)
    return Response.json(to_feature_collection(ranked))


def _listing_route(app: App, rest: str) -> Response:
    parts = [unquote(p) for p in rest.split("/") if p]
    if not parts or len(parts) > 2:
        return _not_found()
    key = parts[0]
    listing = app.store.by_slug(key)
    if listing is None:
        legacy = app.store.by_id(key)
        if legacy is None:
            return _not_found("Listing not found")
        suffix = "/map" if len(parts) == 2 else ""
        return Response.redirect(pages.listing_href(legacy.slug) + suffix)

    if len(parts) == 2:
        if parts[1] != "map":
            return _not_found()
        if not app.token:
            return Response.html(pages.render_not_found(pages.MISSING_TOKEN_MESSAGE), status=503)
        return Response.html(MiniMap(app.token, listing.coordinates, listing.name).render())

    images = pages.find_listing_images(listing, app.images_dir)
    return Response.html(pages.render_listing_page(app.store, listing, app.token, images))


def _legacy_id_route(app: App, rest: str) -> Response:
    listing_id = unquote(rest.strip("/"))
    if not listing_id or "/" in listing_id:
        return Response.html(pages.render_not_found("Bad listing id"), status=400)
    listing = app.store.by_id(listing_id)
    if listing is None:
        return _not_found("Listing not found")
    return Response.redirect(pages.listing_href(listing.slug))


def route(app: App, path: str) -> Optional[Response]:
    """Resolve a GET path. Returns None for static assets."""
    parsed = urlparse(path)
    route_path = parsed.path
    if route_path in ("", "/"):
        return _directory(app, parsed.query)
    if route_path == "/map":
        return _directory_map(app, parsed.query)
    if route_path == "/api/listings":
        return _listings_api(app, parsed.query)
    if route_path.startswith("/listing/"):
        return _listing_route(app, route_path[len("/listing/"):])
    if route_path.startswith("/listing-id/"):
        return _legacy_id_route(app, route_path[len("/listing-id/"):])
    if route_path == "/sitemap.xml":
        body = pages.render_sitemap(app.store, app.base_url).encode("utf-8")
        return Response(200, body, {"Content-Type": "application/xml; charset=utf-8"})
    if route_path.startswith(STATIC_PREFIX):
        # Anything that normalises outside /static/ is a miss.
        if not posixpath.normpath(unquote(route_path)).startswith(STATIC_PREFIX):
            return _not_found()
        return None
    return _not_found()


class DirectoryHandler(SimpleHTTPRequestHandler):
    app: App

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, directory=str(self.app.static_dir), **kwargs)

    def translate_path(self, path: str) -> str:
        # Only reached for /static/ paths; resolve them inside static_dir.
        return super().translate_path(path[len(STATIC_PREFIX) - 1:])

    def do_GET(self) -> None:
        response = route(self.app, self.path)
        if response is None:
            super().do_GET()
            return
        self._send(response)

    def do_HEAD(self) -> None:
        response = route(self.app, self.path)
        if response is None:
            super().do_HEAD()
            return
        self._send(response, include_body=False)

    def _send(self, response: Response, include_body: bool = True) -> None:
        self.send_response(response.status)
        for key, value in response.headers.items():
            self.send_header(key, value)
        self.send_header("Content-Length", str(len(response.body)))
        self.end_headers()
        if include_body:
            self.wfile.write(response.body)

    def log_message(self, fmt: str, *args: Any) -> None:
        logger.info("%s - %s", self.address_string(), fmt % args)


def make_server(app: App, host: str = "", port: int = config.DEFAULT_PORT) -> HTTPServer:
    handler = type("BoundDirectoryHandler", (DirectoryHandler,), {"app": app})
    return HTTPServer((host, port), handler)
