import http.client
import json
import threading

from dogplaces.models import Listing
from dogplaces.server import App, make_server, route
from dogplaces.store import ListingStore


def _app(token=None) -> App:
    store = ListingStore(
        [
            Listing(id="1001", slug="bark-park", name="Bark Park", category="park", address="A", lat=1.30, lng=103.85),
            Listing(id="1002", slug="paw-cafe", name="Paw Cafe", category="cafe", address="B", lat=1.35, lng=103.87),
        ]
    )
    return App(store=store, token=token, base_url="https://example.test")


def test_directory_route_filters_from_query():
    resp = route(_app(), "/?cat=cafe")
    assert resp.status == 200
    body = resp.body.decode("utf-8")
    assert "Results (1)" in body
    assert "Paw Cafe" in body


def test_blank_category_param_selects_nothing():
    body = route(_app(), "/?cat=").body.decode("utf-8")
    assert "Results (0)" in body


def test_bad_location_is_reported_inline_not_as_error():
    resp = route(_app(), "/?lat=abc&lng=103.8")
    assert resp.status == 200
    assert "Could not read that location" in resp.body.decode("utf-8")


def test_api_and_map_share_filter_state():
    resp = route(_app(), "/api/listings?lat=1.30&lng=103.85&radius=1")
    assert resp.headers["Content-Type"].startswith("application/json")
    payload = json.loads(resp.body)
    assert [f["properties"]["slug"] for f in payload["features"]] == ["bark-park"]

    html = route(_app(token="tok"), "/map?lat=1.30&lng=103.85&radius=1").body.decode("utf-8")
    assert "bark-park" in html
    assert "paw-cafe" not in html


def test_map_without_token_degrades():
    resp = route(_app(), "/map")
    assert resp.status == 503
    assert "MAPBOX_TOKEN" in resp.body.decode("utf-8")
    assert route(_app(), "/listing/bark-park/map").status == 503


def test_listing_routes_and_redirects():
    assert route(_app(), "/listing/bark-park").status == 200
    assert route(_app(token="tok"), "/listing/bark-park/map").status == 200

    legacy = route(_app(), "/listing/1002")
    assert legacy.status == 301
    assert legacy.headers["Location"] == "/listing/paw-cafe"

    by_id = route(_app(), "/listing-id/1001")
    assert by_id.status == 301
    assert by_id.headers["Location"] == "/listing/bark-park"

    assert route(_app(), "/listing/nope").status == 404
    assert route(_app(), "/listing-id/nope").status == 404
    assert route(_app(), "/listing-id/").status == 400
    assert route(_app(), "/listing/bark-park/extra").status == 404


def test_sitemap_static_and_unknown_routes():
    sitemap = route(_app(), "/sitemap.xml")
    assert sitemap.status == 200
    body = sitemap.body.decode("utf-8")
    assert "https://example.test/listing/paw-cafe" in body

    assert route(_app(), "/static/site.css") is None
    assert route(_app(), "/nowhere").status == 404


def test_static_traversal_is_not_found():
    assert route(_app(), "/static/../.env").status == 404
    assert route(_app(), "/static/%2e%2e/data/listings.json").status == 404
    assert route(_app(), "/static/css/../site.css") is None


def _get(port: int, path: str):
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request("GET", path)
        resp = conn.getresponse()
        return resp.status, resp.read()
    finally:
        conn.close()


def test_server_serves_static_dir_only(tmp_path):
    (tmp_path / ".env").write_text("GOOGLE_MAPS_API_KEY=secret-key\n", encoding="utf-8")
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "site.css").write_text("body { color: red; }\n", encoding="utf-8")

    app = _app()
    app.static_dir = static_dir
    server = make_server(app, host="127.0.0.1", port=0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        port = server.server_address[1]
        status, body = _get(port, "/static/site.css")
        assert status == 200
        assert b"color: red" in body

        for path in ("/static/../.env", "/static/..%2f.env", "/static/../static/../.env"):
            status, body = _get(port, path)
            assert status == 404, path
            assert b"secret-key" not in body
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)
