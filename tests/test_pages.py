from datetime import datetime, timezone
from pathlib import Path

from dogplaces.directory import FilterState, filter_listings
from dogplaces.map_adapter import MISSING_TOKEN_MESSAGE, ClusterActivated, PointActivated
from dogplaces.models import Listing, Point
from dogplaces.pages import (
    NO_RESULTS_MESSAGE,
    DirectoryMapHandler,
    find_listing_images,
    pretty_url,
    render_directory_page,
    render_listing_page,
    render_sitemap,
)
from dogplaces.store import ListingStore


def _store() -> ListingStore:
    return ListingStore(
        [
            Listing(
                id="p1",
                slug="bark-park",
                name="Bark Park",
                category="park",
                address="1 Park Rd, Singapore",
                lat=1.3000,
                lng=103.8500,
                website="https://www.barkpark.sg/visit",
                phone="6111 2222",
                note="Bring water",
                rating=4.6,
                user_rating_count=321,
                open_now=True,
                verification_status="verified",
                verified_by="reviews",
            ),
            Listing(
                id="c1",
                slug="paw-cafe",
                name="Paw <Cafe>",
                category="cafe",
                address="2 Cafe St, Singapore",
                lat=1.3050,
                lng=103.8520,
                verification_status="needs_check",
            ),
            Listing(id="h1", slug="far-hotel", name="Far Hotel", category="hotel", address="", lat=1.45, lng=103.99),
        ]
    )


def test_directory_page_lists_results_and_escapes():
    store = _store()
    state = FilterState()
    html = render_directory_page(filter_listings(store, state), state, [], token="tok")
    assert "Results (3)" in html
    assert 'href="/listing/bark-park"' in html
    assert "Paw &lt;Cafe&gt;" in html
    assert "✔ Verified" in html
    assert '<iframe class="map-frame" src="/map?"' in html
    assert " disabled>" in html
    assert "Set location" in html


def test_directory_page_with_location_shows_distances_and_enables_radius():
    store = _store()
    state = FilterState(reference_point=Point(1.3, 103.85), radius_km=3, search_query="paw")
    html = render_directory_page(filter_listings(store, state), state, ["Could not read that location."], token="tok")
    assert "Results (1)" in html
    assert "km" in html
    assert "Showing results for: <b>paw</b>" in html
    assert "Could not read that location." in html
    assert "radius=3" in html
    assert 'value="3" onchange="this.form.submit()">' in html


def test_directory_page_without_token_or_results():
    state = FilterState(categories=frozenset())
    html = render_directory_page([], state, [], token=None)
    assert MISSING_TOKEN_MESSAGE in html
    assert "<iframe" not in html
    assert "Results (0)" in html
    assert NO_RESULTS_MESSAGE in html
    assert "timeout" in html and "12000" in html


def test_geolocation_script_discards_late_results_after_pagehide():
    state = FilterState()
    html = render_directory_page([], state, [], token="tok")

    assert "var alive = true;" in html
    assert 'window.addEventListener("pagehide", function () { alive = false; });' in html
    # Both the success and the error callback bail out once the page is gone.
    assert "function (pos) {\n        if (!alive) return;" in html
    assert "function (err) {\n        if (!alive) return;" in html
    assert html.count("if (!alive) return;") == 2
    assert '"enableHighAccuracy": true' in html
    assert '"timeout": 12000' in html


def test_geolocation_error_box_is_hidden_and_dismissible():
    html = render_directory_page([], FilterState(), [], token="tok")
    assert '<div id="geo-error" class="notice" role="alert" hidden>' in html
    assert 'class="dismiss" aria-label="Dismiss"' in html
    assert 'box.querySelector("button").addEventListener("click", function () { box.hidden = true; });' in html
    assert "showError(err.message || \"Could not get location.\");" in html


def test_listing_page_sections():
    store = _store()
    listing = store.by_slug("bark-park")
    html = render_listing_page(store, listing, token="tok", images=["/static/listing-images/p1/1.jpg"])
    assert "<h1>Bark Park</h1>" in html
    assert "From Google:" in html and "321 reviews" in html
    assert "Open now" in html
    assert "Verified via reviews" in html
    assert "Website (barkpark.sg)" in html
    assert 'href="tel:6111 2222"' in html
    assert "https://www.google.com/maps?q=1.3,103.85" in html
    assert 'src="/listing/bark-park/map"' in html
    assert "About content coming soon." in html
    assert "/static/listing-images/p1/1.jpg" in html
    assert 'href="/listing/paw-cafe"' in html
    assert "far-hotel" not in html


def test_listing_page_without_token_and_unverified():
    store = _store()
    html = render_listing_page(store, store.by_slug("paw-cafe"), token=None)
    assert MISSING_TOKEN_MESSAGE in html
    assert "Not yet verified" in html
    assert "Open now" not in html and "Closed now" not in html


def test_listing_page_no_nearby():
    store = _store()
    html = render_listing_page(store, store.by_slug("far-hotel"))
    assert "No nearby listings yet." in html


def test_find_listing_images_reads_numbered_files(tmp_path: Path):
    listing = _store().by_id("p1")
    folder = tmp_path / "p1"
    folder.mkdir()
    for name in ("1.jpg", "3.jpg", "7.jpg", "cover.png"):
        (folder / name).write_bytes(b"x")
    assert find_listing_images(listing, tmp_path) == [
        "/static/listing-images/p1/1.jpg",
        "/static/listing-images/p1/3.jpg",
    ]


def test_map_handler_popup_and_zoom_offset():
    handler = DirectoryMapHandler()
    detail = handler.on_point_activated(
        PointActivated(
            {
                "slug": "bark-park",
                "name": "Bark <Park>",
                "category": "park",
                "address": "1 Park Rd",
                "rating": 4.5,
                "userRatingCount": 10,
                "verificationStatus": "verified",
            }
        )
    )
    assert detail.href == "/listing/bark-park"
    assert 'target="_top"' in detail.popup_html
    assert "Bark &lt;Park&gt;" in detail.popup_html
    assert "4.5⭐ • 10 reviews" in detail.popup_html
    assert "Verified dog-friendly" in detail.popup_html

    transition = handler.on_cluster_activated(ClusterActivated(Point(1.3, 103.8), 12))
    assert transition.zoom == 12 + handler.cluster_zoom_offset == 13
    assert transition.center == Point(1.3, 103.8)


def test_sitemap_lists_base_and_every_listing():
    xml = render_sitemap(_store(), "https://example.test", now=datetime(2024, 1, 2, tzinfo=timezone.utc))
    assert "<loc>https://example.test</loc>" in xml
    assert "<loc>https://example.test/listing/bark-park</loc>" in xml
    assert xml.count("<url>") == 4
    assert "2024-01-02T00:00:00+00:00" in xml


def test_pretty_url_strips_www():
    assert pretty_url("https://www.example.com/a") == "example.com"
    assert pretty_url("not a url") == "not a url"
