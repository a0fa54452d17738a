import json
from pathlib import Path

import pytest

from dogplaces.models import Listing
from dogplaces.store import ListingDataError, ListingStore, load_listings


def _row(**overrides):
    row = {
        "id": "p1",
        "slug": "paw-cafe",
        "name": "Paw Cafe",
        "category": "cafe",
        "address": "1 Paw Street, Singapore",
        "lat": 1.30,
        "lng": 103.85,
    }
    row.update(overrides)
    return row


def _write(path: Path, rows) -> Path:
    path.write_text(json.dumps(rows), encoding="utf-8")
    return path


def test_load_listings_keeps_file_order_and_indexes(tmp_path: Path):
    path = _write(
        tmp_path / "listings.json",
        [
            _row(),
            _row(id="p2", slug="bark-park", name="Bark Park", category="park", lat=1.35, lng=103.9),
        ],
    )
    store = load_listings(path)
    assert len(store) == 2
    assert [l.id for l in store] == ["p1", "p2"]
    assert store.by_slug("bark-park").name == "Bark Park"
    assert store.by_id("p1").slug == "paw-cafe"
    assert store.by_slug("missing") is None


def test_optional_fields_are_normalised(tmp_path: Path):
    path = _write(
        tmp_path / "listings.json",
        [_row(rating="4.5", userRatingCount=120.0, openNow="yes", images=["a.jpg"], verificationStatus="")],
    )
    listing = load_listings(path).by_id("p1")
    assert listing.rating is None
    assert listing.user_rating_count == 120
    assert listing.open_now is None
    assert listing.images == ("a.jpg",)
    assert listing.verification_status is None


@pytest.mark.parametrize(
    "rows",
    [
        [_row(), _row(slug="other")],
        [_row(), _row(id="p2")],
        [_row(category="casino")],
        [_row(lat=None)],
        [_row(lat="1.3")],
        [_row(lng=200)],
        [_row(slug="")],
        [_row(verificationStatus="maybe")],
    ],
)
def test_invalid_collections_are_rejected(tmp_path: Path, rows):
    path = _write(tmp_path / "listings.json", rows)
    with pytest.raises(ListingDataError):
        load_listings(path)


def test_non_array_and_bad_json_are_rejected(tmp_path: Path):
    path = _write(tmp_path / "listings.json", {"listings": []})
    with pytest.raises(ListingDataError):
        load_listings(path)
    bad = tmp_path / "bad.json"
    bad.write_text("[{", encoding="utf-8")
    with pytest.raises(ListingDataError):
        load_listings(bad)


def test_listing_round_trips_through_dict():
    listing = Listing.from_dict(_row(verificationStatus="verified", verifiedBy="reviews", rating=4.2))
    again = Listing.from_dict(listing.to_dict())
    assert again == listing
    assert listing.is_verified
    assert ListingStore([listing]).listings == (listing,)
