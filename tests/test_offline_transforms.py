import csv
import json
from pathlib import Path

from dogplaces.store import load_listings
from scripts import add_slugs, cleanup_open_now, convert_csv_to_listings, extract_places, verify_parks
from scripts.convert_to_listings import convert_rows
from scripts.filter_singapore_only import filter_singapore
from scripts.flag_and_clean import flag_and_clean


def _google_row(place_id, name, lat=1.30, lng=103.85, address="1 Road, Singapore 123456", **extra):
    row = {
        "id": place_id,
        "name": name,
        "address": address,
        "lat": lat,
        "lng": lng,
        "rating": 4.5,
        "userRatingCount": 100,
        "website": "",
        "phone": "",
        "types": [],
        "categories": ["cafe"],
    }
    row.update(extra)
    return row


def test_filter_singapore_needs_bounds_and_address():
    rows = [
        _google_row("in", "In"),
        _google_row("jb", "JB", lat=1.49, address="Johor Bahru, Malaysia"),
        _google_row("addr", "Addr", address="Somewhere"),
        _google_row("nolat", "NoLat", lat=None),
    ]
    assert [r["id"] for r in filter_singapore(rows)] == ["in"]


def test_convert_rows_sorts_picks_category_and_slugs():
    rows = [
        _google_row("a", "Dog Run", userRatingCount=50, categories=[], types=["park"]),
        _google_row("b", "Dog Run", userRatingCount=500),
        _google_row("c", "", userRatingCount=999),
        _google_row("d", "Vet Place", lat="1.3", userRatingCount=999),
    ]
    out = convert_rows(rows)
    assert [(l["id"], l["slug"], l["category"]) for l in out] == [
        ("b", "dog-run", "cafe"),
        ("a", "dog-run-2", "park"),
    ]
    assert out[0]["source"] == "google_places_api"
    assert out[0]["images"] == []


def test_flag_and_clean_rejects_mismatches_and_flags_status():
    rows = [
        _google_row("a", "Dog Friendly Coffee", category="cafe"),
        _google_row("b", "Acme Holdings", category="cafe", types=["finance"]),
        _google_row("c", "Happy Vet Clinic", category="vet"),
        _google_row("d", "Quiet Garden", category="park"),
        {"id": "e", "name": "No coords"},
    ]
    result = flag_and_clean(rows)
    assert [r["id"] for r in result.cleaned] == ["a", "c", "d"]
    assert [r["id"] for r in result.rejected] == ["b"]
    assert result.rejected[0]["rejectReason"] == "obvious_category_mismatch"
    assert result.status_counts() == {"verified": 2, "needs_check": 1}
    assert result.category_counts() == {"cafe": 1, "vet": 1, "park": 1}


def test_cleanup_record_drops_hours_and_normalises_open_now():
    out = cleanup_open_now.cleanup_rows(
        [
            {"id": "a", "hours": "x", "priceRange": "$", "hoursEnrichError": "e", "openNow": "true"},
            {"id": "b", "openNow": False},
            {"id": "c"},
        ]
    )
    assert out == [{"id": "a", "openNow": None}, {"id": "b", "openNow": False}, {"id": "c", "openNow": None}]


def test_convert_csv_detects_delimiter_and_header_casing():
    text = "Name;Category;Address;Lat;Longitude;Rating;Reviews;OpenNow;VerificationStatus\n" \
        "Bark Park;PARK;1 Rd;1.3;103.8;4.5;120;TRUE;verified\n" \
        "Paw Cafe;cafe;2 Rd;1.31;103.81;;;maybe;\n"
    assert convert_csv_to_listings.detect_delimiter(text) == ";"
    assert convert_csv_to_listings.detect_delimiter("a\tb\n") == "\t"
    assert convert_csv_to_listings.detect_delimiter("a,b\n") == ","
    listings = convert_csv_to_listings.convert_csv_text(text).listings
    assert listings[0] == {
        "id": "1",
        "name": "Bark Park",
        "category": "park",
        "address": "1 Rd",
        "lat": 1.3,
        "lng": 103.8,
        "rating": 4.5,
        "userRatingCount": 120,
        "openNow": True,
        "verificationStatus": "verified",
    }
    assert listings[1]["id"] == "2"
    assert listings[1]["rating"] is None
    assert listings[1]["openNow"] is None
    assert "verificationStatus" not in listings[1]


def test_pipeline_output_loads_into_store(tmp_path: Path):
    listings_path = tmp_path / "listings.json"
    converted = convert_rows([_google_row("a", "Paw Cafe"), _google_row("b", "Paw Cafe", lat=1.31)])
    listings_path.write_text(json.dumps(converted), encoding="utf-8")

    assert add_slugs.main(["--in", str(listings_path)]) == 0
    store = load_listings(listings_path)
    assert [l.slug for l in store] == ["paw-cafe", "paw-cafe-2"]


def test_csv_main_writes_json(tmp_path: Path):
    src = tmp_path / "in.csv"
    with src.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["id", "name", "category", "address", "lat", "lng"])
        writer.writerow(["x1", "Bark Park", "park", "1 Rd", "1.3", "103.8"])
    out = tmp_path / "out.json"
    assert convert_csv_to_listings.main(["--in", str(src), "--out", str(out)]) == 0
    assert json.loads(out.read_text(encoding="utf-8"))[0]["id"] == "x1"


def test_missing_input_and_credentials_exit_non_zero(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.setattr(extract_places.config, "load_env", lambda *a, **k: None)
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
    monkeypatch.delenv("SERPAPI_API_KEY", raising=False)

    assert extract_places.main(["--out", str(tmp_path / "x.json")]) == 1
    assert "Missing GOOGLE_MAPS_API_KEY in environment" in capsys.readouterr().err

    assert verify_parks.main(["--in", str(tmp_path / "in.json")]) == 1
    assert "Missing SERPAPI_API_KEY in environment" in capsys.readouterr().err

    assert add_slugs.main(["--in", str(tmp_path / "missing.json")]) == 1
    assert not (tmp_path / "x.json").exists()


def test_convert_csv_skips_rows_without_coordinates(tmp_path: Path, capsys):
    text = "id,name,category,address,lat,lng\n" \
        "a1,Bark Park,park,1 Rd,1.3,103.8\n" \
        "a2,Blank Lat,cafe,2 Rd,,103.81\n" \
        "a3,Bad Lng,cafe,3 Rd,1.31,east\n"
    result = convert_csv_to_listings.convert_csv_text(text)
    assert [l["id"] for l in result.listings] == ["a1"]
    assert result.skipped_rows == [2, 3]
    assert all(l["lat"] is not None and l["lng"] is not None for l in result.listings)

    src = tmp_path / "in.csv"
    src.write_text(text, encoding="utf-8")
    out = tmp_path / "out.json"
    assert convert_csv_to_listings.main(["--in", str(src), "--out", str(out)]) == 0
    written = json.loads(out.read_text(encoding="utf-8"))
    assert [row["id"] for row in written] == ["a1"]
    assert "- skipped_missing_coordinates: 2" in capsys.readouterr().out
