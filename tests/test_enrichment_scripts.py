import requests

from scripts.enrich_opening_hours import enrich_opening_hours
from scripts.verify_by_reviews import verify_by_reviews
from scripts.verify_parks import build_query, verify_parks


class _FakeDetails:
    def __init__(self, by_id):
        self.by_id = by_id
        self.calls = []

    def place_details(self, place_id, field_mask):
        self.calls.append((place_id, field_mask))
        value = self.by_id[place_id]
        if isinstance(value, Exception):
            raise value
        return value


def _review(text):
    return {"text": {"text": text}}


def test_verify_by_reviews_upgrades_never_downgrades_and_annotates_errors():
    rows = [
        {"id": "a", "name": "A", "verificationStatus": "needs_check"},
        {"id": "b", "name": "B", "verificationStatus": "verified", "verifiedBy": "keywords"},
        {"id": "c", "name": "C", "verificationStatus": "needs_check"},
        {"name": "No id"},
    ]
    fake = _FakeDetails(
        {
            "a": {"reviews": [_review("Very dog friendly, brought my dog"), _review("Dog friendly staff"), {}]},
            "b": {"reviews": [_review("Great coffee")]},
            "c": requests.HTTPError("HTTP 429"),
        }
    )
    sleeps = []
    updated, summary = verify_by_reviews(rows, fake, pause_seconds=0.15, sleep=sleeps.append)

    assert [c[0] for c in fake.calls] == ["a", "b", "c"]
    assert sleeps == [0.15, 0.15, 0.15]
    assert updated[0]["verificationStatus"] == "verified"
    assert updated[0]["verifiedBy"] == "reviews"
    assert updated[0]["reviewEvidence"] == {
        "scannedReviews": 3,
        "dogFriendlyMentions": 3,
        "keywords": ["dog friendly", "brought my dog"],
    }
    assert updated[1]["verificationStatus"] == "verified"
    assert updated[1]["verifiedBy"] == "keywords"
    assert updated[2]["verificationStatus"] == "needs_check"
    assert updated[2]["reviewEvidenceError"] == "HTTP 429"
    assert updated[3] == {"name": "No id"}
    assert summary.checked == 4
    assert summary.upgraded == 1
    assert summary.errors == 1


def test_verify_parks_sets_status_and_reports_every_park():
    listings = [
        {"id": "p1", "name": "Bishan", "category": "park", "verificationStatus": "needs_check"},
        {"id": "p2", "name": "Bukit Timah", "category": "park", "verificationStatus": "verified", "verifiedBy": "x"},
        {"id": "p3", "name": "Quiet", "category": "park"},
        {"id": "p4", "name": "Broken", "category": "park"},
        {"id": "c1", "name": "Cafe", "category": "cafe"},
    ]
    serps = {
        build_query("Bishan"): {"organic_results": [{"title": "Bishan dog run", "snippet": "off-leash fun", "link": "L1"}]},
        build_query("Bukit Timah"): {"organic_results": [{"title": "Reserve", "snippet": "Dogs are not allowed"}]},
        build_query("Quiet"): {"organic_results": [{"title": "Quiet park", "snippet": "nice trees"}]},
    }
    queries = []

    def search(query):
        queries.append(query)
        if query not in serps:
            raise RuntimeError("SerpAPI HTTP 500")
        return serps[query]

    sleeps = []
    updated, report, summary = verify_parks(
        listings, search, pause_seconds=0.35, sleep=sleeps.append, now=lambda: "2024-01-01T00:00:00+00:00"
    )

    assert len(queries) == 4
    assert sleeps == [0.35] * 4
    by_id = {l["id"]: l for l in updated}
    assert by_id["p1"]["verificationStatus"] == "verified"
    assert by_id["p1"]["verifiedBy"] == "google_search_snippet"
    assert by_id["p1"]["parkVerification"]["checkedAt"] == "2024-01-01T00:00:00+00:00"
    assert by_id["p2"]["verificationStatus"] == "needs_check"
    assert by_id["p3"]["verificationStatus"] == "needs_check"
    assert by_id["p3"]["parkVerification"]["verdict"] == "unknown"
    assert "parkVerification" not in by_id["p4"]
    assert by_id["c1"] == listings[4]
    assert [l["id"] for l in updated] == ["p1", "p2", "p3", "p4", "c1"]

    assert [r["verdict"] for r in report] == ["dog_friendly", "not_dog_friendly", "unknown", "error"]
    assert report[0]["topLink"] == "L1"
    assert report[3]["reason"] == "SerpAPI HTTP 500"
    assert (summary.verified, summary.not_dog_friendly, summary.unknown, summary.errors) == (1, 1, 1, 1)


def test_enrich_opening_hours_prefers_current_hours():
    rows = [
        {"id": "a", "hours": ""},
        {"id": "b", "hours": "old"},
        {"id": "c"},
        {"id": "d", "hoursNeedsManualCheck": True},
        {"name": "no id"},
    ]
    fake = _FakeDetails(
        {
            "a": {
                "currentOpeningHours": {"weekdayDescriptions": ["Mon: 9-5", "Tue: 9-5"], "openNow": True},
                "openingHours": {"weekdayDescriptions": ["Mon: 8-4"], "openNow": False},
            },
            "b": {},
            "c": requests.ConnectionError("timeout"),
            "d": {"openingHours": {"weekdayDescriptions": ["Daily: 24h"], "openNow": False}},
        }
    )
    sleeps = []
    updated, summary = enrich_opening_hours(rows, fake, pause_seconds=0.12, sleep=sleeps.append)

    assert sleeps == [0.12] * 4
    assert updated[0]["hours"] == "Mon: 9-5 | Tue: 9-5"
    assert updated[0]["openNow"] is True
    assert updated[1] == {"id": "b", "hours": "old", "openNow": None, "hoursNeedsManualCheck": True}
    assert updated[2] == {"id": "c", "hoursEnrichError": "timeout"}
    assert updated[3] == {"id": "d", "hours": "Daily: 24h", "openNow": False}
    assert updated[4] == {"name": "no id"}
    assert (summary.updated, summary.missing, summary.errors) == (2, 1, 1)
