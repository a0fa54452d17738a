"""Keyword heuristics used by the offline classification and verification jobs.

These are literal, case-insensitive substring and Google-type matches.
They are tuned by hand and will misclassify some places; nothing here
should be read as more than "the text contains these words".
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import CATEGORIES, NEEDS_CHECK, VERIFIED

# --- Name/address evidence (flag_and_clean) ---

PET_STRONG: Sequence[str] = (
    "dog friendly", "pet friendly", "pets allowed", "dogs allowed",
    "dog-friendly", "pet-friendly", "dog cafe", "dog café",
    "dog park", "off leash", "off-leash",
    "pet hotel", "dog hotel", "pet boarding", "dog boarding",
    "pet grooming", "dog grooming",
)

PET_WEAK: Sequence[str] = (
    "pet", "pets", "dog", "dogs", "puppy", "canine", "paw",
    "groom", "grooming", "vet", "veterinary", "animal", "cat", "cats",
)

EXPECTED_BY_CATEGORY: Dict[str, Dict[str, Sequence[str]]] = {
    "cafe": {
        "types_any": ("cafe", "restaurant", "bar", "bakery", "food"),
        "name_any": ("cafe", "café", "coffee", "bistro", "restaurant", "bar", "bakery"),
    },
    "hotel": {
        "types_any": ("lodging",),
        "name_any": ("hotel", "resort", "inn", "hostel", "stay", "suites",
                     "serviced apartment", "serviced apartments"),
    },
    "mall": {
        "types_any": ("shopping_mall",),
        "name_any": ("mall", "plaza", "centre", "center", "galleria", "city", "square"),
    },
    "park": {
        "types_any": ("park",),
        "name_any": ("park", "garden", "gardens", "reservoir", "green", "nature"),
    },
    "groomer": {
        "types_any": ("pet_store",),
        "name_any": ("groom", "grooming", "pet salon", "petshop", "pet shop"),
    },
    "vet": {
        "types_any": ("veterinary_care",),
        "name_any": ("vet", "vets", "veterinary", "animal hospital", "clinic"),
    },
    "supplies": {
        "types_any": ("pet_store",),
        "name_any": ("pet", "pets", "petshop", "pet shop", "supplies", "aquarium", "koi", "bird"),
    },
}

PET_INDUSTRY_CATEGORIES = frozenset({"vet", "groomer", "supplies"})

# --- Review evidence (verify_by_reviews) ---

REVIEW_STRONG: Sequence[str] = (
    "dog friendly", "dog-friendly", "pet friendly", "pet-friendly",
    "pets allowed", "dogs allowed", "allowed our dog", "brought my dog",
    "bring my dog", "bring our dog", "with my dog", "with our dog",
    "furkid", "fur kid", "leash", "off leash", "off-leash",
    "pet policy", "pet policies",
)

REVIEW_WEAK: Sequence[str] = ("dog", "dogs", "pet", "pets", "puppy", "pup", "canine")

# --- Search snippet evidence (verify_parks) ---

PARK_POSITIVE: Sequence[str] = (
    "dog friendly", "dogs allowed", "pets allowed", "pet friendly",
    "bring your dog", "dogs are allowed", "dogs are welcome",
    "dog run", "off-leash", "off leash",
)

PARK_NEGATIVE: Sequence[str] = (
    "no dogs", "dogs are not allowed", "dogs not allowed",
    "not allowed to bring dogs", "not dog friendly", "pets are not allowed",
    "dogs prohibited", "prohibited", "ban dogs", "banned",
    "nature reserve no dogs", "no dogs in nature reserves",
)


def norm(value: Any) -> str:
    return ("" if value is None else str(value)).lower().strip()


def has_any(haystack: Any, needles: Iterable[str]) -> bool:
    h = norm(haystack)
    return any(n in h for n in needles)


def types_has_any(types: Any, needles: Iterable[str]) -> bool:
    if not isinstance(types, (list, tuple)):
        return False
    joined = " ".join(str(t) for t in types).lower()
    return any(n in joined for n in needles)


def place_types(place: Dict[str, Any]) -> List[str]:
    for key in ("types", "googleTypes"):
        value = place.get(key)
        if isinstance(value, list) and value:
            return [str(t) for t in value]
    return []


def pet_evidence_score(place: Dict[str, Any]) -> str:
    """'strong', 'weak' or 'none', from the name and address text."""
    text = f"{place.get('name') or ''} {place.get('address') or ''}".lower()
    if any(k in text for k in PET_STRONG):
        return "strong"
    if any(k in text for k in PET_WEAK):
        return "weak"
    return "none"


def is_obvious_mismatch(place: Dict[str, Any]) -> bool:
    """True when neither the name nor the Google types look like the category."""
    expect = EXPECTED_BY_CATEGORY.get(place.get("category") or "")
    if not expect:
        return False
    name_ok = has_any(place.get("name"), expect["name_any"])
    types_ok = types_has_any(place_types(place), expect["types_any"])
    return not (name_ok or types_ok)


def verification_status(place: Dict[str, Any]) -> str:
    if place.get("category") in PET_INDUSTRY_CATEGORIES:
        return VERIFIED
    return VERIFIED if pet_evidence_score(place) == "strong" else NEEDS_CHECK


def scan_review_text(text: Any) -> Dict[str, List[str]]:
    t = norm(text)
    strong = [k for k in REVIEW_STRONG if k in t]
    weak = [k for k in REVIEW_WEAK if k in t]
    return {
        "strong_hits": list(dict.fromkeys(strong)),
        "weak_hits": list(dict.fromkeys(weak)),
    }


def decide_park_verdict(text: Any) -> Dict[str, str]:
    """Negative wording wins over positive wording."""
    t = norm(text)
    if any(k in t for k in PARK_NEGATIVE):
        return {"verdict": "not_dog_friendly", "confidence": "high", "reason": ""}
    hit = next((k for k in PARK_POSITIVE if k in t), None)
    if hit:
        return {"verdict": "dog_friendly", "confidence": "medium", "reason": f"matched:{hit}"}
    return {"verdict": "unknown", "confidence": "low", "reason": ""}


def pick_category(place: Dict[str, Any]) -> str:
    """First known category hint, else a guess from Google types, else cafe."""
    hints = place.get("categories")
    if isinstance(hints, list):
        for hint in hints:
            if hint in CATEGORIES:
                return hint
    hint = place.get("category")
    if hint in CATEGORIES:
        return hint

    t = " ".join(place_types(place)).lower()
    if "veterinary" in t or "animal_hospital" in t:
        return "vet"
    if "pet_store" in t:
        return "supplies"
    if "park" in t:
        return "park"
    if "shopping_mall" in t:
        return "mall"
    if "lodging" in t:
        return "hotel"
    if "cafe" in t or "restaurant" in t:
        return "cafe"
    return "cafe"


def address_looks_singapore(address: Optional[str]) -> bool:
    if not address:
        return False
    a = address.lower()
    return "singapore" in a or " sg " in a or a.endswith(" sg")
