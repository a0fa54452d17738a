"""Listing records and the category vocabulary."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

CATEGORIES: Tuple[str, ...] = ("cafe", "hotel", "mall", "park", "groomer", "vet", "supplies")

CATEGORY_LABELS: Dict[str, str] = {
    "cafe": "☕ Cafes",
    "hotel": "🏨 Hotels",
    "mall": "🛍️ Malls",
    "park": "🌳 Parks",
    "groomer": "✂️ Groomers",
    "vet": "🩺 Vets",
    "supplies": "🦴 Pet Supplies",
}

CATEGORY_EMOJI: Dict[str, str] = {
    "cafe": "☕",
    "hotel": "🏨",
    "mall": "🛍️",
    "park": "🌳",
    "groomer": "✂️",
    "vet": "🩺",
    "supplies": "🦴",
}

CATEGORY_COLORS: Dict[str, str] = {
    "cafe": "#EC4899",
    "mall": "#3B82F6",
    "hotel": "#EAB308",
    "supplies": "#F97316",
    "park": "#22C55E",
    "vet": "#111111",
    "groomer": "#D946EF",
}

# Hotel's yellow needs dark text.
CATEGORY_TEXT_COLORS: Dict[str, str] = {cat: "#ffffff" for cat in CATEGORIES}
CATEGORY_TEXT_COLORS["hotel"] = "#111111"

VERIFIED = "verified"
NEEDS_CHECK = "needs_check"
VERIFICATION_STATUSES: Tuple[str, ...] = (VERIFIED, NEEDS_CHECK)


@dataclass(frozen=True)
class Point:
    lat: float
    lng: float


def _opt_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _opt_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _opt_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


@dataclass(frozen=True)
class Listing:
    id: str
    slug: str
    name: str
    category: str
    address: str
    lat: float
    lng: float
    website: str = ""
    phone: str = ""
    hours: str = ""
    price_range: str = ""
    pet_policy: str = ""
    note: str = ""
    writeup: str = ""
    images: Tuple[str, ...] = field(default_factory=tuple)
    rating: Optional[float] = None
    user_rating_count: Optional[int] = None
    open_now: Optional[bool] = None
    verification_status: Optional[str] = None
    verified_by: str = ""

    @property
    def coordinates(self) -> Point:
        return Point(self.lat, self.lng)

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VERIFIED

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Listing":
        """Build a Listing from a camelCase JSON record.

        Required fields are copied as-is; the store validates them.
        Optional fields are normalised: blank strings, null ratings, and
        non-boolean openNow values all collapse to their empty form.
        """
        images = raw.get("images")
        status = _opt_str(raw.get("verificationStatus")) or None
        open_now = raw.get("openNow")
        return cls(
            id=_opt_str(raw.get("id")),
            slug=_opt_str(raw.get("slug")),
            name=_opt_str(raw.get("name")),
            category=_opt_str(raw.get("category")),
            address=_opt_str(raw.get("address")),
            lat=raw.get("lat"),
            lng=raw.get("lng"),
            website=_opt_str(raw.get("website")),
            phone=_opt_str(raw.get("phone")),
            hours=_opt_str(raw.get("hours")),
            price_range=_opt_str(raw.get("priceRange")),
            pet_policy=_opt_str(raw.get("petPolicy")),
            note=_opt_str(raw.get("note")),
            writeup=_opt_str(raw.get("writeup")),
            images=tuple(str(i) for i in images) if isinstance(images, list) else (),
            rating=_opt_float(raw.get("rating")),
            user_rating_count=_opt_int(raw.get("userRatingCount")),
            open_now=open_now if isinstance(open_now, bool) else None,
            verification_status=status,
            verified_by=_opt_str(raw.get("verifiedBy")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "category": self.category,
            "address": self.address,
            "lat": self.lat,
            "lng": self.lng,
            "website": self.website,
            "phone": self.phone,
            "hours": self.hours,
            "priceRange": self.price_range,
            "petPolicy": self.pet_policy,
            "note": self.note,
            "writeup": self.writeup,
            "images": list(self.images),
            "rating": self.rating,
            "userRatingCount": self.user_rating_count,
            "openNow": self.open_now,
        }
        if self.verification_status:
            out["verificationStatus"] = self.verification_status
            out["verifiedBy"] = self.verified_by
        return out


@dataclass(frozen=True)
class RankedListing:
    """A listing annotated with its distance from the reference point."""

    listing: Listing
    distance_km: Optional[float] = None
