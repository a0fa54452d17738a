"""Directory filter/rank pipeline and its URL-state binding.

The same ranked sequence drives both the map markers and the results
list; callers must not filter one view independently of the other.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import config
from .geo import distance_km
from .models import CATEGORIES, Listing, Point, RankedListing


@dataclass(frozen=True)
class FilterState:
    categories: FrozenSet[str] = field(default_factory=lambda: frozenset(CATEGORIES))
    reference_point: Optional[Point] = None
    radius_km: float = config.DEFAULT_RADIUS_KM
    search_query: str = ""


def _matches_query(listing: Listing, query: str) -> bool:
    return query in (listing.name or "").lower() or query in (listing.address or "").lower()


def filter_listings(listings: Iterable[Listing], state: FilterState) -> List[RankedListing]:
    """Category filter, then distance cutoff and sort, then text search.

    Without a reference point every result has distance_km=None and the
    radius is ignored. sorted() is stable, so equal distances keep the
    collection order.
    """
    base = [listing for listing in listings if listing.category in state.categories]

    point = state.reference_point
    if point is None:
        ranked = [RankedListing(listing, None) for listing in base]
    else:
        ranked = []
        for listing in base:
            dist = distance_km(point, listing.coordinates)
            if dist <= state.radius_km:
                ranked.append(RankedListing(listing, dist))
        ranked = sorted(ranked, key=lambda r: r.distance_km)

    query = (state.search_query or "").strip().lower()
    if not query:
        return ranked
    return [r for r in ranked if _matches_query(r.listing, query)]


def nearby_listings(
    listings: Iterable[Listing],
    origin: Listing,
    radius_km: float = config.NEARBY_RADIUS_KM,
    limit: int = config.NEARBY_LIMIT,
) -> List[RankedListing]:
    ranked = []
    for listing in listings:
        if listing.id == origin.id:
            continue
        dist = distance_km(origin.coordinates, listing.coordinates)
        if dist <= radius_km:
            ranked.append(RankedListing(listing, dist))
    ranked.sort(key=lambda r: r.distance_km)
    return ranked[: max(0, int(limit))]


# --- URL query binding ---


def _first(params: Mapping[str, Sequence[str]], key: str) -> str:
    values = params.get(key) or []
    return values[0].strip() if values else ""


def _parse_coord(raw: str, low: float, high: float) -> Optional[float]:
    try:
        value = float(raw)
    except ValueError:
        return None
    if value != value or not (low <= value <= high):
        return None
    return value


def clamp_radius(value: float) -> float:
    return float(min(max(value, config.RADIUS_MIN_KM), config.RADIUS_MAX_KM))


def parse_filter_state(params: Mapping[str, Sequence[str]]) -> Tuple[FilterState, List[str]]:
    """Build a FilterState from parse_qs-style parameters.

    Returns the state plus user-facing notices for input that was
    ignored. Bad input never raises; it falls back to defaults.
    """
    notices: List[str] = []

    if "cat" in params:
        requested = [c.strip().lower() for c in params.get("cat") or []]
        categories = frozenset(c for c in requested if c in CATEGORIES)
    else:
        categories = frozenset(CATEGORIES)

    reference_point = None
    raw_lat = _first(params, "lat")
    raw_lng = _first(params, "lng")
    if raw_lat or raw_lng:
        lat = _parse_coord(raw_lat, -90.0, 90.0)
        lng = _parse_coord(raw_lng, -180.0, 180.0)
        if lat is None or lng is None:
            notices.append("Could not read that location. Showing all places instead.")
        else:
            reference_point = Point(lat, lng)

    radius = float(config.DEFAULT_RADIUS_KM)
    raw_radius = _first(params, "radius")
    if raw_radius:
        try:
            radius = clamp_radius(float(raw_radius))
        except ValueError:
            pass
        if radius != radius:
            radius = float(config.DEFAULT_RADIUS_KM)

    return (
        FilterState(
            categories=categories,
            reference_point=reference_point,
            radius_km=radius,
            search_query=_first(params, "q"),
        ),
        notices,
    )


def filter_state_to_params(state: FilterState) -> List[Tuple[str, str]]:
    """Inverse of parse_filter_state, suitable for urlencode()."""
    pairs: List[Tuple[str, str]] = []
    if state.categories != frozenset(CATEGORIES):
        selected = [c for c in CATEGORIES if c in state.categories]
        if selected:
            pairs.extend(("cat", c) for c in selected)
        else:
            pairs.append(("cat", ""))
    if state.reference_point is not None:
        pairs.append(("lat", repr(state.reference_point.lat)))
        pairs.append(("lng", repr(state.reference_point.lng)))
        pairs.append(("radius", f"{state.radius_km:g}"))
    if state.search_query:
        pairs.append(("q", state.search_query))
    return pairs

