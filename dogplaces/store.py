"""Read-only listing store loaded from the flat JSON data file."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .models import CATEGORIES, VERIFICATION_STATUSES, Listing

logger = logging.getLogger(__name__)


class ListingDataError(ValueError):
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate(listing: Listing, index: int) -> None:
    where = f"record {index} ({listing.id or 'no id'})"
    if not listing.id:
        raise ListingDataError(f"{where}: missing id")
    if not listing.slug:
        raise ListingDataError(f"{where}: missing slug")
    if not listing.name:
        raise ListingDataError(f"{where}: missing name")
    if listing.category not in CATEGORIES:
        raise ListingDataError(f"{where}: unknown category {listing.category!r}")
    if not _is_number(listing.lat) or not _is_number(listing.lng):
        raise ListingDataError(f"{where}: coordinates must be numeric")
    if not (-90 <= listing.lat <= 90) or not (-180 <= listing.lng <= 180):
        raise ListingDataError(f"{where}: coordinates out of range")
    status = listing.verification_status
    if status is not None and status not in VERIFICATION_STATUSES:
        raise ListingDataError(f"{where}: unknown verificationStatus {status!r}")


class ListingStore:
    """Immutable collection of listings, kept in file order."""

    def __init__(self, listings: Iterable[Listing]) -> None:
        self._listings: Tuple[Listing, ...] = tuple(listings)
        self._by_id: Dict[str, Listing] = {}
        self._by_slug: Dict[str, Listing] = {}
        for index, listing in enumerate(self._listings):
            _validate(listing, index)
            if listing.id in self._by_id:
                raise ListingDataError(f"duplicate id: {listing.id}")
            if listing.slug in self._by_slug:
                raise ListingDataError(f"duplicate slug: {listing.slug}")
            self._by_id[listing.id] = listing
            self._by_slug[listing.slug] = listing

    def __iter__(self) -> Iterator[Listing]:
        return iter(self._listings)

    def __len__(self) -> int:
        return len(self._listings)

    @property
    def listings(self) -> Tuple[Listing, ...]:
        return self._listings

    def by_slug(self, slug: str) -> Optional[Listing]:
        return self._by_slug.get(slug)

    def by_id(self, listing_id: str) -> Optional[Listing]:
        return self._by_id.get(listing_id)


def listings_from_rows(rows: Any) -> List[Listing]:
    if not isinstance(rows, list):
        raise ListingDataError("listing data must be a JSON array")
    listings: List[Listing] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ListingDataError(f"record {index}: expected an object")
        listings.append(Listing.from_dict(row))
    return listings


def load_listings(path: Union[str, Path]) -> ListingStore:
    data_path = Path(path)
    try:
        rows = json.loads(data_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ListingDataError(f"{data_path}: invalid JSON ({exc})") from exc
    store = ListingStore(listings_from_rows(rows))
    logger.info("Loaded %s listings from %s", len(store), data_path)
    return store
