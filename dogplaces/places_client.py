"""Places API (New) client: text search and place details."""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

from . import config
from .http import HttpClient
from .models import Point


class PlacesClient:
    def __init__(
        self,
        http_client: HttpClient,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.http = http_client
        self.sleep = sleep

    def search_text(
        self,
        query: str,
        point: Point,
        radius_m: int = config.SCAN_RADIUS_M,
        page_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = build_text_search_body(query, point, radius_m, page_token)
        return self.http.post_json(config.PLACES_TEXT_SEARCH_URL, body, config.PLACES_FIELD_MASK_EXTRACT)

    def search_text_all(
        self,
        query: str,
        point: Point,
        radius_m: int = config.SCAN_RADIUS_M,
        max_pages: int = config.PLACES_MAX_PAGES_PER_QUERY,
        page_pause: float = config.PAGE_PAUSE_SECONDS,
    ) -> List[Dict[str, Any]]:
        places: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        for page in range(max_pages):
            if page:
                self.sleep(page_pause)
            resp = self.search_text(query, point, radius_m=radius_m, page_token=page_token)
            places.extend(parse_places_response(resp))
            page_token = resp.get("nextPageToken")
            if not page_token:
                break
        return places

    def place_details(self, place_id: str, field_mask: str) -> Dict[str, Any]:
        if not place_id:
            raise ValueError("place_id is required")
        url = config.PLACES_DETAILS_URL_TEMPLATE.format(place_id=quote(place_id, safe=""))
        return self.http.get_json(url, field_mask)


def build_text_search_body(
    query: str,
    point: Point,
    radius_m: int,
    page_token: Optional[str],
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "textQuery": query,
        "locationBias": {
            "circle": {
                "center": {"latitude": point.lat, "longitude": point.lng},
                "radius": int(radius_m),
            }
        },
        "pageSize": config.PLACES_PAGE_SIZE,
    }
    if page_token:
        body["pageToken"] = page_token
    return body


# Adapter/mapper for Places response fields

def parse_places_response(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    places = response.get("places") or []
    parsed: List[Dict[str, Any]] = []
    for p in places:
        place_id = p.get("id")
        if not place_id:
            continue
        display = p.get("displayName")
        if isinstance(display, dict):
            name = display.get("text") or ""
        else:
            name = display or ""
        location = p.get("location") or {}
        user_rating_count = p.get("userRatingCount")
        parsed.append(
            {
                "id": place_id,
                "name": name,
                "address": p.get("formattedAddress") or "",
                "lat": location.get("latitude"),
                "lng": location.get("longitude"),
                "rating": p.get("rating"),
                "userRatingCount": int(user_rating_count) if user_rating_count is not None else None,
                "website": p.get("websiteUri") or "",
                "phone": p.get("nationalPhoneNumber") or "",
                "types": list(p.get("types") or []),
            }
        )
    return parsed
