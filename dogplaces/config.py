"""Project configuration.

Module-level constants for the directory site and the offline data jobs.
Secrets are read from the environment only; a repo-root .env is loaded
without overriding variables that are already set.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parent.parent

# --- Environment variable names ---

MAPBOX_TOKEN_ENV = "MAPBOX_TOKEN"
GOOGLE_MAPS_API_KEY_ENV = "GOOGLE_MAPS_API_KEY"
SERPAPI_API_KEY_ENV = "SERPAPI_API_KEY"
DATA_PATH_ENV = "DOGPLACES_DATA"
SITE_BASE_URL_ENV = "SITE_BASE_URL"

# --- Paths ---

DATA_DIR = REPO_ROOT / "data"
STATIC_DIR = REPO_ROOT / "static"
LISTINGS_PATH = DATA_DIR / "listings.json"
LISTING_IMAGES_DIR = STATIC_DIR / "listing-images"
MAX_LISTING_IMAGES = 5

# --- Site ---

SITE_NAME = "dogfriendlyplaces.sg"
SITE_TAGLINE = "Find dog-friendly places in Singapore"
DEFAULT_SITE_BASE_URL = "https://dogfriendlyplaces.vercel.app"
DEFAULT_PORT = 8000

# --- Directory controls ---

RADIUS_MIN_KM = 1
RADIUS_MAX_KM = 20
DEFAULT_RADIUS_KM = 5
GEOLOCATION_TIMEOUT_MS = 12000
GEOLOCATION_HIGH_ACCURACY = True
NEARBY_RADIUS_KM = 3.0
NEARBY_LIMIT = 8

# --- Map ---

MAP_CENTER_LAT = 1.3521
MAP_CENTER_LNG = 103.8198
MAP_INITIAL_ZOOM = 11
MAP_USER_ZOOM = 13
MINI_MAP_ZOOM = 14
CLUSTER_RADIUS_PX = 50
CLUSTER_MAX_ZOOM = 14
CLUSTER_ZOOM_OFFSET = 1
MAPBOX_STYLE = "mapbox/streets-v12"
MAPBOX_TILE_URL = (
    "https://api.mapbox.com/styles/v1/{style}/tiles/256/{{z}}/{{x}}/{{y}}@2x"
    "?access_token={token}"
)
MAPBOX_ATTRIBUTION = (
    '&copy; <a href="https://www.mapbox.com/about/maps/">Mapbox</a> '
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a>'
)

# --- API endpoints ---

PLACES_TEXT_SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"
PLACES_DETAILS_URL_TEMPLATE = "https://places.googleapis.com/v1/places/{place_id}"

# --- Field masks ---

PLACES_FIELD_MASK_EXTRACT = ",".join(
    [
        "places.id",
        "places.displayName",
        "places.formattedAddress",
        "places.location",
        "places.rating",
        "places.userRatingCount",
        "places.websiteUri",
        "places.nationalPhoneNumber",
        "places.types",
        "nextPageToken",
    ]
)
PLACES_DETAILS_FIELD_MASK_REVIEWS = ",".join(
    [
        "id",
        "displayName",
        "formattedAddress",
        "location",
        "rating",
        "userRatingCount",
        "reviews.text.text",
        "reviews.relativePublishTimeDescription",
        "reviews.rating",
    ]
)
PLACES_DETAILS_FIELD_MASK_HOURS = ",".join(
    [
        "id",
        "openingHours.weekdayDescriptions",
        "openingHours.periods",
        "openingHours.openNow",
        "currentOpeningHours.weekdayDescriptions",
        "currentOpeningHours.openNow",
    ]
)

# --- Extraction scan ---

# Rough Singapore box used for the grid scan.
SG_SCAN_BOUNDS: Dict[str, float] = {
    "lat_min": 1.16,
    "lat_max": 1.48,
    "lon_min": 103.60,
    "lon_max": 104.10,
}
# Tighter box used to drop out-of-country results.
SG_BOUNDS: Dict[str, float] = {
    "lat_min": 1.15,
    "lat_max": 1.48,
    "lon_min": 103.60,
    "lon_max": 104.10,
}
GRID_STEP_DEG = 0.02
SCAN_RADIUS_M = 2000
PLACES_PAGE_SIZE = 20
PLACES_MAX_PAGES_PER_QUERY = 3

EXTRACT_QUERIES: List[Dict[str, str]] = [
    {"category": "cafe", "q": "dog friendly cafe"},
    {"category": "cafe", "q": "pet friendly cafe"},
    {"category": "hotel", "q": "pet friendly hotel"},
    {"category": "hotel", "q": "dog friendly hotel"},
    {"category": "mall", "q": "pet friendly mall"},
    {"category": "mall", "q": "dog friendly mall"},
    {"category": "park", "q": "dog park"},
    {"category": "park", "q": "pet friendly park"},
    {"category": "groomer", "q": "pet groomer"},
    {"category": "groomer", "q": "dog grooming"},
    {"category": "vet", "q": "veterinary clinic"},
    {"category": "vet", "q": "animal hospital"},
    {"category": "supplies", "q": "pet store"},
    {"category": "supplies", "q": "pet supplies"},
]

FILTER_MIN_RATING = 4.0
FILTER_MIN_REVIEWS = 100

# --- Pacing (seconds) ---

EXTRACT_PAUSE_SECONDS = 0.12
PAGE_PAUSE_SECONDS = 0.25
REVIEWS_PAUSE_SECONDS = 0.15
HOURS_PAUSE_SECONDS = 0.12
SERP_PAUSE_SECONDS = 0.35

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20
HTTP_RETRY_MAX = 1
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0

# --- Batch output ---

PROGRESS_LOG_EVERY = 25
REVIEW_KEYWORDS_KEEP = 12
SERP_ORGANIC_KEEP = 5


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else REPO_ROOT
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def env_value(name: str) -> str:
    return (os.environ.get(name) or "").strip()


def mapbox_token() -> Optional[str]:
    return env_value(MAPBOX_TOKEN_ENV) or None


def listings_path() -> Path:
    override = env_value(DATA_PATH_ENV)
    return Path(override).expanduser() if override else LISTINGS_PATH


def site_base_url() -> str:
    return (env_value(SITE_BASE_URL_ENV) or DEFAULT_SITE_BASE_URL).rstrip("/")
