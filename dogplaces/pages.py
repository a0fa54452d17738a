"""Server-rendered HTML for the directory, detail and sitemap routes."""
from __future__ import annotations

import html
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional
from urllib.parse import quote, urlencode, urlparse
from xml.sax.saxutils import escape as xml_escape

from . import config
from .directory import FilterState, filter_state_to_params, nearby_listings
from .map_adapter import (
    MISSING_TOKEN_MESSAGE,
    ClusterActivated,
    PointActivated,
    PointDetail,
    ZoomTransition,
)
from .models import (
    CATEGORIES,
    CATEGORY_COLORS,
    CATEGORY_LABELS,
    CATEGORY_TEXT_COLORS,
    Listing,
    RankedListing,
)
from .store import ListingStore

SEARCH_PLACEHOLDER = "Type a place or area… (e.g. Punggol)"
NO_RESULTS_MESSAGE = "No results. Try a different search, select more categories, or increase radius."


def e(value: object) -> str:
    return html.escape("" if value is None else str(value), quote=True)


def listing_href(slug: str) -> str:
    return f"/listing/{quote(slug, safe='')}"


def pretty_url(url: str) -> str:
    host = urlparse(url).hostname
    if not host:
        return url
    return host[4:] if host.startswith("www.") else host


def format_rating_parts(rating: Optional[float], count: Optional[int]) -> List[str]:
    parts: List[str] = []
    if rating is not None:
        parts.append(f"{rating:g}⭐")
    if count is not None:
        parts.append(f"{count} reviews")
    return parts


def _category_pill(category: str) -> str:
    return (
        f'<span class="pill" style="background:{CATEGORY_COLORS.get(category, "#111111")};'
        f'color:{CATEGORY_TEXT_COLORS.get(category, "#ffffff")}">'
        f"{e(CATEGORY_LABELS.get(category, category))}</span>"
    )


def _verified_badge(listing: Listing) -> str:
    if not listing.is_verified:
        return ""
    title = f"Verified via {listing.verified_by}" if listing.verified_by else "Verified"
    return f'<span class="badge verified" title="{e(title)}">✔ Verified</span>'


class DirectoryMapHandler:
    """Map events for the directory page: zoom into clusters, popups for points."""

    cluster_zoom_offset = config.CLUSTER_ZOOM_OFFSET

    def on_cluster_activated(self, event: ClusterActivated) -> ZoomTransition:
        return ZoomTransition(event.center, event.expansion_zoom + self.cluster_zoom_offset)

    def on_point_activated(self, event: PointActivated) -> PointDetail:
        p = event.properties
        category = str(p.get("category") or "")
        href = listing_href(str(p.get("slug") or ""))
        rating_line = " • ".join(format_rating_parts(p.get("rating"), p.get("userRatingCount")))
        parts = [
            '<div class="popup">',
            '<div class="popup-head">',
            f'<a href="{e(href)}" target="_top" class="popup-name">{e(p.get("name"))}</a>',
            _category_pill(category),
            "</div>",
            f'<div class="popup-address">{e(p.get("address"))}</div>',
        ]
        if rating_line:
            parts.append(f'<div class="popup-rating"><b>Google:</b> {e(rating_line)}</div>')
        if p.get("verificationStatus") == "verified":
            parts.append('<div class="popup-verified">✔ Verified dog-friendly</div>')
        parts.append("</div>")
        return PointDetail(popup_html="".join(parts), href=href)


def layout(title: str, body: str, scripts: str = "") -> str:
    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{e(title)}</title>
<meta name="description" content="Find a dog park near you and other dog-friendly places in Singapore easily.">
<link rel="stylesheet" href="/static/site.css">
</head>
<body>
<header class="site-header">
  <a href="/" class="brand">
    <span class="brand-name">{e(config.SITE_NAME)}</span>
    <span class="brand-tagline">{e(config.SITE_TAGLINE)}</span>
  </a>
</header>
<main class="page">
{body}
</main>
{scripts}
</body>
</html>
"""


def _notice(message: str) -> str:
    return (
        '<div class="notice" role="alert">'
        f"<span>{e(message)}</span>"
        '<button type="button" class="dismiss" aria-label="Dismiss" '
        "onclick=\"this.parentNode.remove()\">✕</button></div>"
    )


def _category_controls(state: FilterState) -> str:
    items = ['<input type="hidden" name="cat" value="">']
    for cat in CATEGORIES:
        checked = " checked" if cat in state.categories else ""
        style = (
            f' style="background:{CATEGORY_COLORS[cat]};color:{CATEGORY_TEXT_COLORS[cat]}"'
            if checked
            else ""
        )
        items.append(
            f'<label class="toggle{" on" if checked else ""}"{style}>'
            f'<input type="checkbox" name="cat" value="{cat}"{checked} onchange="this.form.submit()">'
            f"{e(CATEGORY_LABELS[cat])}</label>"
        )
    return "".join(items)


def _result_card(item: RankedListing) -> str:
    listing = item.listing
    meta: List[str] = []
    if item.distance_km is not None:
        meta.append(f"📍 {item.distance_km:.1f} km")
    meta.extend(format_rating_parts(listing.rating, listing.user_rating_count))
    return (
        f'<a class="card" href="{e(listing_href(listing.slug))}">'
        '<div class="card-head">'
        f'<div class="card-name">{e(listing.name)}</div>'
        f"<div>{_category_pill(listing.category)}{_verified_badge(listing)}</div>"
        "</div>"
        f'<div class="card-address">{e(listing.address)}</div>'
        f'<div class="card-meta">{e(" • ".join(meta))}</div>'
        "</a>"
    )


def _geolocation_script(state: FilterState) -> str:
    options = json.dumps(
        {"enableHighAccuracy": config.GEOLOCATION_HIGH_ACCURACY, "timeout": config.GEOLOCATION_TIMEOUT_MS}
    )
    return f"""<script>
(function () {{
  var alive = true;
  window.addEventListener("pagehide", function () {{ alive = false; }});
  var button = document.getElementById("locate");
  var box = document.getElementById("geo-error");
  function showError(message) {{
    box.querySelector("span").textContent = message;
    box.hidden = false;
  }}
  box.querySelector("button").addEventListener("click", function () {{ box.hidden = true; }});
  button.addEventListener("click", function () {{
    box.hidden = true;
    if (!navigator.geolocation) {{
      showError("Your browser doesn\\u2019t support location.");
      return;
    }}
    navigator.geolocation.getCurrentPosition(
      function (pos) {{
        if (!alive) return;
        var params = new URLSearchParams(window.location.search);
        params.set("lat", pos.coords.latitude);
        params.set("lng", pos.coords.longitude);
        if (!params.has("radius")) params.set("radius", "{state.radius_km:g}");
        window.location.search = params.toString();
      }},
      function (err) {{
        if (!alive) return;
        showError(err.message || "Could not get location.");
      }},
      {options}
    );
  }});
}})();
</script>"""


def render_directory_page(
    ranked: List[RankedListing],
    state: FilterState,
    notices: Iterable[str] = (),
    token: Optional[str] = None,
) -> str:
    params = filter_state_to_params(state)
    query_string = urlencode(params)
    has_point = state.reference_point is not None

    if token:
        map_panel = (
            f'<iframe class="map-frame" src="/map?{e(query_string)}" title="Map of dog-friendly places"></iframe>'
        )
    else:
        map_panel = f'<div class="map-missing">{e(MISSING_TOKEN_MESSAGE)}</div>'

    hidden_point = ""
    if has_point:
        hidden_point = (
            f'<input type="hidden" name="lat" value="{state.reference_point.lat!r}">'
            f'<input type="hidden" name="lng" value="{state.reference_point.lng!r}">'
        )

    radius_label = f"{state.radius_km:g} km" if has_point else "Set location"
    clear_link = ""
    applied = ""
    if state.search_query:
        clear_params = [(k, v) for k, v in params if k != "q"]
        clear_link = f'<a class="clear" href="/?{e(urlencode(clear_params))}" title="Clear">✕</a>'
        applied = f'<div class="applied">Showing results for: <b>{e(state.search_query)}</b></div>'

    cards = "".join(_result_card(item) for item in ranked)
    if not ranked:
        cards = f'<div class="empty">{e(NO_RESULTS_MESSAGE)}</div>'

    body = f"""
<div class="directory">
  <section class="map-panel">{map_panel}</section>
  <section class="controls">
    <div class="controls-head">
      <div>
        <div class="title">Find dog-friendly places <span class="paw">🐾</span></div>
        <div class="subtitle">Use location, filter categories, explore.</div>
      </div>
      <button type="button" id="locate" class="primary">Use my location</button>
    </div>
    <div id="geo-error" class="notice" role="alert" hidden><span></span><button type="button" class="dismiss" aria-label="Dismiss">✕</button></div>
    {"".join(_notice(n) for n in notices)}
    <form method="get" action="/" class="filters">
      {hidden_point}
      <div class="label">Categories</div>
      <div class="toggles">{_category_controls(state)}</div>
      <div class="radius-row">
        <span class="label">Radius</span><span class="radius-value">{e(radius_label)}</span>
      </div>
      <input type="range" name="radius" min="{config.RADIUS_MIN_KM}" max="{config.RADIUS_MAX_KM}"
             value="{state.radius_km:g}" onchange="this.form.submit()"{"" if has_point else " disabled"}>
      <div class="label">Search</div>
      <div class="search-row">
        <input type="search" name="q" value="{e(state.search_query)}" placeholder="{e(SEARCH_PLACEHOLDER)}"
               onkeydown="if (event.key === 'Escape') {{ this.value = ''; this.form.submit(); }}">
        <button type="submit" class="primary" title="Search" aria-label="Search">🔍</button>
        {clear_link}
      </div>
      {applied}
    </form>
    <div class="label">Results ({len(ranked)})</div>
    <div class="results">{cards}</div>
  </section>
</div>
"""
    return layout(
        "DogFriendlyPlaces.sg - Dog cafes, parks, groomers, vets near me and more!",
        body,
        _geolocation_script(state),
    )


def find_listing_images(listing: Listing, images_dir: Path = config.LISTING_IMAGES_DIR) -> List[str]:
    """Image URLs for a listing: declared images first, then numbered files on disk."""
    urls = [img for img in listing.images if img]
    folder = images_dir / listing.id
    for index in range(1, config.MAX_LISTING_IMAGES + 1):
        candidate = folder / f"{index}.jpg"
        if candidate.is_file():
            url = f"/static/listing-images/{quote(listing.id, safe='')}/{index}.jpg"
            if url not in urls:
                urls.append(url)
    return urls[: config.MAX_LISTING_IMAGES]


def render_listing_page(
    store: ListingStore,
    listing: Listing,
    token: Optional[str] = None,
    images: Optional[List[str]] = None,
) -> str:
    maps_url = f"https://www.google.com/maps?q={listing.lat},{listing.lng}"
    rating_parts = format_rating_parts(listing.rating, listing.user_rating_count)

    header_extra: List[str] = []
    if rating_parts:
        header_extra.append(
            f'<div class="detail-line"><b>From Google:</b> {e(" • ".join(rating_parts))}</div>'
        )

    badges: List[str] = []
    if listing.open_now is not None:
        badges.append(
            '<span class="badge open">Open now</span>'
            if listing.open_now
            else '<span class="badge closed">Closed now</span>'
        )
    if listing.is_verified:
        badges.append(_verified_badge(listing))
    elif listing.verification_status:
        badges.append('<span class="badge needs-check">Not yet verified</span>')

    note = ""
    if listing.note:
        note = f'<div class="note"><div class="label">Notes</div><div>{e(listing.note)}</div></div>'

    actions: List[str] = []
    if listing.website:
        actions.append(
            f'<a class="action" href="{e(listing.website)}" target="_blank" rel="noreferrer">'
            f"Website ({e(pretty_url(listing.website))})</a>"
        )
    if listing.phone:
        actions.append(f'<a class="action" href="tel:{e(listing.phone)}">Call {e(listing.phone)}</a>')
    actions.append(
        f'<a class="action" href="{e(maps_url)}" target="_blank" rel="noreferrer">Open in Google Maps</a>'
    )

    if token:
        mini_map = (
            f'<iframe class="mini-map" src="{e(listing_href(listing.slug))}/map" '
            f'title="Map of {e(listing.name)}"></iframe>'
        )
    else:
        mini_map = f'<div class="map-missing">{e(MISSING_TOKEN_MESSAGE)}</div>'

    if listing.writeup:
        about = f'<div class="writeup">{e(listing.writeup)}</div>'
    else:
        about = '<div class="muted">About content coming soon.</div>'

    gallery = ""
    if images:
        gallery = '<div class="gallery">' + "".join(
            f'<img src="{e(url)}" alt="{e(listing.name)}" loading="lazy">' for url in images
        ) + "</div>"

    nearby = nearby_listings(store, listing)
    nearby_cards = "".join(
        f'<a class="card" href="{e(listing_href(n.listing.slug))}">'
        f'<div class="card-name">{e(n.listing.name)}</div>'
        f'<div class="card-address">{e(n.listing.address)}</div>'
        f'<div class="card-meta">{e(CATEGORY_LABELS.get(n.listing.category, ""))} • {n.distance_km:.1f} km</div>'
        "</a>"
        for n in nearby
    )
    if not nearby:
        nearby_cards = '<div class="empty">No nearby listings yet.</div>'

    body = f"""
<div class="detail">
  <a href="/" class="back">← Back to map</a>
  <div class="detail-grid">
    <article class="panel">
      <div class="detail-head">
        <div>
          <div class="muted">{e(CATEGORY_LABELS.get(listing.category, ""))}</div>
          <h1>{e(listing.name)}</h1>
          <div class="detail-line"><b>Address:</b> {e(listing.address)}</div>
          {"".join(header_extra)}
        </div>
        <div class="badges">{"".join(badges)}</div>
      </div>
      {note}
      <div class="actions">{"".join(actions)}</div>
      <div class="label">Map</div>
      {mini_map}
      <div class="label">About</div>
      <div class="about">{about}</div>
    </article>
    <aside class="panel">
      {gallery}
      <div class="title">Nearby places</div>
      <div class="muted">Within ~{config.NEARBY_RADIUS_KM:g} km</div>
      <div class="results">{nearby_cards}</div>
    </aside>
  </div>
</div>
"""
    return layout(f"{listing.name} - DogFriendlyPlaces.sg", body)


def render_not_found(message: str = "Listing not found") -> str:
    body = f'<div class="panel"><h1>{e(message)}</h1><a href="/" class="back">← Back to map</a></div>'
    return layout(f"{message} - DogFriendlyPlaces.sg", body)


def render_sitemap(store: ListingStore, base_url: str, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).replace(microsecond=0).isoformat()
    urls = [base_url] + [f"{base_url}{listing_href(listing.slug)}" for listing in store]
    entries = "".join(
        f"<url><loc>{xml_escape(url)}</loc><lastmod>{stamp}</lastmod></url>" for url in urls
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>\n'
    )
